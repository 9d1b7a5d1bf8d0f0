"""CLI entrypoint for branchdiff."""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from pathlib import Path

import click
from rich.console import Console

from branchdiff.app import BranchDiffApp
from branchdiff.config.models import AppSettings
from branchdiff.config.store import SettingsStore
from branchdiff.diff.html import render_report
from branchdiff.diff.render import render
from branchdiff.diff.terminal import inline_table, split_table, summary_table
from branchdiff.git.provider import GitProvider
from branchdiff.paths import export_default_path, settings_path
from branchdiff.runtime_logging import LOG_LEVELS, configure_runtime_logging
from branchdiff.session import DiffSession, DiffSnapshot
from branchdiff.version import __version__

_project_option = click.option(
    "--project",
    "project_dir",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, exists=True),
    help="Repository working tree",
)


def _provider(project_dir: str, settings: AppSettings) -> GitProvider:
    return GitProvider(
        Path(project_dir).expanduser().resolve(),
        executable=settings.git.executable,
        timeout_s=settings.git.timeout_s,
        max_output_bytes=settings.git.max_output_bytes,
    )


def _session(project_dir: str, base: str | None) -> DiffSession:
    settings = SettingsStore().load()
    return DiffSession(_provider(project_dir, settings), base=base, settings=settings)


def _snapshot(session: DiffSession) -> DiffSnapshot:
    snapshot = asyncio.run(session.refresh())
    if snapshot is None:
        raise click.ClickException("Diff refresh was superseded")
    return snapshot


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--log-level", type=click.Choice(LOG_LEVELS), default=None, help="Runtime log level")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Runtime log file")
@click.pass_context
def main(ctx: click.Context, log_level: str | None, log_file: str | None) -> None:
    """branchdiff: review everything your branch changed, inline or side by side."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    ctx.obj["log_file"] = log_file
    configure_runtime_logging(level=log_level, log_file=log_file)
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@click.argument("base", required=False)
@_project_option
@click.option("--no-watch", is_flag=True, help="Disable live refresh on file changes")
@click.option("--no-update-check", is_flag=True, help="Skip the PyPI update check")
@click.pass_context
def run(
    ctx: click.Context,
    base: str | None,
    project_dir: str,
    no_watch: bool,
    no_update_check: bool,
) -> None:
    """Open the diff viewer against BASE (default: the configured default branch)."""
    options = ctx.obj or {}
    app = BranchDiffApp(
        project_root=Path(project_dir),
        base=base,
        settings_store=SettingsStore(),
        enable_watcher=not no_watch,
        check_updates=not no_update_check,
        log_level=options.get("log_level"),
        log_file=options.get("log_file"),
    )
    app.run()


@main.command()
@click.argument("base", required=False)
@_project_option
@click.option("--json", "as_json", is_flag=True, help="Print records as JSON")
def summary(base: str | None, project_dir: str, as_json: bool) -> None:
    """List changed files with status and line counts."""
    snapshot = _snapshot(_session(project_dir, base))
    if as_json:
        payload = {
            "base": snapshot.base,
            "files": [asdict(record) for record in snapshot.records],
            "additions": snapshot.total_additions,
            "deletions": snapshot.total_deletions,
        }
        click.echo(json.dumps(payload, indent=2))
        return
    Console().print(summary_table(snapshot.base, snapshot.records))


@main.command()
@click.argument("path")
@click.option("--base", default=None, help="Base ref (default: the configured default branch)")
@_project_option
@click.option("--view", type=click.Choice(["inline", "split"]), default=None)
@click.option("--original", is_flag=True, help="Print the file as it is in BASE instead")
def show(path: str, base: str | None, project_dir: str, view: str | None, original: bool) -> None:
    """Render the diff of one file in the terminal."""
    session = _session(project_dir, base)
    provider = session.provider

    async def load() -> tuple[str, str]:
        resolved = await session.resolve_base()
        if original:
            sources = await provider.file_sources(resolved, path)
            return resolved, sources.old_content
        return resolved, await provider.diff_text(
            resolved, path, context_lines=session.settings.diff.context_lines
        )

    resolved, text = asyncio.run(load())
    if original:
        click.echo(text, nl=False)
        return
    rendered = render(text, provider.relative_path(path))
    if rendered.is_empty:
        click.echo(f"No changes in {path} against {resolved}")
        return
    chosen = view or session.settings.diff.view
    table = inline_table(rendered) if chosen == "inline" else split_table(rendered)
    Console().print(table)


@main.command()
@click.argument("base", required=False)
@_project_option
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None, help="Output HTML file")
@click.option("--view", type=click.Choice(["inline", "split"]), default=None)
def export(base: str | None, project_dir: str, output: str | None, view: str | None) -> None:
    """Write a standalone HTML report of all changes."""
    session = _session(project_dir, base)
    snapshot = _snapshot(session)
    document = render_report(
        snapshot.base,
        [(entry.record, entry.rendered) for entry in snapshot.entries],
        view=view or session.settings.diff.view,
    )
    target = Path(output) if output else export_default_path(session.provider.project_root, snapshot.base)
    try:
        target.write_text(document, encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Cannot write {target}: {exc.strerror or exc}") from exc
    click.echo(str(target))


@main.command()
@_project_option
def branches(project_dir: str) -> None:
    """List branches that can be used as a base."""
    names = asyncio.run(_provider(project_dir, SettingsStore().load()).branches())
    if not names:
        raise click.ClickException("No branches found")
    for name in names:
        click.echo(name)


@main.command("settings")
def settings_command() -> None:
    """Print every setting and its current value."""
    for key, value in SettingsStore().load().setting_items():
        click.echo(f"{key} = {value}")


@main.command("settings-path")
def settings_path_command() -> None:
    """Print settings file path."""
    click.echo(str(settings_path()))


@main.command()
def about() -> None:
    """Show version and project summary."""
    payload = {
        "name": "branchdiff",
        "version": __version__,
        "description": "Branch diff viewer with inline and split views",
    }
    click.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
