"""Standalone HTML report for a set of rendered file diffs."""

from __future__ import annotations

import html
from collections.abc import Sequence
from datetime import UTC, datetime

from branchdiff.diff.models import DiffLine, RenderedFileDiff
from branchdiff.git.models import ChangeRecord

_CLASSES = {
    "addition": "diff-line add",
    "deletion": "diff-line del",
    "context": "diff-line",
    "hunk_header": "diff-line hunk",
}

_STYLE = """
* { box-sizing: border-box; }
[hidden] { display: none !important; }
body { margin: 0; display: flex; font-family: -apple-system, "Segoe UI", sans-serif; font-size: 13px; }
#sidebar { width: 260px; min-width: 150px; max-width: 600px; height: 100vh; overflow: auto; position: sticky; top: 0; border-right: 1px solid #ddd; padding: 8px; }
#sidebar a { display: block; color: inherit; text-decoration: none; padding: 2px 4px; white-space: nowrap; }
#content { flex: 1; overflow: auto; padding: 8px 16px; }
.totals .add, .stats .add { color: #2da44e; }
.totals .del, .stats .del { color: #cf222e; }
.status { display: inline-block; width: 1.4em; font-weight: bold; }
.status-A { color: #2da44e; } .status-M { color: #bf8700; } .status-D { color: #cf222e; } .status-R { color: #8250df; }
details.file-section { border: 1px solid #ddd; border-radius: 4px; margin: 12px 0; }
details.file-section > summary { padding: 6px 8px; background: #f6f8fa; cursor: pointer; font-family: monospace; }
.diff-table { font-family: ui-monospace, monospace; white-space: pre; }
.diff-line { display: flex; min-height: 1.4em; }
.diff-line.add { background: #e6ffec; } .diff-line.del { background: #ffebe9; }
.diff-line.hunk { background: #ddf4ff; color: #57606a; } .diff-line.empty { background: #f6f8fa; }
.line-num { width: 4em; text-align: right; padding-right: 8px; color: #8c959f; user-select: none; flex-shrink: 0; }
.split-view { display: flex; } .split-view .pane { flex: 1; overflow-x: auto; border-left: 1px solid #eee; }
.empty-state { padding: 32px; color: #57606a; text-align: center; }
"""


def escape_text(text: str) -> str:
    """Escape ``& < > " '`` so diff text can be embedded in markup and attributes."""
    return html.escape(text, quote=True)


def _num(value: int | None) -> str:
    return "" if value is None else str(value)


def _content(line: DiffLine, path: str, *, editable: bool) -> str:
    text = escape_text(line.text)
    if editable and line.editable and line.new_line is not None:
        return (
            f'<span class="line-content editable" data-file="{escape_text(path)}" '
            f'data-line="{line.new_line}">{text}</span>'
        )
    return f'<span class="line-content">{text}</span>'


def _row(line: DiffLine | None, number: int | None, path: str, *, editable: bool) -> str:
    if line is None:
        return '<div class="diff-line empty"><span class="line-num"></span><span class="line-content"></span></div>'
    return (
        f'<div class="{_CLASSES[line.kind]}"><span class="line-num">{_num(number)}</span>'
        f"{_content(line, path, editable=editable)}</div>"
    )


def render_inline(rendered: RenderedFileDiff) -> str:
    rows: list[str] = []
    for line in rendered.inline_lines:
        rows.append(
            f'<div class="{_CLASSES[line.kind]}"><span class="line-num">{_num(line.old_line)}</span>'
            f'<span class="line-num">{_num(line.new_line)}</span>'
            f"{_content(line, rendered.path, editable=True)}</div>"
        )
    return '<div class="diff-table">' + "".join(rows) + "</div>"


def render_split(rendered: RenderedFileDiff) -> tuple[str, str]:
    left: list[str] = []
    right: list[str] = []
    for row in rendered.split_lines:
        left.append(_row(row.left, row.left.old_line if row.left else None, rendered.path, editable=False))
        right.append(_row(row.right, row.right.new_line if row.right else None, rendered.path, editable=True))
    return "".join(left), "".join(right)


def _file_section(record: ChangeRecord, rendered: RenderedFileDiff, *, view: str) -> str:
    left, right = render_split(rendered)
    inline_hidden = "" if view == "inline" else " hidden"
    split_hidden = "" if view == "split" else " hidden"
    anchor = escape_text(record.path)
    return (
        f'<details class="file-section" id="file-{anchor}" open>'
        f'<summary data-file="{anchor}"><span class="status status-{record.letter}">{record.letter}</span>'
        f'{anchor} <span class="stats"><span class="add">+{record.additions}</span> '
        f'<span class="del">-{record.deletions}</span></span></summary>'
        f'<div class="inline-view"{inline_hidden}>{render_inline(rendered)}</div>'
        f'<div class="split-view diff-table"{split_hidden}>'
        f'<div class="pane">{left}</div><div class="pane">{right}</div></div>'
        "</details>"
    )


def render_report(
    base: str,
    files: Sequence[tuple[ChangeRecord, RenderedFileDiff]],
    *,
    view: str = "split",
    generated_at: datetime | None = None,
) -> str:
    """Render a complete HTML document comparing ``base`` with the working tree."""
    stamp = (generated_at or datetime.now(UTC)).isoformat(timespec="seconds")
    additions = sum(record.additions for record, _ in files)
    deletions = sum(record.deletions for record, _ in files)

    toc = "".join(
        f'<a href="#file-{escape_text(record.path)}"><span class="status status-{record.letter}">'
        f"{record.letter}</span>{escape_text(record.path)}</a>"
        for record, _ in files
    )
    if files:
        body = "".join(_file_section(record, rendered, view=view) for record, rendered in files)
    else:
        body = '<div class="empty-state">No changes found</div>'

    title = f"Diff: {escape_text(base)}"
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="en"><head><meta charset="utf-8"><title>{title}</title>'
        f"<style>{_STYLE}</style></head><body>"
        f'<nav id="sidebar"><h3>{title}</h3>'
        f'<div class="totals">{len(files)} files '
        f'<span class="add">+{additions}</span> <span class="del">-{deletions}</span></div>'
        f"{toc}</nav>"
        f'<main id="content"><p class="generated">Generated {stamp}</p>{body}</main>'
        "</body></html>\n"
    )
