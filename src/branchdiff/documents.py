"""Single-line document edits and opening files in the user's editor."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import click

from branchdiff.runtime_logging import get_runtime_logger


class EditError(RuntimeError):
    pass


def _split_ending(line: str) -> tuple[str, str]:
    for ending in ("\r\n", "\n", "\r"):
        if line.endswith(ending):
            return line[: -len(ending)], ending
    return line, ""


class DocumentEditor:
    """Replace whole lines of files under ``project_root``, keeping their line endings."""

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root.expanduser().resolve()
        self.logger = get_runtime_logger().bind(component="documents")

    def resolve(self, path: str) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.project_root / candidate
        resolved = candidate.resolve()
        try:
            resolved.relative_to(self.project_root)
        except ValueError as exc:
            raise EditError(f"{path} is outside {self.project_root}") from exc
        return resolved

    def read_line(self, path: str, line: int) -> str:
        lines = self._read_lines(self.resolve(path))
        if line < 1 or line > len(lines):
            raise EditError(f"{path} has no line {line}")
        return _split_ending(lines[line - 1])[0]

    def replace_line(self, path: str, line: int, content: str) -> None:
        if line < 1:
            raise EditError(f"line numbers start at 1, got {line}")
        if "\n" in content or "\r" in content:
            raise EditError("replacement must be a single line")

        target = self.resolve(path)
        lines = self._read_lines(target)
        if line > len(lines):
            raise EditError(f"{path} has {len(lines)} lines, cannot edit line {line}")

        _, ending = _split_ending(lines[line - 1])
        lines[line - 1] = content + ending
        self._write_atomic(target, "".join(lines))
        self.logger.info("documents.line_replaced", path=path, line=line)

    def _read_lines(self, target: Path) -> list[str]:
        try:
            with target.open("r", encoding="utf-8", newline="") as handle:
                return handle.read().splitlines(keepends=True)
        except (OSError, UnicodeDecodeError) as exc:
            raise EditError(f"cannot read {target}: {exc}") from exc

    def _write_atomic(self, target: Path, text: str) -> None:
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(text)
            os.chmod(tmp_name, target.stat().st_mode)
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            self.logger.error("documents.write_failed", path=str(target), error=str(exc))
            raise EditError(f"cannot write {target}: {exc}") from exc


def open_in_editor(path: Path, editor: str | None = None) -> None:
    """Open ``path`` in ``$EDITOR`` (or ``editor``), blocking until it exits."""
    if not path.exists():
        raise EditError(f"File not found: {path}")
    try:
        click.edit(filename=str(path), editor=editor)
    except click.ClickException as exc:
        raise EditError(f"Could not open file: {path} ({exc.format_message()})") from exc
