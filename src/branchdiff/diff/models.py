"""Row model shared by the diff renderer and its presenters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

LineKind = Literal["context", "addition", "deletion", "hunk_header"]


@dataclass(slots=True, frozen=True)
class HunkHeader:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""


@dataclass(slots=True, frozen=True)
class DiffLine:
    kind: LineKind
    old_line: int | None
    new_line: int | None
    text: str
    editable: bool = False

    @property
    def marker(self) -> str:
        return {"addition": "+", "deletion": "-", "context": " "}.get(self.kind, "")


@dataclass(slots=True, frozen=True)
class SplitRow:
    """One split-view row; ``None`` on a side means an empty padding cell."""

    left: DiffLine | None
    right: DiffLine | None


@dataclass(slots=True, frozen=True)
class RenderedFileDiff:
    """Inline and split views of one file; row ``i`` of each comes from the same source line."""

    path: str
    inline_lines: tuple[DiffLine, ...] = ()
    split_lines: tuple[SplitRow, ...] = ()
    skipped_headers: int = 0

    def __len__(self) -> int:
        return len(self.inline_lines)

    @property
    def is_empty(self) -> bool:
        return not self.inline_lines

    def editable_line(self, new_line: int) -> DiffLine | None:
        """Return the editable row shown for ``new_line`` of the current revision."""
        for line in self.inline_lines:
            if line.editable and line.new_line == new_line:
                return line
        return None
