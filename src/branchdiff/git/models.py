"""Records describing what changed between a base ref and the working tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ChangeStatus = Literal["added", "modified", "deleted", "renamed"]

STATUS_LETTERS: dict[str, str] = {
    "added": "A",
    "modified": "M",
    "deleted": "D",
    "renamed": "R",
}


@dataclass(slots=True, frozen=True)
class ChangeRecord:
    path: str
    status: ChangeStatus
    additions: int
    deletions: int

    @property
    def letter(self) -> str:
        return STATUS_LETTERS.get(self.status, "M")


@dataclass(slots=True, frozen=True)
class FileSources:
    old_content: str
    new_content: str
