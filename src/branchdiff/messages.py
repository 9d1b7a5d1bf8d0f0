"""Textual message objects for widget/app coordination."""

from __future__ import annotations

from textual.message import Message


class FileSelected(Message):
    def __init__(self, *, path: str) -> None:
        self.path = path
        super().__init__()


class LineEditRequested(Message):
    """A row of a file diff was activated; ``row`` indexes both inline and split rows."""

    def __init__(self, *, path: str, row: int) -> None:
        self.path = path
        self.row = row
        super().__init__()


class OpenFileRequested(Message):
    def __init__(self, *, path: str) -> None:
        self.path = path
        super().__init__()
