"""Sidebar listing changed files with status letters and line counts."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import ListItem, ListView, Static

from branchdiff.diff.terminal import summary_line
from branchdiff.git.models import ChangeRecord
from branchdiff.messages import FileSelected


class ChangeItem(ListItem):
    def __init__(self, record: ChangeRecord, index: int) -> None:
        self.record = record
        super().__init__(Static(summary_line(record)), id=f"change-{index}")


class ChangeList(Vertical):
    DEFAULT_CSS = """
    ChangeList {
        width: 36;
        border: round $surface-lighten-2;
        padding: 0 1;
    }

    ChangeList #totals {
        height: auto;
        color: $text-muted;
        margin-bottom: 1;
    }

    ChangeList ListView {
        height: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("Loading…", id="totals")
        yield ListView(id="change-items")

    async def show_records(self, base: str, records: list[ChangeRecord]) -> None:
        additions = sum(record.additions for record in records)
        deletions = sum(record.deletions for record in records)
        self.query_one("#totals", Static).update(
            Text(f"Diff: {base}\n{len(records)} files +{additions} -{deletions}")
        )
        items = self.query_one(ListView)
        await items.clear()
        await items.extend(ChangeItem(record, index) for index, record in enumerate(records))

    def show_loading(self, base: str) -> None:
        self.query_one("#totals", Static).update(Text(f"Diff: {base}\nLoading…"))

    @property
    def paths(self) -> list[str]:
        return [item.record.path for item in self.query(ChangeItem)]

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        if isinstance(event.item, ChangeItem):
            self.post_message(FileSelected(path=event.item.record.path))
