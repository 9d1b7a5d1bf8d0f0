"""One collapsible section per changed file, showing its diff as a table."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import DataTable, Static

from branchdiff.config.models import DiffView
from branchdiff.diff.terminal import STATUS_STYLES, inline_cells, split_cells
from branchdiff.messages import LineEditRequested, OpenFileRequested
from branchdiff.session import FileEntry


class FileDiffPanel(Vertical):
    BINDINGS = [
        ("o", "open_file", "Open File"),
        ("m", "toggle_minimized", "Minimize"),
    ]

    DEFAULT_CSS = """
    FileDiffPanel {
        height: auto;
        margin-bottom: 1;
        border: round $surface-lighten-2;
    }

    FileDiffPanel .file-header {
        height: 1;
        background: $boost;
        padding: 0 1;
    }

    FileDiffPanel DataTable {
        height: auto;
        max-height: 60;
    }

    FileDiffPanel .empty-diff {
        color: $text-muted;
        padding: 0 1;
    }

    FileDiffPanel.minimized DataTable, FileDiffPanel.minimized .empty-diff {
        display: none;
    }
    """

    def __init__(self, entry: FileEntry, *, view: DiffView, index: int) -> None:
        self.entry = entry
        self.view = view
        super().__init__(id=f"file-{index}")

    @property
    def path(self) -> str:
        return self.entry.path

    def compose(self) -> ComposeResult:
        yield Static(self._header(), classes="file-header")
        if self.entry.rendered.is_empty:
            yield Static("No textual changes to display", classes="empty-diff")
            return
        yield DataTable(cursor_type="row", zebra_stripes=False, show_cursor=True)

    def on_mount(self) -> None:
        self._populate()

    def _header(self) -> Text:
        record = self.entry.record
        header = Text()
        header.append(f"{record.letter} ", style=STATUS_STYLES.get(record.status, ""))
        header.append(record.path, style="bold")
        header.append(f"  +{record.additions}", style="green")
        header.append(f" -{record.deletions}", style="red")
        return header

    def set_view(self, view: DiffView) -> None:
        if view == self.view:
            return
        self.view = view
        self._populate()

    def _populate(self) -> None:
        tables = self.query(DataTable)
        if not tables:
            return
        table = tables.first()
        table.clear(columns=True)
        rendered = self.entry.rendered
        # Row keys are row indexes, which are identical in both views.
        if self.view == "inline":
            table.add_column("old", width=6)
            table.add_column("new", width=6)
            table.add_column("line")
            for index, line in enumerate(rendered.inline_lines):
                table.add_row(*inline_cells(line), key=str(index))
        else:
            table.add_column("old", width=6)
            table.add_column("before")
            table.add_column("new", width=6)
            table.add_column("after")
            for index, row in enumerate(rendered.split_lines):
                table.add_row(*split_cells(row), key=str(index))

    @property
    def minimized(self) -> bool:
        return self.has_class("minimized")

    def set_minimized(self, minimized: bool) -> None:
        self.set_class(minimized, "minimized")

    def action_toggle_minimized(self) -> None:
        self.toggle_class("minimized")

    def action_open_file(self) -> None:
        self.post_message(OpenFileRequested(path=self.path))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        event.stop()
        row_key = event.row_key.value
        if row_key is None:
            return
        self.post_message(LineEditRequested(path=self.path, row=int(row_key)))
