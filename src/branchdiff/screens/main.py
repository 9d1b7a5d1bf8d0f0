"""Main diff screen: change list sidebar plus one panel per changed file."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from branchdiff.config.models import DiffView
from branchdiff.messages import FileSelected
from branchdiff.runtime_logging import get_runtime_logger
from branchdiff.session import DiffSnapshot
from branchdiff.widgets.change_list import ChangeList
from branchdiff.widgets.file_diff import FileDiffPanel


class DiffScreen(Screen):
    BINDINGS = [
        ("ctrl+b", "toggle_sidebar", "Sidebar"),
        ("M", "toggle_all", "Minimize All"),
    ]

    DEFAULT_CSS = """
    DiffScreen {
        layout: vertical;
    }

    #main-body {
        height: 1fr;
        layout: horizontal;
    }

    #diff-pane {
        width: 1fr;
        padding: 0 1;
    }

    #status {
        height: 1;
        color: $text-muted;
    }

    #files {
        height: 1fr;
    }

    .empty-state {
        width: 1fr;
        content-align: center middle;
        color: $text-muted;
        padding: 2;
    }

    .hidden {
        display: none;
    }
    """

    def __init__(self, *, view: DiffView, inline_editing: bool) -> None:
        self.view = view
        self.inline_editing = inline_editing
        self.base: str | None = None
        self.snapshot: DiffSnapshot | None = None
        self.logger = get_runtime_logger().bind(component="screen")
        super().__init__()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="main-body"):
            yield ChangeList(id="sidebar")
            with Vertical(id="diff-pane"):
                yield Static(id="status")
                yield VerticalScroll(id="files")
        yield Footer()

    def on_mount(self) -> None:
        self._update_status()

    def _update_status(self, extra: str = "") -> None:
        editing = "on" if self.inline_editing else "off"
        parts = [f"base: {self.base or '…'}", f"view: {self.view}", f"inline editing: {editing}"]
        if extra:
            parts.append(extra)
        self.query_one("#status", Static).update(Text("  |  ".join(parts)))

    def show_loading(self, base: str) -> None:
        self.base = base
        self.sub_title = f"Diff: {base}"
        self.query_one(ChangeList).show_loading(base)
        self._update_status("loading…")

    async def show_snapshot(self, snapshot: DiffSnapshot) -> None:
        self.snapshot = snapshot
        self.base = snapshot.base
        self.sub_title = f"Diff: {snapshot.base}"
        await self.query_one(ChangeList).show_records(snapshot.base, snapshot.records)

        files = self.query_one("#files", VerticalScroll)
        await files.remove_children()
        if not snapshot.entries:
            await files.mount(Static("No changes found", classes="empty-state"))
        else:
            await files.mount_all(
                FileDiffPanel(entry, view=self.view, index=index)
                for index, entry in enumerate(snapshot.entries)
            )
        self._update_status()
        self.logger.debug("screen.snapshot.shown", files=snapshot.file_count, generation=snapshot.generation)

    def set_view(self, view: DiffView) -> None:
        self.view = view
        for panel in self.query(FileDiffPanel):
            panel.set_view(view)
        self._update_status()

    def set_inline_editing(self, enabled: bool) -> None:
        self.inline_editing = enabled
        self._update_status()

    def panel_for(self, path: str) -> FileDiffPanel | None:
        for panel in self.query(FileDiffPanel):
            if panel.path == path:
                return panel
        return None

    def on_file_selected(self, message: FileSelected) -> None:
        panel = self.panel_for(message.path)
        if panel is None:
            return
        panel.set_minimized(False)
        self.query_one("#files", VerticalScroll).scroll_to_widget(panel, top=True)

    def action_toggle_sidebar(self) -> None:
        self.query_one("#sidebar", ChangeList).toggle_class("hidden")

    def action_toggle_all(self) -> None:
        panels = list(self.query(FileDiffPanel))
        any_expanded = any(not panel.minimized for panel in panels)
        for panel in panels:
            panel.set_minimized(any_expanded)
