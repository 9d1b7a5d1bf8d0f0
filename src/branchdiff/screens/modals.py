"""Modal screens: base picker, single-line editor, base-version viewer."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, ListItem, ListView, Static

from branchdiff.session import EditIntent


class BranchPickerModal(ModalScreen[str | None]):
    DEFAULT_CSS = """
    BranchPickerModal {
        align: center middle;
    }

    BranchPickerModal > Vertical {
        width: 70;
        height: auto;
        max-height: 70%;
        border: round $secondary;
        background: $surface;
        padding: 1;
    }

    BranchPickerModal ListView {
        height: 1fr;
        min-height: 8;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, branches: list[str], current: str | None = None) -> None:
        self.branches = branches
        self.current = current
        super().__init__()

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("[b]Select branch to compare against[/b]", markup=True)
            items = [
                ListItem(Static(Text(("* " if name == self.current else "  ") + name)), name=name)
                for name in self.branches
            ]
            yield ListView(*items, id="branch-list")
            yield Button("Close", id="close", variant="primary")

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self.dismiss(event.item.name if event.item else None)

    def on_button_pressed(self, _event: Button.Pressed) -> None:
        self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class LineEditModal(ModalScreen[str | None]):
    DEFAULT_CSS = """
    LineEditModal {
        align: center middle;
    }

    LineEditModal > Vertical {
        width: 100;
        height: auto;
        border: round $warning;
        background: $surface;
        padding: 1;
    }

    LineEditModal Horizontal {
        height: auto;
        margin-top: 1;
    }

    LineEditModal Button {
        width: 1fr;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, intent: EditIntent) -> None:
        self.intent = intent
        super().__init__()

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(Text(f"Edit {self.intent.file}:{self.intent.line}", style="bold"))
            yield Input(value=self.intent.content, id="line-content")
            with Horizontal():
                yield Button("Save", id="save", variant="success")
                yield Button("Cancel", id="cancel")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save":
            self.dismiss(self.query_one("#line-content", Input).value)
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class SourceModal(ModalScreen[None]):
    DEFAULT_CSS = """
    SourceModal {
        align: center middle;
    }

    SourceModal > Vertical {
        width: 120;
        height: 80%;
        border: round $accent;
        background: $surface;
        padding: 1;
    }

    SourceModal VerticalScroll {
        height: 1fr;
    }
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self, title: str, source_text: str) -> None:
        self.heading = title
        self.source_text = source_text
        super().__init__()

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(Text(self.heading, style="bold"))
            with VerticalScroll():
                yield Static(Text(self.source_text or "(empty)"))
            yield Button("Close", id="close", variant="primary")

    def on_button_pressed(self, _event: Button.Pressed) -> None:
        self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)
