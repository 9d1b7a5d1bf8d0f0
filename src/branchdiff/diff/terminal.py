"""rich renderables for rendered diffs and change summaries.

Cells are built as ``rich.text.Text`` objects, never from markup strings, so
square brackets and other markup characters in source lines are shown
verbatim.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.table import Table
from rich.text import Text

from branchdiff.diff.models import DiffLine, RenderedFileDiff, SplitRow
from branchdiff.git.models import ChangeRecord

LINE_STYLES: dict[str, str] = {
    "addition": "green",
    "deletion": "red",
    "context": "",
    "hunk_header": "bold cyan",
}

STATUS_STYLES: dict[str, str] = {
    "added": "bold green",
    "modified": "bold yellow",
    "deleted": "bold red",
    "renamed": "bold magenta",
}

EMPTY_CELL_STYLE = "dim"


def _number(value: int | None) -> Text:
    return Text("" if value is None else str(value), style="dim", justify="right")


def _text(line: DiffLine | None, *, with_marker: bool) -> Text:
    if line is None:
        return Text("", style=EMPTY_CELL_STYLE)
    body = line.text
    if with_marker and line.kind != "hunk_header":
        body = f"{line.marker}{body}"
    return Text(body, style=LINE_STYLES[line.kind], no_wrap=True)


def inline_cells(line: DiffLine) -> tuple[Text, Text, Text]:
    return _number(line.old_line), _number(line.new_line), _text(line, with_marker=True)


def split_cells(row: SplitRow) -> tuple[Text, Text, Text, Text]:
    left_number = row.left.old_line if row.left and row.left.kind != "hunk_header" else None
    right_number = row.right.new_line if row.right and row.right.kind != "hunk_header" else None
    return (
        _number(left_number),
        _text(row.left, with_marker=False),
        _number(right_number),
        _text(row.right, with_marker=False),
    )


def inline_table(rendered: RenderedFileDiff) -> Table:
    table = Table(title=rendered.path, show_header=True, expand=True, box=None, pad_edge=False)
    table.add_column("old", justify="right", width=6)
    table.add_column("new", justify="right", width=6)
    table.add_column("", ratio=1, no_wrap=True)
    for line in rendered.inline_lines:
        table.add_row(*inline_cells(line))
    return table


def split_table(rendered: RenderedFileDiff) -> Table:
    table = Table(title=rendered.path, show_header=True, expand=True, box=None, pad_edge=False)
    table.add_column("old", justify="right", width=6)
    table.add_column("before", ratio=1, no_wrap=True)
    table.add_column("new", justify="right", width=6)
    table.add_column("after", ratio=1, no_wrap=True)
    for row in rendered.split_lines:
        table.add_row(*split_cells(row))
    return table


def summary_line(record: ChangeRecord) -> Text:
    line = Text()
    line.append(f"{record.letter} ", style=STATUS_STYLES.get(record.status, ""))
    line.append(record.path)
    line.append(f" +{record.additions}", style="green")
    line.append(f" -{record.deletions}", style="red")
    return line


def summary_table(base: str, records: Sequence[ChangeRecord]) -> Table:
    additions = sum(record.additions for record in records)
    deletions = sum(record.deletions for record in records)
    table = Table(
        title=f"Diff: {base}",
        caption=f"{len(records)} files +{additions} -{deletions}",
        box=None,
    )
    table.add_column("status")
    table.add_column("path", overflow="fold")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    for record in records:
        table.add_row(
            Text(record.letter, style=STATUS_STYLES.get(record.status, "")),
            Text(record.path),
            str(record.additions),
            str(record.deletions),
        )
    return table
