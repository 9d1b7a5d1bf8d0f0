from __future__ import annotations

import unittest
from datetime import UTC, datetime

from rich.console import Console

from branchdiff.diff.html import escape_text, render_inline, render_report, render_split
from branchdiff.diff.render import render
from branchdiff.diff.terminal import inline_cells, split_cells, split_table, summary_line, summary_table
from branchdiff.git.models import ChangeRecord

MARKUP_DIFF = '@@ -1,2 +1,2 @@\n <div class="x">\n-[bold]old[/bold] & \'q\'\n+<script>alert(1)</script>\n'


class HtmlPresenterTests(unittest.TestCase):
    def test_escapes_all_markup_characters(self) -> None:
        self.assertEqual(escape_text("<a href=\"x\">'&'</a>"), "&lt;a href=&quot;x&quot;&gt;&#x27;&amp;&#x27;&lt;/a&gt;")

    def test_inline_output_never_contains_raw_source_markup(self) -> None:
        output = render_inline(render(MARKUP_DIFF, "page.html"))
        self.assertNotIn("<script>", output)
        self.assertIn("&lt;script&gt;alert(1)&lt;/script&gt;", output)
        self.assertIn("&lt;div class=&quot;x&quot;&gt;", output)

    def test_split_marks_only_current_revision_lines_editable(self) -> None:
        rendered = render(MARKUP_DIFF, "page.html")
        left, right = render_split(rendered)
        self.assertNotIn("data-line", left)
        self.assertIn('data-file="page.html" data-line="1"', right)
        self.assertIn('data-line="2"', right)
        self.assertEqual(left.count('class="diff-line'), right.count('class="diff-line'))
        self.assertIn("diff-line empty", left)
        self.assertIn("diff-line empty", right)

    def test_report(self) -> None:
        record = ChangeRecord(path="page.html", status="modified", additions=1, deletions=1)
        document = render_report(
            "main",
            [(record, render(MARKUP_DIFF, record.path))],
            view="inline",
            generated_at=datetime(2024, 1, 2, tzinfo=UTC),
        )
        self.assertTrue(document.startswith("<!DOCTYPE html>"))
        self.assertIn("<title>Diff: main</title>", document)
        self.assertIn("1 files", document)
        self.assertIn('href="#file-page.html"', document)
        self.assertIn('<div class="split-view diff-table" hidden>', document)
        self.assertIn('<div class="inline-view">', document)
        self.assertIn("Generated 2024-01-02T00:00:00+00:00", document)
        self.assertNotIn("<script>", document)

    def test_empty_report(self) -> None:
        document = render_report("main", [])
        self.assertIn("No changes found", document)
        self.assertIn("0 files", document)


class TerminalPresenterTests(unittest.TestCase):
    def test_cells_keep_markup_literal(self) -> None:
        rendered = render(MARKUP_DIFF, "page.html")
        old, new, text = inline_cells(rendered.inline_lines[2])
        self.assertEqual(old.plain, "2")
        self.assertEqual(new.plain, "")
        self.assertEqual(text.plain, "-[bold]old[/bold] & 'q'")

    def test_split_cells_leave_padding_empty(self) -> None:
        rendered = render(MARKUP_DIFF, "page.html")
        header = split_cells(rendered.split_lines[0])
        self.assertEqual((header[0].plain, header[2].plain), ("", ""))
        added = split_cells(rendered.split_lines[3])
        self.assertEqual((added[0].plain, added[1].plain), ("", ""))
        self.assertEqual(added[2].plain, "2")
        self.assertEqual(added[3].plain, "<script>alert(1)</script>")

    def test_tables_render(self) -> None:
        console = Console(width=120, record=True, color_system=None)
        console.print(split_table(render(MARKUP_DIFF, "page.html")))
        records = [
            ChangeRecord(path="page.html", status="modified", additions=1, deletions=1),
            ChangeRecord(path="new.py", status="added", additions=4, deletions=0),
        ]
        console.print(summary_table("main", records))
        output = console.export_text()
        self.assertIn("[bold]old[/bold]", output)
        self.assertIn("2 files +5 -1", output)
        self.assertEqual(summary_line(records[1]).plain, "A new.py +4 -0")


if __name__ == "__main__":
    unittest.main()
