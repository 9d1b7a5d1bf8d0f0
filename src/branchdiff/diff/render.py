"""Turn one file's unified diff text into row-aligned inline and split views.

``render`` is a pure function: it performs no I/O, keeps no state between
calls and never raises. Malformed fragments are skipped rather than aborting
the whole file.

Line numbering follows the hunk headers. ``@@ -10,5 +12,7 @@`` makes the next
old-side row line 10 and the next new-side row line 12, and the declared
counts are parsed but never used to bound the hunk.
"""

from __future__ import annotations

import re

from branchdiff.diff.models import DiffLine, HunkHeader, RenderedFileDiff, SplitRow

HUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>[0-9]+)(?:,(?P<old_count>[0-9]*))? "
    r"\+(?P<new_start>[0-9]+)(?:,(?P<new_count>[0-9]*))? @@(?P<section>.*)$"
)

METADATA_PREFIXES = ("diff --git", "index ", "---", "+++")

# Extended git header lines only appear between ``diff --git`` and the first hunk.
FILE_HEADER_PREFIXES = (
    "new file mode ",
    "deleted file mode ",
    "old mode ",
    "new mode ",
    "similarity index ",
    "dissimilarity index ",
    "rename from ",
    "rename to ",
    "copy from ",
    "copy to ",
    "Binary files ",
)

NO_NEWLINE_MARKER = "\\"


def parse_hunk_header(line: str) -> HunkHeader | None:
    match = HUNK_HEADER_RE.match(line)
    if match is None:
        return None
    try:
        return HunkHeader(
            old_start=int(match.group("old_start")),
            old_count=_count(match.group("old_count")),
            new_start=int(match.group("new_start")),
            new_count=_count(match.group("new_count")),
            section=match.group("section").strip(),
        )
    except ValueError:
        return None


def _count(raw: str | None) -> int:
    # An omitted count means a one-line range.
    if raw is None or raw == "":
        return 1
    return int(raw)


def render(diff_text: str, path: str) -> RenderedFileDiff:
    if not diff_text:
        return RenderedFileDiff(path=path)

    inline: list[DiffLine] = []
    split: list[SplitRow] = []
    skipped_headers = 0
    old_line = 0
    new_line = 0
    in_file_header = True

    # Only "\n" separates diff lines; form feeds and other separators stay in the text.
    for raw in diff_text.split("\n"):
        raw = raw.removesuffix("\r")
        if not raw:
            continue
        if raw.startswith(METADATA_PREFIXES):
            if raw.startswith("diff --git"):
                in_file_header = True
            continue
        if in_file_header and raw.startswith(FILE_HEADER_PREFIXES):
            continue
        if raw.startswith(NO_NEWLINE_MARKER):
            continue

        if raw.startswith("@@"):
            header = parse_hunk_header(raw)
            if header is None:
                skipped_headers += 1
                continue
            in_file_header = False
            old_line = header.old_start
            new_line = header.new_start
            row = DiffLine(kind="hunk_header", old_line=None, new_line=None, text=raw)
            inline.append(row)
            split.append(SplitRow(left=row, right=row))
            continue

        if raw.startswith("+"):
            row = DiffLine(
                kind="addition",
                old_line=None,
                new_line=new_line,
                text=raw[1:],
                editable=True,
            )
            inline.append(row)
            split.append(SplitRow(left=None, right=row))
            new_line += 1
        elif raw.startswith("-"):
            row = DiffLine(
                kind="deletion",
                old_line=old_line,
                new_line=None,
                text=raw[1:],
                editable=False,
            )
            inline.append(row)
            split.append(SplitRow(left=row, right=None))
            old_line += 1
        else:
            text = raw[1:] if raw.startswith(" ") else raw
            left = DiffLine(kind="context", old_line=old_line, new_line=new_line, text=text)
            right = DiffLine(
                kind="context",
                old_line=old_line,
                new_line=new_line,
                text=text,
                editable=True,
            )
            inline.append(right)
            split.append(SplitRow(left=left, right=right))
            old_line += 1
            new_line += 1

    return RenderedFileDiff(
        path=path,
        inline_lines=tuple(inline),
        split_lines=tuple(split),
        skipped_headers=skipped_headers,
    )
