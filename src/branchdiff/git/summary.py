"""Per-file change summary built from ``--numstat`` and ``--name-status`` output."""

from __future__ import annotations

from typing import Protocol

from branchdiff.git.models import ChangeRecord, ChangeStatus
from branchdiff.git.provider import GitError
from branchdiff.runtime_logging import get_runtime_logger

BINARY_SENTINEL = "-"


class SummaryProvider(Protocol):
    async def numstat(self, base: str, *, start: str | None = None) -> str: ...

    async def name_status(self, base: str, *, start: str | None = None) -> str: ...


def _stat_value(raw: str) -> int:
    raw = raw.strip()
    if raw == BINARY_SENTINEL:
        return 0
    try:
        return max(int(raw), 0)
    except ValueError:
        return 0


def parse_numstat(output: str) -> list[tuple[int, int, str]]:
    """Parse ``git diff --numstat -z`` output.

    Each record is ``additions<TAB>deletions<TAB>path``. A rename leaves the
    path empty and follows with the old and new paths as separate fields; the
    new path is kept. ``-`` counts (binary files) become 0.
    """
    fields = iter(output.split("\0"))
    entries: list[tuple[int, int, str]] = []
    for field in fields:
        parts = field.split("\t", 2)
        if len(parts) < 3:
            continue
        additions, deletions, path = parts
        if not path:
            next(fields, "")
            path = next(fields, "")
        if path:
            entries.append((_stat_value(additions), _stat_value(deletions), path))
    return entries


def classify_status(letter: str) -> ChangeStatus:
    # Only the first character matters; R100, R087 etc. carry a similarity score.
    code = letter[:1].upper()
    if code == "A":
        return "added"
    if code == "D":
        return "deleted"
    if code == "R":
        return "renamed"
    return "modified"


def parse_name_status(output: str) -> dict[str, ChangeStatus]:
    """Map each path of ``--name-status -z`` output to its status.

    Renames and copies carry two paths; the new one is the key.
    """
    fields = iter(output.split("\0"))
    statuses: dict[str, ChangeStatus] = {}
    for letter in fields:
        if not letter:
            continue
        path = next(fields, "")
        if letter[:1] in ("R", "C"):
            path = next(fields, "")
        if path:
            statuses[path] = classify_status(letter)
    return statuses


def reconcile(
    numstat: list[tuple[int, int, str]],
    statuses: dict[str, ChangeStatus],
) -> list[ChangeRecord]:
    """Join by exact path in numstat order; a path missing from ``statuses`` is ``modified``."""
    return [
        ChangeRecord(
            path=path,
            status=statuses.get(path, "modified"),
            additions=additions,
            deletions=deletions,
        )
        for additions, deletions, path in numstat
    ]


async def collect(
    provider: SummaryProvider,
    base: str,
    *,
    start: str | None = None,
) -> list[ChangeRecord]:
    """Return one record per changed file, or ``[]`` when git is unavailable."""
    logger = get_runtime_logger().bind(component="summary")
    try:
        numstat_output = await provider.numstat(base, start=start)
        status_output = await provider.name_status(base, start=start)
    except (GitError, OSError) as exc:
        logger.warning("summary.collect.failed", base=base, error=str(exc))
        return []

    records = reconcile(parse_numstat(numstat_output), parse_name_status(status_output))
    logger.info("summary.collect.done", base=base, files=len(records))
    return records
