from __future__ import annotations

import unittest

from branchdiff.git.models import ChangeRecord
from branchdiff.git.provider import GitError
from branchdiff.git.summary import (
    classify_status,
    collect,
    parse_name_status,
    parse_numstat,
    reconcile,
)


class FakeSummaryProvider:
    def __init__(self, numstat: str = "", name_status: str = "", *, fail: bool = False) -> None:
        self._numstat = numstat
        self._name_status = name_status
        self.fail = fail
        self.calls: list[tuple[str, str, str | None]] = []

    async def numstat(self, base: str, *, start: str | None = None) -> str:
        self.calls.append(("numstat", base, start))
        if self.fail:
            raise GitError(["git", "diff"], "not a git repository", returncode=128)
        return self._numstat

    async def name_status(self, base: str, *, start: str | None = None) -> str:
        self.calls.append(("name_status", base, start))
        return self._name_status


class ParseTests(unittest.TestCase):
    def test_numstat_binary_sentinel_counts_as_zero(self) -> None:
        output = "3\t1\tsrc/app.py\0-\t-\tlogo.png\0\0broken field\0"
        self.assertEqual(parse_numstat(output), [(3, 1, "src/app.py"), (0, 0, "logo.png")])

    def test_numstat_rename_keeps_new_path(self) -> None:
        output = "1\t0\tREADME.md\0" "2\t2\t\0old/name.py\0new/name.py\0" "4\t0\tlast.txt\0"
        self.assertEqual(
            parse_numstat(output),
            [(1, 0, "README.md"), (2, 2, "new/name.py"), (4, 0, "last.txt")],
        )

    def test_paths_are_taken_verbatim(self) -> None:
        output = "1\t0\tcafé.txt\0" "0\t1\twith\ttab.txt\0"
        self.assertEqual(parse_numstat(output), [(1, 0, "café.txt"), (0, 1, "with\ttab.txt")])
        self.assertEqual(parse_name_status("A\0café.txt\0"), {"café.txt": "added"})

    def test_status_letters(self) -> None:
        self.assertEqual(classify_status("A"), "added")
        self.assertEqual(classify_status("D"), "deleted")
        self.assertEqual(classify_status("R087"), "renamed")
        self.assertEqual(classify_status("M"), "modified")
        self.assertEqual(classify_status("T"), "modified")

    def test_rename_uses_new_path(self) -> None:
        output = "M\0README.md\0R087\0old/name.py\0new/name.py\0C100\0a.py\0b.py\0A\0added.txt\0"
        statuses = parse_name_status(output)
        self.assertEqual(statuses["new/name.py"], "renamed")
        self.assertNotIn("old/name.py", statuses)
        self.assertNotIn("a.py", statuses)
        self.assertEqual(statuses["b.py"], "modified")
        self.assertEqual(statuses["added.txt"], "added")


class ReconcileTests(unittest.TestCase):
    def test_keeps_numstat_order_and_defaults_to_modified(self) -> None:
        numstat = [(1, 0, "b.txt"), (0, 4, "a.txt"), (2, 2, "c.txt")]
        statuses = {"a.txt": "deleted", "b.txt": "added"}
        records = reconcile(numstat, statuses)
        self.assertEqual(
            records,
            [
                ChangeRecord(path="b.txt", status="added", additions=1, deletions=0),
                ChangeRecord(path="a.txt", status="deleted", additions=0, deletions=4),
                ChangeRecord(path="c.txt", status="modified", additions=2, deletions=2),
            ],
        )
        self.assertEqual([record.letter for record in records], ["A", "D", "M"])

    def test_renamed_record_joins_on_new_path(self) -> None:
        records = reconcile(
            parse_numstat("0\t0\t\0old.txt\0new.txt\0"),
            parse_name_status("R100\0old.txt\0new.txt\0"),
        )
        self.assertEqual(records, [ChangeRecord(path="new.txt", status="renamed", additions=0, deletions=0)])


class CollectTests(unittest.IsolatedAsyncioTestCase):
    async def test_collects_records(self) -> None:
        provider = FakeSummaryProvider("5\t0\tnew.py\0" "1\t1\tmain.py\0", "A\0new.py\0M\0main.py\0")
        records = await collect(provider, "main")
        self.assertEqual([(r.path, r.status) for r in records], [("new.py", "added"), ("main.py", "modified")])
        self.assertEqual(provider.calls, [("numstat", "main", None), ("name_status", "main", None)])

    async def test_resolved_start_is_passed_through(self) -> None:
        provider = FakeSummaryProvider()
        await collect(provider, "main", start="abc123")
        self.assertEqual(provider.calls, [("numstat", "main", "abc123"), ("name_status", "main", "abc123")])

    async def test_provider_failure_returns_empty(self) -> None:
        records = await collect(FakeSummaryProvider(fail=True), "main")
        self.assertEqual(records, [])

    async def test_no_changes(self) -> None:
        self.assertEqual(await collect(FakeSummaryProvider(), "main"), [])


if __name__ == "__main__":
    unittest.main()
