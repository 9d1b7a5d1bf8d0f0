from __future__ import annotations

import tempfile
import threading
import unittest
from pathlib import Path

from watchdog.events import DirModifiedEvent, FileClosedNoWriteEvent, FileModifiedEvent, FileOpenedEvent

from branchdiff.fs.filtering import RepoPathFilter
from branchdiff.fs.watch import RepoWatcher, _DebouncedHandler


class RepoPathFilterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name).resolve()
        (self.root / ".gitignore").write_text("build/\n*.log\n# comment\n", encoding="utf-8")
        (self.root / ".git" / "info").mkdir(parents=True)
        (self.root / ".git" / "info" / "exclude").write_text("secret.txt\n", encoding="utf-8")
        self.filter = RepoPathFilter(self.root)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_ignores(self) -> None:
        for path in (".git/index", "build/out.o", "debug.log", "secret.txt", "src/.app.py.swp", "/elsewhere/x.py"):
            with self.subTest(path=path):
                self.assertTrue(self.filter.ignores(path))

    def test_keeps_tracked_sources(self) -> None:
        for path in ("src/app.py", "README.md", str(self.root / "docs" / "index.md"), str(self.root)):
            with self.subTest(path=path):
                self.assertFalse(self.filter.ignores(path))


class DebouncedHandlerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name).resolve()
        self.fired = threading.Event()
        self.calls = 0

        def on_change() -> None:
            self.calls += 1
            self.fired.set()

        self.handler = _DebouncedHandler(on_change, path_filter=RepoPathFilter(self.root), debounce_s=0.05)

    def tearDown(self) -> None:
        self.handler.cancel()
        self.tmp.cleanup()

    def test_burst_fires_once(self) -> None:
        for _ in range(5):
            self.handler.on_any_event(FileModifiedEvent(str(self.root / "app.py")))
        self.assertTrue(self.fired.wait(2))
        self.fired.clear()
        self.assertFalse(self.fired.wait(0.2))
        self.assertEqual(self.calls, 1)

    def test_reads_directories_and_ignored_paths_do_not_fire(self) -> None:
        self.handler.on_any_event(FileOpenedEvent(str(self.root / "app.py")))
        self.handler.on_any_event(FileClosedNoWriteEvent(str(self.root / "app.py")))
        self.handler.on_any_event(DirModifiedEvent(str(self.root / "src")))
        self.handler.on_any_event(FileModifiedEvent(str(self.root / ".git" / "index")))
        self.assertFalse(self.fired.wait(0.2))


class RepoWatcherTests(unittest.TestCase):
    def test_reports_file_writes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            fired = threading.Event()
            watcher = RepoWatcher(root, fired.set, debounce_s=0.05)
            watcher.start()
            try:
                (root / "touched.txt").write_text("x", encoding="utf-8")
                self.assertTrue(fired.wait(5))
            finally:
                watcher.close()

    def test_close_without_start(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            RepoWatcher(Path(tmp), lambda: None).close()


if __name__ == "__main__":
    unittest.main()
