from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from branchdiff.app import BranchDiffApp
from branchdiff.config.models import AppSettings, DiffSettings, GitSettings
from branchdiff.config.store import SettingsStore
from branchdiff.fs.watch import NullWatcher
from branchdiff.paths import export_default_path


class SettingsStoreTests(unittest.TestCase):
    def test_load_save_update_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            store = SettingsStore(path)

            settings = store.load()
            self.assertTrue(path.exists())
            self.assertEqual(settings.schema_version, 1)
            self.assertFalse(settings.diff.inline_editing)
            self.assertEqual(settings.diff.view, "split")

            updated = store.update("diff.inline_editing", True)
            self.assertTrue(updated.diff.inline_editing)

            reloaded = store.load()
            self.assertTrue(reloaded.diff.inline_editing)

    def test_unknown_keys_are_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = SettingsStore(Path(tmp) / "settings.json")
            for key in ("diff.nope", "nope.view", "diff.view.deeper"):
                with self.subTest(key=key):
                    with self.assertRaises(KeyError):
                        store.update(key, "x")

    def test_invalid_values_are_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = SettingsStore(Path(tmp) / "settings.json")
            with self.assertRaises(ValidationError):
                store.update("diff.view", "sideways")
            self.assertEqual(store.load().diff.view, "split")

    def test_corrupt_file_is_backed_up_and_reset(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text("{not json", encoding="utf-8")
            settings = SettingsStore(path).load()

            self.assertEqual(settings, AppSettings())
            self.assertEqual(path.with_suffix(".corrupt.json").read_text(encoding="utf-8"), "{not json")
            self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["schema_version"], 1)


class SettingsModelTests(unittest.TestCase):
    def test_branch_names_are_trimmed_and_required(self) -> None:
        self.assertEqual(DiffSettings(default_branch="  develop ").default_branch, "develop")
        with self.assertRaises(ValidationError):
            DiffSettings(fallback_branch="   ")

    def test_git_limits(self) -> None:
        with self.assertRaises(ValidationError):
            GitSettings(fetch_workers=0)
        with self.assertRaises(ValidationError):
            GitSettings(timeout_s=0)

    def test_setting_items_are_flattened(self) -> None:
        items = dict(AppSettings().setting_items())
        self.assertEqual(items["diff.inline_editing"], "False")
        self.assertEqual(items["git.executable"], "git")
        self.assertEqual(items["schema_version"], "1")


class PathTests(unittest.TestCase):
    def test_export_path_flattens_branch_names(self) -> None:
        self.assertEqual(
            export_default_path(Path("/repo"), "origin/main"),
            Path("/repo/branchdiff-origin-main.html"),
        )


class BranchDiffAppBootstrapTests(unittest.TestCase):
    def test_falls_back_to_null_watcher_when_inotify_limit_hit(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with patch(
                "branchdiff.app.RepoWatcher",
                side_effect=OSError(24, "inotify instance limit reached"),
            ):
                app = BranchDiffApp(
                    project_root=Path(tmp),
                    settings_store=SettingsStore(Path(tmp) / "settings.json"),
                    check_updates=False,
                )

        self.assertIsInstance(app.watcher, NullWatcher)


if __name__ == "__main__":
    unittest.main()
