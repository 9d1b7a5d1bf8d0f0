from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from branchdiff.runtime_logging import configure_runtime_logging, parse_level


class RuntimeLoggingTests(unittest.TestCase):
    def test_writes_jsonl_and_filters_by_level(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "runtime.jsonl"
            logger = configure_runtime_logging(level="info", log_file=path)
            logger.debug("debug.hidden", foo="bar")
            logger.info("info.visible", foo="bar")

            lines = path.read_text(encoding="utf-8").splitlines()
            self.assertGreaterEqual(len(lines), 2)  # includes logging.configured event
            payloads = [json.loads(line) for line in lines]
            self.assertTrue(any(item["event"] == "info.visible" for item in payloads))
            self.assertFalse(any(item["event"] == "debug.hidden" for item in payloads))

    def test_bound_context_is_stamped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "runtime.jsonl"
            logger = configure_runtime_logging(level="debug", log_file=path).bind(component="git")
            logger.warning("git.command.timeout", timeout_s=1.5)

            payload = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
            self.assertEqual(payload["component"], "git")
            self.assertEqual(payload["timeout_s"], 1.5)
            self.assertEqual(payload["level"], "warning")

    def test_uses_environment_variables(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "from-env.jsonl"
            with patch.dict(
                os.environ,
                {"BRANCHDIFF_LOG_LEVEL": "debug", "BRANCHDIFF_LOG_FILE": str(path)},
                clear=False,
            ):
                logger = configure_runtime_logging()
                logger.debug("env.debug", alpha=1)

            lines = path.read_text(encoding="utf-8").splitlines()
            payloads = [json.loads(line) for line in lines]
            self.assertTrue(any(item["event"] == "env.debug" for item in payloads))

    def test_off_writes_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "off.jsonl"
            logger = configure_runtime_logging(level="off", log_file=path)
            logger.error("never.written")
            self.assertFalse(path.exists())

    def test_level_aliases(self) -> None:
        self.assertEqual(parse_level("WARN"), "warning")
        self.assertEqual(parse_level("none"), "off")
        self.assertEqual(parse_level("bogus", default="info"), "info")
        self.assertEqual(parse_level(None), "warning")


if __name__ == "__main__":
    unittest.main()
