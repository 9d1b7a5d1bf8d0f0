"""Decide which working-tree paths can affect the diff."""

from __future__ import annotations

from pathlib import Path

import pathspec

ALWAYS_IGNORED = (".git/", "__pycache__/", "*.swp", "*~", ".#*", "4913")


class RepoPathFilter:
    """Matches paths git itself would ignore, plus editor scratch files and ``.git/``."""

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root.resolve()
        self._spec = self._build_spec()

    def _build_spec(self) -> pathspec.PathSpec:
        patterns: list[str] = list(ALWAYS_IGNORED)
        for source in (self.project_root / ".gitignore", self.project_root / ".git" / "info" / "exclude"):
            if not source.is_file():
                continue
            for line in source.read_text(encoding="utf-8", errors="replace").splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)
        return pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def ignores(self, path: Path | str) -> bool:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.project_root / candidate
        try:
            rel = candidate.resolve().relative_to(self.project_root)
        except ValueError:
            return True
        if not rel.parts:
            return False
        return self._spec.match_file(rel.as_posix())
