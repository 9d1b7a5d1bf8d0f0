"""Async wrapper around the ``git`` binary."""

from __future__ import annotations

import asyncio
from pathlib import Path

from branchdiff.git.models import FileSources
from branchdiff.runtime_logging import get_runtime_logger

_DIFF_FLAGS = ("--no-color", "--no-ext-diff")


class GitError(RuntimeError):
    def __init__(self, command: list[str], message: str, *, returncode: int | None = None) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = message
        super().__init__(f"{' '.join(command)}: {message}")


def parse_branch_list(raw: str) -> list[str]:
    """Clean ``git branch -a`` output into unique, display-ready names."""
    seen: set[str] = set()
    branches: list[str] = []
    for line in raw.splitlines():
        name = line.strip().removeprefix("*").strip()
        name = name.removeprefix("remotes/origin/")
        if not name or "HEAD" in name:
            continue
        if name in seen:
            continue
        seen.add(name)
        branches.append(name)
    return branches


class GitProvider:
    def __init__(
        self,
        project_root: Path,
        *,
        executable: str = "git",
        timeout_s: float = 30.0,
        max_output_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self.project_root = project_root.expanduser().resolve()
        self.executable = executable
        self.timeout_s = timeout_s
        self.max_output_bytes = max_output_bytes
        self.logger = get_runtime_logger().bind(component="git")

    async def run(self, *args: str) -> str:
        command = [self.executable, *args]
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(self.project_root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            self.logger.warning("git.command.unavailable", command=command, error=str(exc))
            raise GitError(command, f"cannot run {self.executable}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            self.logger.warning("git.command.timeout", command=command, timeout_s=self.timeout_s)
            raise GitError(command, f"timed out after {self.timeout_s}s") from exc

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            self.logger.debug(
                "git.command.failed",
                command=command,
                returncode=process.returncode,
                stderr=message,
            )
            raise GitError(command, message or "git failed", returncode=process.returncode)

        if len(stdout) > self.max_output_bytes:
            raise GitError(command, f"output exceeds {self.max_output_bytes} bytes")

        self.logger.debug("git.command.ok", command=command, bytes=len(stdout))
        return stdout.decode("utf-8", errors="replace")

    def relative_path(self, path: str) -> str:
        candidate = Path(path)
        if not candidate.is_absolute():
            return candidate.as_posix()
        try:
            return candidate.resolve().relative_to(self.project_root).as_posix()
        except ValueError:
            return candidate.as_posix()

    async def comparison_point(self, base: str) -> str:
        """Resolve where branch-local changes start: the merge base of ``base`` and HEAD."""
        try:
            output = await self.run("merge-base", base, "HEAD")
        except GitError:
            return base
        return output.strip() or base

    # -z keeps paths raw (no core.quotePath escaping) and splits renames into two fields.
    async def numstat(self, base: str, *, start: str | None = None) -> str:
        start = start or await self.comparison_point(base)
        return await self.run("diff", "--numstat", "-z", *_DIFF_FLAGS, start)

    async def name_status(self, base: str, *, start: str | None = None) -> str:
        start = start or await self.comparison_point(base)
        return await self.run("diff", "--name-status", "-z", *_DIFF_FLAGS, start)

    async def diff_text(
        self,
        base: str,
        path: str,
        *,
        start: str | None = None,
        context_lines: int = 3,
    ) -> str:
        """Return the unified diff for ``path``, or ``""`` if every attempt fails.

        ``start`` is a comparison point the caller already resolved; it is
        looked up when omitted.
        """
        rel = self.relative_path(path)
        unified = f"--unified={context_lines}"
        start = start or await self.comparison_point(base)
        attempts = (
            ("diff", unified, *_DIFF_FLAGS, start, "--", rel),
            ("diff", unified, *_DIFF_FLAGS, f"{base}...HEAD", "--", rel),
        )
        for args in attempts:
            try:
                return await self.run(*args)
            except GitError as exc:
                self.logger.debug("git.diff_text.attempt_failed", path=rel, error=str(exc))
        self.logger.warning("git.diff_text.unavailable", base=base, path=rel)
        return ""

    async def show(self, ref: str, path: str) -> str:
        return await self.run("show", f"{ref}:{self.relative_path(path)}")

    async def file_sources(self, base: str, path: str) -> FileSources:
        rel = self.relative_path(path)
        try:
            old_content = await self.show(base, rel)
        except GitError:
            old_content = ""

        disk_path = self.project_root / rel
        try:
            new_content = await asyncio.to_thread(
                disk_path.read_text, encoding="utf-8", errors="replace"
            )
        except OSError:
            try:
                new_content = await self.show("HEAD", rel)
            except GitError:
                new_content = ""
        return FileSources(old_content=old_content, new_content=new_content)

    async def branches(self) -> list[str]:
        try:
            output = await self.run("branch", "-a", "--no-color")
        except GitError as exc:
            self.logger.warning("git.branches.failed", error=str(exc))
            return []
        return parse_branch_list(output)

    async def default_branch(self, preferred: str = "main", fallback: str = "master") -> str:
        branches = await self.branches()
        if preferred in branches:
            return preferred
        if fallback in branches:
            return fallback
        return preferred
