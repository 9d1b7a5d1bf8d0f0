"""Diff session: refreshes per-file diffs and applies user commands.

A ``DiffSession`` owns the latest ``DiffSnapshot`` for one repository and one
base ref. Every refresh recomputes the whole snapshot. When refreshes overlap,
only the most recently started one may publish its result; older ones are
dropped on completion.

User actions arrive as one of the command dataclasses below and go through
``DiffSession.dispatch``, which always returns a ``CommandResult`` instead of
raising, so the UI can turn failures into notifications.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Protocol, Union

from branchdiff.config.models import AppSettings, DiffView
from branchdiff.config.store import SettingsStore
from branchdiff.diff.models import RenderedFileDiff
from branchdiff.diff.render import render
from branchdiff.documents import DocumentEditor, EditError, open_in_editor
from branchdiff.git.models import ChangeRecord, FileSources
from branchdiff.git.provider import GitError
from branchdiff.git.summary import collect
from branchdiff.runtime_logging import get_runtime_logger

Severity = Literal["information", "warning", "error"]


class DiffProvider(Protocol):
    project_root: Path

    async def comparison_point(self, base: str) -> str: ...

    async def numstat(self, base: str, *, start: str | None = None) -> str: ...

    async def name_status(self, base: str, *, start: str | None = None) -> str: ...

    async def diff_text(
        self,
        base: str,
        path: str,
        *,
        start: str | None = None,
        context_lines: int = 3,
    ) -> str: ...

    async def file_sources(self, base: str, path: str) -> FileSources: ...

    async def default_branch(self, preferred: str = "main", fallback: str = "master") -> str: ...

    async def branches(self) -> list[str]: ...


@dataclass(slots=True, frozen=True)
class EditIntent:
    file: str
    line: int
    content: str


@dataclass(slots=True, frozen=True)
class FileEntry:
    record: ChangeRecord
    diff_text: str
    rendered: RenderedFileDiff

    @property
    def path(self) -> str:
        return self.record.path


@dataclass(slots=True, frozen=True)
class DiffSnapshot:
    base: str
    entries: tuple[FileEntry, ...] = ()
    generation: int = 0

    @property
    def records(self) -> list[ChangeRecord]:
        return [entry.record for entry in self.entries]

    @property
    def file_count(self) -> int:
        return len(self.entries)

    @property
    def total_additions(self) -> int:
        return sum(entry.record.additions for entry in self.entries)

    @property
    def total_deletions(self) -> int:
        return sum(entry.record.deletions for entry in self.entries)

    def entry(self, path: str) -> FileEntry | None:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None


@dataclass(slots=True, frozen=True)
class OpenFile:
    path: str


@dataclass(slots=True, frozen=True)
class Refresh:
    pass


@dataclass(slots=True, frozen=True)
class ChangeBase:
    base: str


@dataclass(slots=True, frozen=True)
class ToggleInlineEditing:
    enabled: bool


@dataclass(slots=True, frozen=True)
class ToggleView:
    view: DiffView


@dataclass(slots=True, frozen=True)
class SaveEdit:
    file: str
    line: int
    content: str


Command = Union[OpenFile, Refresh, ChangeBase, ToggleInlineEditing, ToggleView, SaveEdit]


@dataclass(slots=True)
class CommandResult:
    ok: bool
    message: str = ""
    severity: Severity = "information"
    snapshot: DiffSnapshot | None = None
    sources: FileSources | None = None


class DiffSession:
    def __init__(
        self,
        provider: DiffProvider,
        editor: DocumentEditor | None = None,
        *,
        base: str | None = None,
        settings: AppSettings | None = None,
        store: SettingsStore | None = None,
        opener: Callable[[Path], None] | None = None,
    ) -> None:
        self.provider = provider
        self.editor = editor
        self.base = base
        self.settings = settings or AppSettings()
        self.store = store
        self.opener = opener or open_in_editor
        self.snapshot: DiffSnapshot | None = None
        self._generation = 0
        self._last_known: dict[tuple[str, int], str] = {}
        self.logger = get_runtime_logger().bind(component="session")

    @property
    def inline_editing(self) -> bool:
        return self.settings.diff.inline_editing

    async def resolve_base(self) -> str:
        if self.base is None:
            self.base = await self.provider.default_branch(
                self.settings.diff.default_branch,
                self.settings.diff.fallback_branch,
            )
        return self.base

    async def refresh(self, base: str | None = None) -> DiffSnapshot | None:
        """Rebuild the snapshot; returns ``None`` if a newer refresh started meanwhile."""
        if base is not None:
            self.base = base
        self._generation += 1
        generation = self._generation
        resolved = await self.resolve_base()
        self.logger.info("session.refresh.started", base=resolved, generation=generation)

        # One merge-base lookup per refresh keeps every query on the same range.
        start = await self.provider.comparison_point(resolved)
        records = await collect(self.provider, resolved, start=start)
        texts = await self._fetch_diff_texts(resolved, start, records)

        if generation != self._generation:
            self.logger.info(
                "session.refresh.stale",
                generation=generation,
                latest=self._generation,
            )
            return None

        entries = tuple(
            FileEntry(record=record, diff_text=text, rendered=render(text, record.path))
            for record, text in zip(records, texts)
        )
        snapshot = DiffSnapshot(base=resolved, entries=entries, generation=generation)
        self.snapshot = snapshot
        self._last_known = {
            (entry.path, line.new_line): line.text
            for entry in entries
            for line in entry.rendered.inline_lines
            if line.editable and line.new_line is not None
        }
        self.logger.info(
            "session.refresh.done",
            base=resolved,
            generation=generation,
            files=snapshot.file_count,
            additions=snapshot.total_additions,
            deletions=snapshot.total_deletions,
        )
        return snapshot

    async def _fetch_diff_texts(self, base: str, start: str, records: list[ChangeRecord]) -> list[str]:
        semaphore = asyncio.Semaphore(self.settings.git.fetch_workers)
        context_lines = self.settings.diff.context_lines

        async def fetch(record: ChangeRecord) -> str:
            async with semaphore:
                try:
                    return await self.provider.diff_text(
                        base, record.path, start=start, context_lines=context_lines
                    )
                except (GitError, OSError) as exc:
                    self.logger.warning("session.diff_text.failed", path=record.path, error=str(exc))
                    return ""

        # gather keeps results in record order regardless of completion order.
        return list(await asyncio.gather(*(fetch(record) for record in records)))

    def edit_intent(self, path: str, row: int) -> EditIntent | None:
        """Build an intent from inline row ``row`` of ``path`` when that row is editable."""
        if self.snapshot is None:
            return None
        entry = self.snapshot.entry(path)
        if entry is None or not 0 <= row < len(entry.rendered.inline_lines):
            return None
        line = entry.rendered.inline_lines[row]
        if not line.editable or line.new_line is None:
            return None
        return EditIntent(file=path, line=line.new_line, content=line.text)

    async def dispatch(self, command: Command) -> CommandResult:
        self.logger.debug("session.dispatch", command=type(command).__name__)
        if isinstance(command, Refresh):
            return await self._refresh_result(None)
        if isinstance(command, ChangeBase):
            return await self._refresh_result(command.base)
        if isinstance(command, OpenFile):
            return await self._open_file(command.path)
        if isinstance(command, ToggleInlineEditing):
            return self._persist("diff.inline_editing", command.enabled)
        if isinstance(command, ToggleView):
            return self._persist("diff.view", command.view)
        if isinstance(command, SaveEdit):
            intent = EditIntent(file=command.file, line=command.line, content=command.content)
            return await self.save_edit(intent)
        raise TypeError(f"Unsupported command: {command!r}")

    async def _refresh_result(self, base: str | None) -> CommandResult:
        snapshot = await self.refresh(base)
        if snapshot is None:
            return CommandResult(ok=False, message="Superseded by a newer refresh")
        return CommandResult(ok=True, snapshot=snapshot)

    async def _open_file(self, path: str) -> CommandResult:
        full_path = self.provider.project_root / path
        entry = self.snapshot.entry(path) if self.snapshot else None
        if not full_path.exists() or (entry is not None and entry.record.status == "deleted"):
            base = await self.resolve_base()
            sources = await self.provider.file_sources(base, path)
            return CommandResult(
                ok=True,
                message=f"{path} does not exist in the working tree; showing {base} version",
                sources=sources,
            )
        try:
            # The opener may suspend the UI, so it runs on the event loop thread.
            self.opener(full_path)
        except EditError as exc:
            self.logger.warning("session.open_file.failed", path=path, error=str(exc))
            return CommandResult(ok=False, message=f"Could not open file: {path}", severity="error")
        return CommandResult(ok=True)

    def _persist(self, dotted_key: str, value: object) -> CommandResult:
        section, key = dotted_key.split(".", 1)
        if self.store is not None:
            try:
                self.store.update(dotted_key, value)
            except (OSError, KeyError, ValueError) as exc:
                # In-memory settings stay as they were so the UI matches the file.
                self.logger.warning("session.setting.persist_failed", key=dotted_key, error=str(exc))
                return CommandResult(ok=False, message=f"Could not save setting {dotted_key}", severity="warning")
        setattr(getattr(self.settings, section), key, value)
        return CommandResult(ok=True)

    async def _matches_disk(self, intent: EditIntent) -> bool:
        """True when the file still holds ``intent.content`` at ``intent.line``."""
        if self.editor is None:
            return True
        try:
            current = await asyncio.to_thread(self.editor.read_line, intent.file, intent.line)
        except EditError:
            return False
        return current == intent.content

    async def save_edit(self, intent: EditIntent) -> CommandResult:
        location = f"{intent.file}:{intent.line}"
        if not self.inline_editing:
            return CommandResult(ok=False, message="Inline editing is disabled", severity="warning")
        if intent.line < 1:
            return CommandResult(ok=False, message=f"Invalid line for {location}", severity="warning")

        entry = self.snapshot.entry(intent.file) if self.snapshot else None
        if entry is None or entry.rendered.editable_line(intent.line) is None:
            self.logger.warning("session.edit.rejected", file=intent.file, line=intent.line)
            return CommandResult(ok=False, message=f"{location} is not editable", severity="warning")

        key = (intent.file, intent.line)
        if self._last_known.get(key) == intent.content and await self._matches_disk(intent):
            return CommandResult(ok=True, message="No changes")

        if self.editor is None:
            return CommandResult(ok=False, message="Editing is not available", severity="error")
        try:
            await asyncio.to_thread(self.editor.replace_line, intent.file, intent.line, intent.content)
        except EditError as exc:
            # Not retried: re-applying a user edit could apply it twice.
            self.logger.warning("session.edit.failed", file=intent.file, line=intent.line, error=str(exc))
            return CommandResult(ok=False, message=f"Could not save edit to {location}", severity="warning")

        self._last_known[key] = intent.content
        self.logger.info("session.edit.saved", file=intent.file, line=intent.line)
        return CommandResult(ok=True, message=f"Saved {location}")
