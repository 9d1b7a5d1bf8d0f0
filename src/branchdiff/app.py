"""branchdiff Textual application shell."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable

from textual.app import App, SuspendNotSupported
from textual.binding import Binding

from branchdiff.config.store import SettingsStore
from branchdiff.documents import DocumentEditor, EditError, open_in_editor
from branchdiff.fs.watch import NullWatcher, RepoWatcher
from branchdiff.git.provider import GitProvider
from branchdiff.messages import LineEditRequested, OpenFileRequested
from branchdiff.runtime_logging import configure_runtime_logging
from branchdiff.screens.main import DiffScreen
from branchdiff.screens.modals import BranchPickerModal, LineEditModal, SourceModal
from branchdiff.session import (
    ChangeBase,
    CommandResult,
    DiffProvider,
    DiffSession,
    DiffSnapshot,
    EditIntent,
    OpenFile,
    Refresh,
    SaveEdit,
    ToggleInlineEditing,
    ToggleView,
)
from branchdiff.version_check import check_for_update


class BranchDiffApp(App[None]):
    TITLE = "branchdiff"
    SUB_TITLE = "Branch changes, inline and side by side"

    BINDINGS = [
        Binding("r", "refresh", "Refresh"),
        Binding("b", "pick_base", "Base"),
        Binding("v", "toggle_view", "Inline/Split"),
        Binding("e", "toggle_inline_editing", "Inline Editing"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        project_root: Path,
        base: str | None = None,
        provider: DiffProvider | None = None,
        editor: DocumentEditor | None = None,
        settings_store: SettingsStore | None = None,
        opener: Callable[[Path], None] | None = None,
        enable_watcher: bool = True,
        check_updates: bool = True,
        log_level: str | None = None,
        log_file: str | Path | None = None,
    ) -> None:
        self.project_root = project_root.expanduser().resolve()
        self.logger = configure_runtime_logging(level=log_level, log_file=log_file)

        self.settings_store = settings_store or SettingsStore()
        self.settings = self.settings_store.load()
        self.check_updates = check_updates and self.settings.updates.check

        git = self.settings.git
        self.provider = provider or GitProvider(
            self.project_root,
            executable=git.executable,
            timeout_s=git.timeout_s,
            max_output_bytes=git.max_output_bytes,
        )
        self.session = DiffSession(
            self.provider,
            editor or DocumentEditor(self.project_root),
            base=base,
            settings=self.settings,
            store=self.settings_store,
            opener=opener or self._open_suspended,
        )
        self._diff_screen: DiffScreen | None = None
        self._apply_lock = asyncio.Lock()

        self.watcher: RepoWatcher | NullWatcher = NullWatcher()
        if enable_watcher and self.settings.watch.enabled:
            try:
                self.watcher = RepoWatcher(
                    self.project_root,
                    self._on_worktree_changed,
                    debounce_s=self.settings.watch.debounce_s,
                )
            except OSError as exc:
                # inotify limits and similar; live refresh is optional.
                self.logger.warning("app.watcher.unavailable", error=str(exc))

        self.logger.info(
            "app.initialized",
            project_root=str(self.project_root),
            base=base,
            watcher=type(self.watcher).__name__,
        )
        super().__init__()

    @property
    def diff_screen(self) -> DiffScreen | None:
        return self._diff_screen

    async def on_mount(self) -> None:
        self.theme = self.settings.appearance.theme
        await self.show_diff(self.session.base)
        try:
            self.watcher.start()
        except OSError as exc:
            self.logger.warning("app.watcher.start_failed", error=str(exc))
            self.watcher = NullWatcher()
        if self.check_updates:
            self.run_worker(self._background_version_check(), group="updates", exit_on_error=False)

    async def _background_version_check(self) -> None:
        latest = await check_for_update("branchdiff")
        if latest:
            self.notify(f"Update available: {latest}", severity="information")
            self.logger.info("app.update_check.available", latest=latest)

    async def show_diff(self, base: str | None = None) -> DiffScreen:
        """Show the diff screen, reusing the existing one; there is never more than one."""
        if self._diff_screen is None:
            self._diff_screen = DiffScreen(
                view=self.settings.diff.view,
                inline_editing=self.settings.diff.inline_editing,
            )
            await self.push_screen(self._diff_screen)
            self.logger.info("app.diff_screen.created")
        else:
            self.logger.debug("app.diff_screen.reused")
        self.refresh_diff(base)
        return self._diff_screen

    def refresh_diff(self, base: str | None = None) -> None:
        command = Refresh() if base is None else ChangeBase(base=base)
        self.run_worker(self._run_refresh(command), group="refresh", exit_on_error=False)

    async def _run_refresh(self, command: Refresh | ChangeBase) -> None:
        screen = self._diff_screen
        if screen is None:
            return
        pending = command.base if isinstance(command, ChangeBase) else await self.session.resolve_base()
        screen.show_loading(pending)
        result = await self.session.dispatch(command)
        if result.snapshot is not None:
            await self._apply_snapshot(result.snapshot)

    async def _apply_snapshot(self, snapshot: DiffSnapshot) -> None:
        screen = self._diff_screen
        if screen is None:
            return
        async with self._apply_lock:
            shown = screen.snapshot
            if shown is not None and shown.generation > snapshot.generation:
                self.logger.debug("app.snapshot.discarded", generation=snapshot.generation)
                return
            await screen.show_snapshot(snapshot)

    def _on_worktree_changed(self) -> None:
        # Called from the watcher thread.
        self.call_from_thread(self.refresh_diff)

    def _notify_result(self, result: CommandResult) -> None:
        if result.message:
            self.notify(result.message, severity=result.severity)

    def action_refresh(self) -> None:
        self.refresh_diff()

    async def action_toggle_view(self) -> None:
        view = "inline" if self.settings.diff.view == "split" else "split"
        result = await self.session.dispatch(ToggleView(view=view))
        self._notify_result(result)
        if self._diff_screen is not None:
            self._diff_screen.set_view(view)

    async def action_toggle_inline_editing(self) -> None:
        enabled = not self.settings.diff.inline_editing
        result = await self.session.dispatch(ToggleInlineEditing(enabled=enabled))
        self._notify_result(result)
        if self._diff_screen is not None:
            self._diff_screen.set_inline_editing(enabled)
        self.notify(f"Inline editing {'enabled' if enabled else 'disabled'}")

    async def action_pick_base(self) -> None:
        branches = await self.provider.branches()
        if not branches:
            self.notify("No branches found", severity="warning")
            return

        def _on_close(selected: str | None) -> None:
            if selected is None:
                return
            self.logger.info("app.base.selected", base=selected)
            self.refresh_diff(selected)

        self.push_screen(BranchPickerModal(branches, current=self.session.base), callback=_on_close)

    async def on_open_file_requested(self, message: OpenFileRequested) -> None:
        result = await self.session.dispatch(OpenFile(path=message.path))
        self._notify_result(result)
        if result.sources is not None:
            self.push_screen(
                SourceModal(f"{message.path} @ {self.session.base}", result.sources.old_content)
            )

    def on_line_edit_requested(self, message: LineEditRequested) -> None:
        if not self.session.inline_editing:
            self.notify("Inline editing is off (press e to enable)", severity="warning")
            return
        intent = self.session.edit_intent(message.path, message.row)
        if intent is None:
            self.notify("Only lines of the current revision can be edited", severity="warning")
            return

        def _on_close(content: str | None) -> None:
            if content is None:
                return
            self.run_worker(self._save_edit(intent, content), group="edits", exit_on_error=False)

        self.push_screen(LineEditModal(intent), callback=_on_close)

    async def _save_edit(self, intent: EditIntent, content: str) -> None:
        result = await self.session.dispatch(SaveEdit(file=intent.file, line=intent.line, content=content))
        self._notify_result(result)
        if result.ok and content != intent.content:
            self.refresh_diff()

    def _open_suspended(self, path: Path) -> None:
        try:
            with self.suspend():
                open_in_editor(path)
        except SuspendNotSupported as exc:
            raise EditError(f"Cannot open an editor from this terminal: {exc}") from exc

    def on_unmount(self) -> None:
        self.watcher.close()
        self.logger.info("app.exit")
