"""Session orchestration for workmode.

The SessionController owns everything a running session needs: the
stopwatch, a SessionContext with the change tracker, backup engine, watcher
and backup timer, and the host's UI chrome. Nothing is kept in module
globals; the context is built on start and torn down on stop.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from workmode.core.backup import BackupEngine, BackupResult
from workmode.core.config import get_backup_interval_sec, get_enable_minimal_ui
from workmode.core.documents import DocumentRegistry, Subscription
from workmode.core.excludes import workspace_filter
from workmode.core.jsonl import SESSION_START, SESSION_STOP, log_session_event
from workmode.core.session import Session
from workmode.core.tracker import ChangeSource, ChangeTracker
from workmode.core.workspace import Workspace

logger = logging.getLogger(__name__)


class Chrome(Protocol):
    """Host UI that can hide and restore its chrome."""

    async def enable_minimal(self) -> None: ...

    async def disable_minimal(self) -> None: ...


class NullChrome:
    """Chrome for hosts without any (headless runs)."""

    async def enable_minimal(self) -> None:
        pass

    async def disable_minimal(self) -> None:
        pass


@dataclass
class SessionContext:
    """Backup machinery of one running session."""

    tracker: ChangeTracker
    engine: BackupEngine
    subscription: Subscription
    stop_event: asyncio.Event
    watcher_task: asyncio.Task | None = None
    timer_task: asyncio.Task | None = None
    pending_build: asyncio.Future | None = None


async def _cancel(task: asyncio.Task | None) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.exception("background task failed")


class SessionController:
    """Starts, stops and pauses work sessions."""

    def __init__(
        self,
        workspace: Workspace | None,
        registry: DocumentRegistry | None = None,
        chrome: Chrome | None = None,
        on_backup: Callable[[BackupResult], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        change_source: Callable[[], ChangeSource] | None = None,
    ) -> None:
        self.workspace = workspace
        self.registry = registry if registry is not None else DocumentRegistry()
        self.chrome = chrome if chrome is not None else NullChrome()
        self.session = Session(clock=clock)
        self.context: SessionContext | None = None
        self.last_duration_ms = 0
        self._on_backup = on_backup
        self._change_source = change_source
        self._transition = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self.session.running

    @property
    def paused(self) -> bool:
        return self.session.paused

    def elapsed_ms(self) -> int:
        return self.session.elapsed_ms()

    def status_text(self) -> str:
        return self.session.status_text()

    async def start(self) -> None:
        """Start a session. Does nothing if one is running."""
        async with self._transition:
            if self.session.running:
                return
            if self.workspace is not None and get_enable_minimal_ui(self.workspace):
                await self.chrome.enable_minimal()
            self.session.start()
            self.context = self._start_backups()
            if self.workspace is not None:
                log_session_event(self.workspace, SESSION_START)
            logger.info("session started")

    async def stop(self) -> int | None:
        """Stop the session after one final backup.

        Returns:
            Session duration in milliseconds, or None if none was running.
        """
        async with self._transition:
            if not self.session.running:
                return None
            duration = self.session.stop()
            self.last_duration_ms = duration
            context, self.context = self.context, None
            if context is not None:
                await self._stop_backups(context)
            await self.chrome.disable_minimal()
            if self.workspace is not None:
                log_session_event(self.workspace, SESSION_STOP, duration_ms=duration)
            logger.info("session stopped after %d ms", duration)
            return duration

    async def toggle(self) -> None:
        if self.session.running:
            await self.stop()
        else:
            await self.start()

    def pause_resume(self) -> None:
        """Pause a running session or resume a paused one."""
        self.session.toggle_pause()

    def _start_backups(self) -> SessionContext | None:
        if self.workspace is None:
            return None
        is_excluded = workspace_filter(self.workspace)
        tracker = ChangeTracker(self.workspace, is_excluded)
        engine = BackupEngine(self.workspace, tracker, self.registry, is_excluded)
        stop_event = asyncio.Event()
        source = self._change_source() if self._change_source is not None else None
        context = SessionContext(
            tracker=tracker,
            engine=engine,
            subscription=tracker.attach(self.registry),
            stop_event=stop_event,
        )
        context.watcher_task = asyncio.create_task(self._run_watcher(tracker, source, stop_event))
        context.timer_task = asyncio.create_task(
            self._run_timer(context, get_backup_interval_sec(self.workspace))
        )
        return context

    async def _stop_backups(self, context: SessionContext) -> None:
        await _cancel(context.timer_task)
        context.stop_event.set()
        await _cancel(context.watcher_task)
        context.subscription.dispose()
        if context.pending_build is not None:
            # Build the timer started before it was cancelled
            await self._finish_build(context.pending_build, "backup failed")
        await self._finish_build(context.engine.build_if_needed(wait=True), "final backup failed")
        context.tracker.clear()

    async def _run_watcher(
        self,
        tracker: ChangeTracker,
        source: ChangeSource | None,
        stop_event: asyncio.Event,
    ) -> None:
        try:
            await tracker.watch(source, stop_event=stop_event)
        except OSError:
            logger.warning("file watcher stopped", exc_info=True)

    async def _run_timer(self, context: SessionContext, interval: int) -> None:
        while True:
            await asyncio.sleep(interval)
            build = asyncio.ensure_future(context.engine.build_if_needed())
            context.pending_build = build
            try:
                # A cancelled timer must not abort a build halfway
                result = await asyncio.shield(build)
            except Exception:
                logger.exception("backup failed, retrying on next tick")
                result = None
            context.pending_build = None
            self._report(result)

    async def _finish_build(self, build: Awaitable[BackupResult | None], message: str) -> None:
        try:
            result = await build
        except Exception:
            logger.exception(message)
        else:
            self._report(result)

    def _report(self, result: BackupResult | None) -> None:
        if result is not None and self._on_backup is not None:
            self._on_backup(result)
