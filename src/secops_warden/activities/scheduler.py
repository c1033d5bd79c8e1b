"""Activity scheduler: one timer loop per activity, with clean shutdown."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from secops_warden.activities.prompts import build_prompt
from secops_warden.activities.schedule import parse_schedule

logger = logging.getLogger(__name__)


class ReasoningEngine(Protocol):
    """The component that analyses a task and decides what to do about it."""

    async def process_heartbeat(self, prompt: str, channel: str, session_id: str) -> str:
        """Run one round of reasoning for *prompt* and return its final text."""


@dataclass(frozen=True)
class Activity:
    """A named, independently scheduled recurring analysis task."""

    name: str
    schedule: str = ""
    mode: str = "manual"  # "auto" | "manual"
    enabled: bool = True


@dataclass
class ActivityStatus:
    """Observable runtime state of one activity loop."""

    name: str
    mode: str
    interval: timedelta
    running: bool = False
    executing: bool = False
    run_count: int = 0
    failure_count: int = 0
    last_run_at: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "mode": self.mode,
            "intervalSeconds": self.interval.total_seconds(),
            "running": self.running,
            "executing": self.executing,
            "runCount": self.run_count,
            "failureCount": self.failure_count,
            "lastRunAt": self.last_run_at.isoformat() if self.last_run_at else None,
            "lastError": self.last_error,
        }


@dataclass
class _ActivityHandle:
    activity: Activity
    status: ActivityStatus
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task[None] | None = None


class ActivityScheduler:
    """Runs every enabled activity on its own timer loop.

    Each loop executes its activity once on start and again at every
    interval boundary.  Executions of one activity never overlap: a slow
    run delays the next tick instead of stacking up.  Failures are logged
    and the loop carries on at its normal cadence.
    """

    def __init__(self, engine: ReasoningEngine) -> None:
        self._engine = engine
        self._handles: dict[str, _ActivityHandle] = {}
        self._shutdown = asyncio.Event()
        self._running = False

    @property
    def running(self) -> bool:
        """Whether the scheduler has been started and not yet stopped."""
        return self._running

    async def start(self, activities: Iterable[Activity]) -> None:
        """Launch one loop per enabled activity and return immediately."""
        if not self._running:
            self._shutdown = asyncio.Event()
            self._running = True

        for activity in activities:
            if not activity.enabled:
                logger.info("Activity %s is disabled", activity.name)
                continue

            existing = self._handles.get(activity.name)
            if existing is not None and existing.task is not None and not existing.task.done():
                logger.warning("Activity %s is already running", activity.name)
                continue

            interval = parse_schedule(activity.schedule)
            handle = _ActivityHandle(
                activity=activity,
                status=ActivityStatus(name=activity.name, mode=activity.mode, interval=interval),
            )
            self._handles[activity.name] = handle
            handle.task = asyncio.create_task(
                self._run_activity(handle), name=f"activity:{activity.name}"
            )

        logger.info("Activity scheduler started with %d activities", len(self._handles))

    async def stop(self) -> None:
        """Stop every loop and wait until all of them have exited.

        Every unfinished loop is cancelled, including one that has not had
        its first turn yet, so no execution outlives the call.  Calling this
        on a stopped or never-started scheduler is a no-op.
        """
        if not self._running:
            return

        logger.info("Stopping activity scheduler")
        self._shutdown.set()

        tasks: list[asyncio.Task[None]] = []
        for handle in self._handles.values():
            handle.stop_event.set()
            if handle.task is None or handle.task.done():
                continue
            handle.task.cancel()
            tasks.append(handle.task)

        await asyncio.gather(*tasks, return_exceptions=True)
        self._running = False
        logger.info("Activity scheduler stopped")

    def stop_activity(self, name: str) -> bool:
        """Signal a single activity loop to stop.

        An execution already in flight is allowed to finish.  Returns
        ``False`` if the activity is unknown or not running.
        """
        handle = self._handles.get(name)
        if handle is None or handle.task is None or handle.task.done():
            return False
        handle.stop_event.set()
        logger.info("Stop requested for activity %s", name)
        return True

    def statuses(self) -> list[ActivityStatus]:
        """Return a snapshot of every known activity's runtime state."""
        return [dataclasses.replace(h.status) for h in self._handles.values()]

    def get_status(self, name: str) -> ActivityStatus | None:
        handle = self._handles.get(name)
        return dataclasses.replace(handle.status) if handle else None

    async def _run_activity(self, handle: _ActivityHandle) -> None:
        activity = handle.activity
        interval = handle.status.interval.total_seconds()
        loop = asyncio.get_running_loop()
        handle.status.running = True

        logger.info(
            "Activity %s started with interval %s (mode=%s)",
            activity.name,
            handle.status.interval,
            activity.mode,
        )

        # The tick grid is anchored before the first run, so a first run
        # longer than one interval is followed by an immediate tick.
        next_tick = loop.time() + interval
        try:
            if handle.stop_event.is_set() or self._shutdown.is_set():
                return
            await self._execute(handle)
            while True:
                if await self._wait_for_stop(handle, next_tick - loop.time()):
                    break
                now = loop.time()
                while next_tick <= now:
                    next_tick += interval
                await self._execute(handle)
        finally:
            handle.status.running = False
            logger.info("Activity %s stopped", activity.name)

    async def _wait_for_stop(self, handle: _ActivityHandle, timeout: float) -> bool:
        """Sleep until *timeout* elapses or a stop signal fires.

        Returns ``True`` when the loop should exit.
        """
        waiters = {
            asyncio.ensure_future(handle.stop_event.wait()),
            asyncio.ensure_future(self._shutdown.wait()),
        }
        try:
            await asyncio.wait(
                waiters, timeout=max(0.0, timeout), return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in waiters:
                waiter.cancel()
        return handle.stop_event.is_set() or self._shutdown.is_set()

    async def _execute(self, handle: _ActivityHandle) -> None:
        activity = handle.activity
        status = handle.status
        logger.info("Executing activity: %s", activity.name)

        prompt = build_prompt(activity.name, activity.mode)
        status.executing = True
        status.last_run_at = datetime.now(UTC)
        status.run_count += 1
        try:
            await self._engine.process_heartbeat(
                prompt, channel=activity.name, session_id=activity.name
            )
        except Exception as exc:
            status.failure_count += 1
            status.last_error = str(exc)
            logger.exception("Activity %s failed", activity.name)
            return
        finally:
            status.executing = False

        status.last_error = None
        logger.info("Activity %s completed", activity.name)
