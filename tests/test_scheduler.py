"""Tests for the activity scheduler."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import patch

import pytest

from secops_warden.activities import Activity, ActivityScheduler, build_prompt

FAST_INTERVAL = timedelta(milliseconds=50)


class _RecordingEngine:
    """Reasoning engine stand-in that records calls and tracks overlap."""

    def __init__(self, delay: float = 0.0, failing: set[str] | None = None) -> None:
        self.calls: list[tuple[str, str, str]] = []
        self.delay = delay
        self.failing = failing or set()
        self.active: dict[str, int] = {}
        self.max_active: dict[str, int] = {}

    async def process_heartbeat(self, prompt: str, channel: str, session_id: str) -> str:
        self.calls.append((prompt, channel, session_id))
        self.active[channel] = self.active.get(channel, 0) + 1
        self.max_active[channel] = max(self.max_active.get(channel, 0), self.active[channel])
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if channel in self.failing:
                raise RuntimeError(f"{channel} exploded")
            return "done"
        finally:
            self.active[channel] -= 1

    def count(self, name: str) -> int:
        return sum(1 for _, channel, _ in self.calls if channel == name)


def _fast_schedule():
    return patch(
        "secops_warden.activities.scheduler.parse_schedule", return_value=FAST_INTERVAL
    )


# ---------------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------------


class TestStart:
    @pytest.mark.asyncio()
    async def test_executes_immediately_on_start(self) -> None:
        engine = _RecordingEngine()
        scheduler = ActivityScheduler(engine)
        await scheduler.start([Activity(name="risk_analysis", schedule="1h", mode="manual")])
        await asyncio.sleep(0.05)
        try:
            assert engine.calls == [
                (build_prompt("risk_analysis", "manual"), "risk_analysis", "risk_analysis")
            ]
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio()
    async def test_runs_again_every_interval(self) -> None:
        engine = _RecordingEngine()
        scheduler = ActivityScheduler(engine)
        with _fast_schedule():
            await scheduler.start([Activity(name="weak_analysis", schedule="50ms")])
        await asyncio.sleep(0.3)
        await scheduler.stop()
        assert engine.count("weak_analysis") >= 3

    @pytest.mark.asyncio()
    async def test_disabled_activity_is_skipped(self) -> None:
        engine = _RecordingEngine()
        scheduler = ActivityScheduler(engine)
        await scheduler.start(
            [
                Activity(name="risk_analysis", schedule="1h"),
                Activity(name="app_explain", schedule="1h", enabled=False),
            ]
        )
        await asyncio.sleep(0.05)
        await scheduler.stop()
        assert [s.name for s in scheduler.statuses()] == ["risk_analysis"]
        assert engine.count("app_explain") == 0

    @pytest.mark.asyncio()
    async def test_duplicate_start_does_not_spawn_second_loop(self) -> None:
        engine = _RecordingEngine()
        scheduler = ActivityScheduler(engine)
        activity = Activity(name="risk_analysis", schedule="1h")
        await scheduler.start([activity])
        await scheduler.start([activity])
        await asyncio.sleep(0.05)
        await scheduler.stop()
        assert engine.count("risk_analysis") == 1

    @pytest.mark.asyncio()
    async def test_status_reports_interval_and_mode(self) -> None:
        engine = _RecordingEngine()
        scheduler = ActivityScheduler(engine)
        await scheduler.start([Activity(name="api_biz_explain", schedule="2h", mode="auto")])
        await asyncio.sleep(0.05)
        status = scheduler.get_status("api_biz_explain")
        await scheduler.stop()

        assert status is not None
        assert status.running is True
        assert status.run_count == 1
        data = status.to_dict()
        assert data["intervalSeconds"] == 7200.0
        assert data["mode"] == "auto"
        assert data["lastRunAt"] is not None
        assert scheduler.get_status("missing") is None


# ---------------------------------------------------------------------------
# Execution semantics
# ---------------------------------------------------------------------------


class TestExecution:
    @pytest.mark.asyncio()
    async def test_failure_is_contained(self) -> None:
        engine = _RecordingEngine(failing={"risk_analysis"})
        scheduler = ActivityScheduler(engine)
        with _fast_schedule():
            await scheduler.start(
                [Activity(name="risk_analysis"), Activity(name="weak_analysis")]
            )
        await asyncio.sleep(0.3)
        risk = scheduler.get_status("risk_analysis")
        weak = scheduler.get_status("weak_analysis")
        await scheduler.stop()

        assert engine.count("risk_analysis") >= 2
        assert engine.count("weak_analysis") >= 2
        assert risk is not None and weak is not None
        assert risk.running is True
        assert risk.failure_count >= 2
        assert risk.last_error == "risk_analysis exploded"
        assert weak.failure_count == 0
        assert weak.last_error is None

    @pytest.mark.asyncio()
    async def test_executions_never_overlap(self) -> None:
        engine = _RecordingEngine(delay=0.12)
        scheduler = ActivityScheduler(engine)
        with _fast_schedule():
            await scheduler.start([Activity(name="risk_analysis")])
        await asyncio.sleep(0.5)
        await scheduler.stop()

        assert engine.count("risk_analysis") >= 2
        assert engine.max_active["risk_analysis"] == 1


# ---------------------------------------------------------------------------
# Stop
# ---------------------------------------------------------------------------


class TestStop:
    @pytest.mark.asyncio()
    async def test_stop_joins_every_loop(self) -> None:
        engine = _RecordingEngine()
        scheduler = ActivityScheduler(engine)
        with _fast_schedule():
            await scheduler.start([Activity(name="a"), Activity(name="b")])
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert scheduler.running is False
        assert all(not s.running for s in scheduler.statuses())
        calls_after_stop = len(engine.calls)
        await asyncio.sleep(0.15)
        assert len(engine.calls) == calls_after_stop

    @pytest.mark.asyncio()
    async def test_stop_cancels_in_flight_execution(self) -> None:
        engine = _RecordingEngine(delay=10.0)
        scheduler = ActivityScheduler(engine)
        await scheduler.start([Activity(name="risk_analysis", schedule="1h")])
        await asyncio.sleep(0.05)
        await asyncio.wait_for(scheduler.stop(), timeout=1.0)
        status = scheduler.get_status("risk_analysis")
        assert status is not None
        assert status.running is False
        assert status.executing is False

    @pytest.mark.asyncio()
    async def test_stop_right_after_start_does_not_wait_for_a_round(self) -> None:
        engine = _RecordingEngine(delay=3.0)
        scheduler = ActivityScheduler(engine)
        await scheduler.start([Activity(name="risk_analysis", schedule="1h")])
        await asyncio.wait_for(scheduler.stop(), timeout=1.0)

        assert scheduler.running is False
        assert engine.calls == []
        assert engine.active.get("risk_analysis", 0) == 0

    @pytest.mark.asyncio()
    async def test_stop_is_idempotent(self) -> None:
        scheduler = ActivityScheduler(_RecordingEngine())
        await scheduler.stop()
        await scheduler.start([Activity(name="risk_analysis", schedule="1h")])
        await scheduler.stop()
        await scheduler.stop()
        assert scheduler.running is False

    @pytest.mark.asyncio()
    async def test_stop_single_activity(self) -> None:
        engine = _RecordingEngine()
        scheduler = ActivityScheduler(engine)
        await scheduler.start(
            [Activity(name="a", schedule="1h"), Activity(name="b", schedule="1h")]
        )
        await asyncio.sleep(0.05)

        assert scheduler.stop_activity("a") is True
        await asyncio.sleep(0.05)
        a = scheduler.get_status("a")
        b = scheduler.get_status("b")
        assert a is not None and b is not None
        assert a.running is False
        assert b.running is True
        assert scheduler.stop_activity("a") is False
        assert scheduler.stop_activity("missing") is False

        await scheduler.stop()

    @pytest.mark.asyncio()
    async def test_stop_single_activity_lets_execution_finish(self) -> None:
        engine = _RecordingEngine(delay=0.1)
        scheduler = ActivityScheduler(engine)
        await scheduler.start([Activity(name="a", schedule="1h")])
        await asyncio.sleep(0.02)

        assert scheduler.stop_activity("a") is True
        await asyncio.sleep(0.2)
        status = scheduler.get_status("a")
        assert status is not None
        assert status.running is False
        assert status.failure_count == 0
        assert status.last_error is None
        await scheduler.stop()
