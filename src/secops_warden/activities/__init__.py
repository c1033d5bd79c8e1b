"""Activities: scheduled security analysis tasks handed to the reasoning engine."""

from __future__ import annotations

from secops_warden.activities.prompts import build_prompt
from secops_warden.activities.schedule import (
    DEFAULT_INTERVAL,
    is_valid_schedule,
    parse_schedule,
)
from secops_warden.activities.scheduler import (
    Activity,
    ActivityScheduler,
    ActivityStatus,
    ReasoningEngine,
)

__all__ = [
    "DEFAULT_INTERVAL",
    "Activity",
    "ActivityScheduler",
    "ActivityStatus",
    "ReasoningEngine",
    "build_prompt",
    "is_valid_schedule",
    "parse_schedule",
]
