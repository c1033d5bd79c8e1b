"""SecOps Warden HTTP dashboard."""

from __future__ import annotations

from secops_warden.dashboard.app import create_app

__all__ = ["create_app"]
