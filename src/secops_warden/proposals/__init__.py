"""Proposal workflow: approval state machine for recommended actions."""

from __future__ import annotations

from secops_warden.proposals.models import (
    Param,
    Proposal,
    ProposalAction,
    ProposalStatus,
    new_proposal,
)
from secops_warden.proposals.notifications import NotificationChannel
from secops_warden.proposals.store import ProposalStore

__all__ = [
    "NotificationChannel",
    "Param",
    "Proposal",
    "ProposalAction",
    "ProposalStatus",
    "ProposalStore",
    "new_proposal",
]
