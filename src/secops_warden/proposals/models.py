"""Proposal data model: a recommended action awaiting disposition."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class ProposalStatus(StrEnum):
    """Where a proposal sits in the approval state machine."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    IGNORED = "ignored"
    MODIFIED = "modified"


@dataclass
class ProposalAction:
    """A suggested disposition shown to the operator (advisory only)."""

    label: str
    type: str  # "accept" | "ignore" | "modify"
    params: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "type": self.type, "params": dict(self.params)}


@dataclass
class Param:
    """An operator-adjustable proposal parameter."""

    key: str
    label: str = ""
    type: str = "string"  # "string" | "number" | "select"
    value: str = ""
    options: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label or self.key,
            "type": self.type,
            "value": self.value,
            "options": list(self.options),
        }


@dataclass
class Proposal:
    """A unit of recommended action awaiting disposition.

    ``title``, ``summary`` and ``details`` are fixed once the proposal is
    created; only ``parameters`` (via resubmit) and ``status`` change.
    """

    type: str
    title: str
    summary: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    actions: list[ProposalAction] = field(default_factory=list)
    parameters: dict[str, Param] = field(default_factory=dict)
    status: ProposalStatus = ProposalStatus.PENDING
    id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_summary(self) -> dict[str, Any]:
        """Return the list-view shape used by the HTTP surface."""
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "summary": self.summary,
            "status": str(self.status),
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the full JSON shape, including details and parameters."""
        data = self.to_summary()
        data["details"] = dict(self.details)
        data["actions"] = [a.to_dict() for a in self.actions]
        data["parameters"] = {k: p.to_dict() for k, p in self.parameters.items()}
        return data


def new_proposal(
    proposal_type: str,
    title: str,
    summary: str,
    details: dict[str, Any] | None = None,
) -> Proposal:
    """Create a pending proposal with empty actions and parameters."""
    now = datetime.now(UTC)
    return Proposal(
        type=proposal_type,
        title=title,
        summary=summary,
        details=dict(details or {}),
        created_at=now,
        updated_at=now,
    )


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
