"""SecOps Warden error hierarchy.

Structured exception types shared by the proposal workflow, the tool
adapters and the HTTP surface.
"""

from __future__ import annotations

from typing import Any


class WardenError(Exception):
    """Base error for all SecOps Warden exceptions."""

    code = "WARDEN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code,
            "message": self.message,
            "details": self.details,
        }


# Proposal workflow errors
class ProposalError(WardenError):
    """Base error for proposal workflow failures."""

    code = "PROPOSAL_ERROR"


class ProposalNotFoundError(ProposalError):
    """No proposal with the given identifier exists."""

    code = "PROPOSAL_NOT_FOUND"

    def __init__(self, proposal_id: str) -> None:
        super().__init__(f"proposal not found: {proposal_id}", {"id": proposal_id})
        self.proposal_id = proposal_id


class ProposalAlreadyProcessedError(ProposalError):
    """Accept or ignore was called on a proposal that is no longer pending."""

    code = "PROPOSAL_ALREADY_PROCESSED"

    def __init__(self, proposal_id: str, status: str) -> None:
        super().__init__(
            f"proposal already processed: {status}",
            {"id": proposal_id, "status": status},
        )
        self.proposal_id = proposal_id
        self.status = status


# Tool adapter and engine errors
class QueryError(WardenError):
    """The query endpoint could not be reached or returned an unusable body."""

    code = "QUERY_FAILED"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class EngineError(WardenError):
    """The reasoning backend could not be reached or gave an unusable reply."""

    code = "ENGINE_FAILED"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


# Request and scheduler errors
class InvalidRequestError(WardenError):
    """A request body or argument could not be used."""

    code = "INVALID_REQUEST"


class ActivityNotRunningError(WardenError):
    """No running activity loop has the given name."""

    code = "ACTIVITY_NOT_RUNNING"

    def __init__(self, name: str) -> None:
        super().__init__(f"activity not running: {name}", {"name": name})
        self.name = name
