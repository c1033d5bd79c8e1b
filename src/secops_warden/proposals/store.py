"""In-memory proposal store implementing the approval state machine.

State machine::

    pending --accept-->   accepted
    pending --ignore-->   ignored
    <any>   --resubmit--> modified

Accept and ignore only act on pending proposals.  Resubmit never checks
the current status, so a decided proposal can be re-opened as
``modified``.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from datetime import UTC, datetime

from secops_warden.errors import ProposalAlreadyProcessedError, ProposalNotFoundError
from secops_warden.proposals.models import Proposal, ProposalStatus
from secops_warden.proposals.notifications import DEFAULT_CAPACITY, NotificationChannel

logger = logging.getLogger(__name__)


class ProposalStore:
    """Concurrency-safe repository of proposals.

    One lock guards the whole map; proposal volume follows human approval
    cadence, so there is no per-proposal locking.  Every read returns
    copies, so callers cannot mutate stored proposals behind the lock.

    Args:
        notification_capacity: Buffer size of the new-proposal channel.
    """

    def __init__(self, notification_capacity: int = DEFAULT_CAPACITY) -> None:
        self._proposals: dict[str, Proposal] = {}
        self._lock = threading.Lock()
        self._channel: NotificationChannel[Proposal] = NotificationChannel(notification_capacity)

    @property
    def notifications(self) -> NotificationChannel[Proposal]:
        """Receive side of the new-proposal channel (single consumer)."""
        return self._channel

    def __len__(self) -> int:
        with self._lock:
            return len(self._proposals)

    def create(self, proposal: Proposal) -> str:
        """Store *proposal* and announce it on the notification channel.

        Assigns an ID if none is set, resets the status to ``pending`` and
        refreshes timestamps on the passed object.  The proposal is stored
        even when the notification is dropped because the channel is full.

        Returns:
            The proposal ID.
        """
        now = datetime.now(UTC)
        if not proposal.id:
            proposal.id = str(uuid.uuid4())
        if proposal.created_at is None:
            proposal.created_at = now
        proposal.updated_at = now
        proposal.status = ProposalStatus.PENDING

        stored = copy.deepcopy(proposal)
        with self._lock:
            self._proposals[stored.id] = stored

        logger.info(
            "Proposal created: id=%s type=%s title=%r", stored.id, stored.type, stored.title
        )

        if not self._channel.push(copy.deepcopy(stored)):
            logger.warning("Proposal channel full, notification skipped for %s", stored.id)

        return stored.id

    def get(self, proposal_id: str) -> Proposal | None:
        """Return a copy of the proposal, or ``None`` if it does not exist."""
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            return copy.deepcopy(proposal) if proposal is not None else None

    def get_all(self) -> list[Proposal]:
        """Return copies of all proposals, in no particular order."""
        with self._lock:
            return [copy.deepcopy(p) for p in self._proposals.values()]

    def get_pending(self) -> list[Proposal]:
        """Return copies of all pending proposals, in no particular order."""
        with self._lock:
            return [
                copy.deepcopy(p)
                for p in self._proposals.values()
                if p.status == ProposalStatus.PENDING
            ]

    def accept(self, proposal_id: str, params: dict[str, str] | None = None) -> None:
        """Move a pending proposal to ``accepted``.

        Raises:
            ProposalNotFoundError: If the ID is unknown.
            ProposalAlreadyProcessedError: If the proposal is not pending.
        """
        self._decide(proposal_id, ProposalStatus.ACCEPTED, params)

    def ignore(self, proposal_id: str, params: dict[str, str] | None = None) -> None:
        """Move a pending proposal to ``ignored``.

        Raises:
            ProposalNotFoundError: If the ID is unknown.
            ProposalAlreadyProcessedError: If the proposal is not pending.
        """
        self._decide(proposal_id, ProposalStatus.IGNORED, params)

    def resubmit(self, proposal_id: str, params: dict[str, str] | None = None) -> Proposal:
        """Merge new parameter values and mark the proposal ``modified``.

        Parameter names the proposal does not define are ignored.  Works from
        any status.

        Raises:
            ProposalNotFoundError: If the ID is unknown.
        """
        params = params or {}
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            if proposal is None:
                raise ProposalNotFoundError(proposal_id)

            for key, value in params.items():
                param = proposal.parameters.get(key)
                if param is not None:
                    param.value = value

            proposal.status = ProposalStatus.MODIFIED
            proposal.updated_at = datetime.now(UTC)
            snapshot = copy.deepcopy(proposal)

        logger.info(
            "Proposal resubmitted with modified params: id=%s type=%s params=%s",
            snapshot.id,
            snapshot.type,
            params,
        )
        return snapshot

    def delete(self, proposal_id: str) -> bool:
        """Remove a proposal. Returns ``True`` if something was removed."""
        with self._lock:
            return self._proposals.pop(proposal_id, None) is not None

    def _decide(
        self,
        proposal_id: str,
        status: ProposalStatus,
        params: dict[str, str] | None,
    ) -> None:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            if proposal is None:
                raise ProposalNotFoundError(proposal_id)
            if proposal.status != ProposalStatus.PENDING:
                raise ProposalAlreadyProcessedError(proposal_id, str(proposal.status))

            proposal.status = status
            proposal.updated_at = datetime.now(UTC)
            proposal_type = proposal.type
            title = proposal.title

        logger.info(
            "Proposal %s: id=%s type=%s title=%r params=%s",
            status,
            proposal_id,
            proposal_type,
            title,
            params or {},
        )
