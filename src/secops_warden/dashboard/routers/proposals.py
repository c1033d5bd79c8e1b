"""Proposals API router: list, inspect, and dispose of proposals."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from secops_warden.errors import InvalidRequestError, ProposalNotFoundError
from secops_warden.proposals.models import ProposalStatus
from secops_warden.proposals.store import ProposalStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["proposals"])

MAX_NOTIFICATION_TIMEOUT = 60.0


def _get_store(request: Request) -> ProposalStore:
    return request.app.state.service.proposal_store


async def _read_params(request: Request) -> dict[str, str]:
    """Parse an optional JSON object of string values from the body."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise InvalidRequestError(f"invalid JSON body: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidRequestError("request body must be a JSON object")
    bad = sorted(k for k, v in payload.items() if not isinstance(v, str))
    if bad:
        raise InvalidRequestError("parameter values must be strings", {"keys": bad})
    return payload


@router.get("/proposals")
async def list_proposals(
    request: Request,
    status: ProposalStatus | None = None,
) -> JSONResponse:
    """Return proposal summaries, newest first."""
    proposals = _get_store(request).get_all()
    if status is not None:
        proposals = [p for p in proposals if p.status == status]
    proposals.sort(key=lambda p: p.created_at, reverse=True)
    return JSONResponse([p.to_summary() for p in proposals])


@router.get("/proposals/notifications")
async def next_notification(
    request: Request,
    timeout: float = Query(default=30.0, ge=0.0, le=MAX_NOTIFICATION_TIMEOUT),
) -> Response:
    """Long-poll for the next newly created proposal; 204 when none arrives."""
    channel = _get_store(request).notifications
    proposal = await channel.wait(timeout)
    if proposal is None:
        return Response(status_code=204)
    return JSONResponse(proposal.to_dict())


@router.get("/proposal/{proposal_id}")
async def get_proposal(proposal_id: str, request: Request) -> JSONResponse:
    proposal = _get_store(request).get(proposal_id)
    if proposal is None:
        raise ProposalNotFoundError(proposal_id)
    return JSONResponse(proposal.to_dict())


@router.post("/proposal/{proposal_id}/accept")
async def accept_proposal(proposal_id: str, request: Request) -> JSONResponse:
    params = await _read_params(request)
    _get_store(request).accept(proposal_id, params)
    return JSONResponse({"status": "accepted", "id": proposal_id})


@router.post("/proposal/{proposal_id}/ignore")
async def ignore_proposal(proposal_id: str, request: Request) -> JSONResponse:
    params = await _read_params(request)
    _get_store(request).ignore(proposal_id, params)
    return JSONResponse({"status": "ignored", "id": proposal_id})


@router.post("/proposal/{proposal_id}/resubmit")
async def resubmit_proposal(proposal_id: str, request: Request) -> JSONResponse:
    """Merge new parameter values and mark the proposal modified."""
    params = await _read_params(request)
    proposal = _get_store(request).resubmit(proposal_id, params)
    return JSONResponse(
        {"status": "resubmitted", "id": proposal_id, "proposal": proposal.to_dict()}
    )


@router.delete("/proposal/{proposal_id}")
async def delete_proposal(proposal_id: str, request: Request) -> JSONResponse:
    if not _get_store(request).delete(proposal_id):
        raise ProposalNotFoundError(proposal_id)
    logger.info("Proposal deleted: id=%s", proposal_id)
    return JSONResponse({"status": "deleted", "id": proposal_id})
