"""Proposal tools: let the reasoning engine file decisions for operator approval."""

from __future__ import annotations

import json
import logging

from secops_warden.proposals.models import Param, ProposalAction, new_proposal
from secops_warden.proposals.store import ProposalStore
from secops_warden.templating import parse_params
from secops_warden.tools.executor import ToolDefinition, ToolOutput

logger = logging.getLogger(__name__)

PROPOSAL_TYPES = ("risk", "weak", "api_biz", "app")

_DEFAULT_ACTIONS = (
    ("Confirm", "accept"),
    ("Ignore", "ignore"),
    ("Modify parameters", "modify"),
)


def get_proposal_tools(store: ProposalStore) -> list[ToolDefinition]:
    """Return proposal tool definitions bound to *store*."""

    async def _propose_action(
        type: str = "",  # noqa: A002
        title: str = "",
        summary: str = "",
        details: str = "",
        parameters: str = "",
    ) -> ToolOutput:
        if not type or not title:
            return ToolOutput.error("type and title are required")

        parsed_details: dict = {}
        if details:
            try:
                parsed_details = json.loads(details)
            except ValueError as exc:
                return ToolOutput.error(f"details must be a JSON object: {exc}")
            if not isinstance(parsed_details, dict):
                return ToolOutput.error("details must be a JSON object")

        proposal = new_proposal(type, title, summary, parsed_details)
        for key, value in parse_params(parameters).items():
            proposal.parameters[key] = Param(key=key, label=key, value=value)
        proposal.actions = [
            ProposalAction(label=label, type=kind) for label, kind in _DEFAULT_ACTIONS
        ]

        proposal_id = store.create(proposal)
        return ToolOutput.ok(f"Proposal created: {proposal_id}")

    async def _list_proposals() -> str:
        pending = sorted(store.get_pending(), key=lambda p: p.created_at)
        if not pending:
            return "No pending proposals."
        return json.dumps([p.to_summary() for p in pending], indent=2, ensure_ascii=False)

    return [
        ToolDefinition(
            name="propose_action",
            description=(
                "File a recommended action for operator approval instead of applying it. "
                f"type is one of: {', '.join(PROPOSAL_TYPES)}. details is a JSON object of "
                "supporting facts; parameters uses key1=value1,key2=value2 and lists the "
                "values an operator may adjust before resubmitting."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": list(PROPOSAL_TYPES)},
                    "title": {"type": "string", "description": "Short headline."},
                    "summary": {"type": "string", "description": "One-paragraph rationale."},
                    "details": {"type": "string", "description": "JSON object of facts."},
                    "parameters": {
                        "type": "string",
                        "description": "Adjustable parameters, key1=value1,key2=value2",
                    },
                },
                "required": ["type", "title"],
            },
            handler=_propose_action,
            category="proposals",
        ),
        ToolDefinition(
            name="list_proposals",
            description="List proposals still awaiting an operator decision.",
            parameters={"type": "object", "properties": {}},
            handler=_list_proposals,
            category="proposals",
        ),
    ]
