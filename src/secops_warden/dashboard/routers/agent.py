"""Agent API router: talk to the reasoning engine and list its tools."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

router = APIRouter(prefix="/api", tags=["agent"])
logger = logging.getLogger(__name__)

CHAT_CHANNEL = "debugui"


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    session: str = "debugui"


@router.post("/chat")
async def chat(body: ChatRequest, request: Request) -> JSONResponse:
    """Send an operator message to the engine and return its answer.

    Each ``session`` keeps its own conversation, separate from the
    activities' histories.
    """
    engine = request.app.state.service.engine
    session = body.session or "debugui"
    logger.info("Chat message for session %s (%d chars)", session, len(body.message))
    text = await engine.process_heartbeat(body.message, channel=CHAT_CHANNEL, session_id=session)
    return JSONResponse({"response": text, "session": session})


@router.get("/tools")
async def list_tools(request: Request) -> JSONResponse:
    executor = request.app.state.service.tool_executor
    return JSONResponse({"tools": [tool.to_summary() for tool in executor.list_tools()]})
