"""Agent engine: tool-use loop that carries out one activity round."""

from __future__ import annotations

import logging

from secops_warden.engine.backends import ModelBackend
from secops_warden.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a security operations analyst. Use the available tools to gather "
    "evidence before deciding. Keep parameter values free of commas and of "
    "$name or {{name}} placeholder text."
)

MAX_HISTORY_MESSAGES = 20


class AgentEngine:
    """Runs a prompt through the model, executing tool calls until it answers.

    Conversation history is kept per ``channel:session_id`` so consecutive
    ticks of the same activity share context.

    Args:
        backend: The LLM backend.
        tools: Executor holding the tools the model may call.
        system_prompt: System prompt for every round.
        max_tool_iterations: Upper bound on model calls per round.
    """

    def __init__(
        self,
        backend: ModelBackend,
        tools: ToolExecutor,
        system_prompt: str = "",
        max_tool_iterations: int = 10,
    ) -> None:
        self._backend = backend
        self._tools = tools
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self._max_tool_iterations = max_tool_iterations
        self._sessions: dict[str, list[dict]] = {}

    async def process_heartbeat(self, prompt: str, channel: str, session_id: str) -> str:
        """Run one reasoning round for *prompt* and return the final text."""
        key = f"{channel}:{session_id}"
        history = self._sessions.get(key, [])
        messages: list[dict] = [*history, {"role": "user", "content": prompt}]
        tool_schemas = self._tools.get_schemas()

        turn = None
        text = ""
        for _ in range(self._max_tool_iterations):
            turn = await self._backend.complete(
                messages,
                system_prompt=self._system_prompt,
                tools=tool_schemas or None,
            )
            if not turn.tool_calls:
                text = turn.text
                break

            results: list[dict] = []
            for call in turn.tool_calls:
                result = await self._tools.execute(call.name, call.arguments)
                logger.debug(
                    "Tool %s for %s -> success=%s in %.0fms",
                    call.name,
                    key,
                    result.success,
                    result.duration_ms,
                )
                results.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": call.id,
                        "content": result.output,
                        "is_error": not result.success,
                    }
                )

            assistant_content: list[dict] = []
            if turn.text:
                assistant_content.append({"type": "text", "text": turn.text})
            for call in turn.tool_calls:
                assistant_content.append(
                    {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
                )
            messages.append({"role": "assistant", "content": assistant_content})
            messages.append({"role": "user", "content": results})
        else:
            logger.warning("Tool iteration limit reached for %s", key)
            text = turn.text if turn else ""

        # Only plain-text turns are kept so the history never starts mid tool exchange.
        self._sessions[key] = [
            *history,
            {"role": "user", "content": prompt},
            {"role": "assistant", "content": text or "(no response)"},
        ][-MAX_HISTORY_MESSAGES:]
        return text

    def reset_session(self, key: str) -> None:
        """Forget the history of ``channel:session_id`` *key*."""
        self._sessions.pop(key, None)
