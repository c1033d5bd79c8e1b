"""Model backends for the reasoning engine.

Each backend turns a running conversation plus the tool schemas into one
:class:`ModelTurn`.  Both talk HTTP through a single ``httpx.AsyncClient``
kept for the backend's lifetime, the same way the tool adapters do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from secops_warden.errors import EngineError

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    """A tool invocation the model asked for."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class ModelTurn:
    """What the model said in one turn of an activity round."""

    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: str = "end_turn"  # "end_turn" | "tool_use" | "max_tokens"


class ModelBackend(Protocol):
    async def complete(
        self,
        messages: list[dict],
        system_prompt: str = "",
        tools: list[dict] | None = None,
        max_tokens: int = 4096,
    ) -> ModelTurn: ...

    async def aclose(self) -> None: ...


class _HTTPBackend:
    label = "model"

    def __init__(self, client: httpx.AsyncClient | None, timeout: float) -> None:
        self._owns_client = client is None
        self._client: httpx.AsyncClient | None = client or httpx.AsyncClient(timeout=timeout)

    @property
    def closed(self) -> bool:
        return self._client is None

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None and self._owns_client:
            await client.aclose()

    async def _post(self, url: str, payload: dict, headers: dict[str, str] | None = None) -> dict:
        if self._client is None:
            raise EngineError(f"{self.label} backend is closed")
        try:
            resp = await self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise EngineError(f"{self.label} request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise EngineError(
                f"{self.label} returned {resp.status_code}: {resp.text[:500]}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise EngineError(f"{self.label} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise EngineError(f"{self.label} returned an unexpected body")
        return data


class AnthropicBackend(_HTTPBackend):
    """Anthropic Messages API with native tool use."""

    label = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        super().__init__(client, timeout)
        self._api_key = api_key
        self._model = model

    async def complete(
        self,
        messages: list[dict],
        system_prompt: str = "",
        tools: list[dict] | None = None,
        max_tokens: int = 4096,
    ) -> ModelTurn:
        payload: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system_prompt:
            payload["system"] = system_prompt
        if tools:
            payload["tools"] = tools

        data = await self._post(
            self.API_URL,
            payload,
            headers={"x-api-key": self._api_key, "anthropic-version": self.API_VERSION},
        )

        usage = data.get("usage") or {}
        logger.debug(
            "Anthropic turn: %s in / %s out tokens",
            usage.get("input_tokens"),
            usage.get("output_tokens"),
        )

        blocks = data.get("content") or []
        text = "\n".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        calls = [
            ToolCall(id=b.get("id", ""), name=b.get("name", ""), arguments=b.get("input") or {})
            for b in blocks
            if b.get("type") == "tool_use"
        ]
        stop_reason = data.get("stop_reason", "end_turn")
        return ModelTurn(text=text, tool_calls=calls, stop_reason=stop_reason)


class OllamaBackend(_HTTPBackend):
    """Local Ollama model through the chat API's function calling."""

    label = "ollama"

    def __init__(
        self,
        model: str = "llama3.1:8b",
        host: str = "http://localhost:11434",
        client: httpx.AsyncClient | None = None,
        timeout: float = 300.0,
    ) -> None:
        super().__init__(client, timeout)
        self._model = model
        self._url = host.rstrip("/") + "/api/chat"

    async def complete(
        self,
        messages: list[dict],
        system_prompt: str = "",
        tools: list[dict] | None = None,
        max_tokens: int = 4096,
    ) -> ModelTurn:
        chat: list[dict] = []
        if system_prompt:
            chat.append({"role": "system", "content": system_prompt})
        chat.extend({"role": m["role"], "content": _flatten(m["content"])} for m in messages)

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": chat,
            "stream": False,
            "options": {"num_predict": max_tokens},
        }
        if tools:
            payload["tools"] = [_as_function(t) for t in tools]

        message = (await self._post(self._url, payload)).get("message") or {}
        calls = []
        for i, call in enumerate(message.get("tool_calls") or []):
            function = call.get("function") or {}
            calls.append(
                ToolCall(
                    id=f"call_{i}",
                    name=function.get("name", ""),
                    arguments=function.get("arguments") or {},
                )
            )
        return ModelTurn(
            text=message.get("content", ""),
            tool_calls=calls,
            stop_reason="tool_use" if calls else "end_turn",
        )


def _as_function(schema: dict) -> dict:
    return {
        "type": "function",
        "function": {
            "name": schema["name"],
            "description": schema["description"],
            "parameters": schema["input_schema"],
        },
    }


def _flatten(content: str | list[dict]) -> str:
    """Collapse tool_use / tool_result blocks into plain text, which Ollama expects."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        kind = block.get("type")
        if kind == "text":
            parts.append(block.get("text", ""))
        elif kind == "tool_use":
            parts.append(f"[called {block.get('name')} with {block.get('input')}]")
        elif kind == "tool_result":
            parts.append(f"[tool result] {block.get('content', '')}")
    return "\n".join(parts)
