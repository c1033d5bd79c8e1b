"""Tests for the agent engine tool loop."""

from __future__ import annotations

import copy
import json
from typing import Any

import httpx
import pytest

from secops_warden.engine import (
    AgentEngine,
    AnthropicBackend,
    ModelTurn,
    OllamaBackend,
    ToolCall,
)
from secops_warden.engine.agent import DEFAULT_SYSTEM_PROMPT, MAX_HISTORY_MESSAGES
from secops_warden.errors import EngineError
from secops_warden.tools import ToolDefinition, ToolExecutor


class _ScriptedBackend:
    """Backend stand-in that replays a fixed list of responses."""

    def __init__(self, responses: list[ModelTurn]) -> None:
        self._responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[dict],
        system_prompt: str = "",
        tools: list[dict] | None = None,
        max_tokens: int = 4096,
    ) -> ModelTurn:
        self.requests.append(
            {"messages": copy.deepcopy(messages), "system_prompt": system_prompt, "tools": tools}
        )
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]


def _executor(outputs: list[str]) -> ToolExecutor:
    async def _lookup(ip: str = "") -> str:
        outputs.append(ip)
        return f"3 rows for {ip}"

    executor = ToolExecutor()
    executor.register(
        ToolDefinition(
            name="query_data",
            description="Query.",
            parameters={"type": "object", "properties": {"ip": {"type": "string"}}},
            handler=_lookup,
        )
    )
    return executor


class TestAgentEngine:
    @pytest.mark.asyncio()
    async def test_plain_answer(self) -> None:
        backend = _ScriptedBackend([ModelTurn(text="Nothing to do.")])
        engine = AgentEngine(backend, ToolExecutor())
        text = await engine.process_heartbeat("Run triage", "risk_analysis", "risk_analysis")
        assert text == "Nothing to do."
        assert backend.requests[0]["system_prompt"] == DEFAULT_SYSTEM_PROMPT
        assert backend.requests[0]["tools"] is None

    @pytest.mark.asyncio()
    async def test_tool_call_round_trip(self) -> None:
        calls: list[str] = []
        backend = _ScriptedBackend(
            [
                ModelTurn(
                    text="Looking up",
                    tool_calls=[ToolCall(id="t1", name="query_data", arguments={"ip": "1.2.3.4"})],
                    stop_reason="tool_use",
                ),
                ModelTurn(text="Filed a proposal."),
            ]
        )
        engine = AgentEngine(backend, _executor(calls), system_prompt="custom")
        text = await engine.process_heartbeat("Run triage", "risk_analysis", "risk_analysis")

        assert text == "Filed a proposal."
        assert calls == ["1.2.3.4"]
        second = backend.requests[1]
        assert second["system_prompt"] == "custom"
        assert second["tools"][0]["name"] == "query_data"
        assistant, tool_results = second["messages"][-2:]
        assert assistant["role"] == "assistant"
        assert assistant["content"][1]["type"] == "tool_use"
        assert tool_results["content"][0] == {
            "type": "tool_result",
            "tool_use_id": "t1",
            "content": "3 rows for 1.2.3.4",
            "is_error": False,
        }

    @pytest.mark.asyncio()
    async def test_failed_tool_marked_as_error(self) -> None:
        backend = _ScriptedBackend(
            [
                ModelTurn(
                    text="",
                    tool_calls=[ToolCall(id="t1", name="missing_tool", arguments={})],
                ),
                ModelTurn(text="done"),
            ]
        )
        engine = AgentEngine(backend, ToolExecutor())
        await engine.process_heartbeat("go", "a", "a")
        result = backend.requests[1]["messages"][-1]["content"][0]
        assert result["is_error"] is True
        assert result["content"] == "Unknown tool: missing_tool"

    @pytest.mark.asyncio()
    async def test_iteration_limit(self) -> None:
        calls: list[str] = []
        looping = ModelTurn(
            text="still working",
            tool_calls=[ToolCall(id="t", name="query_data", arguments={"ip": "x"})],
        )
        backend = _ScriptedBackend([looping])
        engine = AgentEngine(backend, _executor(calls), max_tool_iterations=3)
        text = await engine.process_heartbeat("go", "a", "a")
        assert text == "still working"
        assert len(backend.requests) == 3
        assert len(calls) == 3

    @pytest.mark.asyncio()
    async def test_history_is_kept_per_channel_and_session(self) -> None:
        backend = _ScriptedBackend([ModelTurn(text="ok")])
        engine = AgentEngine(backend, ToolExecutor())
        await engine.process_heartbeat("first", "risk_analysis", "risk_analysis")
        await engine.process_heartbeat("second", "risk_analysis", "risk_analysis")
        await engine.process_heartbeat("other", "weak_analysis", "weak_analysis")

        assert [m["content"] for m in backend.requests[1]["messages"]] == ["first", "ok", "second"]
        assert [m["content"] for m in backend.requests[2]["messages"]] == ["other"]

        engine.reset_session("risk_analysis:risk_analysis")
        await engine.process_heartbeat("third", "risk_analysis", "risk_analysis")
        assert [m["content"] for m in backend.requests[3]["messages"]] == ["third"]

    @pytest.mark.asyncio()
    async def test_history_is_bounded(self) -> None:
        backend = _ScriptedBackend([ModelTurn(text="ok")])
        engine = AgentEngine(backend, ToolExecutor())
        for i in range(MAX_HISTORY_MESSAGES):
            await engine.process_heartbeat(f"tick {i}", "a", "a")
        last = backend.requests[-1]["messages"]
        assert len(last) == MAX_HISTORY_MESSAGES + 1
        assert last[-1]["content"] == f"tick {MAX_HISTORY_MESSAGES - 1}"


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestAnthropicBackend:
    @pytest.mark.asyncio()
    async def test_parses_text_and_tool_use(self) -> None:
        seen: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "content": [
                        {"type": "text", "text": "Checking"},
                        {
                            "type": "tool_use",
                            "id": "tu_1",
                            "name": "query_data",
                            "input": {"sql_id": "pending_risk_events"},
                        },
                    ],
                    "stop_reason": "tool_use",
                    "usage": {"input_tokens": 10, "output_tokens": 5},
                },
            )

        backend = AnthropicBackend(api_key="sk-test", model="test-model", client=_client(_handler))
        turn = await backend.complete(
            [{"role": "user", "content": "go"}],
            system_prompt="sys",
            tools=[{"name": "query_data", "description": "q", "input_schema": {}}],
        )

        assert turn.text == "Checking"
        assert turn.tool_calls == [
            ToolCall(id="tu_1", name="query_data", arguments={"sql_id": "pending_risk_events"})
        ]
        assert turn.stop_reason == "tool_use"
        body = json.loads(seen[0].content)
        assert body["system"] == "sys"
        assert body["model"] == "test-model"
        assert seen[0].headers["x-api-key"] == "sk-test"

    @pytest.mark.asyncio()
    async def test_reuses_one_client(self) -> None:
        client = _client(lambda r: httpx.Response(200, json={"content": []}))
        backend = AnthropicBackend(api_key="sk-test", client=client)
        await backend.complete([{"role": "user", "content": "a"}])
        await backend.complete([{"role": "user", "content": "b"}])
        assert client.is_closed is False
        await backend.aclose()
        assert backend.closed is True
        assert client.is_closed is False

    @pytest.mark.asyncio()
    async def test_error_status_raises_engine_error(self) -> None:
        client = _client(lambda r: httpx.Response(529, text="overloaded"))
        backend = AnthropicBackend(api_key="sk-test", client=client)
        with pytest.raises(EngineError) as exc_info:
            await backend.complete([{"role": "user", "content": "go"}])
        assert exc_info.value.status_code == 529
        assert "overloaded" in exc_info.value.message

    @pytest.mark.asyncio()
    async def test_transport_failure_raises_engine_error(self) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        backend = AnthropicBackend(api_key="sk-test", client=_client(_handler))
        with pytest.raises(EngineError, match="request failed"):
            await backend.complete([{"role": "user", "content": "go"}])

    @pytest.mark.asyncio()
    async def test_closed_backend_refuses(self) -> None:
        backend = AnthropicBackend(api_key="sk-test")
        await backend.aclose()
        with pytest.raises(EngineError, match="closed"):
            await backend.complete([{"role": "user", "content": "go"}])


class TestOllamaBackend:
    @pytest.mark.asyncio()
    async def test_maps_tools_and_flattens_blocks(self) -> None:
        seen: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "message": {
                        "content": "",
                        "tool_calls": [
                            {"function": {"name": "list_proposals", "arguments": {}}}
                        ],
                    }
                },
            )

        backend = OllamaBackend(
            model="llama3.1:8b", host="http://ollama.local:11434/", client=_client(_handler)
        )
        messages = [
            {"role": "user", "content": "go"},
            {
                "role": "assistant",
                "content": [
                    {"type": "text", "text": "Looking"},
                    {"type": "tool_use", "id": "t", "name": "query_data", "input": {"ip": "x"}},
                ],
            },
            {"role": "user", "content": [{"type": "tool_result", "content": "0 rows"}]},
        ]
        turn = await backend.complete(
            messages,
            system_prompt="sys",
            tools=[{"name": "list_proposals", "description": "l", "input_schema": {}}],
        )

        assert turn.tool_calls == [ToolCall(id="call_0", name="list_proposals", arguments={})]
        assert turn.stop_reason == "tool_use"
        assert seen[0].url.path == "/api/chat"
        body = json.loads(seen[0].content)
        assert body["messages"][0] == {"role": "system", "content": "sys"}
        assert body["messages"][2]["content"] == (
            "Looking\n[called query_data with {'ip': 'x'}]"
        )
        assert body["messages"][3]["content"] == "[tool result] 0 rows"
        assert body["tools"][0]["function"]["name"] == "list_proposals"

    @pytest.mark.asyncio()
    async def test_plain_answer(self) -> None:
        client = _client(lambda r: httpx.Response(200, json={"message": {"content": "done"}}))
        turn = await OllamaBackend(client=client).complete([{"role": "user", "content": "go"}])
        assert turn == ModelTurn(text="done")

    @pytest.mark.asyncio()
    async def test_non_json_body_raises_engine_error(self) -> None:
        client = _client(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(EngineError, match="non-JSON"):
            await OllamaBackend(client=client).complete([{"role": "user", "content": "go"}])
