"""Reasoning engine: model backends and the tool-use agent loop."""

from __future__ import annotations

from secops_warden.engine.agent import AgentEngine
from secops_warden.engine.backends import (
    AnthropicBackend,
    ModelBackend,
    ModelTurn,
    OllamaBackend,
    ToolCall,
)

__all__ = [
    "AgentEngine",
    "AnthropicBackend",
    "ModelBackend",
    "ModelTurn",
    "OllamaBackend",
    "ToolCall",
]
