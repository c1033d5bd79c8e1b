"""Tool adapters and the executor the reasoning engine calls them through."""

from __future__ import annotations

from secops_warden.tools.action_api import ActionAPITool, EndpointSpec
from secops_warden.tools.executor import ToolDefinition, ToolExecutor, ToolOutput, ToolResult
from secops_warden.tools.proposal_tools import get_proposal_tools
from secops_warden.tools.query_data import QueryDataTool

__all__ = [
    "ActionAPITool",
    "EndpointSpec",
    "QueryDataTool",
    "ToolDefinition",
    "ToolExecutor",
    "ToolOutput",
    "ToolResult",
    "get_proposal_tools",
]
