"""SecOps service: boots and holds the scheduler, proposal store, and tool adapters."""

from __future__ import annotations

import logging
from typing import Any

from secops_warden.activities.scheduler import ActivityScheduler, ReasoningEngine
from secops_warden.catalog import DEFAULT_ENDPOINTS, DEFAULT_QUERIES
from secops_warden.config import ConfigManager
from secops_warden.config.schema import WardenConfig
from secops_warden.proposals.store import ProposalStore
from secops_warden.tools.action_api import ActionAPITool, EndpointSpec
from secops_warden.tools.executor import ToolExecutor
from secops_warden.tools.proposal_tools import get_proposal_tools
from secops_warden.tools.query_data import QueryDataTool

logger = logging.getLogger(__name__)


def build_query_tool(config: WardenConfig) -> QueryDataTool:
    """Query adapter over the built-in templates plus any configured ones."""
    clickhouse = config.secops.clickhouse
    return QueryDataTool(
        {**DEFAULT_QUERIES, **config.secops.queries},
        base_url=clickhouse.base_url(),
        username=clickhouse.username,
        password=clickhouse.password,
    )


def build_action_tool(config: WardenConfig) -> ActionAPITool:
    """Action adapter over the built-in endpoints plus any configured ones."""
    endpoints: dict[str, EndpointSpec] = dict(DEFAULT_ENDPOINTS)
    for endpoint_id, endpoint in config.secops.endpoints.items():
        endpoints[endpoint_id] = EndpointSpec(**endpoint.model_dump())
    sheikah = config.secops.sheikah
    return ActionAPITool(
        endpoints,
        base_url=sheikah.base_url or "http://localhost:8080",
        api_key=sheikah.api_key,
    )


class SecOpsService:
    """Wires configuration to live components.

    The dashboard and CLI both go through this object to reach the
    scheduler and the proposal store.  Shutdown order: scheduler loops are
    joined first, then the HTTP clients of the adapters and of a backend
    the service built itself are closed.

    Args:
        config: Loaded configuration; read from disk when omitted.
        engine: Reasoning engine; built from ``[engine]`` config when omitted.
    """

    def __init__(
        self,
        config: WardenConfig | None = None,
        engine: ReasoningEngine | None = None,
    ) -> None:
        self._config = config or ConfigManager().load()
        secops = self._config.secops

        self.proposal_store = ProposalStore(notification_capacity=secops.notification_capacity)
        self.query_tool = build_query_tool(self._config)
        self.action_tool = build_action_tool(self._config)

        self.tool_executor = ToolExecutor(
            timeout_seconds=float(self._config.engine.tool_timeout_seconds)
        )
        self.tool_executor.register(self.query_tool.to_tool())
        self.tool_executor.register(self.action_tool.to_tool())
        for tool in get_proposal_tools(self.proposal_store):
            self.tool_executor.register(tool)
        logger.info(
            "SecOps tools registered: %d queries, %d endpoints",
            len(self.query_tool.template_ids()),
            len(self.action_tool.endpoint_ids()),
        )

        self._backend: Any = None
        self.engine = engine or self._create_engine()
        self.scheduler = ActivityScheduler(self.engine)
        self._started = False

    @property
    def config(self) -> WardenConfig:
        return self._config

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Start every enabled activity. No-op when SecOps is disabled."""
        if self._started:
            logger.warning("SecOps service already started")
            return
        if not self._config.secops.enabled:
            logger.info("SecOps service is disabled")
            return

        activities = self._config.secops.build_activities()
        logger.info("Starting SecOps service with %d activities", len(activities))
        await self.scheduler.start(activities)
        self._started = True

    async def stop(self) -> None:
        """Stop the scheduler, then release adapter resources."""
        if not self._started:
            await self._close_clients()
            return

        logger.info("Stopping SecOps service")
        await self.scheduler.stop()
        await self._close_clients()
        self._started = False
        logger.info("SecOps service stopped")

    async def _close_clients(self) -> None:
        await self.query_tool.aclose()
        await self.action_tool.aclose()
        if self._backend is not None:
            await self._backend.aclose()

    def _create_engine(self) -> Any:
        """Create the agent engine on the configured backend."""
        from secops_warden.engine.agent import AgentEngine
        from secops_warden.engine.backends import AnthropicBackend, OllamaBackend

        cfg = self._config.engine
        if cfg.backend == "anthropic" and cfg.anthropic_key:
            backend: Any = AnthropicBackend(api_key=cfg.anthropic_key, model=cfg.anthropic_model)
        else:
            if cfg.backend != "ollama":
                logger.warning("Backend '%s' not configured, falling back to Ollama", cfg.backend)
            backend = OllamaBackend(model=cfg.ollama_model, host=cfg.ollama_host)
        self._backend = backend

        return AgentEngine(
            backend,
            self.tool_executor,
            system_prompt=cfg.system_prompt,
            max_tool_iterations=cfg.max_tool_iterations,
        )
