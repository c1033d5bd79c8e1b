"""SecOps Warden dashboard: FastAPI application."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

import secops_warden
from secops_warden.dashboard.errors import register_error_handlers
from secops_warden.dashboard.routers import activities, agent, proposals
from secops_warden.proposals.models import ProposalStatus
from secops_warden.service import SecOpsService

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        method = request.method
        path = request.url.path

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "[%s] %s %s - 500 ERROR in %.1fms", request_id, method, path, duration_ms
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code
        log_level = logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            "[%s] %s %s - %d in %.1fms",
            request_id,
            method,
            path,
            status_code,
            duration_ms,
        )
        response.headers["X-Request-ID"] = request_id
        return response


def create_app(service: SecOpsService | None = None) -> FastAPI:
    """Build the dashboard app around *service*.

    The service's activities start with the app and stop with it.  When no
    service is passed one is built from the on-disk configuration.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        svc = app.state.service
        await svc.start()
        try:
            yield
        finally:
            await svc.stop()

    app = FastAPI(title="SecOps Warden", version=secops_warden.__version__, lifespan=lifespan)
    app.state.service = service or SecOpsService()

    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    app.include_router(proposals.router)
    app.include_router(activities.router)
    app.include_router(agent.router)

    @app.get("/api/info")
    async def info(request: Request) -> JSONResponse:
        """Return version, registered tools, and proposal and activity counts."""
        svc: SecOpsService = request.app.state.service
        all_proposals = svc.proposal_store.get_all()
        pending = sum(1 for p in all_proposals if p.status == ProposalStatus.PENDING)
        return JSONResponse(
            {
                "version": secops_warden.__version__,
                "started": svc.started,
                "tools": [tool.name for tool in svc.tool_executor.list_tools()],
                "proposals": {"total": len(all_proposals), "pending": pending},
                "activities": len(svc.scheduler.statuses()),
                "droppedNotifications": svc.proposal_store.notifications.dropped,
            }
        )

    return app
