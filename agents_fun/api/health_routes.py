"""Health check route.

Endpoints:
  GET  /healthcheck   — liveness snapshot (always 200)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request

from agents_fun.events.models import now_ms
from agents_fun.health.monitor import HealthMonitor, build_snapshot

if TYPE_CHECKING:
    from agents_fun.api.server import AgentServer
    from agents_fun.runtime.agent import AgentRuntime

logger = logging.getLogger(__name__)

health_router = APIRouter()


def register_health_route(runtime: AgentRuntime, server: AgentServer) -> HealthMonitor:
    """Point the server's /healthcheck at this runtime's event store."""
    monitor = HealthMonitor(runtime.event_store, runtime.agent_id)
    server.app.state.health_monitor = monitor
    logger.info("Healthcheck bound to agent %s", runtime.agent_id)
    return monitor


@health_router.get("/healthcheck")
async def healthcheck(request: Request) -> dict[str, Any]:
    monitor: HealthMonitor | None = getattr(request.app.state, "health_monitor", None)
    if monitor is None:
        logger.warning("Healthcheck requested before an agent was registered")
        snapshot = build_snapshot(now_ms())
    else:
        snapshot = await monitor.snapshot()
    return snapshot.model_dump()
