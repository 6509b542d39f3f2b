"""HTTP front-end — FastAPI app served by uvicorn inside the agent's loop."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import uvicorn
from fastapi import APIRouter, FastAPI, Request

from agents_fun import __version__
from agents_fun.api.health_routes import health_router
from agents_fun.character import character_summary

if TYPE_CHECKING:
    from agents_fun.runtime.agent import AgentRuntime

logger = logging.getLogger(__name__)

agent_router = APIRouter()


@agent_router.get("/agents")
def list_agents(request: Request) -> dict[str, Any]:
    """Registered runtimes."""
    agents: dict[str, AgentRuntime] = getattr(request.app.state, "agents", {})
    return {
        "agents": [
            {"id": agent_id, **character_summary(runtime.character)}
            for agent_id, runtime in agents.items()
        ]
    }


def create_app() -> FastAPI:
    app = FastAPI(
        title="agents-fun",
        version=__version__,
    )
    app.state.agents = {}
    app.include_router(health_router)
    app.include_router(agent_router)
    return app


class AgentServer:
    """Owns the app and the uvicorn server task.

    Lifecycle:
        server = AgentServer()
        server.register_agent(runtime)
        await server.start(port)    # returns once the serve task is scheduled, before the bind
        ...
        await server.stop()
    """

    def __init__(self, host: str = "0.0.0.0", app: FastAPI | None = None) -> None:
        self.host = host
        self.app = app or create_app()
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def agents(self) -> dict[str, AgentRuntime]:
        return self.app.state.agents

    def register_agent(self, runtime: AgentRuntime) -> None:
        self.agents[runtime.agent_id] = runtime
        logger.info("Registered agent %s (%s)", runtime.name, runtime.agent_id)

    async def start(self, port: int) -> None:
        if self._task:
            return
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=port,
            log_config=None,  # keep our root handlers
        )
        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(self._server.serve(), name="agent-http")
        logger.info("Server starting on %s:%d", self.host, port)

    async def stop(self) -> None:
        if not self._server or not self._task:
            return
        self._server.should_exit = True
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Server stopped")

    async def wait(self) -> None:
        """Block until the server task ends."""
        if self._task:
            await self._task
