"""Autonomous loops — startup action, 10-minute action loop, 30-second heartbeat.

Lifecycle:
    loops = AgentLoops()
    await loops.start(runtime, server, port)   # returns once both loops are armed

Every tick writes an ``INTERACTION`` record to the ``START`` table; the
health route reads the age of the newest one. Ticks are launched as their
own tasks, so a slow action pipeline can overlap the next tick and a failed
tick never disarms its loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from functools import partial
from typing import TYPE_CHECKING, Any

from agents_fun.api.health_routes import register_health_route
from agents_fun.autonomy.pipeline import trigger_plugin_actions
from agents_fun.events.models import START_TABLE, EventRecordFactory, Room, now_ms

if TYPE_CHECKING:
    from agents_fun.api.server import AgentServer
    from agents_fun.runtime.agent import AgentRuntime

logger = logging.getLogger(__name__)

PRIMARY_INTERVAL_MS = 10 * 60 * 1000  # 10 minutes
HEARTBEAT_INTERVAL_MS = 30 * 1000  # 30 seconds


class AgentLoops:
    """Owns the startup sequence and the two repeating loops."""

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._sleep = sleep
        self._clock = clock
        self.runtime: AgentRuntime | None = None
        self.records: EventRecordFactory | None = None
        self._loops: list[asyncio.Task[None]] = []
        self._inflight: set[asyncio.Task[Any]] = set()

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._loops)

    async def start(self, runtime: AgentRuntime, server: AgentServer, port: int) -> None:
        """Serve, run the pipeline once, then arm both loops.

        A pipeline failure during startup propagates to the caller; no
        loop is armed in that case.
        """
        register_health_route(runtime, server)
        server.register_agent(runtime)
        await server.start(port)

        self.runtime = runtime
        self.records = EventRecordFactory(runtime.agent_id, clock=self._clock)

        record = self.records.create(Room.INTERACTION)
        await runtime.event_store.append(record, START_TABLE)
        ok = await trigger_plugin_actions(runtime, record)
        logger.info("Startup actions finished (primary succeeded=%s)", ok)

        self._loops = [
            asyncio.create_task(
                self._every(PRIMARY_INTERVAL_MS, self._primary_tick, "primary"),
                name="agent-primary-loop",
            ),
            asyncio.create_task(
                self._every(HEARTBEAT_INTERVAL_MS, self._heartbeat_tick, "heartbeat"),
                name="agent-heartbeat-loop",
            ),
        ]
        logger.info(
            "Loops armed (primary=%ds, heartbeat=%ds)",
            PRIMARY_INTERVAL_MS // 1000, HEARTBEAT_INTERVAL_MS // 1000,
        )

    async def stop(self) -> None:
        """Cancel loops and in-flight ticks; called from the entry point's teardown."""
        tasks = [*self._loops, *self._inflight]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loops.clear()
        self._inflight.clear()
        logger.info("Agent loops stopped")

    # -- loops -----------------------------------------------------------------

    async def _every(self, period_ms: int, tick: Callable[[], None], name: str) -> None:
        while True:
            await self._sleep(period_ms / 1000)
            try:
                tick()
            except Exception:
                logger.exception("%s tick could not be scheduled", name)

    def _primary_tick(self) -> None:
        self.submit(self._run_primary(), "primary tick")

    async def _run_primary(self) -> None:
        record = self.records.create(Room.INTERACTION)
        await self.runtime.event_store.append(record, START_TABLE)
        ok = await trigger_plugin_actions(self.runtime, record)
        logger.info("Primary tick finished (primary succeeded=%s)", ok)

    def _heartbeat_tick(self) -> None:
        record = self.records.create(Room.INTERACTION)
        self.submit(
            self.runtime.event_store.append(record, START_TABLE),
            "heartbeat write",
        )

    # -- fire-and-forget ------------------------------------------------------

    def submit(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task[Any]:
        """Run ``coro`` without awaiting it; failures are logged, not raised."""
        task = asyncio.create_task(coro, name=f"agent-{label}")
        self._inflight.add(task)
        task.add_done_callback(partial(self._on_done, label))
        return task

    def _on_done(self, label: str, task: asyncio.Task[Any]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s failed: %s", label, exc, exc_info=exc)


async def run_agent(runtime: AgentRuntime, server: AgentServer, port: int) -> AgentLoops:
    """Register the agent, start the server and arm the autonomous loops."""
    loops = AgentLoops()
    await loops.start(runtime, server, port)
    return loops
