"""Health monitor — liveness derived from the age of the newest event.

The response shape is fixed by the external health-check contract. Only
``seconds_since_last_transition`` and ``is_transitioning_fast`` come from
real state; the rest is filled from ``NOT_YET_COMPUTED``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, Field

from agents_fun.events.models import START_TABLE, Room, now_ms
from agents_fun.events.store import EventStore

logger = logging.getLogger(__name__)

# An agent that has not written an event for this long is considered stuck.
TRANSITION_THRESHOLD_SECONDS = 120


# ── Response models ──────────────────────────────────────────────────────────


class AgentHealth(BaseModel):
    is_making_on_chain_transactions: bool
    is_staking_kpi_met: bool
    has_required_funds: bool
    staking_status: str


class RoundInfo(BaseModel):
    name: str
    description: str
    transitions: dict[str, str]


class EnvVarStatus(BaseModel):
    needs_update: bool
    env_vars: dict[str, str] = Field(default_factory=dict)


class PlaceholderHealth(BaseModel):
    """Fields the contract requires but nothing computes yet."""

    model_config = {"frozen": True}

    is_tm_healthy: bool
    period: int
    reset_pause_duration: int
    rounds: list[str]
    rounds_info: dict[str, RoundInfo]
    agent_health: AgentHealth
    env_var_status: EnvVarStatus


NOT_YET_COMPUTED = PlaceholderHealth(
    is_tm_healthy=True,
    period=30,
    reset_pause_duration=120,
    rounds=["dummy_round_1", "dummy_round_2"],
    rounds_info={
        "dummy_round_1": RoundInfo(
            name="Dummy Round 1",
            description="An example of a starting round",
            transitions={"event_a": "dummy_round_2"},
        ),
        "dummy_round_2": RoundInfo(
            name="Dummy Round 2",
            description="An example of a follow-up round",
            transitions={"event_b": "dummy_round_1"},
        ),
    },
    agent_health=AgentHealth(
        is_making_on_chain_transactions=False,
        is_staking_kpi_met=False,
        has_required_funds=True,
        staking_status="healthy",
    ),
    env_var_status=EnvVarStatus(needs_update=False),
)


class HealthCheckResponse(BaseModel):
    seconds_since_last_transition: str
    is_tm_healthy: bool
    period: int
    reset_pause_duration: int
    rounds: list[str]
    is_transitioning_fast: bool
    agent_health: AgentHealth
    rounds_info: dict[str, RoundInfo]
    env_var_status: EnvVarStatus


# ── Monitor ──────────────────────────────────────────────────────────────────


class HealthMonitor:
    """Builds a point-in-time health snapshot for one agent."""

    def __init__(
        self,
        store: EventStore,
        agent_id: str,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.agent_id = agent_id
        self._clock = clock

    async def last_event_ms(self) -> int:
        """Timestamp of the newest START/INTERACTION event, 0 if none or unreadable."""
        try:
            recent = await self.store.query_recent(
                Room.INTERACTION, self.agent_id, limit=1, table=START_TABLE,
            )
        except Exception:
            logger.exception("Error fetching events for healthcheck")
            return 0
        if recent:
            return recent[0].created_at or 0
        return 0

    async def snapshot(self) -> HealthCheckResponse:
        now = self._clock()
        last = await self.last_event_ms()
        return build_snapshot(now, last)


def build_snapshot(now: int, last_event: int = 0) -> HealthCheckResponse:
    """Snapshot for epoch-ms ``now`` given the newest event time (0 = none)."""
    elapsed = (now - last_event) / 1000
    return HealthCheckResponse(
        seconds_since_last_transition=f"{elapsed:.2f}",
        is_transitioning_fast=elapsed < TRANSITION_THRESHOLD_SECONDS,
        **NOT_YET_COMPUTED.model_dump(),
    )
