"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from agents_fun.api.server import AgentServer
from agents_fun.character import Character
from agents_fun.events.store import MemoryEventStore
from agents_fun.runtime.agent import Action, AgentRuntime, Plugin

SAFE_ADDRESSES = {"base": "0x000000000000000000000000000000000000bA5E"}

REQUIRED_ENV = {
    "OPENAI_API_KEY": "sk-test",
    "TWITTER_USERNAME": "memeooorr",
    "TWITTER_PASSWORD": "hunter2",
    "TWITTER_EMAIL": "memeooorr@example.com",
    "CHAIN_ID": "base",
    "BASE_LEDGER_RPC": "http://localhost:8545",
    "SAFE_CONTRACT_ADDRESSES": json.dumps(SAFE_ADDRESSES),
}


class VirtualClock:
    """Deterministic stand-in for asyncio.sleep and the wall clock.

    Sleepers park on futures; ``advance`` wakes them in time order and lets
    the event loop drain between wake-ups.
    """

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.start_ms = start_ms
        self.now = 0.0
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq = itertools.count()

    def ms(self) -> int:
        return self.start_ms + int(self.now * 1000)

    async def sleep(self, seconds: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self.now + seconds, next(self._seq), fut))
        await fut

    async def settle(self) -> None:
        for _ in range(50):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        horizon = self.now + seconds
        await self.settle()
        while self._sleepers and self._sleepers[0][0] <= horizon:
            wake, _, fut = heapq.heappop(self._sleepers)
            self.now = wake
            if not fut.done():
                fut.set_result(None)
            await self.settle()
        self.now = horizon


class FakeServer(AgentServer):
    """AgentServer that records the port instead of binding it."""

    def __init__(self) -> None:
        super().__init__(host="127.0.0.1")
        self.started_on: int | None = None

    async def start(self, port: int) -> None:
        self.started_on = port


def make_plugin(primary_result: Any = True, secondary_result: Any = True) -> Plugin:
    return Plugin(
        name="memeooorr",
        actions=[
            Action(name="TWEET", handler=AsyncMock(return_value=primary_result)),
            Action(name="TOKEN_INTERACT", handler=AsyncMock(return_value=secondary_result)),
        ],
    )


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Minimal valid environment for AgentSettings."""
    values = {**REQUIRED_ENV, "STORE_PATH": str(tmp_path / "store")}
    for key, value in values.items():
        monkeypatch.setenv(key, value)
    return values


@pytest.fixture
def character(monkeypatch: pytest.MonkeyPatch) -> Character:
    monkeypatch.delenv("SAFE_ADDRESS", raising=False)
    char = Character(name="Memeooorr", bio=["Posts memes, launches tokens."])
    char.settings.secrets["SAFE_ADDRESS"] = SAFE_ADDRESSES["base"]
    return char


@pytest.fixture
def store() -> MemoryEventStore:
    return MemoryEventStore()


@pytest.fixture
def runtime(character: Character, store: MemoryEventStore) -> AgentRuntime:
    return AgentRuntime(character, store, plugins=[make_plugin()], token="sk-test")


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def plugin_factory():
    return make_plugin
