"""Tests for the entry point wiring."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from agents_fun import main as entry
from agents_fun.config import load_config
from agents_fun.events.store import MemoryEventStore
from agents_fun.runtime.agent import PluginLoadError


@pytest.fixture
def character_file(tmp_path: Path) -> Path:
    path = tmp_path / "character.json"
    path.write_text(json.dumps({"name": "Memeooorr"}))
    return path


class TestMain:
    def test_missing_config_exits_1(self, monkeypatch, character_file: Path) -> None:
        for key in ("STORE_PATH", "CONNECTION_CONFIGS_CONFIG_STORE_PATH",
                    "OPENAI_API_KEY", "CONNECTION_CONFIGS_CONFIG_OPENAI_API_KEY"):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setattr(sys, "argv", ["agents-fun", "--character", str(character_file)])

        with pytest.raises(SystemExit) as exc_info:
            entry.main()
        assert exc_info.value.code == 1

    def test_requires_character_flag(self, monkeypatch) -> None:
        monkeypatch.setattr(sys, "argv", ["agents-fun"])
        with pytest.raises(SystemExit) as exc_info:
            entry.main()
        assert exc_info.value.code == 2


class TestRun:
    def test_plugin_required(self, env, character_file: Path) -> None:
        with pytest.raises(PluginLoadError, match="AGENT_PLUGIN"):
            asyncio.run(entry.run(load_config(), str(character_file)))

    def test_wires_runtime_into_loops(self, env, monkeypatch, character_file: Path, plugin_factory) -> None:
        monkeypatch.setenv("AGENT_PLUGIN", "fake_plugin:plugin")
        monkeypatch.setenv("SQLITE_FILE", ":memory:")
        plugin = plugin_factory()
        loops = AsyncMock()

        with patch.object(entry, "load_plugin", return_value=plugin) as mock_load, \
                patch.object(entry, "run_agent", new=AsyncMock(return_value=loops)) as mock_run_agent, \
                patch.object(entry, "get_available_port", return_value=9123), \
                patch.object(entry.AgentServer, "wait", new=AsyncMock()):
            asyncio.run(entry.run(load_config(), str(character_file)))

        mock_load.assert_called_once_with("fake_plugin:plugin")
        runtime, server, port = mock_run_agent.await_args.args
        assert port == 9123
        assert runtime.plugins == [plugin]
        assert runtime.get_setting("SAFE_ADDRESS").startswith("0x")
        assert server.host == "0.0.0.0"
        loops.stop.assert_awaited_once()

    def test_teardown_runs_when_server_dies(self, env, monkeypatch, character_file: Path, plugin_factory) -> None:
        monkeypatch.setenv("AGENT_PLUGIN", "fake_plugin:plugin")
        monkeypatch.setenv("SQLITE_FILE", ":memory:")
        loops = AsyncMock()

        with patch.object(entry, "load_plugin", return_value=plugin_factory()), \
                patch.object(entry, "run_agent", new=AsyncMock(return_value=loops)), \
                patch.object(entry, "get_available_port", return_value=9123), \
                patch.object(entry.AgentServer, "wait", new=AsyncMock(side_effect=OSError("bind failed"))), \
                patch.object(entry.AgentServer, "stop", new=AsyncMock()) as mock_stop, \
                patch.object(MemoryEventStore, "close") as mock_close:
            with pytest.raises(OSError, match="bind failed"):
                asyncio.run(entry.run(load_config(), str(character_file)))

        loops.stop.assert_awaited_once()
        mock_stop.assert_awaited_once()
        mock_close.assert_called_once()
