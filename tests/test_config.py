"""Tests for environment-driven settings."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from agents_fun.config import AgentSettings, ConfigError, load_config


class TestLoadConfig:
    def test_short_names(self, env) -> None:
        config = load_config()
        assert config.openai_api_key == "sk-test"
        assert config.twitter_username == "memeooorr"
        assert config.chain_id == "base"
        assert config.store_path == Path(env["STORE_PATH"])

    def test_defaults(self, env) -> None:
        config = load_config()
        assert config.server_port == 8716
        assert config.server_host == "0.0.0.0"
        assert config.use_openai_embedding is True
        assert config.use_openai_embedding_type is True
        assert config.openai_model == "gpt-4o"
        assert config.log_level == "INFO"
        assert config.agent_plugin == ""

    def test_prefixed_names(self, env, monkeypatch) -> None:
        monkeypatch.delenv("TWITTER_USERNAME")
        monkeypatch.setenv("CONNECTION_CONFIGS_CONFIG_TWIKIT_USERNAME", "from-prefixed")
        monkeypatch.setenv("CONNECTION_CONFIGS_CONFIG_SERVER_PORT", "9000")
        config = load_config()
        assert config.twitter_username == "from-prefixed"
        assert config.server_port == 9000

    def test_embedding_flags(self, env, monkeypatch) -> None:
        monkeypatch.setenv("USE_OPENAI_EMBEDDING", "false")
        assert load_config().use_openai_embedding is False

    def test_missing_required(self, env, monkeypatch) -> None:
        monkeypatch.delenv("CHAIN_ID")
        with pytest.raises(ConfigError, match="(?i)chain_id"):
            load_config()

    @pytest.mark.parametrize("value", ["not json", json.dumps(["0xabc"])])
    def test_safe_addresses_must_be_json_object(self, env, monkeypatch, value) -> None:
        monkeypatch.setenv("SAFE_CONTRACT_ADDRESSES", value)
        with pytest.raises(ConfigError):
            load_config()

    def test_log_level_uppercased(self, env, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert load_config().log_level == "DEBUG"


class TestDerivedPaths:
    def test_db_and_log_under_store(self, env) -> None:
        config = load_config()
        store = Path(env["STORE_PATH"])
        assert config.db_file == str(store / "db.sqlite")
        assert config.log_path == store / "logs.txt"

    def test_overrides(self, env, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("SQLITE_FILE", ":memory:")
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "agent.log"))
        config = load_config()
        assert config.db_file == ":memory:"
        assert config.log_path == tmp_path / "agent.log"

    def test_safe_addresses(self, env) -> None:
        config = AgentSettings()
        assert config.safe_addresses["base"].startswith("0x")
