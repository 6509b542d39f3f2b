from __future__ import annotations

import json
from pathlib import Path

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

# Deployments hand us variables either by short name or with this prefix.
_PREFIX = "CONNECTION_CONFIGS_CONFIG_"


def _env(name: str, prefixed: str | None = None) -> AliasChoices:
    return AliasChoices(name, _PREFIX + (prefixed or name))


class ConfigError(Exception):
    """Required configuration is missing or malformed."""


class AgentSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    # Storage
    store_path: Path = Field(validation_alias=_env("STORE_PATH"))
    sqlite_file: str = Field("", validation_alias=AliasChoices("SQLITE_FILE"))

    # OpenAI
    openai_api_key: str = Field(validation_alias=_env("OPENAI_API_KEY"))
    openai_model: str = Field("gpt-4o", validation_alias=AliasChoices("OPENAI_MODEL"))
    openai_embedding_model: str = Field(
        "text-embedding-3-small",
        validation_alias=AliasChoices("OPENAI_EMBEDDING_MODEL"),
    )
    use_openai_embedding: bool = Field(True, validation_alias=_env("USE_OPENAI_EMBEDDING"))
    use_openai_embedding_type: bool = Field(
        True, validation_alias=_env("USE_OPENAI_EMBEDDING_TYPE"),
    )

    # Twitter (username/password/email login)
    twitter_username: str = Field(validation_alias=_env("TWITTER_USERNAME", "TWIKIT_USERNAME"))
    twitter_password: str = Field(validation_alias=_env("TWITTER_PASSWORD", "TWIKIT_PASSWORD"))
    twitter_email: str = Field(validation_alias=_env("TWITTER_EMAIL", "TWIKIT_EMAIL"))

    # Chain
    chain_id: str = Field(validation_alias=_env("CHAIN_ID"))
    base_ledger_rpc: str = Field(validation_alias=_env("BASE_LEDGER_RPC"))
    safe_address_dict: str = Field(validation_alias=_env("SAFE_CONTRACT_ADDRESSES"))
    agent_eoa_pk: str = Field("", validation_alias=_env("AGENT_EOA_PK"))
    subgraph_url: str = Field("", validation_alias=_env("SUBGRAPH_URL"))
    meme_subgraph_url: str = Field("", validation_alias=_env("MEME_SUBGRAPH_URL"))
    meme_factory_contract: str = Field("", validation_alias=_env("MEME_FACTORY_CONTRACT"))

    # Runtime plugin, "package.module:attribute"
    agent_plugin: str = Field("", validation_alias=AliasChoices("AGENT_PLUGIN"))

    # HTTP front-end
    server_host: str = Field("0.0.0.0", validation_alias=AliasChoices("SERVER_HOST"))
    server_port: int = Field(8716, validation_alias=_env("SERVER_PORT"))

    # Logging
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_file: str = Field("", validation_alias=AliasChoices("LOG_FILE"))

    @field_validator("safe_address_dict")
    @classmethod
    def _safe_addresses_are_json(cls, v: str) -> str:
        try:
            parsed = json.loads(v)
        except json.JSONDecodeError as exc:
            raise ValueError(f"not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ValueError("must be a JSON object mapping chain name to address")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @property
    def db_file(self) -> str:
        return self.sqlite_file or str(self.store_path / "db.sqlite")

    @property
    def log_path(self) -> Path:
        return Path(self.log_file) if self.log_file else self.store_path / "logs.txt"

    @property
    def safe_addresses(self) -> dict[str, str]:
        return json.loads(self.safe_address_dict)


def load_config() -> AgentSettings:
    """Load and validate all configuration values."""
    try:
        return AgentSettings()
    except ValidationError as exc:
        missing = [
            "/".join(str(p) for p in err["loc"]) for err in exc.errors()
        ]
        raise ConfigError(
            f"Invalid or missing configuration: {', '.join(missing)}"
        ) from exc
