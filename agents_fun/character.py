"""Character profile — loaded from JSON/YAML and enriched with secrets."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agents_fun.config import AgentSettings

logger = logging.getLogger(__name__)

OPENAI_PROVIDER = "openai"


class CharacterError(Exception):
    """Character file is missing, unreadable or invalid."""


class CharacterSettings(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    secrets: dict[str, str] = Field(default_factory=dict)
    model: str | None = None
    embedding_model: str | None = Field(None, alias="embeddingModel")


class Character(BaseModel):
    """Agent persona. Unknown keys (bio, lore, style...) are kept as-is."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    id: str | None = None
    model_provider: str = Field(OPENAI_PROVIDER, alias="modelProvider")
    settings: CharacterSettings = Field(default_factory=CharacterSettings)


def load_character(path: Path | str) -> Character:
    """Parse a character file (``.json``, ``.yaml`` or ``.yml``)."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CharacterError(f"Cannot read character file {path}: {exc}") from exc

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CharacterError(f"Cannot parse character file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise CharacterError(f"Character file {path} must contain an object")

    try:
        character = Character.model_validate(data)
    except ValidationError as exc:
        raise CharacterError(f"Invalid character file {path}: {exc}") from exc
    logger.info("Loaded character %s from %s", character.name, path)
    return character


def _flag(value: bool) -> str:
    return "true" if value else "false"


def build_secrets(config: AgentSettings) -> dict[str, str]:
    """Secrets the plugin actions read through ``runtime.get_setting``."""
    safe_addresses = config.safe_addresses
    secrets = {
        "OPENAI_API_KEY": config.openai_api_key,
        "TWITTER_USERNAME": config.twitter_username,
        "TWITTER_PASSWORD": config.twitter_password,
        "TWITTER_EMAIL": config.twitter_email,
        "AGENT_EOA_PK": config.agent_eoa_pk,
        "BASE_LEDGER_RPC": config.base_ledger_rpc,
        "MEME_FACTORY_CONTRACT": config.meme_factory_contract,
        "SAFE_ADDRESS_DICT": config.safe_address_dict,
        "SAFE_ADDRESS": safe_addresses.get("base", ""),
        "SUBGRAPH_URL": config.subgraph_url,
        "MEME_SUBGRAPH_URL": config.meme_subgraph_url,
        "CHAIN_ID": config.chain_id,
        "USE_OPENAI_EMBEDDING": _flag(config.use_openai_embedding),
        "USE_OPENAI_EMBEDDING_TYPE": _flag(config.use_openai_embedding_type),
    }
    # Blank values count as unset for get_setting.
    return {k: v for k, v in secrets.items() if v}


def init_character(path: Path | str, config: AgentSettings) -> tuple[Character, str]:
    """Load the character, apply secrets and model choice, return it with its token."""
    character = load_character(path)
    character.settings.secrets = build_secrets(config)
    logger.info(
        "Character settings[BASE_LEDGER_RPC]: %s",
        character.settings.secrets.get("BASE_LEDGER_RPC"),
    )
    logger.info(
        "Character settings[SAFE_ADDRESS]: %s",
        character.settings.secrets.get("SAFE_ADDRESS"),
    )

    character.model_provider = OPENAI_PROVIDER
    character.settings.model = config.openai_model
    character.settings.embedding_model = config.openai_embedding_model

    token = token_for_provider(character) or ""
    return character, token


def token_for_provider(character: Character) -> str | None:
    """API token for the character's model provider."""
    if character.model_provider == OPENAI_PROVIDER:
        return character.settings.secrets.get("OPENAI_API_KEY")
    logger.warning("No token lookup for provider %s", character.model_provider)
    return None


def character_summary(character: Character) -> dict[str, Any]:
    return {
        "name": character.name,
        "model_provider": character.model_provider,
        "model": character.settings.model,
    }
