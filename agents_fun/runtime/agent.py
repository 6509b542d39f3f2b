"""Agent runtime — character, plugins and event store behind one handle.

Plugins are the capability surface: each exposes an ordered list of
actions, and the orchestration only relies on positions (primary at 0,
secondary at 1 of the first plugin).
"""

from __future__ import annotations

import importlib
import logging
import os
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from agents_fun.character import Character
from agents_fun.events.store import EventStore

logger = logging.getLogger(__name__)

# handler(runtime, record, state, options, callback) -> action result
ActionHandler = Callable[..., Awaitable[Any]]


class PluginLoadError(Exception):
    """Plugin import path cannot be resolved or the plugin is unusable."""


@dataclass
class Action:
    name: str
    handler: ActionHandler
    description: str = ""


@dataclass
class Plugin:
    name: str
    actions: list[Action] = field(default_factory=list)
    description: str = ""


def string_to_uuid(value: str) -> str:
    """Stable UUID for a name."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, value))


class AgentRuntime:
    """Runtime handle shared by the loops and the health route."""

    def __init__(
        self,
        character: Character,
        event_store: EventStore,
        plugins: list[Plugin] | None = None,
        token: str = "",
    ) -> None:
        self.character = character
        self.agent_id = string_to_uuid(character.id or character.name)
        self.event_store = event_store
        self.plugins = plugins or []
        self.token = token
        self._initialized = False

    @property
    def name(self) -> str:
        return self.character.name

    def get_setting(self, key: str) -> str | None:
        """Secrets first, then character settings, then the environment."""
        settings = self.character.settings
        value = settings.secrets.get(key)
        if not value:
            value = (settings.model_extra or {}).get(key)
        if not value:
            value = os.environ.get(key)
        return value or None

    async def initialize(self) -> None:
        if self._initialized:
            return
        for plugin in self.plugins:
            logger.info(
                "Plugin %s: %d actions (%s)",
                plugin.name, len(plugin.actions),
                ", ".join(a.name for a in plugin.actions),
            )
        self._initialized = True
        logger.info("Runtime initialised for %s (agent_id=%s)", self.name, self.agent_id)


def load_plugin(path: str) -> Plugin:
    """Import a plugin from ``package.module:attribute``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise PluginLoadError(f"Plugin path must look like 'module:attribute', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginLoadError(f"Cannot import plugin module {module_name}: {exc}") from exc
    try:
        plugin = getattr(module, attr)
    except AttributeError as exc:
        raise PluginLoadError(f"Module {module_name} has no attribute {attr}") from exc
    if len(getattr(plugin, "actions", None) or []) < 2:
        raise PluginLoadError(
            f"Plugin {path} must expose at least two actions (primary, secondary)"
        )
    return plugin


def build_runtime(
    character: Character,
    event_store: EventStore,
    token: str,
    plugins: list[Plugin],
) -> AgentRuntime:
    """Construct the runtime with its store, token and plugins."""
    return AgentRuntime(
        character=character,
        event_store=event_store,
        plugins=plugins,
        token=token,
    )
