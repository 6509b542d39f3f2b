"""Agent runtime handle and plugin types."""

from .agent import (
    Action,
    AgentRuntime,
    Plugin,
    PluginLoadError,
    build_runtime,
    load_plugin,
    string_to_uuid,
)
