"""Entry point: build the runtime and hand it to the loops."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.panel import Panel

from agents_fun.api.server import AgentServer
from agents_fun.autonomy.scheduler import run_agent
from agents_fun.character import init_character
from agents_fun.config import AgentSettings, load_config
from agents_fun.events.store import open_store
from agents_fun.logs import configure_logging
from agents_fun.runtime.agent import PluginLoadError, build_runtime, load_plugin
from agents_fun.utils import get_available_port

console = Console()
logger = logging.getLogger(__name__)


async def run(config: AgentSettings, character_path: str) -> None:
    """Build everything and keep serving until the process is killed."""
    character, token = init_character(character_path, config)

    if not config.agent_plugin:
        raise PluginLoadError("AGENT_PLUGIN is not set (expected 'module:attribute')")
    plugin = load_plugin(config.agent_plugin)

    store = open_store(config.db_file)
    runtime = build_runtime(character, store, token, plugins=[plugin])
    await runtime.initialize()

    port = get_available_port(config.server_port, config.server_host)
    server = AgentServer(host=config.server_host)
    loops = None
    try:
        loops = await run_agent(runtime, server, port)

        console.print(
            Panel.fit(
                f"[bold]{character.name}[/bold]\n"
                f"Agent: {runtime.agent_id}\n"
                f"Listen: {config.server_host}:{port}\n"
                f"Store: {config.db_file}",
                title="agents-fun",
                border_style="green",
            )
        )
        await server.wait()
    finally:
        if loops is not None:
            await loops.stop()
        await server.stop()
        store.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Autonomous agent runner")
    parser.add_argument(
        "--character", required=True, help="Path to the character JSON/YAML file",
    )
    args = parser.parse_args()

    try:
        config = load_config()
        configure_logging(config.log_level, config.log_path)
        asyncio.run(run(config, args.character))
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        logger.exception("Fatal error")
        console.print(f"[red]Fatal error:[/red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
