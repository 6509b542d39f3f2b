"""Action pipeline — primary action, then the token interaction if allowed.

The primary action (index 0 of the first plugin) runs for every record.
When it succeeds and the agent has a ``SAFE_ADDRESS`` configured, the
secondary action (index 1) runs against a copy of the record moved to the
``TOKEN_INTERACTION`` room. Handler exceptions are not caught here.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from agents_fun.events.models import EventRecord, Room

if TYPE_CHECKING:
    from agents_fun.runtime.agent import Action, AgentRuntime

logger = logging.getLogger(__name__)

SAFE_ADDRESS_SETTING = "SAFE_ADDRESS"


def plugin_actions(runtime: AgentRuntime) -> tuple[Action, Action]:
    actions = runtime.plugins[0].actions
    return actions[0], actions[1]


async def trigger_plugin_actions(runtime: AgentRuntime, record: EventRecord) -> bool:
    """Run the two-stage pipeline for one record.

    Returns whether the primary action produced a truthy result. Callers
    only log this value.
    """
    tweet_action, token_action = plugin_actions(runtime)

    logger.info("[Trigger] Executing %s action...", tweet_action.name)
    result = await tweet_action.handler(runtime, record, None, None, None)

    if not result:
        logger.warning("Tweet interaction behaviour was unsuccessful")
        return False

    if not runtime.get_setting(SAFE_ADDRESS_SETTING):
        logger.warning("%s setting is not set", SAFE_ADDRESS_SETTING)
        logger.warning("Token interaction behaviour won't be executed")
        return True

    logger.info(
        "[Trigger] Tweet was successful (result=%r). Executing %s...",
        result, token_action.name,
    )
    token_record = dataclasses.replace(record, category=Room.TOKEN_INTERACTION)
    await token_action.handler(runtime, token_record, None, None, None)
    return True
