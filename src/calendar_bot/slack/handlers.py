"""Slack event dispatch and the reaction-processing pipeline."""

import asyncio
import logging

from fastapi import BackgroundTasks
from fastapi.responses import JSONResponse

from calendar_bot.batch import process_extracted_events
from calendar_bot.config import get_settings
from calendar_bot.dedup import get_dedup_gate
from calendar_bot.exceptions import MessageUnavailableError, describe_error
from calendar_bot.llm import get_extractor
from calendar_bot.models.slack import MessageContext, ReactionEvent
from calendar_bot.slack.notifier import (
    PROCESSING_REACTION,
    add_reaction,
    fetch_message_text,
    notify_error,
    notify_no_events,
    remove_reaction,
)
from calendar_bot.slack.urls import build_message_url

logger = logging.getLogger(__name__)


def handle_slack_event(payload: dict, background_tasks: BackgroundTasks) -> JSONResponse:
    """Dispatch a Slack event based on its type.

    - url_verification: return the challenge token
    - event_callback: process the contained event
    - anything else: acknowledge with 200
    """
    if payload.get("type") == "url_verification":
        return JSONResponse({"challenge": payload["challenge"]})

    if payload.get("type") == "event_callback":
        event = payload.get("event", {})
        handle_reaction_event(event, background_tasks)
        return JSONResponse({"ok": True})

    return JSONResponse({"ok": True})


def handle_reaction_event(event: dict, background_tasks: BackgroundTasks) -> None:
    """Apply reaction filters and dispatch processing to the background.

    Filters are applied in order (most common rejections first):
    1. Not a reaction_added event -> skip
    2. Reaction is not a calendar emoji -> skip
    3. Reacted item is not a message (file, file comment) -> skip
    4. Missing channel or timestamp -> skip
    """
    settings = get_settings()

    # Filter 1: Not a reaction
    if event.get("type") != "reaction_added":
        return

    # Filter 2: Not a calendar emoji
    if event.get("reaction") not in settings.calendar_reactions:
        return

    # Filter 3: Reaction on something other than a message
    item = event.get("item", {})
    if item.get("type") != "message":
        return

    # Filter 4: Incomplete item reference
    if not item.get("channel") or not item.get("ts"):
        return

    reaction = ReactionEvent(
        channel_id=item["channel"],
        message_ts=item["ts"],
        reaction=event["reaction"],
        user_id=event.get("user", ""),
    )

    logger.info(
        "Dispatching :%s: from user %s on %s in channel %s",
        reaction.reaction,
        reaction.user_id,
        reaction.message_ts,
        reaction.channel_id,
    )

    background_tasks.add_task(process_reaction, reaction)


async def process_reaction(reaction: ReactionEvent) -> None:
    """Run one calendar reaction through dedup, extraction and posting.

    The processing indicator is added once the signal is known to be new and
    removed on every exit path. Exactly one outcome is reported per signal:
    event links, a "no events" reply, or a redacted error reply.

    Extraction runs under the configured pipeline deadline, stretched when
    needed to cover the extractor's retry and fallback budget.
    """
    channel_id = reaction.channel_id
    timestamp = reaction.message_ts

    if not await get_dedup_gate().should_process(reaction.key, reaction.user_id):
        return

    await add_reaction(channel_id, timestamp, PROCESSING_REACTION)
    try:
        text = await fetch_message_text(channel_id, timestamp)
        if not text or not text.strip():
            raise MessageUnavailableError(channel_id, timestamp)

        settings = get_settings()
        context = MessageContext(
            channel_id=channel_id,
            message_ts=timestamp,
            text=text,
            message_url=build_message_url(settings.slack_team_id, channel_id, timestamp),
        )

        extractor = get_extractor()
        deadline = max(settings.pipeline_timeout_seconds, extractor.extraction_budget_seconds)
        async with asyncio.timeout(deadline):
            events = await extractor.extract_events(text)

        if not events:
            logger.info("No events found in message %s", timestamp)
            await notify_no_events(channel_id, timestamp)
            return

        await process_extracted_events(events, context, extractor)

    except MessageUnavailableError as exc:
        logger.warning("Aborting reaction pipeline: %s", exc)
    except Exception as exc:
        logger.error("Reaction pipeline failed for %s: %s", timestamp, exc, exc_info=True)
        await notify_error(channel_id, timestamp, describe_error(exc))
    finally:
        await remove_reaction(channel_id, timestamp, PROCESSING_REACTION)
