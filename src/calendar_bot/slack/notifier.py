"""Slack messaging collaborators: message fetch, reactions, and thread replies.

``post_reply`` raises so callers that must know about failures (per-event
posting) can report them. The ``notify_*`` and reaction helpers are
best-effort: they log and never raise, so a notification failure cannot
crash the pipeline.
"""

import logging

from slack_sdk.errors import SlackApiError

from calendar_bot.slack.client import get_slack_client
from calendar_bot.tasks import best_effort

logger = logging.getLogger(__name__)

PROCESSING_REACTION = "hourglass_flowing_sand"
NO_EVENTS_REACTION = "no_entry_sign"

# Reaction API error codes that are expected and only worth a warning
_BENIGN_REACTION_ERRORS = (
    "missing_scope",
    "already_reacted",
    "no_reaction",
    "no_item_specified",
    "message_not_found",
)


async def fetch_message_text(channel_id: str, timestamp: str) -> str | None:
    """Return the text of the message at ``timestamp``, or None if unavailable.

    Top-level messages come from conversations.history. When the timestamp
    belongs to a thread reply, history returns a different message, so the
    thread is searched via conversations.replies instead.
    """
    try:
        client = await get_slack_client()
        history = await client.conversations_history(
            channel=channel_id,
            latest=timestamp,
            inclusive=True,
            limit=1,
        )
        for message in history.get("messages", []):
            if message.get("ts") == timestamp:
                return message.get("text") or None

        replies = await client.conversations_replies(
            channel=channel_id,
            ts=timestamp,
            latest=timestamp,
            inclusive=True,
            limit=1,
        )
        for message in replies.get("messages", []):
            if message.get("ts") == timestamp:
                return message.get("text") or None
    except SlackApiError:
        logger.warning("Failed to fetch message %s in %s", timestamp, channel_id, exc_info=True)
        return None

    logger.info("Message %s not found in %s", timestamp, channel_id)
    return None


async def post_reply(channel_id: str, thread_ts: str, text: str) -> None:
    """Post a thread reply. Raises SlackApiError on failure."""
    client = await get_slack_client()
    await client.chat_postMessage(channel=channel_id, thread_ts=thread_ts, text=text)


async def _toggle_reaction(channel_id: str, timestamp: str, emoji: str, *, add: bool) -> None:
    action = "add" if add else "remove"
    try:
        client = await get_slack_client()
        call = client.reactions_add if add else client.reactions_remove
        await call(channel=channel_id, name=emoji, timestamp=timestamp)
    except SlackApiError as exc:
        error_code = exc.response.get("error", "") if exc.response else ""
        if error_code in _BENIGN_REACTION_ERRORS:
            logger.warning(
                "Reaction '%s' not %s (%s): %s",
                emoji,
                "added" if add else "removed",
                error_code,
                timestamp,
            )
        else:
            logger.error(
                "Failed to %s reaction '%s' on %s: %s",
                action,
                emoji,
                timestamp,
                error_code,
                exc_info=True,
            )


async def add_reaction(channel_id: str, timestamp: str, emoji: str) -> None:
    """Add an emoji reaction to a message. Never raises for Slack API errors."""
    await _toggle_reaction(channel_id, timestamp, emoji, add=True)


async def remove_reaction(channel_id: str, timestamp: str, emoji: str) -> None:
    """Remove the bot's emoji reaction from a message. Never raises for Slack API errors."""
    await _toggle_reaction(channel_id, timestamp, emoji, add=False)


async def notify_no_events(channel_id: str, timestamp: str) -> None:
    """Mark the message with a no-entry reaction and explain in the thread."""
    await add_reaction(channel_id, timestamp, NO_EVENTS_REACTION)
    await best_effort(
        post_reply(channel_id, timestamp, "No events could be found in this message."),
        "no-events reply",
    )


async def notify_error(channel_id: str, timestamp: str, message: str) -> None:
    """Post a user-facing error message. ``message`` must already be redacted."""
    await best_effort(
        post_reply(channel_id, timestamp, f"Sorry, I couldn't add this to a calendar. {message}"),
        "error reply",
    )


async def notify_truncated(channel_id: str, timestamp: str, found: int, limit: int) -> None:
    """Tell the user only the first ``limit`` of ``found`` events are handled."""
    await best_effort(
        post_reply(
            channel_id,
            timestamp,
            f"Note: found {found} events, but only the first {limit} will be processed.",
        ),
        "truncation notice",
    )


async def notify_event_error(channel_id: str, timestamp: str, title: str | None) -> None:
    """Report that one event could not be turned into a calendar link."""
    await best_effort(
        post_reply(
            channel_id,
            timestamp,
            f"Something went wrong while processing this event: {title or 'unknown'}",
        ),
        "event error reply",
    )
