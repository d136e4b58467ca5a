"""Slack ingress: event dispatch, signature verification, replies and reactions.

The webhook router lives in ``calendar_bot.slack.router`` and is not
re-exported here, because importing it pulls in the whole reaction pipeline.
Importing any submodule (``urls`` included) still loads the Slack client and
notifier below, and with them slack_sdk.
"""

from calendar_bot.slack.client import get_slack_client, reset_client
from calendar_bot.slack.notifier import (
    add_reaction,
    fetch_message_text,
    notify_error,
    notify_no_events,
    post_reply,
    remove_reaction,
)

__all__ = [
    "add_reaction",
    "fetch_message_text",
    "get_slack_client",
    "notify_error",
    "notify_no_events",
    "post_reply",
    "remove_reaction",
    "reset_client",
]
