"""Slack mrkdwn URL handling and message permalinks."""

import re

# Matches Slack mrkdwn URL format: <https://example.com> or <https://example.com|label>
# Does NOT match user refs <@U123>, channel refs <#C123>, or special mentions <!here>
SLACK_URL_PATTERN = re.compile(r"<(https?://[^|>]+)(?:\|[^>]*)?>")


def strip_url_markup(text: str | None) -> str | None:
    """Rewrite every <url> / <url|label> wrapper to the bare URL.

    Returns the input unchanged when it is None or empty.
    """
    if not text:
        return text
    return SLACK_URL_PATTERN.sub(r"\1", text)


def build_message_url(team_id: str, channel_id: str, timestamp: str) -> str:
    """Build the web permalink of a Slack message.

    The workspace subdomain falls back to ``app`` when no team is configured;
    Slack redirects it to the right workspace for signed-in users.
    """
    host = team_id or "app"
    return f"https://{host}.slack.com/archives/{channel_id}/p{timestamp.replace('.', '')}"
