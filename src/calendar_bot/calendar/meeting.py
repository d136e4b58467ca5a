"""Online meeting link detection inside free-text event descriptions.

Providers are tried in precedence order and the first provider with a match
wins, even when a lower-precedence link appears earlier in the text.
"""

import re
from typing import NamedTuple


class MeetingProvider(NamedTuple):
    """A named meeting-link pattern."""

    name: str
    pattern: re.Pattern[str]


GOOGLE_MEET = MeetingProvider(
    "google_meet",
    re.compile(r"https://meet\.google\.com/[a-z0-9\-]+", re.IGNORECASE),
)
# Zoom join links carry a numeric meeting id, optionally followed by ?pwd=...
ZOOM = MeetingProvider(
    "zoom",
    re.compile(r"https://[\w.-]*zoom\.(?:us|com)/j/\d+(?:\?[\w.=&%-]+)?", re.IGNORECASE),
)
MICROSOFT_TEAMS = MeetingProvider(
    "microsoft_teams",
    re.compile(r"https://teams\.microsoft\.com/l/meetup-join/[^\s<>|]+", re.IGNORECASE),
)

DEFAULT_MEETING_PROVIDERS: tuple[MeetingProvider, ...] = (GOOGLE_MEET, ZOOM, MICROSOFT_TEAMS)


def find_meeting_url(
    text: str | None,
    providers: tuple[MeetingProvider, ...] = DEFAULT_MEETING_PROVIDERS,
) -> str | None:
    """Return the first meeting URL found, honoring provider precedence."""
    if not text:
        return None
    for provider in providers:
        match = provider.pattern.search(text)
        if match:
            return match.group(0)
    return None


def merge_location(location: str | None, meeting_url: str | None) -> str | None:
    """Append a meeting URL to a physical location using ``" | "`` as separator."""
    if not meeting_url:
        return location
    if not location:
        return meeting_url
    if meeting_url in location:
        return location
    return f"{location} | {meeting_url}"
