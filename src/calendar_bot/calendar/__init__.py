"""Calendar deep-link encoding.

Public API:
    encode(event) -> str
        Pure mapping from an ExtractedEvent to a Google Calendar template URL.
"""

from calendar_bot.calendar.links import CALENDAR_BASE_URL, DEFAULT_TITLE, encode
from calendar_bot.calendar.meeting import DEFAULT_MEETING_PROVIDERS, MeetingProvider, find_meeting_url

__all__ = [
    "CALENDAR_BASE_URL",
    "DEFAULT_MEETING_PROVIDERS",
    "DEFAULT_TITLE",
    "MeetingProvider",
    "encode",
    "find_meeting_url",
]
