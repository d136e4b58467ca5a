"""System prompt templates and content builder functions for Gemini.

Model names are stored as constants for preview model management. Every
extraction prompt embeds the current local date and time so relative
expressions ("tomorrow at 3") resolve correctly.
"""

from datetime import datetime

# Gemini model constants -- update here when stable versions release
GEMINI_MODEL = "gemini-2.5-flash"
GEMINI_LITE_MODEL = "gemini-2.5-flash-lite"

SUMMARY_MAX_CHARS = 100
TITLE_MAX_CHARS = 40

_EXTRACT_SYSTEM_PROMPT = """\
You extract calendar events from chat messages.

- Find every event, meeting, or appointment in the message and return each one \
as a separate item. Return an empty array [] if there is none.
- The current date and time is {now}. Resolve relative dates ("tomorrow", \
"next Friday") against it.
- date: YYYY-MM-DD. start_time / end_time: 24-hour HH:MM. Omit anything not stated.
- location: physical place only (room, building, address). Never put a URL here.
- description: details worth keeping, including any online meeting URL, \
meeting ID, or passcode exactly as written.
"""

_LEGACY_PROMPT = """\
Extract every event or meeting from the text below.
The current date and time is {now}.

For each event identify, where possible:
- title
- date (YYYY-MM-DD)
- start_time (HH:MM, 24-hour)
- end_time (HH:MM, 24-hour)
- location (physical place only, no URLs; null if absent)
- description (details, including any online meeting URL)

Respond with a JSON array only, for example:
[
  {{
    "title": "Project sync",
    "date": "2025-03-28",
    "start_time": "14:00",
    "end_time": "15:00",
    "location": "Room A",
    "description": "Join online: https://meet.google.com/abc-defg-hij"
  }}
]
Return [] if there are no events. Do not add any other text.

Text:
{text}
"""

_SUMMARY_PROMPT = """\
Summarize the following message in at most {limit} characters, in the same \
language as the message. Output only the summary.

{text}
"""

_TITLE_PROMPT = """\
Write a calendar event title of at most {limit} characters for the event \
below, in the same language as the message. Output only the title.

Current title: {hint}

Message:
{text}
"""

_MEETING_PROMPT = """\
From the message below, copy the online meeting details exactly as written: \
the join URL, meeting ID, and passcode or PIN, one per line. If there are no \
online meeting details, answer exactly: none

{text}
"""


def _format_now(now: datetime | None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d %H:%M (%A)")


def build_extract_system_prompt(now: datetime | None = None) -> str:
    """System instruction for schema-constrained event extraction."""
    return _EXTRACT_SYSTEM_PROMPT.format(now=_format_now(now))


def build_extract_user_content(text: str) -> str:
    """User turn for structured extraction: the raw message text."""
    return f"Extract the events from this message:\n\n{text}"


def build_legacy_prompt(text: str, now: datetime | None = None) -> str:
    """Single free-form prompt for the schema-less fallback path."""
    return _LEGACY_PROMPT.format(now=_format_now(now), text=text)


def build_summary_prompt(text: str) -> str:
    return _SUMMARY_PROMPT.format(limit=SUMMARY_MAX_CHARS, text=text)


def build_title_prompt(text: str, hint: str | None) -> str:
    return _TITLE_PROMPT.format(limit=TITLE_MAX_CHARS, hint=hint or "(none)", text=text)


def build_meeting_prompt(text: str) -> str:
    return _MEETING_PROMPT.format(text=text)
