"""Google Calendar "add event" deep-link encoder.

Pure and total: any ExtractedEvent, including one with every optional field
missing or malformed, yields a syntactically valid link. Malformed times are
digit-stripped and padded rather than rejected.
"""

import re
import unicodedata
from datetime import date, datetime, timedelta
from urllib.parse import urlencode

from calendar_bot.calendar.meeting import (
    DEFAULT_MEETING_PROVIDERS,
    MeetingProvider,
    find_meeting_url,
    merge_location,
)
from calendar_bot.models.event import ExtractedEvent
from calendar_bot.slack.urls import strip_url_markup

CALENDAR_BASE_URL = "https://calendar.google.com/calendar/render?action=TEMPLATE"
DEFAULT_TITLE = "Untitled event"

_NO_START = "000000"
_ALL_DAY_END = "235900"
_DEFAULT_WINDOW = ("120000", "130000")
_NON_DIGITS = re.compile(r"[^0-9]")


def _digits(value: str | None) -> str:
    """ASCII digits of ``value``. Full-width digits (e.g. from Japanese text) are folded first."""
    return _NON_DIGITS.sub("", unicodedata.normalize("NFKC", value or ""))


def normalize_time(value: str | None) -> str | None:
    """Reduce ``HH:MM`` / ``HH:MM:SS`` to ``HHMMSS``.

    Returns None when the value carries no digits at all.
    ``"14:00"`` -> ``"140000"``, ``"9:30"`` -> ``"093000"``, ``"14:00:30"`` -> ``"140030"``.
    """
    digits = _digits(value)
    if not digits:
        return None
    if len(digits) == 3:
        digits = "0" + digits
    if len(digits) == 4:
        return digits + "00"
    if len(digits) == 5:
        return "0" + digits
    return digits


def default_end_time(start_time: str | None) -> str:
    """One hour after ``start_time`` (hour wraps modulo 24); all-day end when there is no start."""
    if start_time is None:
        return _ALL_DAY_END
    hour = int(start_time[:2])
    return f"{(hour + 1) % 24:02d}{start_time[2:]}"


def _end_date(start_date: str, start_time: str, end_time: str) -> str:
    """Advance the end date by one day when the end time falls before the start time."""
    if len(start_time) != 6 or len(end_time) != 6 or end_time >= start_time:
        return start_date
    try:
        day = datetime.strptime(start_date, "%Y%m%d").date()
    except ValueError:
        return start_date
    return (day + timedelta(days=1)).strftime("%Y%m%d")


def format_dates(event: ExtractedEvent, today: date | None = None) -> str:
    """Build the ``dates`` parameter: ``YYYYMMDDTHHMMSS/YYYYMMDDTHHMMSS``."""
    date_digits = _digits(event.date)
    if not date_digits:
        day = (today or date.today()).strftime("%Y%m%d")
        start, end = _DEFAULT_WINDOW
        return f"{day}T{start}/{day}T{end}"

    start_time = normalize_time(event.start_time)
    start = start_time or _NO_START
    end = normalize_time(event.end_time) or default_end_time(start_time)
    end_date = _end_date(date_digits, start, end)
    return f"{date_digits}T{start}/{end_date}T{end}"


def encode(
    event: ExtractedEvent | dict,
    *,
    providers: tuple[MeetingProvider, ...] = DEFAULT_MEETING_PROVIDERS,
    today: date | None = None,
) -> str:
    """Encode an event record into a Google Calendar template URL.

    Args:
        event: Extracted event (a raw dict is normalized first).
        providers: Meeting-link providers in precedence order.
        today: Date used when the event has no date. Defaults to the local date.

    Returns:
        The full calendar URL.
    """
    if isinstance(event, dict):
        event = ExtractedEvent.model_validate(event)

    description = strip_url_markup(event.description)
    location = merge_location(event.location, find_meeting_url(description, providers))

    params = {"text": event.title or DEFAULT_TITLE}
    if location:
        params["location"] = location
    if description:
        params["details"] = description
    params["dates"] = format_dates(event, today)

    return f"{CALENDAR_BASE_URL}&{urlencode(params)}"
