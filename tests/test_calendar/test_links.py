"""Tests for the Google Calendar deep-link encoder."""

from datetime import date
from urllib.parse import parse_qs, urlsplit

import pytest

from calendar_bot.calendar.links import (
    CALENDAR_BASE_URL,
    DEFAULT_TITLE,
    default_end_time,
    encode,
    normalize_time,
)
from calendar_bot.calendar.meeting import GOOGLE_MEET, ZOOM
from calendar_bot.models.event import ExtractedEvent

TODAY = date(2025, 6, 20)


def _params(url: str) -> dict[str, str]:
    """Decode the query string of a calendar URL into single values."""
    query = parse_qs(urlsplit(url).query)
    return {key: values[0] for key, values in query.items()}


# -- normalize_time / default_end_time --


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("14:00", "140000"),
        ("14:00:30", "140030"),
        ("9:30", "093000"),
        ("1400", "140000"),
        ("noon", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_time(raw, expected):
    assert normalize_time(raw) == expected


def test_default_end_time_adds_one_hour():
    assert default_end_time("143015") == "153015"


def test_default_end_time_wraps_hour_past_midnight():
    assert default_end_time("233000") == "003000"


def test_default_end_time_without_start_is_all_day():
    assert default_end_time(None) == "235900"


# -- encode: dates --


def test_round_trip_explicit_times():
    url = encode(
        ExtractedEvent(title="Sync", date="2025-06-24", start_time="14:00", end_time="15:00")
    )
    assert _params(url)["dates"] == "20250624T140000/20250624T150000"


def test_accepts_raw_dict_with_camel_case_keys():
    url = encode({"title": "Sync", "date": "2025-06-24", "startTime": "14:00", "endTime": "15:00"})
    assert _params(url)["dates"] == "20250624T140000/20250624T150000"


def test_missing_end_time_defaults_to_one_hour_later():
    url = encode(ExtractedEvent(title="Sync", date="2025-06-24", start_time="10:15"))
    assert _params(url)["dates"] == "20250624T101500/20250624T111500"


def test_late_start_rolls_end_into_next_day():
    """23:30 with no end ends at 00:30 on the following date."""
    url = encode(ExtractedEvent(date="2025-06-24", start_time="23:30"))
    assert _params(url)["dates"] == "20250624T233000/20250625T003000"


def test_overnight_explicit_end_rolls_into_next_day():
    url = encode(ExtractedEvent(date="2025-12-31", start_time="22:00", end_time="01:00"))
    assert _params(url)["dates"] == "20251231T220000/20260101T010000"


def test_missing_start_time_is_all_day_window():
    url = encode(ExtractedEvent(title="Offsite", date="2025-06-24"))
    assert _params(url)["dates"] == "20250624T000000/20250624T235900"


def test_explicit_midnight_start_is_not_treated_as_missing():
    url = encode(ExtractedEvent(date="2025-06-24", start_time="00:00"))
    assert _params(url)["dates"] == "20250624T000000/20250624T010000"


def test_no_date_defaults_to_today_noon_window():
    url = encode(ExtractedEvent(title="X"), today=TODAY)
    assert _params(url)["dates"] == "20250620T120000/20250620T130000"


def test_no_date_ignores_times():
    url = encode(ExtractedEvent(title="X", start_time="09:00"), today=TODAY)
    assert _params(url)["dates"] == "20250620T120000/20250620T130000"


def test_malformed_date_passes_through_without_rollover():
    url = encode(ExtractedEvent(date="2025-13-45", start_time="23:30"))
    assert _params(url)["dates"] == "20251345T233000/20251345T003000"


# -- encode: title, location, details --


def test_base_url_and_title():
    url = encode(ExtractedEvent(title="Team lunch", date="2025-06-24"))
    assert url.startswith(CALENDAR_BASE_URL + "&")
    assert _params(url)["action"] == "TEMPLATE"
    assert _params(url)["text"] == "Team lunch"


def test_missing_title_uses_placeholder():
    assert _params(encode(ExtractedEvent(date="2025-06-24")))["text"] == DEFAULT_TITLE


def test_all_fields_missing_still_encodes():
    params = _params(encode(ExtractedEvent(), today=TODAY))
    assert params["text"] == DEFAULT_TITLE
    assert "location" not in params
    assert "details" not in params


def test_location_and_details_are_included():
    params = _params(
        encode(ExtractedEvent(title="Review", location="Room A", description="Q3 numbers"))
    )
    assert params["location"] == "Room A"
    assert params["details"] == "Q3 numbers"


def test_slack_markup_is_stripped_from_details_and_location():
    event = ExtractedEvent(description="see <https://meet.google.com/abc-defg-hij|link>")
    params = _params(encode(event, today=TODAY))
    assert params["details"] == "see https://meet.google.com/abc-defg-hij"
    assert params["location"] == "https://meet.google.com/abc-defg-hij"
    assert "<" not in params["details"]


def test_markup_without_meeting_link_is_unwrapped():
    event = ExtractedEvent(description="agenda <https://docs.example.com/agenda>")
    params = _params(encode(event, today=TODAY))
    assert params["details"] == "agenda https://docs.example.com/agenda"
    assert "location" not in params


def test_meeting_link_merged_with_physical_location():
    event = ExtractedEvent(
        location="Room A",
        description="Join remotely https://meet.google.com/abc-defg-hij",
    )
    params = _params(encode(event, today=TODAY))
    assert params["location"] == "Room A | https://meet.google.com/abc-defg-hij"


def test_zoom_link_detected():
    event = ExtractedEvent(description="Zoom: https://us02web.zoom.us/j/81234567890?pwd=abc123 see you")
    params = _params(encode(event, today=TODAY))
    assert params["location"] == "https://us02web.zoom.us/j/81234567890?pwd=abc123"


def test_provider_precedence_is_configurable():
    description = "https://zoom.us/j/123456789 or https://meet.google.com/abc-defg-hij"

    default = _params(encode(ExtractedEvent(description=description), today=TODAY))
    zoom_first = _params(
        encode(ExtractedEvent(description=description), providers=(ZOOM, GOOGLE_MEET), today=TODAY)
    )

    assert default["location"] == "https://meet.google.com/abc-defg-hij"
    assert zoom_first["location"] == "https://zoom.us/j/123456789"


def test_non_ascii_text_round_trips():
    params = _params(encode(ExtractedEvent(title="テストミーティング", location="会議室A"), today=TODAY))
    assert params["text"] == "テストミーティング"
    assert params["location"] == "会議室A"


def test_full_width_digits_are_folded_to_ascii():
    url = encode(ExtractedEvent(date="２０２５-０６-２４", start_time="１４:００", end_time="１５:３０"))
    dates = _params(url)["dates"]
    assert dates == "20250624T140000/20250624T153000"
    assert dates.isascii()


def test_non_latin_digits_never_reach_dates():
    assert normalize_time("١٤:٠٠") is None
    dates = _params(encode(ExtractedEvent(date="2025-06-24", start_time="١٤:٠٠")))["dates"]
    assert dates == "20250624T000000/20250624T235900"
