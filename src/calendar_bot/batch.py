"""Fan extracted events out to calendar links and thread replies.

AI call volume is O(1) per message: one summary (plus one meeting-info call
when credentials are present) is shared by every event. Posting runs in
fixed-width batches; each event is isolated so one failure produces an
inline error reply without affecting its siblings.
"""

import asyncio
import logging
import re

from calendar_bot.calendar import DEFAULT_TITLE, encode, find_meeting_url
from calendar_bot.config import get_settings
from calendar_bot.llm.processor import EventExtractor, truncate_summary
from calendar_bot.models.event import ExtractedEvent
from calendar_bot.models.slack import MessageContext
from calendar_bot.slack.notifier import notify_event_error, notify_truncated, post_reply
from calendar_bot.slack.urls import strip_url_markup

logger = logging.getLogger(__name__)

_CREDENTIAL_WORDS = re.compile(
    r"meeting\s*id|pass\s*code|password|\bpin\b|ミーティングID|パスコード|パスワード",
    re.IGNORECASE,
)


def has_meeting_credentials(text: str) -> bool:
    """True if ``text`` carries a meeting link or join credentials."""
    return find_meeting_url(strip_url_markup(text)) is not None or bool(
        _CREDENTIAL_WORDS.search(text)
    )


async def build_shared_description(
    context: MessageContext, extractor: EventExtractor
) -> str:
    """Summary of the message plus a link back to it.

    The summary is capped at 100 characters unless the message carries
    meeting credentials; those are appended in full so the link encoder can
    still find the meeting URL.
    """
    summary = await extractor.summarize(context.text)

    if has_meeting_credentials(context.text):
        meeting_info = await extractor.extract_meeting_info(context.text)
        if not meeting_info:
            meeting_info = find_meeting_url(strip_url_markup(context.text)) or ""
        if meeting_info and meeting_info not in summary:
            summary = f"{summary}\n\n{meeting_info}"
    else:
        summary = truncate_summary(summary)

    return f"{summary}\n\nSlack message: {context.message_url}"


async def _post_event(
    event: ExtractedEvent,
    description: str,
    context: MessageContext,
    extractor: EventExtractor,
    generate_titles: bool,
) -> bool:
    """Encode and post one event. Failures are reported in-thread, never raised."""
    try:
        title = event.title
        if generate_titles:
            title = await extractor.generate_title(context.text, event.title) or event.title

        prepared = event.model_copy(update={"title": title, "description": description})
        url = encode(prepared)
        await post_reply(
            context.channel_id,
            context.message_ts,
            f"Event detected: {prepared.title or DEFAULT_TITLE}\n<{url}|Add to Google Calendar>",
        )
        return True
    except Exception:
        logger.error("Failed to post event %r", event.title, exc_info=True)
        await notify_event_error(context.channel_id, context.message_ts, event.title)
        return False


async def process_extracted_events(
    events: list[ExtractedEvent],
    context: MessageContext,
    extractor: EventExtractor,
) -> int:
    """Post a calendar link for each event (up to the configured cap).

    Args:
        events: Events in extraction order.
        context: Channel, thread and source text of the flagged message.
        extractor: Used for the shared summary and optional AI titles.

    Returns:
        Number of events posted successfully.
    """
    settings = get_settings()
    max_events = settings.max_events
    batch_size = max(1, settings.batch_size)

    if len(events) > max_events:
        logger.info("Truncating %d events to %d", len(events), max_events)
        await notify_truncated(context.channel_id, context.message_ts, len(events), max_events)
        events = events[:max_events]

    description = await build_shared_description(context, extractor)

    posted = 0
    for start in range(0, len(events), batch_size):
        batch = events[start : start + batch_size]
        results = await asyncio.gather(
            *(
                _post_event(event, description, context, extractor, settings.generate_titles)
                for event in batch
            ),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.error("Event task crashed", exc_info=result)
            elif result:
                posted += 1

    logger.info(
        "Posted %d/%d event(s) for message %s",
        posted,
        len(events),
        context.message_ts,
    )
    return posted
