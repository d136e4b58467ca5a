"""Slack Events API endpoint with signature verification."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from calendar_bot.slack.handlers import handle_slack_event
from calendar_bot.slack.verification import verify_slack_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["slack"])


@router.post("/slack/events")
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: dict = Depends(verify_slack_request),
) -> JSONResponse:
    """Receive Slack webhook events.

    Slack retries (X-Slack-Retry-Num header) are acknowledged without being
    dispatched. The original delivery was already accepted, and the dedup
    gate covers redeliveries that arrive without the header.
    """
    retry_num = request.headers.get("X-Slack-Retry-Num")
    if retry_num:
        logger.info(
            "Acknowledging Slack retry #%s (%s)",
            retry_num,
            request.headers.get("X-Slack-Retry-Reason", "unknown"),
        )
        return JSONResponse({"ok": True})

    return handle_slack_event(payload, background_tasks)
