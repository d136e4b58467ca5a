"""Lenient JSON recovery for Gemini responses.

The structured path expects a bare JSON array, but models occasionally wrap
it in a Markdown code fence. The legacy path has no schema at all and may
surround the array with prose, so it tries progressively looser strategies.
"""

import json
import logging
import re

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_ARRAY_OF_OBJECTS = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")


def strip_code_fence(text: str) -> str:
    """Return the contents of the first ```json fenced block, or the stripped text."""
    match = _CODE_FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_array(text: str | None) -> list | None:
    """Strictly parse ``text`` (fence-stripped) as a JSON array. None on any failure."""
    if not text:
        return None
    try:
        parsed = json.loads(strip_code_fence(text))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, list) else None


def parse_legacy_response(text: str | None) -> list | None:
    """Recover a JSON array from free-form model output.

    Strategies, in order:
    1. Direct parse of the whole response.
    2. Parse of the first ```json fenced block.
    3. Parse of the outermost ``[{...}]`` span.

    Returns None when every strategy fails. A parsed non-array counts as an
    empty result, not a failure.
    """
    if not text:
        return None

    try:
        parsed = json.loads(text.strip())
        return parsed if isinstance(parsed, list) else []
    except json.JSONDecodeError:
        pass

    fence = _CODE_FENCE.search(text)
    if fence:
        try:
            parsed = json.loads(fence.group(1).strip())
            return parsed if isinstance(parsed, list) else []
        except json.JSONDecodeError:
            logger.debug("Fenced block is not valid JSON")

    span = _ARRAY_OF_OBJECTS.search(text)
    if span:
        try:
            return json.loads(span.group(0))
        except json.JSONDecodeError:
            logger.debug("Bracketed span is not valid JSON")

    return None
