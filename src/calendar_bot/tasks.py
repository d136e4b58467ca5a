"""Best-effort task wrapper for side effects that must never abort the pipeline.

Reaction toggles and informational notices are not worth failing a signal
over. Wrapping them here keeps the log-and-continue policy in one place
instead of scattered bare ``except`` clauses.
"""

import logging
from collections.abc import Awaitable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def best_effort(awaitable: Awaitable[T], description: str) -> T | None:
    """Await ``awaitable``, logging and returning None if it raises.

    Args:
        awaitable: The side effect to run.
        description: Short label used in the warning log, e.g. "add reaction".

    Returns:
        The awaited result, or None on failure.
    """
    try:
        return await awaitable
    except Exception:
        logger.warning("Best-effort task failed: %s", description, exc_info=True)
        return None
