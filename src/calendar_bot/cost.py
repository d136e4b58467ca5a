"""Token usage extraction, cost estimation, and structured usage logging.

Centralizes Gemini pricing constants (single source of truth) so every call
site logs usage the same way for monitoring and cost alerts.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# (input, output) USD per token, keyed by model name
MODEL_PRICES: dict[str, tuple[float, float]] = {
    "gemini-2.5-flash": (0.30 / 1_000_000, 2.50 / 1_000_000),
    "gemini-2.5-flash-lite": (0.10 / 1_000_000, 0.40 / 1_000_000),
}


@dataclass
class TokenUsage:
    """Token counts and estimated cost for a single Gemini API call."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost_usd: float


def extract_usage(response: object, model: str) -> TokenUsage:
    """Extract token usage from a Gemini GenerateContentResponse.

    Missing usage_metadata or None counts default to 0. Unknown models are
    priced at zero rather than guessed.
    """
    metadata = getattr(response, "usage_metadata", None)
    prompt_tokens = getattr(metadata, "prompt_token_count", 0) or 0
    completion_tokens = getattr(metadata, "candidates_token_count", 0) or 0
    input_price, output_price = MODEL_PRICES.get(model, (0.0, 0.0))

    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
        cost_usd=prompt_tokens * input_price + completion_tokens * output_price,
    )


def log_usage(operation: str, model: str, usage: TokenUsage) -> None:
    """Emit one INFO log with all usage fields as structured extra data."""
    logger.info(
        "Gemini call complete",
        extra={
            "operation": operation,
            "model": model,
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
            "cost_usd": round(usage.cost_usd, 6),
        },
    )
