"""Cost calculator for LLM API usage across vendors."""

from __future__ import annotations

# Pricing per 1M tokens (USD)
MODEL_PRICING: dict[str, dict[str, float]] = {
    "claude-sonnet-4-20250514": {"input": 3.00, "output": 15.00},
    "claude-haiku-4-5-20251001": {"input": 1.00, "output": 5.00},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gemini-2.0-flash": {"input": 0.10, "output": 0.40},
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
    "grok-3-mini-fast": {"input": 0.60, "output": 4.00},
}


def price_for(model_id: str) -> dict[str, float] | None:
    """Exact match first, then the longest known prefix (dated variants)."""
    if model_id in MODEL_PRICING:
        return MODEL_PRICING[model_id]
    prefixes = [m for m in MODEL_PRICING if model_id.startswith(m)]
    if not prefixes:
        return None
    return MODEL_PRICING[max(prefixes, key=len)]


def calculate_cost(calls: list[tuple[str, int, int]]) -> float:
    """Calculate total cost for a set of API calls.

    Args:
        calls: List of (model_id, input_tokens, output_tokens) tuples.

    Returns:
        Total estimated cost in USD. Models without a known price count as zero.
    """
    total = 0.0
    for model_id, input_tokens, output_tokens in calls:
        pricing = price_for(model_id)
        if pricing is None:
            continue
        total += (input_tokens / 1_000_000) * pricing["input"]
        total += (output_tokens / 1_000_000) * pricing["output"]
    return total
