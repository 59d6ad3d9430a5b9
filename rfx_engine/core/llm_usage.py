"""LLM usage logger for token/cost tracking."""

import logging
import re

from rfx_engine.core.logging import get_logger, log_with_context

logger = get_logger(__name__)

_DATE_SUFFIX = re.compile(r"-\d{8}$")

# Pricing per 1M tokens: (input, output)
MODEL_PRICING: dict[str, tuple[float, float]] = {
    # Anthropic
    "claude-opus-4-20250514": (15.0, 75.0),
    "claude-sonnet-4-20250514": (3.0, 15.0),
    "claude-3-5-sonnet-20241022": (3.0, 15.0),
    "claude-3-5-haiku-20241022": (0.80, 4.0),
    "claude-3-opus-20240229": (15.0, 75.0),
    # OpenAI
    "gpt-4o": (2.50, 10.0),
    "gpt-4.1-mini": (0.40, 1.60),
    "gpt-4o-mini": (0.15, 0.60),
}


def estimate_cost(model: str, tokens_input: int, tokens_output: int) -> float:
    """Estimate cost in USD based on model pricing. Unknown models cost $0."""
    pricing = MODEL_PRICING.get(model)
    if not pricing:
        # Dated variants share the price of their family; the longest family wins
        families = [
            (_DATE_SUFFIX.sub("", key), val)
            for key, val in MODEL_PRICING.items()
            if model.startswith(_DATE_SUFFIX.sub("", key))
        ]
        if families:
            pricing = max(families, key=lambda item: len(item[0]))[1]
    if not pricing:
        logger.debug(f"No pricing found for model '{model}', using $0")
        return 0.0

    input_rate, output_rate = pricing
    cost = (tokens_input * input_rate / 1_000_000) + (tokens_output * output_rate / 1_000_000)
    return round(cost, 6)


def log_llm_usage(
    *,
    provider: str,
    model: str,
    tokens_input: int,
    tokens_output: int,
    duration_ms: int = 0,
    chain: str | None = None,
) -> None:
    """Emit one structured usage line for an LLM call. Never raises."""
    try:
        log_with_context(
            logger,
            logging.INFO,
            "llm_usage",
            provider=provider,
            model=model,
            chain=chain or "-",
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            duration_ms=duration_ms,
            estimated_cost_usd=estimate_cost(model, tokens_input, tokens_output),
        )
    except Exception as e:
        # Never fail the main operation due to logging
        logger.error(f"Failed to log LLM usage: {e}")
