# src/llm/token_budget.py — v2
"""Output-token and thinking-budget resolution.

The thinking budget is a sub-allocation of the output budget: the explicit
``budget_tokens`` when given, otherwise half of ``max_tokens``.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1024

# Anthropic rejects extended-thinking budgets below this value.
ANTHROPIC_MIN_THINKING_BUDGET = 1024


def resolve_max_tokens(requested: int | None, default: int = DEFAULT_MAX_TOKENS) -> int:
    """Requested output budget, or the default when unset or non-positive."""
    if requested is None or requested <= 0:
        return default
    return requested


def resolve_thinking_budget(max_tokens: int, budget_tokens: int | None = None) -> int:
    """Thinking budget: explicit value if positive, else ``max_tokens // 2``."""
    if budget_tokens is not None and budget_tokens > 0:
        return budget_tokens
    return max_tokens // 2


def anthropic_thinking_budget(max_tokens: int, budget_tokens: int | None = None) -> tuple[int, int]:
    """Return ``(max_tokens, budget_tokens)`` valid for Anthropic extended thinking.

    The budget is raised to the vendor minimum, and ``max_tokens`` is raised
    so that it always exceeds the budget.
    """
    budget = max(resolve_thinking_budget(max_tokens, budget_tokens), ANTHROPIC_MIN_THINKING_BUDGET)
    if max_tokens <= budget:
        adjusted = budget + DEFAULT_MAX_TOKENS
        logger.debug(
            "Raising max_tokens from %d to %d to fit thinking budget %d",
            max_tokens, adjusted, budget,
        )
        max_tokens = adjusted
    return max_tokens, budget


def reasoning_effort(max_tokens: int, budget_tokens: int | None = None) -> str:
    """Map a thinking budget onto an OpenAI reasoning effort level."""
    ratio = resolve_thinking_budget(max_tokens, budget_tokens) / max_tokens if max_tokens else 0.5
    if ratio <= 0.33:
        return "low"
    if ratio <= 0.66:
        return "medium"
    return "high"
