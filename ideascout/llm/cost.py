"""Token usage accounting for one engine run."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# USD per 1M tokens (input, output)
PRICING = {
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4o": (2.50, 10.0),
    "deepseek-chat": (0.14, 0.28),
    "claude-haiku-4-5-20251001": (0.80, 4.0),
    "claude-sonnet-4-5-20250514": (3.0, 15.0),
}


def estimate_cost(input_tokens: int, output_tokens: int, model: str) -> float:
    """Rough cost estimate based on known pricing."""
    input_rate, output_rate = PRICING.get(model, (1.0, 2.0))
    return (input_tokens * input_rate + output_tokens * output_rate) / 1_000_000


class CostTracker:
    """Accumulate LLM token usage and cost across a run."""

    def __init__(self):
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_cost_usd = 0.0
        self.calls = 0

    def track(self, input_tokens: int, output_tokens: int, model: str):
        self.calls += 1
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_cost_usd += estimate_cost(input_tokens, output_tokens, model)

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens


# Providers report here without plumbing. Each asyncio task (one HTTP
# request, one gathered run) sees only the tracker its own run installed.
_cost_tracker: ContextVar[CostTracker | None] = ContextVar("cost_tracker", default=None)


def get_cost_tracker() -> CostTracker | None:
    return _cost_tracker.get()


@contextmanager
def tracking() -> Iterator[CostTracker]:
    """Install a fresh tracker for the current context until exit."""
    tracker = CostTracker()
    token = _cost_tracker.set(tracker)
    try:
        yield tracker
    finally:
        _cost_tracker.reset(token)
