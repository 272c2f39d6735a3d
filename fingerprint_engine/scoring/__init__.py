"""Aggregation of LLM results into metrics, leaderboard and trend."""

from .filters import (
    filter_by_prompt_type,
    filter_mentioned_results,
    filter_ranked_results,
    filter_valid_results,
)
from .leaderboard import build_leaderboard, empty_leaderboard
from .metrics import calculate_metrics, neutral_metrics, round_half_up
from .trend import calculate_trend

__all__ = [
    "filter_by_prompt_type",
    "filter_mentioned_results",
    "filter_ranked_results",
    "filter_valid_results",
    "build_leaderboard",
    "empty_leaderboard",
    "calculate_metrics",
    "neutral_metrics",
    "round_half_up",
    "calculate_trend",
]
