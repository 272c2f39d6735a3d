"""
Metrics Aggregator

Weighted visibility score:

    mention_rate * 0.40
    + sentiment_score * 100 * 0.30
    + accuracy_score * 100 * 0.20
    + ranking_component            (0-10, 5 when unranked)

rounded half up and clamped to [0, 100]. The components fall back to
neutral defaults when the result set carries no data for them, so an empty
input still yields a defined score.
"""

import math
from typing import List, Optional

from ..models import FingerprintMetrics, LLMResult, PromptType, Sentiment
from .filters import filter_by_prompt_type, filter_mentioned_results, filter_ranked_results

MENTION_WEIGHT = 0.40
SENTIMENT_WEIGHT = 0.30
ACCURACY_WEIGHT = 0.20

DEFAULT_SENTIMENT_SCORE = 0.5
DEFAULT_ACCURACY_SCORE = 0.7
DEFAULT_RANKING_COMPONENT = 5.0

SENTIMENT_VALUES = {
    Sentiment.POSITIVE: 1.0,
    Sentiment.NEUTRAL: 0.5,
    Sentiment.NEGATIVE: 0.0,
}


def round_half_up(value: float) -> int:
    """Round half up (2.5 -> 3, 0.5 -> 1)."""
    return int(math.floor(value + 0.5))


def calculate_mention_rate(results: List[LLMResult]) -> int:
    if not results:
        return 0
    mentioned = len(filter_mentioned_results(results))
    return round_half_up(100 * mentioned / len(results))


def calculate_sentiment_score(results: List[LLMResult]) -> float:
    mentioned = filter_mentioned_results(results)
    if not mentioned:
        return DEFAULT_SENTIMENT_SCORE
    return sum(SENTIMENT_VALUES[r.sentiment] for r in mentioned) / len(mentioned)


def calculate_accuracy_score(results: List[LLMResult]) -> float:
    mentioned = filter_mentioned_results(results)
    if not mentioned:
        return DEFAULT_ACCURACY_SCORE
    return sum(r.confidence for r in mentioned) / len(mentioned) / 100


def calculate_avg_rank_position(results: List[LLMResult]) -> Optional[float]:
    ranked = filter_ranked_results(
        filter_mentioned_results(filter_by_prompt_type(results, PromptType.RECOMMENDATION))
    )
    if not ranked:
        return None
    return sum(r.rank_position for r in ranked) / len(ranked)


def ranking_component(avg_rank_position: Optional[float]) -> float:
    if avg_rank_position is None:
        return DEFAULT_RANKING_COMPONENT
    return max(0.0, (6 - avg_rank_position) / 5 * 10)


def calculate_visibility_score(
    mention_rate: float,
    sentiment_score: float,
    accuracy_score: float,
    avg_rank_position: Optional[float],
) -> int:
    raw = (
        mention_rate * MENTION_WEIGHT
        + sentiment_score * 100 * SENTIMENT_WEIGHT
        + accuracy_score * 100 * ACCURACY_WEIGHT
        + ranking_component(avg_rank_position)
    )
    return max(0, min(100, round_half_up(raw)))


def calculate_metrics(results: List[LLMResult], total_queries: Optional[int] = None) -> FingerprintMetrics:
    """
    Aggregate already-filtered results into FingerprintMetrics.

    Args:
        results: Valid results (see ``filter_valid_results``)
        total_queries: Size of the query matrix, if different from the
                       number of valid results

    Returns:
        FingerprintMetrics
    """
    results = list(results)
    mention_rate = calculate_mention_rate(results)
    sentiment_score = calculate_sentiment_score(results)
    accuracy_score = calculate_accuracy_score(results)
    avg_rank_position = calculate_avg_rank_position(results)

    return FingerprintMetrics(
        visibility_score=calculate_visibility_score(
            mention_rate, sentiment_score, accuracy_score, avg_rank_position
        ),
        mention_rate=mention_rate,
        sentiment_score=sentiment_score,
        accuracy_score=accuracy_score,
        avg_rank_position=avg_rank_position,
        total_queries=len(results) if total_queries is None else total_queries,
        successful_queries=len(results),
    )


def neutral_metrics(total_queries: int = 0) -> FingerprintMetrics:
    """Metrics of an empty result set."""
    return calculate_metrics([], total_queries=total_queries)
