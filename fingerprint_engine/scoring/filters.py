"""
Result Filters

Pure selections over a list of LLMResults. Every filter keeps input order.
"""

from typing import Iterable, List, Optional

from ..models import LLMResult, PromptType


def filter_valid_results(results: Iterable[Optional[LLMResult]]) -> List[LLMResult]:
    """Drop missing and error-flagged entries."""
    return [r for r in results if r is not None and not r.error]


def filter_by_prompt_type(results: Iterable[LLMResult], prompt_type: PromptType) -> List[LLMResult]:
    prompt_type = PromptType(prompt_type)
    return [r for r in results if r.prompt_type == prompt_type]


def filter_mentioned_results(results: Iterable[LLMResult]) -> List[LLMResult]:
    return [r for r in results if r.mentioned]


def filter_ranked_results(results: Iterable[LLMResult]) -> List[LLMResult]:
    """Results with a rank position. Only None means unranked; 0 is a rank."""
    return [r for r in results if r.rank_position is not None]
