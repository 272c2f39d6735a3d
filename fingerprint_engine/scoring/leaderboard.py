"""
Competitive Leaderboard Builder

Ranks the target business against the competitors named in
recommendation-type answers. Other prompt types carry no competitive
signal and are ignored.

Ordering: mention count descending, then average list position ascending
(unpositioned last), then name. The target takes part in the ordering and
in the market-share denominator.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..analysis.names import item_name, normalize, parse_list_items
from ..models import (
    CompetitiveLeaderboard,
    CompetitorStanding,
    LeaderboardInsights,
    LLMResult,
    MarketPosition,
    PromptType,
    TargetStanding,
)
from .filters import filter_by_prompt_type, filter_valid_results

logger = logging.getLogger(__name__)

LARGE_GAP = 3


@dataclass
class _Tally:
    names: Set[str] = field(default_factory=set)
    mention_count: int = 0
    positions: List[int] = field(default_factory=list)
    appears_with_target: int = 0
    is_target: bool = False

    @property
    def name(self) -> str:
        return min(self.names)

    @property
    def avg_position(self) -> Optional[float]:
        return sum(self.positions) / len(self.positions) if self.positions else None

    def sort_key(self):
        avg = self.avg_position
        return (-self.mention_count, avg if avg is not None else math.inf, self.name.lower(), self.is_target)


def _list_positions(text: str) -> Dict[str, int]:
    positions: Dict[str, int] = {}
    for number, item in parse_list_items(text):
        if number is not None:
            positions.setdefault(normalize(item_name(item)), number)
    return positions


def build_leaderboard(
    results: List[LLMResult],
    business_name: str,
) -> CompetitiveLeaderboard:
    """
    Build the leaderboard from a result set.

    Args:
        results: LLM results; error-flagged and non-recommendation entries
                 are skipped
        business_name: Name of the target business

    Returns:
        CompetitiveLeaderboard
    """
    recommendations = filter_by_prompt_type(filter_valid_results(results), PromptType.RECOMMENDATION)

    target = _Tally(names={business_name}, is_target=True)
    competitors: Dict[str, _Tally] = {}

    for result in recommendations:
        if result.mentioned:
            target.mention_count += 1
            if result.rank_position is not None:
                target.positions.append(result.rank_position)

        positions = _list_positions(result.raw_response) if result.competitor_mentions else {}
        for index, name in enumerate(result.competitor_mentions):
            key = normalize(name)
            if not key:
                continue
            tally = competitors.setdefault(key, _Tally())
            tally.names.add(name)
            tally.mention_count += 1
            tally.positions.append(positions.get(key, index + 1))
            if result.mentioned:
                tally.appears_with_target += 1

    ordered = sorted([target, *competitors.values()], key=_Tally.sort_key)
    total_mentions = sum(t.mention_count for t in ordered)

    def share(tally: _Tally) -> float:
        return 100 * tally.mention_count / total_mentions if total_mentions else 0.0

    target_rank = next(i for i, tally in enumerate(ordered, start=1) if tally is target)
    target_standing = TargetStanding(
        name=business_name,
        rank=target_rank,
        mention_count=target.mention_count,
        avg_position=target.avg_position,
        market_share=share(target),
    )

    competitor_standings = [
        CompetitorStanding(
            rank=rank,
            name=tally.name,
            mention_count=tally.mention_count,
            avg_position=tally.avg_position,
            appears_with_target=tally.appears_with_target,
            market_share=share(tally),
        )
        for rank, tally in enumerate(ordered, start=1)
        if not tally.is_target
    ]

    insights = _build_insights(target_standing, competitor_standings, len(ordered), len(recommendations))
    logger.debug(
        f"Leaderboard for '{business_name}': rank {target_rank}/{len(ordered)}, "
        f"{len(competitor_standings)} competitors, position={insights.market_position.value}"
    )

    return CompetitiveLeaderboard(
        target_business=target_standing,
        competitors=competitor_standings,
        insights=insights,
        total_queries=len(recommendations),
    )


def empty_leaderboard(business_name: str) -> CompetitiveLeaderboard:
    """Leaderboard of a run without usable results."""
    return build_leaderboard([], business_name)


def _build_insights(
    target: TargetStanding,
    competitors: List[CompetitorStanding],
    entity_count: int,
    total_queries: int,
) -> LeaderboardInsights:
    top = competitors[0] if competitors else None
    gap = max(0, top.mention_count - target.mention_count) if top else 0

    if target.mention_count > 0 and target.rank == 1:
        position = MarketPosition.LEADING
    elif target.mention_count > 0 and target.rank <= math.ceil(entity_count / 2):
        position = MarketPosition.COMPETITIVE
    else:
        position = MarketPosition.TRAILING

    return LeaderboardInsights(
        market_position=position,
        top_competitor=top.name if top else None,
        competitive_gap=gap,
        recommendation=_recommendation(position, gap, top.name if top else None, total_queries),
    )


def _recommendation(
    position: MarketPosition, gap: int, top_competitor: Optional[str], total_queries: int
) -> str:
    if total_queries == 0:
        return (
            "Insufficient data. Run fingerprinting with recommendation prompts "
            "to analyze competitive position."
        )

    if position == MarketPosition.LEADING:
        return (
            "Strong AI visibility: your business leads recommendation answers. "
            "Focus on maintaining quality and expanding published content."
        )

    if position == MarketPosition.COMPETITIVE:
        if gap and top_competitor:
            return (
                f"You're competitive with {top_competitor}. Closing a gap of {gap} "
                f"mention{'s' if gap != 1 else ''} would move you to the top of the leaderboard."
            )
        return (
            "You have good visibility. Structured business data and quality "
            "content can lift your ranking further."
        )

    if top_competitor and gap >= LARGE_GAP:
        return (
            f"{top_competitor} is recommended far more often than your business. "
            "Publishing structured business data and building online presence "
            "will significantly improve discoverability."
        )
    return (
        "Limited AI visibility detected. Publishing structured business data "
        "and building online presence will improve discoverability."
    )
