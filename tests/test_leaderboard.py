"""
Tests for the competitive leaderboard.

These tests verify:
- Only recommendation answers feed the leaderboard
- Ordering by mention count, average position, then name
- Market share and co-occurrence counts
- Market position, competitive gap and recommendation text
"""

import pytest

from fingerprint_engine.models import MarketPosition, PromptType
from fingerprint_engine.scoring import build_leaderboard, empty_leaderboard

TARGET = "Bright Smile Dental"


class TestLeaderboard:
    """Test build_leaderboard."""

    def test_non_recommendation_results_are_ignored(self, make_result):
        """A mentioned factual answer carries no competitive signal."""
        results = [make_result(prompt_type=PromptType.FACTUAL, competitor_mentions=["Family Dental"])]
        leaderboard = build_leaderboard(results, TARGET)

        assert leaderboard.competitors == []
        assert leaderboard.target_business.mention_count == 0
        assert leaderboard.target_business.rank == 1
        assert leaderboard.total_queries == 0
        assert leaderboard.insights.market_position == MarketPosition.TRAILING
        assert leaderboard.insights.recommendation.startswith("Insufficient data")

    def test_error_results_are_ignored(self, make_result):
        results = [make_result(error="API error: 500", competitor_mentions=["Family Dental"])]
        leaderboard = build_leaderboard(results, TARGET)

        assert leaderboard.competitors == []
        assert leaderboard.total_queries == 0

    def test_full_leaderboard(self, make_result, recommendation_text):
        results = [
            make_result(
                rank_position=2,
                competitor_mentions=["Family Dental", "Modern Dentistry", "Smile Center"],
                raw_response=recommendation_text,
            ),
            make_result(
                mentioned=False,
                competitor_mentions=["Family Dental", "Smile Center"],
            ),
        ]
        leaderboard = build_leaderboard(results, TARGET)

        names = [c.name for c in leaderboard.competitors]
        assert names == ["Family Dental", "Smile Center", "Modern Dentistry"]
        assert [c.rank for c in leaderboard.competitors] == [1, 2, 4]

        family, smile, modern = leaderboard.competitors
        assert family.mention_count == 2
        assert family.avg_position == 1.0
        assert family.appears_with_target == 1
        # list number 4 in the first answer, list order 2 in the second
        assert smile.avg_position == 3.0
        assert modern.avg_position == 3.0

        target = leaderboard.target_business
        assert target.rank == 3
        assert target.mention_count == 1
        assert target.avg_position == 2.0
        assert target.market_share == pytest.approx(100 / 6)

        shares = target.market_share + sum(c.market_share for c in leaderboard.competitors)
        assert shares == pytest.approx(100.0)
        assert leaderboard.total_queries == 2

        insights = leaderboard.insights
        assert insights.market_position == MarketPosition.TRAILING
        assert insights.top_competitor == "Family Dental"
        assert insights.competitive_gap == 1

    def test_ties_break_on_position_then_name(self, make_result):
        results = [
            make_result(mentioned=False, competitor_mentions=["Zeta Dental", "Beta Dental"]),
            make_result(mentioned=False, competitor_mentions=["Alpha Dental"]),
            make_result(mentioned=False, competitor_mentions=["Beta Dental"]),
        ]
        leaderboard = build_leaderboard(results, TARGET)

        # Beta: 2 mentions; Zeta and Alpha: 1 mention at position 1
        assert [c.name for c in leaderboard.competitors] == ["Beta Dental", "Alpha Dental", "Zeta Dental"]
        assert leaderboard.target_business.rank == 4

    def test_names_merge_case_insensitively(self, make_result):
        results = [
            make_result(mentioned=False, competitor_mentions=["Family Dental"]),
            make_result(mentioned=False, competitor_mentions=["FAMILY DENTAL"]),
        ]
        leaderboard = build_leaderboard(results, TARGET)

        assert len(leaderboard.competitors) == 1
        assert leaderboard.competitors[0].mention_count == 2

    def test_leading_position(self, make_result):
        results = [
            make_result(rank_position=1, competitor_mentions=["Family Dental"]),
            make_result(rank_position=1, competitor_mentions=["Smile Center"]),
        ]
        leaderboard = build_leaderboard(results, TARGET)

        assert leaderboard.target_business.rank == 1
        assert leaderboard.insights.market_position == MarketPosition.LEADING
        assert leaderboard.insights.competitive_gap == 0
        assert "leads" in leaderboard.insights.recommendation

    def test_competitive_position(self, make_result):
        results = [
            make_result(rank_position=2, competitor_mentions=["Family Dental", "Smile Center"]),
            make_result(mentioned=False, competitor_mentions=["Family Dental"]),
        ]
        leaderboard = build_leaderboard(results, TARGET)

        assert leaderboard.target_business.rank == 2
        assert leaderboard.insights.market_position == MarketPosition.COMPETITIVE
        assert leaderboard.insights.competitive_gap == 1
        assert "Family Dental" in leaderboard.insights.recommendation
        assert "1 mention " in leaderboard.insights.recommendation

    def test_large_gap_names_top_competitor(self, make_result):
        results = [
            make_result(mentioned=False, competitor_mentions=["Family Dental"])
            for _ in range(3)
        ]
        leaderboard = build_leaderboard(results, TARGET)

        assert leaderboard.insights.competitive_gap == 3
        assert leaderboard.insights.recommendation.startswith("Family Dental")

    def test_empty_leaderboard(self):
        leaderboard = empty_leaderboard(TARGET)

        assert leaderboard.competitors == []
        assert leaderboard.target_business.market_share == 0.0
        assert leaderboard.insights.top_competitor is None
