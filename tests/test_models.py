"""
Tests for the data model.

These tests verify:
- BusinessContext construction and validation
- CrawlData field contracts
- Serialization of the analysis for the persistence layer
"""

import pytest
from types import SimpleNamespace

from fingerprint_engine.models import (
    BusinessContext,
    CrawlData,
    FingerprintAnalysis,
    InvalidBusinessContextError,
    Location,
    PromptSet,
    PromptType,
    Trend,
    TrendDirection,
)
from fingerprint_engine.scoring import empty_leaderboard, neutral_metrics


# =============================================================================
# BUSINESS CONTEXT TESTS
# =============================================================================

class TestBusinessContext:
    """Test building contexts from business records."""

    def test_from_dict_record(self, business_record):
        """Mapping records are converted field by field."""
        context = BusinessContext.from_business(business_record)

        assert context.name == "Bright Smile Dental"
        assert context.business_id == 42
        assert context.location == Location(city="Austin", state="TX", country="US")
        assert context.crawl_data.services == ["Teeth Whitening", "Implants"]
        assert context.crawl_data.founded == "2009"

    def test_from_object_record(self):
        """Objects exposing attributes are accepted too."""
        record = SimpleNamespace(
            id=7, name="Corner Cafe", url="", category="cafe",
            location=None, crawl_data=None,
        )
        context = BusinessContext.from_business(record)

        assert context.name == "Corner Cafe"
        assert context.business_id == 7
        assert context.crawl_data is None

    def test_unknown_crawl_fields_are_dropped(self, business_record):
        """Crawl data is a closed record."""
        context = BusinessContext.from_business(business_record)
        assert not hasattr(context.crawl_data, "unknownField")

    def test_crawl_data_defaults(self):
        """Services and social links are always collections."""
        crawl = CrawlData()
        assert crawl.services == []
        assert crawl.social_links == {}
        assert crawl.description is None

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_missing_name_rejected(self, name):
        with pytest.raises(InvalidBusinessContextError):
            BusinessContext.from_business({"name": name})

    def test_missing_business_rejected(self):
        with pytest.raises(InvalidBusinessContextError):
            BusinessContext.from_business(None)

    def test_invalid_location_rejected(self):
        with pytest.raises(InvalidBusinessContextError):
            BusinessContext.from_business({"name": "Acme", "location": "Austin"})

    def test_error_is_value_error(self):
        """Callers catching ValueError also catch invalid input."""
        assert issubclass(InvalidBusinessContextError, ValueError)

    def test_context_is_immutable(self, business_context):
        with pytest.raises(Exception):
            business_context.name = "Other"


# =============================================================================
# SERIALIZATION TESTS
# =============================================================================

class TestSerialization:
    """Test dictionary output of the analysis."""

    def test_prompt_set_lookup(self):
        prompts = PromptSet(factual="f", opinion="o", recommendation="r")
        assert prompts.for_type(PromptType.OPINION) == "o"
        assert prompts.for_type("recommendation") == "r"

    def test_analysis_to_dict(self):
        analysis = FingerprintAnalysis(
            business_id=1,
            business_name="Acme",
            metrics=neutral_metrics(9),
            competitive_leaderboard=empty_leaderboard("Acme"),
            trend=Trend(TrendDirection.UP, 15),
        )
        data = analysis.to_dict()

        assert data["business_name"] == "Acme"
        assert data["metrics"]["total_queries"] == 9
        assert data["competitive_leaderboard"]["competitors"] == []
        assert data["competitive_leaderboard"]["insights"]["market_position"] == "trailing"
        assert data["trend"] == {"direction": "up", "value": 15}
        assert isinstance(data["generated_at"], str)
        assert data["degraded"] is False
        assert analysis.visibility_score == data["metrics"]["visibility_score"]
