"""
Tests for industry resolution and prompt generation.

These tests verify:
- Static industry lookup and the LLM fallback tier
- Deterministic prompt rendering with location and service context
- Lexicon overrides loaded from JSON
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from fingerprint_engine.analysis import IndustryClassifier, Lexicon, PromptGenerator
from fingerprint_engine.models import (
    BusinessContext,
    CrawlData,
    Location,
    ModelResponse,
    PromptType,
)


def _client(content="", error=None, side_effect=None):
    client = MagicMock()
    client.query = AsyncMock(
        return_value=ModelResponse(content=content, tokens_used=5, model="m", error=error),
        side_effect=side_effect,
    )
    return client


# =============================================================================
# INDUSTRY CLASSIFIER TESTS
# =============================================================================

class TestIndustryClassifier:
    """Test category to industry phrase resolution."""

    @pytest.mark.parametrize("category, plural", [
        ("Dental Clinic", "dental practices"),
        ("Family Law Office", "law firms"),
        ("Coffee Shop", "cafes"),
        ("Restaurants", "restaurants"),
        ("Emergency Plumbing", "plumbers"),
    ])
    def test_static_lookup(self, category, plural):
        assert IndustryClassifier().lookup(category).plural == plural

    def test_keywords_match_whole_words(self):
        """'lawn' is not 'law'."""
        assert IndustryClassifier().lookup("Lawn Mowing") is None

    def test_context_falls_back_to_crawl_data_and_url(self):
        classifier = IndustryClassifier()
        from_crawl = BusinessContext(
            name="Acme", category="Pet Grooming",
            crawl_data=CrawlData(description="A full service veterinary hospital."),
        )
        from_url = BusinessContext(name="Joe's", url="https://joes-plumbing.example")

        assert classifier.lookup_context(from_crawl).plural == "veterinary clinics"
        assert classifier.lookup_context(from_url).plural == "plumbers"

    @pytest.mark.asyncio
    async def test_lookup_hit_skips_llm(self):
        client = _client("anything")
        classifier = IndustryClassifier(client=client, model="m")

        assert await classifier.resolve("Dental Clinic") == "dental practices"
        client.query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_llm_tier_on_miss(self):
        client = _client('"Pet Groomers".')
        classifier = IndustryClassifier(client=client, model="m")

        assert await classifier.resolve("Pet Grooming") == "pet groomers"
        # second call is served from memory
        assert await classifier.resolve("pet grooming") == "pet groomers"
        assert client.query.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("client", [
        _client("I'm not sure what that category means, could you clarify?"),
        _client("pet groomers", error="API error: 500"),
        _client(side_effect=RuntimeError("connection reset")),
        _client(""),
    ])
    async def test_llm_failure_defaults(self, client):
        classifier = IndustryClassifier(client=client, model="m")
        assert await classifier.resolve("Pet Grooming") == "businesses"

    @pytest.mark.asyncio
    async def test_missing_category_defaults(self):
        classifier = IndustryClassifier(client=_client("x"), model="m")
        assert await classifier.resolve(None) == "businesses"
        assert await classifier.resolve("   ") == "businesses"
        assert await classifier.resolve_context(BusinessContext(name="Acme")) == "businesses"

    @pytest.mark.asyncio
    async def test_without_client_defaults(self):
        assert await IndustryClassifier().resolve("Pet Grooming") == "businesses"


# =============================================================================
# PROMPT GENERATOR TESTS
# =============================================================================

class TestPromptGenerator:
    """Test prompt rendering."""

    def test_prompts_are_deterministic(self, business_context):
        generator = PromptGenerator()
        assert generator.generate_prompts(business_context) == generator.generate_prompts(business_context)

    def test_prompt_content(self, business_context):
        prompts = PromptGenerator().generate_prompts(business_context)

        assert "Bright Smile Dental in Austin, TX" in prompts.factual
        assert "Bright Smile Dental in Austin, TX" in prompts.opinion
        assert "dental practices in Austin, TX" in prompts.recommendation
        assert "Bright Smile Dental" not in prompts.recommendation
        for prompt_type in PromptType:
            assert prompts.for_type(prompt_type)

    def test_industry_phrase_override(self):
        context = BusinessContext(name="Acme", category="Pet Grooming")
        prompts = PromptGenerator().generate_prompts(context, industry_phrase="pet groomers")
        assert "pet groomers" in prompts.recommendation

    def test_unknown_industry_uses_default(self):
        prompts = PromptGenerator().generate_prompts(BusinessContext(name="Acme"))
        assert "businesses" in prompts.recommendation
        assert "Acme?" in prompts.factual or "Acme." in prompts.factual

    @pytest.mark.parametrize("location, expected", [
        (Location(city="Austin", state="TX"), " in Austin, TX"),
        (Location(city="Austin"), " in Austin"),
        (Location(state="TX", country="US"), " in TX"),
        (Location(country="US"), ""),
        (None, ""),
    ])
    def test_location_context(self, location, expected):
        assert PromptGenerator.location_context(location) == expected

    def test_service_context(self):
        generator = PromptGenerator()
        with_services = BusinessContext(name="A", crawl_data=CrawlData(services=["  Teeth Whitening "]))
        with_description = BusinessContext(name="A", crawl_data=CrawlData(description="Expert roof repair."))
        bare = BusinessContext(name="A")

        assert generator.service_context(with_services, "dental care") == "teeth whitening"
        assert generator.service_context(with_description, "dental care") == "repair"
        assert generator.service_context(bare, "dental care") == "dental care"


# =============================================================================
# LEXICON TESTS
# =============================================================================

class TestLexicon:
    """Test lexicon overrides."""

    def test_from_file(self, tmp_path):
        path = tmp_path / "lexicon.json"
        path.write_text(json.dumps({
            "industry_phrases": {
                "Grooming": {"plural": "pet groomers", "service": "pet grooming", "type": "groomer"},
            },
            "positive_cues": ["stellar"],
            "not_a_table": [],
        }))
        lexicon = Lexicon.from_file(path)

        assert lexicon.industry_phrases == {"grooming": ("pet groomers", "pet grooming", "groomer")}
        assert lexicon.positive_cues == ["stellar"]
        # tables not in the file keep their defaults
        assert "terrible" in lexicon.negative_cues

        classifier = IndustryClassifier(lexicon=lexicon)
        assert classifier.lookup("Pet Grooming").plural == "pet groomers"
        assert classifier.lookup("Dental Clinic") is None

    def test_default_industry_override(self):
        lexicon = Lexicon.from_dict({"default_industry": ["companies", "services", "company"]})
        assert IndustryClassifier(lexicon=lexicon).default.plural == "companies"
