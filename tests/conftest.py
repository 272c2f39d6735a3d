"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import pytest
import httpx
from typing import Any, Callable, Dict, List

from fingerprint_engine.llm import MockConfig, ModelQueryClient, RetryConfig
from fingerprint_engine.models import (
    BusinessContext,
    CrawlData,
    LLMResult,
    Location,
    PromptType,
    Sentiment,
)


# ============================================================================
# Business Fixtures
# ============================================================================

@pytest.fixture
def business_record() -> Dict[str, Any]:
    """Business record as handed over by the crawler."""
    return {
        "id": 42,
        "name": "Bright Smile Dental",
        "url": "https://brightsmile.example",
        "category": "Dental Clinic",
        "location": {"city": "Austin", "state": "TX", "country": "US"},
        "crawlData": {
            "description": "Family dental care and cosmetic treatment.",
            "services": ["Teeth Whitening", "Implants"],
            "founded": "2009",
            "unknownField": "dropped",
        },
    }


@pytest.fixture
def business_context() -> BusinessContext:
    """Immutable context for the standard test business."""
    return BusinessContext(
        name="Bright Smile Dental",
        url="https://brightsmile.example",
        category="Dental Clinic",
        location=Location(city="Austin", state="TX", country="US"),
        crawl_data=CrawlData(services=["Teeth Whitening"]),
        business_id=42,
    )


# ============================================================================
# Response Fixtures
# ============================================================================

@pytest.fixture
def recommendation_text() -> str:
    """Recommendation answer with the target at position 2."""
    return (
        "Here are some of the best dental practices in Austin, TX:\n"
        "\n"
        "1. **Family Dental** - Long-standing practice with great reviews\n"
        "2. **Bright Smile Dental** - Excellent cosmetic work and friendly staff\n"
        "3. Modern Dentistry: Known for same-day crowns\n"
        "4. Smile Center - Reliable emergency appointments\n"
        "\n"
        "You can also check Google and Yelp for recent reviews."
    )


@pytest.fixture
def make_result() -> Callable[..., LLMResult]:
    """Factory for LLMResult with sensible defaults."""
    def _make(
        prompt_type: PromptType = PromptType.RECOMMENDATION,
        mentioned: bool = True,
        sentiment: Sentiment = Sentiment.POSITIVE,
        confidence: int = 90,
        rank_position=None,
        competitor_mentions: List[str] = None,
        model: str = "openai/gpt-4-turbo",
        raw_response: str = "",
        error: str = None,
    ) -> LLMResult:
        return LLMResult(
            model=model,
            prompt_type=prompt_type,
            mentioned=mentioned,
            sentiment=sentiment,
            confidence=confidence,
            rank_position=rank_position,
            competitor_mentions=list(competitor_mentions or []),
            raw_response=raw_response,
            error=error,
        )
    return _make


# ============================================================================
# Provider Fixtures
# ============================================================================

@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry config without delays."""
    return RetryConfig(max_retries=2, initial_delay=0.0, max_delay=0.0)


@pytest.fixture
def completion_payload() -> Callable[..., Dict[str, Any]]:
    """Factory for OpenRouter chat-completion payloads."""
    def _payload(content: str, tokens: int = 120, model: str = "openai/gpt-4-turbo"):
        return {
            "id": "gen-123",
            "model": model,
            "choices": [{"message": {"role": "assistant", "content": content}}],
            "usage": {"total_tokens": tokens},
        }
    return _payload


@pytest.fixture
def make_client(fast_retry) -> Callable[..., ModelQueryClient]:
    """Build a client whose HTTP calls are served by ``handler``."""
    def _make(handler, **kwargs) -> ModelQueryClient:
        kwargs.setdefault("retry_config", fast_retry)
        return ModelQueryClient(
            api_key="test-key",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
    return _make


@pytest.fixture
def mock_client() -> ModelQueryClient:
    """Client answering every query with deterministic mock content."""
    return ModelQueryClient(api_key=None, mock_config=MockConfig(use_mock=True))
