"""
Fingerprinting Data Models

Defines all types exchanged by the fingerprinting engine:
- Business context supplied by the crawler collaborator
- Queries and raw provider responses
- Per-response classification results
- Aggregate metrics, leaderboard and the final analysis
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InvalidBusinessContextError(ValueError):
    """Raised when the business handed to the engine cannot be fingerprinted."""


# =============================================================================
# ENUMS
# =============================================================================


class PromptType(str, Enum):
    """Kind of question asked about the business."""
    FACTUAL = "factual"  # What is known about the business
    OPINION = "opinion"  # Is the business any good
    RECOMMENDATION = "recommendation"  # Who are the best options in the area


PROMPT_TYPES = (PromptType.FACTUAL, PromptType.OPINION, PromptType.RECOMMENDATION)


class Sentiment(str, Enum):
    """Tone of a response toward the business."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class MarketPosition(str, Enum):
    """Where the business sits on the competitive leaderboard."""
    LEADING = "leading"
    COMPETITIVE = "competitive"
    TRAILING = "trailing"


class TrendDirection(str, Enum):
    """Direction of visibility change between runs."""
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


# =============================================================================
# BUSINESS CONTEXT
# =============================================================================


@dataclass(frozen=True)
class Location:
    """Where the business operates. Every part is optional."""
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class CrawlData(BaseModel):
    """
    Website facts supplied by the crawler.

    Every field may be absent. ``services`` is always a list (possibly empty)
    and ``social_links`` always a dict. Keys the crawler sends that are not
    listed here are dropped.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    description: Optional[str] = None
    services: List[str] = Field(default_factory=list)
    founded: Optional[str] = None
    industry: Optional[str] = None
    sector: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_links: Dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class BusinessContext:
    """Immutable snapshot of the business being fingerprinted."""
    name: str
    url: str = ""
    category: Optional[str] = None
    location: Optional[Location] = None
    crawl_data: Optional[CrawlData] = None
    business_id: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidBusinessContextError("Business name is required")
        if self.url is not None and not isinstance(self.url, str):
            raise InvalidBusinessContextError("Business url must be a string")

    @classmethod
    def from_business(cls, business: Any) -> "BusinessContext":
        """
        Build a context from a business record.

        Accepts a mapping or any object exposing ``id``, ``name``, ``url``,
        ``category``, ``location`` and ``crawl_data`` (or ``crawlData``).
        """
        def read(key: str, *aliases: str) -> Any:
            for name in (key, *aliases):
                if isinstance(business, dict):
                    if name in business:
                        return business[name]
                elif hasattr(business, name):
                    return getattr(business, name)
            return None

        if business is None:
            raise InvalidBusinessContextError("Business is required")

        location = read("location")
        if isinstance(location, dict):
            location = Location(
                city=location.get("city"),
                state=location.get("state"),
                country=location.get("country"),
            )
        elif location is not None and not isinstance(location, Location):
            raise InvalidBusinessContextError(
                f"Unsupported location type: {type(location).__name__}"
            )

        crawl_data = read("crawl_data", "crawlData")
        if isinstance(crawl_data, dict):
            crawl_data = CrawlData.model_validate(crawl_data)
        elif crawl_data is not None and not isinstance(crawl_data, CrawlData):
            raise InvalidBusinessContextError(
                f"Unsupported crawl data type: {type(crawl_data).__name__}"
            )

        return cls(
            name=read("name"),
            url=read("url") or "",
            category=read("category") or None,
            location=location,
            crawl_data=crawl_data,
            business_id=read("business_id", "businessId", "id"),
        )


# =============================================================================
# QUERIES AND RESPONSES
# =============================================================================


@dataclass(frozen=True)
class PromptSet:
    """One prompt per prompt type."""
    factual: str
    opinion: str
    recommendation: str

    def for_type(self, prompt_type: PromptType) -> str:
        return getattr(self, PromptType(prompt_type).value)


@dataclass(frozen=True)
class ModelQuery:
    """A single (model, prompt) request in the query matrix."""
    model: str
    prompt_type: PromptType
    prompt: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class ModelResponse:
    """Raw response from a provider (or its mock/fallback stand-in)."""
    content: str
    tokens_used: int
    model: str
    processing_time: float = 0.0  # milliseconds
    cached: bool = False
    is_fallback: bool = False  # content did not come from the provider
    request_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class LLMResult:
    """Classification of one model response."""
    model: str
    prompt_type: PromptType
    mentioned: bool
    sentiment: Sentiment
    confidence: int  # 0-100
    rank_position: Optional[int]
    competitor_mentions: List[str] = field(default_factory=list)
    raw_response: str = ""
    tokens_used: int = 0
    processing_time: float = 0.0
    prompt: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "prompt_type": self.prompt_type.value,
            "mentioned": self.mentioned,
            "sentiment": self.sentiment.value,
            "confidence": self.confidence,
            "rank_position": self.rank_position,
            "competitor_mentions": list(self.competitor_mentions),
            "raw_response": self.raw_response,
            "tokens_used": self.tokens_used,
            "processing_time": self.processing_time,
            "prompt": self.prompt,
            "error": self.error,
        }


# =============================================================================
# AGGREGATES
# =============================================================================


@dataclass
class FingerprintMetrics:
    """Weighted visibility score and its components."""
    visibility_score: int  # 0-100
    mention_rate: int  # 0-100 (percent)
    sentiment_score: float  # 0-1
    accuracy_score: float  # 0-1
    avg_rank_position: Optional[float]
    total_queries: int = 0
    successful_queries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "visibility_score": self.visibility_score,
            "mention_rate": self.mention_rate,
            "sentiment_score": self.sentiment_score,
            "accuracy_score": self.accuracy_score,
            "avg_rank_position": self.avg_rank_position,
            "total_queries": self.total_queries,
            "successful_queries": self.successful_queries,
        }


@dataclass
class TargetStanding:
    """The fingerprinted business on the leaderboard."""
    name: str
    rank: int
    mention_count: int
    avg_position: Optional[float]
    market_share: float


@dataclass
class CompetitorStanding:
    """A competitor surfaced by recommendation responses."""
    rank: int
    name: str
    mention_count: int
    avg_position: Optional[float]
    appears_with_target: int
    market_share: float


@dataclass
class LeaderboardInsights:
    """Narrative summary of the competitive position."""
    market_position: MarketPosition
    top_competitor: Optional[str]
    competitive_gap: int
    recommendation: str


@dataclass
class CompetitiveLeaderboard:
    """Ranked comparison of the target against competitors."""
    target_business: TargetStanding
    competitors: List[CompetitorStanding]
    insights: LeaderboardInsights
    total_queries: int

    def to_dict(self) -> Dict[str, Any]:
        target = self.target_business
        return {
            "target_business": {
                "name": target.name,
                "rank": target.rank,
                "mention_count": target.mention_count,
                "avg_position": target.avg_position,
                "market_share": target.market_share,
            },
            "competitors": [
                {
                    "rank": c.rank,
                    "name": c.name,
                    "mention_count": c.mention_count,
                    "avg_position": c.avg_position,
                    "appears_with_target": c.appears_with_target,
                    "market_share": c.market_share,
                }
                for c in self.competitors
            ],
            "insights": {
                "market_position": self.insights.market_position.value,
                "top_competitor": self.insights.top_competitor,
                "competitive_gap": self.insights.competitive_gap,
                "recommendation": self.insights.recommendation,
            },
            "total_queries": self.total_queries,
        }


@dataclass(frozen=True)
class Trend:
    """Change in visibility against a baseline."""
    direction: TrendDirection
    value: int


@dataclass
class FingerprintAnalysis:
    """Complete result of one fingerprinting run."""
    business_id: Optional[int]
    business_name: str
    metrics: FingerprintMetrics
    competitive_leaderboard: CompetitiveLeaderboard
    llm_results: List[LLMResult] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.utcnow)
    processing_time: float = 0.0  # milliseconds
    trend: Optional[Trend] = None
    degraded: bool = False  # True when processing failed as a whole
    processing_stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def visibility_score(self) -> int:
        return self.metrics.visibility_score

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "business_id": self.business_id,
            "business_name": self.business_name,
            "metrics": self.metrics.to_dict(),
            "competitive_leaderboard": self.competitive_leaderboard.to_dict(),
            "llm_results": [r.to_dict() for r in self.llm_results],
            "generated_at": self.generated_at.isoformat(),
            "processing_time": self.processing_time,
            "trend": (
                {"direction": self.trend.direction.value, "value": self.trend.value}
                if self.trend else None
            ),
            "degraded": self.degraded,
            "processing_stats": self.processing_stats,
        }
