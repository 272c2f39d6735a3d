"""
Response Analyzer

Classifies one model response into the signals the scoring layer needs:
- mentioned: whether the business appears in the answer
- sentiment: tone of the answer toward the business
- rank position: list position of the business in a recommendation answer
- competitor mentions: other businesses offered as alternatives

Mention and sentiment run in two explicit stages:
1. A deterministic classifier returning MATCH, NO_MATCH or AMBIGUOUS
2. An LLM resolver, consulted only for AMBIGUOUS verdicts

A failing resolver call falls back to mentioned=False / neutral and never
propagates out of the analyzer.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..models import LLMResult, ModelQuery, ModelResponse, PromptType, Sentiment
from .lexicon import Lexicon
from .names import (
    acronym,
    contains_phrase,
    is_same_business,
    is_valid_competitor_name,
    item_name,
    name_variations,
    normalize,
    parse_list_items,
)

logger = logging.getLogger(__name__)

MAX_COMPETITORS = 10
MAX_RANK = 10

# Weights of the per-signal confidences in the overall result confidence
MENTION_WEIGHT = 0.5
SENTIMENT_WEIGHT = 0.3
COMPETITOR_WEIGHT = 0.2

_RANK_PATTERNS = [
    re.compile(r"(?:number\s+|#)(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)(?:st|nd|rd|th)\s+(?:place|choice|option|pick)", re.IGNORECASE),
    re.compile(r"top\s+(\d+)", re.IGNORECASE),
    re.compile(r"ranked\s+(?:#\s*)?(\d+)", re.IGNORECASE),
    re.compile(r"position\s+(\d+)", re.IGNORECASE),
]
_ORDINAL_WORDS = {
    "first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5,
    "sixth": 6, "seventh": 7, "eighth": 8, "ninth": 9, "tenth": 10,
}
_ORDINAL_PATTERN = re.compile(
    r"\b(" + "|".join(_ORDINAL_WORDS) + r")\s+(?:place|choice|option|pick|recommendation)\b",
    re.IGNORECASE,
)
_ERROR_CONTENT = re.compile(
    r"^\s*(?:error|exception|traceback)\b|^\s*\{\s*\"error\"\s*:", re.IGNORECASE
)
_RANK_WINDOW = 120


# =============================================================================
# STAGE 1: DETERMINISTIC CLASSIFIERS
# =============================================================================


class Verdict(str, Enum):
    """Outcome of a deterministic classification."""
    MATCH = "match"
    NO_MATCH = "no_match"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Classification:
    """Verdict of a fast-path classifier with its label and confidence."""
    verdict: Verdict
    confidence: int
    label: Optional[str] = None


class MentionClassifier:
    """
    Name matching on normalized text.

    MATCH on the full name (95) or a name variation (85), NO_MATCH when no
    distinctive token of the name appears (90), AMBIGUOUS when only some
    distinctive tokens appear.
    """

    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or Lexicon()
        self._excluded = (
            set(self.lexicon.generic_name_words)
            | set(self.lexicon.name_suffixes)
            | set(self.lexicon.name_prefixes)
        )
        # Industry vocabulary is shared with competitors ("Family Dental")
        for keyword, phrases in self.lexicon.industry_phrases.items():
            for phrase in (keyword, *phrases):
                self._excluded.update(normalize(phrase).split())

    def classify(self, text: str, business_name: str) -> Classification:
        normalized_text = normalize(text)
        variations = name_variations(business_name, self.lexicon)
        if not variations or not normalized_text:
            return Classification(Verdict.NO_MATCH, 90)

        if contains_phrase(normalized_text, variations[0]):
            return Classification(Verdict.MATCH, 95, "exact")

        for variation in variations[1:]:
            if contains_phrase(normalized_text, variation):
                return Classification(Verdict.MATCH, 85, "variation")

        initials = acronym(business_name, self.lexicon)
        if initials and re.search(rf"\b{initials}\b", text):
            return Classification(Verdict.MATCH, 85, "acronym")

        tokens = self.distinctive_tokens(business_name)
        if tokens and any(contains_phrase(normalized_text, token) for token in tokens):
            return Classification(Verdict.AMBIGUOUS, 50)

        return Classification(Verdict.NO_MATCH, 90)

    def distinctive_tokens(self, business_name: str) -> List[str]:
        """Name tokens that could identify the business on their own."""
        return [
            token for token in normalize(business_name).split()
            if len(token) >= 4 and token not in self._excluded
        ]


class SentimentClassifier:
    """
    Cue-word sentiment.

    score = (positive - negative) / all cues. Above 0.3 is positive, below
    -0.3 negative. Only neutral cues gives neutral. No cues at all, or
    balanced positive and negative cues, is AMBIGUOUS.
    """

    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or Lexicon()
        self._positive = self._compile(self.lexicon.positive_cues)
        self._negative = self._compile(self.lexicon.negative_cues)
        self._neutral = self._compile(self.lexicon.neutral_cues)

    @staticmethod
    def _compile(cues: List[str]) -> Optional[re.Pattern]:
        if not cues:
            return None
        alternatives = "|".join(re.escape(cue) for cue in sorted(cues, key=len, reverse=True))
        return re.compile(rf"(?<![\w-])(?:{alternatives})(?![\w-])", re.IGNORECASE)

    @staticmethod
    def _count(pattern: Optional[re.Pattern], text: str) -> int:
        return len(pattern.findall(text)) if pattern else 0

    def classify(self, text: str) -> Classification:
        positive = self._count(self._positive, text)
        negative = self._count(self._negative, text)
        neutral = self._count(self._neutral, text)
        total = positive + negative + neutral

        if positive == 0 and negative == 0:
            if neutral:
                return Classification(Verdict.MATCH, 70, Sentiment.NEUTRAL.value)
            return Classification(Verdict.AMBIGUOUS, 50)

        score = (positive - negative) / total
        confidence = min(95, int(60 + abs(score) * 35 + 0.5))
        if score > 0.3:
            return Classification(Verdict.MATCH, confidence, Sentiment.POSITIVE.value)
        if score < -0.3:
            return Classification(Verdict.MATCH, confidence, Sentiment.NEGATIVE.value)
        if positive and negative:
            return Classification(Verdict.AMBIGUOUS, 50)
        return Classification(Verdict.MATCH, 70, Sentiment.NEUTRAL.value)


# =============================================================================
# STAGE 2: LLM RESOLVER
# =============================================================================


class LLMResolver:
    """
    Asks a classifier model to settle AMBIGUOUS verdicts.

    Every method returns None when the call fails or the answer cannot be
    parsed; callers substitute their default.
    """

    MENTION_PROMPT = (
        "Does the following text mention the business \"{name}\", directly or by "
        "an unambiguous reference? Answer yes or no.\n\nText:\n{text}"
    )
    SENTIMENT_PROMPT = (
        "What is the sentiment of the following text toward the business \"{name}\"? "
        "Reply with exactly one word: positive, neutral, or negative.\n\nText:\n{text}"
    )
    MAX_TEXT = 4000
    CONFIDENCE = 60

    def __init__(self, client, model: str):
        self.client = client
        self.model = model

    async def resolve_mention(self, text: str, business_name: str) -> Optional[bool]:
        answer = await self._ask(self.MENTION_PROMPT.format(name=business_name, text=text[: self.MAX_TEXT]))
        if answer is None:
            return None
        if answer.startswith("yes"):
            return True
        if answer.startswith("no"):
            return False
        logger.warning(f"Unparseable mention verdict: {answer[:40]!r}")
        return None

    async def resolve_sentiment(self, text: str, business_name: str) -> Optional[Sentiment]:
        answer = await self._ask(self.SENTIMENT_PROMPT.format(name=business_name, text=text[: self.MAX_TEXT]))
        if answer is None:
            return None
        for sentiment in Sentiment:
            if answer.startswith(sentiment.value):
                return sentiment
        logger.warning(f"Unparseable sentiment verdict: {answer[:40]!r}")
        return None

    async def _ask(self, prompt: str) -> Optional[str]:
        try:
            response = await self.client.query(self.model, prompt, temperature=0.0, max_tokens=5)
        except Exception as e:
            logger.warning(f"Classifier call to {self.model} failed: {e}")
            return None

        if response.error:
            logger.warning(f"Classifier call to {self.model} failed: {response.error}")
            return None
        return response.content.strip().strip("\"'.*`").lower()


# =============================================================================
# ANALYZER
# =============================================================================


class ResponseAnalyzer:
    """
    Turns a model response into an LLMResult.

    Usage:
        analyzer = ResponseAnalyzer(resolver=LLMResolver(client, "openai/gpt-4o-mini"))
        result = await analyzer.analyze(query, response, "Acme Dental")
    """

    def __init__(self, lexicon: Optional[Lexicon] = None, resolver: Optional[LLMResolver] = None):
        self.lexicon = lexicon or Lexicon()
        self.resolver = resolver
        self.mention_classifier = MentionClassifier(self.lexicon)
        self.sentiment_classifier = SentimentClassifier(self.lexicon)

    async def analyze(
        self, query: ModelQuery, response: ModelResponse, business_name: str
    ) -> LLMResult:
        """Classify one response to one query."""
        content = response.content or ""
        error = self.detect_error(response)
        if error:
            logger.warning(f"Excluding {query.model}/{query.prompt_type.value} result: {error}")
            return LLMResult(
                model=query.model,
                prompt_type=query.prompt_type,
                mentioned=False,
                sentiment=Sentiment.NEUTRAL,
                confidence=0,
                rank_position=None,
                raw_response=content,
                tokens_used=response.tokens_used,
                processing_time=response.processing_time,
                prompt=query.prompt,
                error=error,
            )

        mentioned, mention_confidence = await self._resolve_mention(content, business_name)

        if mentioned:
            sentiment, sentiment_confidence = await self._resolve_sentiment(content, business_name)
        else:
            sentiment, sentiment_confidence = Sentiment.NEUTRAL, 80

        is_recommendation = query.prompt_type == PromptType.RECOMMENDATION
        rank_position = None
        competitors: List[str] = []
        competitor_confidence = 90
        if is_recommendation:
            if mentioned:
                rank_position = self.extract_rank_position(content, business_name)
            competitors = self.extract_competitor_mentions(content, business_name)
            competitor_confidence = self._competitor_confidence(content, competitors)

        confidence = int(
            MENTION_WEIGHT * mention_confidence
            + SENTIMENT_WEIGHT * sentiment_confidence
            + COMPETITOR_WEIGHT * competitor_confidence
            + 0.5
        )

        result = LLMResult(
            model=query.model,
            prompt_type=query.prompt_type,
            mentioned=mentioned,
            sentiment=sentiment,
            confidence=max(0, min(100, confidence)),
            rank_position=rank_position,
            competitor_mentions=competitors,
            raw_response=content,
            tokens_used=response.tokens_used,
            processing_time=response.processing_time,
            prompt=query.prompt,
        )
        logger.debug(
            f"{query.model}/{query.prompt_type.value}: mentioned={mentioned} "
            f"sentiment={sentiment.value} rank={rank_position} "
            f"competitors={len(competitors)}"
        )
        return result

    # =========================================================================
    # Individual signals
    # =========================================================================

    def detect_mention(self, text: str, business_name: str) -> bool:
        """Fast-path mention check; no network call."""
        return self.mention_classifier.classify(text, business_name).verdict == Verdict.MATCH

    async def analyze_sentiment(self, text: str, business_name: str) -> Sentiment:
        """Sentiment toward the business, consulting the resolver when ambiguous."""
        sentiment, _ = await self._resolve_sentiment(text, business_name)
        return sentiment

    def extract_rank_position(self, text: str, business_name: str) -> Optional[int]:
        """
        Position of the business in a recommendation answer.

        The numbered list line carrying the name wins; otherwise ordinal cues
        near the first mention are used. Returns None when undeterminable.
        """
        variations = name_variations(business_name, self.lexicon)
        if not variations:
            return None

        for number, item in parse_list_items(text):
            if number is None or not 1 <= number <= MAX_RANK:
                continue
            normalized_item = normalize(item)
            if any(contains_phrase(normalized_item, v) for v in variations):
                return number

        window = self._mention_window(text, business_name)
        if window is None:
            return None

        for pattern in _RANK_PATTERNS:
            for match in pattern.finditer(window):
                value = int(match.group(1))
                if 1 <= value <= MAX_RANK:
                    return value

        ordinal = _ORDINAL_PATTERN.search(window)
        if ordinal:
            return _ORDINAL_WORDS[ordinal.group(1).lower()]
        return None

    def extract_competitor_mentions(self, text: str, exclude_name: str) -> List[str]:
        """Other businesses offered as alternatives, de-duplicated, at most ten."""
        candidates = [item_name(item) for _, item in parse_list_items(text)]

        competitors: List[str] = []
        seen = set()
        for candidate in candidates:
            if not is_valid_competitor_name(candidate, self.lexicon):
                continue
            if is_same_business(candidate, exclude_name, self.lexicon):
                continue
            key = normalize(candidate)
            if key in seen:
                continue
            seen.add(key)
            competitors.append(candidate)
            if len(competitors) >= MAX_COMPETITORS:
                break
        return competitors

    @staticmethod
    def detect_error(response: ModelResponse) -> Optional[str]:
        """Reason to exclude a response from aggregation, or None."""
        if response.error:
            return response.error
        content = (response.content or "").strip()
        if not content:
            return "Empty response"
        if _ERROR_CONTENT.search(content):
            return f"Provider error content: {content[:80]}"
        return None

    # =========================================================================
    # Stage dispatch
    # =========================================================================

    async def _resolve_mention(self, text: str, business_name: str):
        classification = self.mention_classifier.classify(text, business_name)
        if classification.verdict != Verdict.AMBIGUOUS:
            return classification.verdict == Verdict.MATCH, classification.confidence

        if self.resolver is None:
            return False, classification.confidence

        resolved = await self.resolver.resolve_mention(text, business_name)
        if resolved is None:
            return False, classification.confidence
        return resolved, LLMResolver.CONFIDENCE

    async def _resolve_sentiment(self, text: str, business_name: str):
        classification = self.sentiment_classifier.classify(text)
        if classification.verdict == Verdict.MATCH:
            return Sentiment(classification.label), classification.confidence

        if self.resolver is None:
            return Sentiment.NEUTRAL, classification.confidence

        resolved = await self.resolver.resolve_sentiment(text, business_name)
        if resolved is None:
            return Sentiment.NEUTRAL, classification.confidence
        return resolved, LLMResolver.CONFIDENCE - 5

    def _mention_window(self, text: str, business_name: str) -> Optional[str]:
        lowered = text.lower()
        candidates = [business_name.lower().strip()]
        candidates.extend(name_variations(business_name, self.lexicon))
        for candidate in candidates:
            index = lowered.find(candidate)
            if index >= 0:
                start = max(0, index - _RANK_WINDOW)
                return text[start: index + len(candidate) + _RANK_WINDOW]
        return None

    @staticmethod
    def _competitor_confidence(text: str, competitors: List[str]) -> int:
        confidence = 50
        lowered = text.lower()
        if any(cue in lowered for cue in ("recommend", "top", "best")):
            confidence += 20
        if re.search(r"^\s*\d+[.)]", text, re.MULTILINE):
            confidence += 20
        if not competitors:
            confidence -= 30
        return max(10, min(95, confidence))
