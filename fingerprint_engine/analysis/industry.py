"""
Industry Classifier

Turns a business category into the plural phrase used in recommendation
prompts ("dental practices", "law firms", ...).

Two tiers:
1. Static keyword lookup against the lexicon (no I/O)
2. One LLM call asking for a plural noun phrase, only when the lookup misses

Any failure of the LLM tier yields the default phrase ("businesses").
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

from ..models import BusinessContext
from .lexicon import Lexicon

logger = logging.getLogger(__name__)

_PHRASE = re.compile(r"^[a-z][a-z&' -]{2,60}$")


@dataclass(frozen=True)
class IndustryPhrase:
    """Prompt vocabulary for one industry."""
    keyword: str
    plural: str
    service: str
    business_type: str


class IndustryClassifier:
    """
    Resolves categories to industry phrases.

    Usage:
        classifier = IndustryClassifier(client=client, model="openai/gpt-4o-mini")
        phrase = await classifier.resolve("Dental Clinic")  # "dental practices"
    """

    PROMPT_TEMPLATE = (
        "A business is categorised as \"{category}\". Reply with a single plural "
        "noun phrase that describes businesses of this kind, as a customer would "
        "search for them (for example: \"dental practices\", \"law firms\"). "
        "Reply with the plural noun phrase only."
    )

    def __init__(self, lexicon: Optional[Lexicon] = None, client=None, model: Optional[str] = None):
        """
        Args:
            lexicon: Lookup tables (defaults to the built-in lexicon)
            client: ModelQueryClient used when the lookup misses (optional)
            model: Model for the LLM tier
        """
        self.lexicon = lexicon or Lexicon()
        self.client = client
        self.model = model
        self._resolved: Dict[str, str] = {}
        self._patterns = [
            (keyword, re.compile(rf"\b{re.escape(keyword)}s?\b"))
            for keyword in self.lexicon.industry_phrases
        ]

    @property
    def default(self) -> IndustryPhrase:
        plural, service, business_type = self.lexicon.default_industry
        return IndustryPhrase("default", plural, service, business_type)

    # =========================================================================
    # Fast path
    # =========================================================================

    def lookup(self, text: Optional[str]) -> Optional[IndustryPhrase]:
        """
        Match free text against the industry keywords.

        Keywords are tried in lexicon order; the first whole-word hit wins.
        """
        if not text:
            return None
        lowered = text.lower()
        for keyword, pattern in self._patterns:
            if pattern.search(lowered):
                plural, service, business_type = self.lexicon.industry_phrases[keyword]
                return IndustryPhrase(keyword, plural, service, business_type)
        return None

    def lookup_context(self, context: BusinessContext) -> Optional[IndustryPhrase]:
        """Try the category, then crawl data, then the URL."""
        found = self.lookup(context.category)
        if found:
            return found

        crawl = context.crawl_data
        if crawl:
            text = " ".join(
                part for part in (crawl.industry, crawl.sector, crawl.description, *crawl.services)
                if part
            )
            found = self.lookup(text)
            if found:
                return found

        if context.url:
            return self.lookup(re.sub(r"[^a-z]+", " ", context.url.lower()))
        return None

    # =========================================================================
    # LLM tier
    # =========================================================================

    async def resolve(self, category: Optional[str]) -> str:
        """Plural industry phrase for ``category``."""
        found = self.lookup(category)
        if found:
            return found.plural
        if not category or not category.strip():
            return self.default.plural
        return await self._classify(category.strip())

    async def resolve_context(self, context: BusinessContext) -> str:
        """Plural industry phrase for a business, using all context it carries."""
        found = self.lookup_context(context)
        if found:
            return found.plural

        category = context.category or (context.crawl_data.industry if context.crawl_data else None)
        if not category:
            return self.default.plural
        return await self._classify(category.strip())

    async def _classify(self, category: str) -> str:
        key = category.lower()
        if key in self._resolved:
            return self._resolved[key]

        if self.client is None or not self.model:
            return self.default.plural

        try:
            response = await self.client.query(
                self.model,
                self.PROMPT_TEMPLATE.format(category=category),
                temperature=0.0,
                max_tokens=20,
            )
        except Exception as e:
            logger.warning(f"Industry classification failed for '{category}': {e}")
            return self.default.plural

        if response.error:
            logger.warning(f"Industry classification failed for '{category}': {response.error}")
            return self.default.plural

        phrase = self._parse_phrase(response.content)
        if phrase is None:
            logger.warning(f"Unusable industry phrase for '{category}': {response.content!r}")
            return self.default.plural

        self._resolved[key] = phrase
        logger.debug(f"Industry '{category}' resolved to '{phrase}'")
        return phrase

    @staticmethod
    def _parse_phrase(content: str) -> Optional[str]:
        lines = [line for line in (content or "").strip().splitlines() if line.strip()]
        if not lines:
            return None
        phrase = lines[0].strip().strip("\"'`.*").strip().lower()
        if not _PHRASE.match(phrase) or len(phrase.split()) > 5:
            return None
        return phrase
