"""
Mock Response Generator

Produces plausible model output without calling a provider. Used when no
API key is configured, when mock mode is switched on, and as the stand-in
content of a failed query.

Output is deterministic: the random source is seeded from a hash of
(model, prompt), so identical inputs always produce identical text.
"""

import hashlib
import random
import re
from typing import Dict, List, Optional


class MockResponseGenerator:
    """
    Generates mock answers shaped like real model responses.

    Usage:
        generator = MockResponseGenerator()
        text = generator.generate("openai/gpt-4-turbo", prompt)
    """

    BUSINESS_TYPES = [
        "restaurant", "dental practice", "law firm", "consulting company",
        "retail store", "service provider", "healthcare facility", "tech company",
    ]

    POSITIVE_DESCRIPTORS = [
        "reputable", "professional", "reliable", "experienced", "trusted",
        "established", "quality", "excellent", "outstanding", "top-rated",
    ]

    COMPETITORS: Dict[str, List[str]] = {
        "restaurant": ["Local Bistro", "Corner Cafe", "Family Kitchen", "Downtown Grill"],
        "dental": ["Family Dental", "Modern Dentistry", "Gentle Care Dental", "Smile Center"],
        "legal": ["Smith & Associates", "Legal Solutions", "Community Law", "Professional Legal"],
        "default": ["Quality Services", "Local Excellence", "Community Choice", "Professional Group"],
    }

    NAME_PATTERNS = [
        re.compile(r"about\s+(.+?)(?:\?|\.|\s+in\s+|\s+located)", re.IGNORECASE),
        re.compile(r"going to\s+(.+?)(?:\?|\.|\s+in\s+|\s+for\s+)", re.IGNORECASE),
        re.compile(r"services of\s+(.+?)(?:\?|\.|\s+in\s+|\s+located)", re.IGNORECASE),
        re.compile(r"recommended\s+(.+?)\s+(?:to me|in\s+)", re.IGNORECASE),
    ]
    LOCATION_PATTERN = re.compile(r"\s(?:in|located in)\s+([A-Z][^?.]+?)(?:\?|\.|$)")
    INDUSTRY_PATTERN = re.compile(
        r"(?:best|top(?:\s+\d+)?|most reputable)\s+([A-Za-z\s]+?)(?:\s+in\s|\s+located|\?|\.)",
        re.IGNORECASE,
    )

    def __init__(self, seed: str = ""):
        """
        Args:
            seed: Extra seed material, lets tests get a different but still
                  stable set of answers.
        """
        self.seed = seed

    # =========================================================================
    # Public API
    # =========================================================================

    def generate(self, model: str, prompt: str) -> str:
        """Generate a response for ``prompt`` as if answered by ``model``."""
        rng = self._rng(model, prompt)
        lowered = prompt.lower()

        # Classification prompts issued by the analysis layer
        if "sentiment" in lowered and "positive, neutral, or negative" in lowered:
            return "neutral"
        if "answer yes or no" in lowered:
            return "no"
        if "plural noun phrase" in lowered:
            return "businesses"

        business_name = self.extract_business_name(prompt)
        location = self.extract_location(prompt)

        if self._is_opinion(lowered):
            return self.opinion_response(rng, business_name, location)
        if self._is_recommendation(lowered):
            industry = self.extract_industry(prompt)
            return self.recommendation_response(rng, business_name, industry, location)
        return self.factual_response(rng, business_name, location)

    def factual_response(
        self, rng: random.Random, business_name: str, location: Optional[str] = None
    ) -> str:
        location_str = f" in {location}" if location else ""

        if rng.random() > 0.3:
            descriptor = rng.choice(self.POSITIVE_DESCRIPTORS)
            business_type = rng.choice(self.BUSINESS_TYPES)
            return (
                f"Based on available information, {business_name}{location_str} is a "
                f"{descriptor} {business_type} that has been serving the local community. "
                f"They maintain professional standards and offer quality services to their "
                f"customers. The business has an established presence in the area and "
                f"continues to focus on customer satisfaction."
            )

        return (
            f"I don't have specific detailed information about that business{location_str} "
            f"in my current knowledge base. For accurate and up-to-date information about "
            f"their services and offerings, I'd suggest their official website, recent "
            f"customer reviews, or contacting them directly."
        )

    def opinion_response(
        self, rng: random.Random, business_name: str, location: Optional[str] = None
    ) -> str:
        location_str = f" in {location}" if location else ""

        if rng.random() > 0.4:
            tone = rng.random()
            if tone > 0.7:
                return (
                    f"Based on general indicators, {business_name}{location_str} appears to "
                    f"be a solid choice. They seem to maintain professional standards and "
                    f"have a positive community presence. Verifying current customer reviews "
                    f"before deciding is still worthwhile."
                )
            if tone > 0.3:
                return (
                    f"{business_name}{location_str} appears to be a legitimate business "
                    f"operation. Service quality seems average for the area, and experiences "
                    f"vary. Comparing recent customer feedback with other local options is a "
                    f"reasonable next step."
                )
            return (
                f"Some customers report problems with {business_name}{location_str}, "
                f"including slow responses and complaints about billing. I'd be careful "
                f"and check references before making a decision."
            )

        return (
            f"I don't have enough specific information to form a reliable opinion about "
            f"that business{location_str}. Online reviews and industry ratings are the "
            f"best place to start."
        )

    def recommendation_response(
        self,
        rng: random.Random,
        business_name: str,
        industry: str,
        location: Optional[str] = None,
    ) -> str:
        location_str = f" in {location}" if location else ""
        competitors = list(self.COMPETITORS[self._competitor_key(industry)])
        selected = competitors[: rng.randint(3, 4)]

        if rng.random() > 0.5:
            position = rng.randint(1, len(selected))
            selected.insert(position - 1, business_name)

        lines = [f"Here are some top {industry}{location_str} I'd recommend:", ""]
        for index, name in enumerate(selected[:5], start=1):
            if name == business_name:
                description = "Professional service with established local reputation"
            else:
                description = f"Quality {industry.lower()} with strong community presence"
            lines.append(f"{index}. {name} - {description}")
        lines.append("")
        lines.append(
            "Each of these businesses has demonstrated professional standards "
            "and serves the local community effectively."
        )
        return "\n".join(lines)

    # =========================================================================
    # Prompt parsing
    # =========================================================================

    def extract_business_name(self, prompt: str) -> str:
        for pattern in self.NAME_PATTERNS:
            match = pattern.search(prompt)
            if match:
                return match.group(1).strip()
        return "this business"

    def extract_location(self, prompt: str) -> Optional[str]:
        match = self.LOCATION_PATTERN.search(prompt)
        return match.group(1).strip() if match else None

    def extract_industry(self, prompt: str) -> str:
        match = self.INDUSTRY_PATTERN.search(prompt)
        return match.group(1).strip().lower() if match else "businesses"

    # =========================================================================
    # Helpers
    # =========================================================================

    def _rng(self, model: str, prompt: str) -> random.Random:
        digest = hashlib.sha256(f"{self.seed}|{model}|{prompt}".encode()).hexdigest()
        return random.Random(int(digest[:16], 16))

    @staticmethod
    def _is_recommendation(lowered: str) -> bool:
        return "recommend" in lowered and any(
            cue in lowered for cue in ("best", "top", "most reputable")
        )

    @staticmethod
    def _is_opinion(lowered: str) -> bool:
        return any(
            cue in lowered
            for cue in ("opinion", "your take", "good choice", "assessment", "reputable and reliable")
        )

    def _competitor_key(self, industry: str) -> str:
        industry = industry.lower()
        if "dental" in industry:
            return "dental"
        if "law" in industry or "legal" in industry:
            return "legal"
        if "restaurant" in industry:
            return "restaurant"
        return "default"
