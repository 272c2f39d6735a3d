"""
Prompt Generator

Builds the three customer-style questions asked about a business:
- factual: what is known about the business
- opinion: whether the business is a good choice
- recommendation: who the best options in the area are

Template choice is a stable function of the business name, so the same
business is always asked the same questions and cached answers stay valid.
"""

import hashlib
from typing import Dict, Optional

from ..models import BusinessContext, Location, PromptSet, PromptType
from .industry import IndustryClassifier, IndustryPhrase

FACTUAL_TEMPLATES = [
    "What information do you have about {business_name}{location_context}? "
    "Please provide factual details about their services, reputation, contact "
    "information, and any notable characteristics.",
    "Can you tell me about {business_name}{location_context}? I'm looking for "
    "factual information about what they do, their background, and their "
    "reputation in the community.",
    "I need information about {business_name}{location_context}. What can you "
    "tell me about their services, experience, and standing as a {business_type}?",
]

OPINION_TEMPLATES = [
    "I'm considering using the services of {business_name}{location_context}. "
    "Would you say they are a reputable and reliable {business_type}? What's your "
    "assessment of their quality and trustworthiness?",
    "I'm thinking of going to {business_name}{location_context} for {service_context}. "
    "Do you think they're a good choice? What's your opinion on their reputation "
    "and service quality?",
    "A friend recommended {business_name}{location_context} to me. What's your take "
    "on them? Are they known for being professional and delivering good results?",
]

RECOMMENDATION_TEMPLATES = [
    "What are the best {industry_plural}{location_context}? I'm looking for "
    "recommendations for quality {service_type} providers in the area.",
    "Can you recommend the top 5 {industry_plural}{location_context}? I need "
    "reliable options for {service_context} and want to know who the leading "
    "providers are.",
    "I'm looking for the most reputable {industry_plural}{location_context}. Who "
    "would you recommend for someone seeking high-quality {service_type}?",
]

TEMPLATES = {
    PromptType.FACTUAL: FACTUAL_TEMPLATES,
    PromptType.OPINION: OPINION_TEMPLATES,
    PromptType.RECOMMENDATION: RECOMMENDATION_TEMPLATES,
}


class PromptGenerator:
    """Deterministic prompt builder."""

    def __init__(self, classifier: Optional[IndustryClassifier] = None):
        self.classifier = classifier or IndustryClassifier()

    def generate_prompts(
        self, context: BusinessContext, industry_phrase: Optional[str] = None
    ) -> PromptSet:
        """
        Build one prompt per prompt type.

        Args:
            context: Business being fingerprinted
            industry_phrase: Plural industry phrase already resolved by the
                             classifier's LLM tier; overrides the static lookup

        Returns:
            PromptSet
        """
        variables = self.build_variables(context, industry_phrase)
        return PromptSet(
            factual=self._render(PromptType.FACTUAL, context.name, variables),
            opinion=self._render(PromptType.OPINION, context.name, variables),
            recommendation=self._render(PromptType.RECOMMENDATION, context.name, variables),
        )

    def build_variables(
        self, context: BusinessContext, industry_phrase: Optional[str] = None
    ) -> Dict[str, str]:
        industry = self.classifier.lookup_context(context) or self.classifier.default
        if industry_phrase:
            industry = IndustryPhrase(
                keyword=industry.keyword,
                plural=industry_phrase,
                service=industry.service,
                business_type=industry.business_type,
            )

        return {
            "business_name": context.name.strip(),
            "location_context": self.location_context(context.location),
            "industry_plural": industry.plural,
            "business_type": industry.business_type,
            "service_type": industry.service,
            "service_context": self.service_context(context, industry.service),
        }

    @staticmethod
    def location_context(location: Optional[Location]) -> str:
        """Location suffix such as ' in Austin, TX', or an empty string."""
        if not location:
            return ""
        parts = [part for part in (location.city, location.state) if part]
        if not parts:
            return ""
        return f" in {', '.join(parts)}"

    def service_context(self, context: BusinessContext, default_service: str) -> str:
        crawl = context.crawl_data
        if crawl and crawl.services:
            return crawl.services[0].strip().lower()

        if crawl and crawl.description:
            description = crawl.description.lower()
            for keyword in self.classifier.lexicon.service_keywords:
                if keyword in description:
                    return keyword

        return default_service

    def _render(self, prompt_type: PromptType, name: str, variables: Dict[str, str]) -> str:
        templates = TEMPLATES[prompt_type]
        digest = hashlib.sha256(f"{prompt_type.value}:{name.lower()}".encode()).hexdigest()
        template = templates[int(digest, 16) % len(templates)]
        return template.format(**variables)
