"""
Heuristic Dictionaries

Lookup tables behind the fast-path classifiers: industry phrases, sentiment
cue words, business-name variations and competitor-name filters.

The defaults below can be replaced wholesale or per table by a JSON file
(see ``Lexicon.from_file``), so the classification stages can be tuned and
tested without touching code.
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, List, Tuple, Union

logger = logging.getLogger(__name__)


# ============================================================================
# INDUSTRY PHRASES
# ============================================================================

# keyword -> (plural phrase, service phrase, singular business type)
INDUSTRY_PHRASES: Dict[str, Tuple[str, str, str]] = {
    # Healthcare & Medical
    "healthcare": ("healthcare providers", "medical care", "healthcare provider"),
    "dental": ("dental practices", "dental care", "dental practice"),
    "dentist": ("dental practices", "dental care", "dental practice"),
    "medical": ("medical practices", "medical services", "medical provider"),
    "veterinary": ("veterinary clinics", "pet care", "veterinary clinic"),
    # Professional Services
    "legal": ("law firms", "legal services", "law firm"),
    "law": ("law firms", "legal services", "law firm"),
    "attorney": ("law firms", "legal services", "law firm"),
    "accounting": ("accounting firms", "financial services", "accounting firm"),
    "consulting": ("consulting firms", "business consulting", "consulting company"),
    "real estate": ("real estate agencies", "property services", "real estate agency"),
    # Food & Hospitality
    "restaurant": ("restaurants", "dining", "restaurant"),
    "food": ("restaurants", "dining", "restaurant"),
    "cafe": ("cafes", "coffee and food", "cafe"),
    "coffee": ("cafes", "coffee and food", "cafe"),
    "catering": ("catering companies", "event catering", "catering service"),
    "hotel": ("hotels", "accommodation", "hotel"),
    # Retail & Commerce
    "retail": ("retail stores", "shopping", "retail business"),
    "store": ("retail stores", "shopping", "retail business"),
    "automotive": ("auto services", "vehicle maintenance", "automotive service"),
    "beauty": ("beauty salons", "beauty services", "beauty salon"),
    "salon": ("beauty salons", "beauty services", "beauty salon"),
    "fitness": ("fitness centers", "fitness training", "fitness facility"),
    "gym": ("fitness centers", "fitness training", "fitness facility"),
    # Technology & Services
    "technology": ("tech companies", "technology solutions", "technology company"),
    "software": ("software companies", "software development", "software company"),
    "marketing": ("marketing agencies", "marketing services", "marketing agency"),
    "construction": ("construction companies", "construction services", "construction company"),
    "plumbing": ("plumbers", "plumbing services", "plumbing company"),
    "cleaning": ("cleaning services", "cleaning", "cleaning service"),
    # Broad words, tried last
    "health": ("healthcare providers", "medical care", "healthcare provider"),
    "doctor": ("healthcare providers", "medical care", "healthcare provider"),
    "clinic": ("healthcare providers", "medical care", "healthcare provider"),
    "lawyer": ("law firms", "legal services", "law firm"),
    "dining": ("restaurants", "dining", "restaurant"),
    "tech": ("tech companies", "technology solutions", "technology company"),
    "shop": ("retail stores", "shopping", "retail business"),
}

DEFAULT_INDUSTRY: Tuple[str, str, str] = ("businesses", "professional services", "business")

# Words in a crawl description that name the service on offer
SERVICE_KEYWORDS: List[str] = [
    "consulting", "design", "development", "marketing", "sales",
    "repair", "maintenance", "installation", "training", "support",
    "care", "treatment", "therapy", "advice", "planning",
]


# ============================================================================
# SENTIMENT CUES
# ============================================================================

POSITIVE_CUES: List[str] = [
    "excellent", "outstanding", "great", "amazing", "fantastic", "wonderful",
    "professional", "reliable", "trustworthy", "reputable", "quality",
    "highly recommended", "top-rated", "top rated", "best", "leading", "premier",
    "experienced", "skilled", "expert", "knowledgeable", "competent",
    "friendly", "helpful", "responsive", "efficient", "thorough",
    "satisfied", "pleased", "happy", "impressed", "delighted",
    "would recommend", "good choice", "solid choice", "solid option",
    "worth considering", "established presence",
]

NEGATIVE_CUES: List[str] = [
    "terrible", "awful", "horrible", "disappointing", "poor", "bad",
    "unprofessional", "unreliable", "untrustworthy", "questionable",
    "avoid", "warning", "complaint", "complaints", "problem", "problems",
    "rude", "unhelpful", "slow", "inefficient", "careless",
    "overpriced", "low-quality", "subpar", "scam", "lawsuit",
    "dissatisfied", "unhappy", "frustrated", "disappointed", "regret",
    "would not recommend", "wouldn't recommend", "be careful",
]

NEUTRAL_CUES: List[str] = [
    "okay", "average", "decent", "standard", "typical", "normal",
    "adequate", "acceptable", "reasonable", "fair", "moderate",
    "mixed", "varies", "depends",
]


# ============================================================================
# BUSINESS NAMES
# ============================================================================

NAME_SUFFIXES: List[str] = [
    "inc", "llc", "corp", "corporation", "company", "co", "ltd",
    "group", "services", "solutions",
]

NAME_PREFIXES: List[str] = ["the", "a", "an"]

NAME_REPLACEMENTS: Dict[str, str] = {
    "&": "and",
    "and": "&",
    "centre": "center",
    "center": "centre",
}

# Words too generic to identify a business on their own
GENERIC_NAME_WORDS: List[str] = [
    "quality", "professional", "local", "community", "excellence",
    "choice", "group", "services", "service", "solutions", "company",
    "best", "top", "the", "and", "of", "clinic", "center", "centre",
    "shop", "store", "restaurant", "cafe", "studio", "agency",
]

# Phrases that mark a list line as assistant prose, not a business name
PROSE_PREFIXES: List[str] = [
    "here are", "i'd recommend", "i recommend", "i would", "to give you",
    "that's a", "i need", "quality recommendations", "each of these",
    "these businesses", "professional standards", "local community",
    "demonstrated", "serves the", "with strong", "community presence",
    "some top", "top recommendations", "recommendations for", "a great",
    "great question", "more information", "what you're", "you're looking",
    "looking for", "check", "read", "ask", "consider", "compare", "look for",
    "visit", "contact", "verify", "research",
]

# Sources and places that appear in list items but are never competitors
FALSE_POSITIVE_NAMES: List[str] = [
    "google", "facebook", "twitter", "linkedin", "instagram",
    "better business bureau", "bbb", "yelp", "tripadvisor",
    "united states", "new york", "california", "texas",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "january", "february", "march", "april", "june", "july", "august",
    "september", "october", "november", "december",
]


# ============================================================================
# LEXICON
# ============================================================================


@dataclass(frozen=True)
class Lexicon:
    """Bundle of lookup tables injected into the classifiers."""

    industry_phrases: Dict[str, Tuple[str, str, str]] = field(
        default_factory=lambda: dict(INDUSTRY_PHRASES)
    )
    default_industry: Tuple[str, str, str] = DEFAULT_INDUSTRY
    service_keywords: List[str] = field(default_factory=lambda: list(SERVICE_KEYWORDS))
    positive_cues: List[str] = field(default_factory=lambda: list(POSITIVE_CUES))
    negative_cues: List[str] = field(default_factory=lambda: list(NEGATIVE_CUES))
    neutral_cues: List[str] = field(default_factory=lambda: list(NEUTRAL_CUES))
    name_suffixes: List[str] = field(default_factory=lambda: list(NAME_SUFFIXES))
    name_prefixes: List[str] = field(default_factory=lambda: list(NAME_PREFIXES))
    name_replacements: Dict[str, str] = field(default_factory=lambda: dict(NAME_REPLACEMENTS))
    generic_name_words: List[str] = field(default_factory=lambda: list(GENERIC_NAME_WORDS))
    prose_prefixes: List[str] = field(default_factory=lambda: list(PROSE_PREFIXES))
    false_positive_names: List[str] = field(default_factory=lambda: list(FALSE_POSITIVE_NAMES))

    @classmethod
    def from_dict(cls, data: Dict) -> "Lexicon":
        """
        Build a lexicon, overriding only the tables present in ``data``.

        Industry phrases may be given as 3-item lists or as
        ``{"plural": ..., "service": ..., "type": ...}`` objects.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown lexicon tables: {sorted(unknown)}")

        overrides = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key == "industry_phrases":
                value = {k.lower(): _phrase_tuple(v) for k, v in value.items()}
            elif key == "default_industry":
                value = _phrase_tuple(value)
            overrides[key] = value

        return replace(cls(), **overrides)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Lexicon":
        """Load overrides from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        lexicon = cls.from_dict(data)
        logger.info(f"Lexicon loaded from {path} ({len(data)} tables overridden)")
        return lexicon


def _phrase_tuple(value: Union[List[str], Dict[str, str]]) -> Tuple[str, str, str]:
    if isinstance(value, dict):
        return (value["plural"], value.get("service", value["plural"]), value.get("type", value["plural"]))
    plural, service, business_type = value
    return (plural, service, business_type)
