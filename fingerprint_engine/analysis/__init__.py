"""Prompt building and response classification."""

from .industry import IndustryClassifier, IndustryPhrase
from .lexicon import Lexicon
from .processor import ParallelProcessor
from .prompts import PromptGenerator
from .response_analyzer import (
    Classification,
    LLMResolver,
    MentionClassifier,
    ResponseAnalyzer,
    SentimentClassifier,
    Verdict,
)

__all__ = [
    "IndustryClassifier",
    "IndustryPhrase",
    "Lexicon",
    "ParallelProcessor",
    "PromptGenerator",
    "Classification",
    "LLMResolver",
    "MentionClassifier",
    "ResponseAnalyzer",
    "SentimentClassifier",
    "Verdict",
]
