"""
Business Visibility Fingerprinting Engine

Measures how visible a business is in AI assistant answers:
1. Asks several language models factual, opinion and recommendation questions
2. Classifies every answer (mention, sentiment, rank, competitors)
3. Aggregates the classifications into a weighted visibility score
4. Ranks the business against the competitors the models recommend
"""

from .models import BusinessContext, FingerprintAnalysis, InvalidBusinessContextError
from .orchestrator import FingerprintOrchestrator, create_orchestrator

__version__ = "0.1.0"

__all__ = [
    "BusinessContext",
    "FingerprintAnalysis",
    "InvalidBusinessContextError",
    "FingerprintOrchestrator",
    "create_orchestrator",
]
