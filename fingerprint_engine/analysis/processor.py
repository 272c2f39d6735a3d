"""
Parallel Processor

Fans the full (model x prompt type) query matrix out to the query client,
analyzes each response as it arrives and joins the results.

Result ``i`` always corresponds to query ``i``. A query whose processing
raises yields an error-flagged LLMResult in its slot; the rest of the batch
is unaffected. The processor keeps no per-run state, so one instance can
serve concurrent runs; statistics come from ``get_processing_stats(results)``.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from ..models import LLMResult, ModelQuery, Sentiment
from .response_analyzer import ResponseAnalyzer

logger = logging.getLogger(__name__)


class ParallelProcessor:
    """
    Runs queries concurrently and classifies the responses.

    Usage:
        processor = ParallelProcessor(client, ResponseAnalyzer())
        results = await processor.process_queries(queries, "Acme Dental")
    """

    def __init__(
        self,
        client,
        analyzer: Optional[ResponseAnalyzer] = None,
        max_concurrency: Optional[int] = None,
    ):
        """
        Args:
            client: ModelQueryClient (anything with an async ``query``)
            analyzer: Response analyzer (defaults to one without LLM resolver)
            max_concurrency: Upper bound on in-flight queries (None = unbounded)
        """
        self.client = client
        self.analyzer = analyzer or ResponseAnalyzer()
        self.max_concurrency = max_concurrency

    async def process_queries(self, queries: List[ModelQuery], business_name: str) -> List[LLMResult]:
        """Process every query; output order follows ``queries``."""
        start = time.perf_counter()
        models = sorted({q.model for q in queries})
        logger.info(
            f"Processing {len(queries)} queries for '{business_name}' "
            f"across {len(models)} models"
        )

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        outcomes = await asyncio.gather(
            *(self._process_one(query, business_name, semaphore) for query in queries),
            return_exceptions=True,
        )

        results: List[LLMResult] = []
        for query, outcome in zip(queries, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    f"Query {query.model}/{query.prompt_type.value} failed: "
                    f"{type(outcome).__name__}: {outcome}"
                )
                results.append(self._error_result(query, outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        elapsed = (time.perf_counter() - start) * 1000
        failed = sum(1 for r in results if r.error)
        logger.info(f"Processed {len(results)} queries in {elapsed:.0f}ms ({failed} failed)")
        return results

    async def _process_one(
        self,
        query: ModelQuery,
        business_name: str,
        semaphore: Optional[asyncio.Semaphore],
    ) -> LLMResult:
        if semaphore is None:
            response = await self.client.query(
                query.model, query.prompt,
                temperature=query.temperature, max_tokens=query.max_tokens,
            )
        else:
            async with semaphore:
                response = await self.client.query(
                    query.model, query.prompt,
                    temperature=query.temperature, max_tokens=query.max_tokens,
                )
        return await self.analyzer.analyze(query, response, business_name)

    @staticmethod
    def _error_result(query: ModelQuery, exc: Exception) -> LLMResult:
        return LLMResult(
            model=query.model,
            prompt_type=query.prompt_type,
            mentioned=False,
            sentiment=Sentiment.NEUTRAL,
            confidence=0,
            rank_position=None,
            prompt=query.prompt,
            error=f"{type(exc).__name__}: {exc}",
        )

    @staticmethod
    def get_processing_stats(results: List[LLMResult]) -> Dict[str, Any]:
        """Per-model query, mention, error and confidence counts."""
        by_model: Dict[str, Dict[str, Any]] = {}
        for result in results:
            stats = by_model.setdefault(
                result.model, {"queries": 0, "mentions": 0, "errors": 0, "avg_confidence": 0.0}
            )
            stats["queries"] += 1
            if result.error:
                stats["errors"] += 1
                continue
            if result.mentioned:
                stats["mentions"] += 1
            stats["avg_confidence"] += result.confidence

        for stats in by_model.values():
            valid = stats["queries"] - stats["errors"]
            stats["avg_confidence"] = round(stats["avg_confidence"] / valid, 2) if valid else 0.0

        failed = sum(1 for r in results if r.error)
        return {
            "total": len(results),
            "successful": len(results) - failed,
            "failed": failed,
            "mentions": sum(1 for r in results if r.mentioned and not r.error),
            "tokens_used": sum(r.tokens_used for r in results),
            "by_model": by_model,
        }
