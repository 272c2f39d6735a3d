"""
Fingerprint Orchestrator

Runs one fingerprint of a business:

1. Build the business context
2. Resolve the industry phrase and generate the three prompts
3. Fan out the model x prompt-type query matrix
4. Drop error-flagged results
5. Aggregate metrics and build the competitive leaderboard
6. Assemble the FingerprintAnalysis

Per-query failures are excluded from aggregation. If processing fails as a
whole, a degraded analysis with neutral metrics and an empty leaderboard is
returned. Invalid input raises InvalidBusinessContextError.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .analysis import (
    IndustryClassifier,
    Lexicon,
    LLMResolver,
    ParallelProcessor,
    PromptGenerator,
    ResponseAnalyzer,
)
from .llm import MockConfig, ModelQueryClient, ResponseCache, RetryConfig
from .models import (
    PROMPT_TYPES,
    BusinessContext,
    FingerprintAnalysis,
    ModelQuery,
    PromptSet,
    PromptType,
)
from .scoring import (
    build_leaderboard,
    calculate_metrics,
    calculate_trend,
    empty_leaderboard,
    filter_valid_results,
    neutral_metrics,
)
from .utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_MODELS = [
    "openai/gpt-4-turbo",
    "anthropic/claude-3-opus",
    "google/gemini-2.5-flash",
]

# Sampling temperature per prompt type
PROMPT_TEMPERATURES = {
    PromptType.FACTUAL: 0.3,
    PromptType.OPINION: 0.5,
    PromptType.RECOMMENDATION: 0.7,
}


class FingerprintOrchestrator:
    """
    Orchestrates a complete fingerprint run.

    Usage:
        orchestrator = create_orchestrator()
        analysis = await orchestrator.fingerprint({"name": "Acme Dental", ...})
        print(analysis.visibility_score)
        await orchestrator.close()
    """

    def __init__(
        self,
        client: ModelQueryClient,
        models: Optional[Sequence[str]] = None,
        prompt_types: Sequence[PromptType] = PROMPT_TYPES,
        classifier: Optional[IndustryClassifier] = None,
        prompt_generator: Optional[PromptGenerator] = None,
        processor: Optional[ParallelProcessor] = None,
        max_tokens: Optional[int] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            client: ModelQueryClient instance
            models: Model roster (defaults to DEFAULT_MODELS)
            prompt_types: Prompt types to ask each model
            classifier: Industry classifier (static lookup only if omitted)
            prompt_generator: Prompt generator (built on ``classifier`` if omitted)
            processor: Parallel processor (built on ``client`` if omitted)
            max_tokens: Completion length limit per query
        """
        self.client = client
        self.models = list(models or DEFAULT_MODELS)
        self.prompt_types = [PromptType(t) for t in prompt_types]
        self.classifier = classifier or IndustryClassifier()
        self.prompt_generator = prompt_generator or PromptGenerator(self.classifier)
        self.processor = processor or ParallelProcessor(client)
        self.max_tokens = max_tokens

    async def fingerprint(self, business: Any, previous: Any = None) -> FingerprintAnalysis:
        """
        Fingerprint a business record.

        Args:
            business: Mapping or object with name, url, category, location,
                      crawl data and id
            previous: Previous score, analysis or score history (optional)

        Returns:
            FingerprintAnalysis
        """
        context = BusinessContext.from_business(business)
        return await self.fingerprint_with_context(context, previous=previous)

    async def fingerprint_with_context(
        self, context: BusinessContext, previous: Any = None
    ) -> FingerprintAnalysis:
        """Fingerprint an already-built BusinessContext."""
        start = time.perf_counter()
        logger.info(f"Starting fingerprint for '{context.name}' (id={context.business_id})")

        industry_phrase = await self.classifier.resolve_context(context)
        prompts = self.prompt_generator.generate_prompts(context, industry_phrase=industry_phrase)
        queries = self.build_queries(prompts)

        try:
            results = await self.processor.process_queries(queries, context.name)
        except Exception as e:
            logger.error(
                f"Processing failed for '{context.name}', returning degraded analysis: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            return self._degraded_analysis(context, len(queries), start, previous)

        valid = filter_valid_results(results)
        if len(valid) < len(results):
            logger.warning(
                f"Excluded {len(results) - len(valid)}/{len(results)} failed results "
                f"for '{context.name}'"
            )

        metrics = calculate_metrics(valid, total_queries=len(queries))
        leaderboard = build_leaderboard(valid, context.name)

        analysis = FingerprintAnalysis(
            business_id=context.business_id,
            business_name=context.name,
            metrics=metrics,
            competitive_leaderboard=leaderboard,
            llm_results=results,
            generated_at=datetime.utcnow(),
            processing_time=self._elapsed_ms(start),
            trend=calculate_trend(metrics.visibility_score, previous) if previous is not None else None,
            processing_stats=ParallelProcessor.get_processing_stats(results),
        )

        logger.info(
            f"Fingerprint complete for '{context.name}': score={metrics.visibility_score} "
            f"mention_rate={metrics.mention_rate}% "
            f"({metrics.successful_queries}/{metrics.total_queries} queries) "
            f"in {analysis.processing_time:.0f}ms"
        )
        return analysis

    def build_queries(self, prompts: PromptSet) -> List[ModelQuery]:
        """Full model x prompt-type matrix, model-major."""
        return [
            ModelQuery(
                model=model,
                prompt_type=prompt_type,
                prompt=prompts.for_type(prompt_type),
                temperature=PROMPT_TEMPERATURES.get(prompt_type),
                max_tokens=self.max_tokens,
            )
            for model in self.models
            for prompt_type in self.prompt_types
        ]

    def get_capabilities(self) -> Dict[str, Any]:
        """Describe what this orchestrator will run."""
        cache = self.client.cache
        return {
            "models": list(self.models),
            "prompt_types": [t.value for t in self.prompt_types],
            "queries_per_run": len(self.models) * len(self.prompt_types),
            "parallel_processing": True,
            "max_concurrency": self.processor.max_concurrency,
            "mock_mode": self.client.use_mock,
            "caching": cache is not None and cache.enabled,
            "cache_stats": cache.get_stats() if cache is not None else None,
            "llm_assisted_classification": self.processor.analyzer.resolver is not None,
        }

    def _degraded_analysis(
        self, context: BusinessContext, total_queries: int, start: float, previous: Any
    ) -> FingerprintAnalysis:
        metrics = neutral_metrics(total_queries)
        return FingerprintAnalysis(
            business_id=context.business_id,
            business_name=context.name,
            metrics=metrics,
            competitive_leaderboard=empty_leaderboard(context.name),
            llm_results=[],
            generated_at=datetime.utcnow(),
            processing_time=self._elapsed_ms(start),
            trend=calculate_trend(metrics.visibility_score, previous) if previous is not None else None,
            degraded=True,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 2)

    async def close(self):
        """Close the underlying query client."""
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_orchestrator(settings: Optional[Settings] = None, **client_kwargs) -> FingerprintOrchestrator:
    """
    Build a fully wired orchestrator from settings.

    Args:
        settings: Settings instance (defaults to ``get_settings()``)
        **client_kwargs: Extra ModelQueryClient arguments (e.g. ``transport``)

    Returns:
        FingerprintOrchestrator
    """
    settings = settings or get_settings()

    lexicon = Lexicon.from_file(settings.LEXICON_PATH) if settings.LEXICON_PATH else Lexicon()
    cache = ResponseCache(
        ttl_hours=settings.CACHE_TTL_HOURS,
        cache_path=settings.CACHE_PATH,
        enabled=settings.CACHE_ENABLED,
    )
    client = ModelQueryClient(
        api_key=settings.OPENROUTER_API_KEY,
        base_url=settings.OPENROUTER_BASE_URL,
        retry_config=RetryConfig(
            max_retries=settings.MAX_RETRIES,
            initial_delay=settings.RETRY_INITIAL_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
        ),
        mock_config=MockConfig(use_mock=settings.USE_MOCK),
        cache=cache,
        timeout=settings.REQUEST_TIMEOUT,
        temperature=settings.TEMPERATURE,
        max_tokens=settings.MAX_TOKENS,
        referer=settings.HTTP_REFERER,
        app_title=settings.APP_TITLE,
        **client_kwargs,
    )

    resolver = LLMResolver(client, settings.CLASSIFIER_MODEL) if settings.CLASSIFIER_MODEL else None
    classifier = IndustryClassifier(lexicon, client=client, model=settings.CLASSIFIER_MODEL)
    analyzer = ResponseAnalyzer(lexicon=lexicon, resolver=resolver)
    processor = ParallelProcessor(client, analyzer, max_concurrency=settings.MAX_CONCURRENCY)

    logger.info(
        f"Orchestrator ready: {len(settings.FINGERPRINT_MODELS)} models, "
        f"mock={client.use_mock}, cache={cache.enabled}"
    )
    return FingerprintOrchestrator(
        client,
        models=settings.FINGERPRINT_MODELS,
        classifier=classifier,
        prompt_generator=PromptGenerator(classifier),
        processor=processor,
        max_tokens=settings.MAX_TOKENS,
    )
