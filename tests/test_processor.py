"""
Tests for parallel query processing.

These tests verify:
- Output order follows input order
- A failing query becomes an error-flagged result without failing the batch
- The concurrency bound is honored
- Processing statistics
"""

import asyncio
import pytest

from fingerprint_engine.analysis import ParallelProcessor
from fingerprint_engine.models import ModelQuery, ModelResponse, PromptType
from fingerprint_engine.scoring import calculate_metrics, filter_valid_results


class FakeClient:
    """Answers every prompt with ``answers[prompt]``; raises for ``failing`` prompts."""

    def __init__(self, answers, failing=(), delay=0.0):
        self.answers = answers
        self.failing = set(failing)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.peak = 0

    async def query(self, model, prompt, temperature=None, max_tokens=None):
        self.calls.append((model, prompt, temperature, max_tokens))
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if prompt in self.failing:
                raise ConnectionError("socket closed")
            return ModelResponse(content=self.answers[prompt], tokens_used=10, model=model)
        finally:
            self.in_flight -= 1


def _queries(prompts, models=("model-a", "model-b")):
    types = list(PromptType)
    return [
        ModelQuery(model=model, prompt_type=types[i % 3], prompt=prompt, temperature=0.5)
        for model in models
        for i, prompt in enumerate(prompts)
    ]


ANSWERS = {
    "p1": "Acme Dental is excellent and friendly.",
    "p2": "I have no information about that business.",
    "p3": "1. Acme Dental - great\n2. Family Dental - reliable",
}


class TestParallelProcessor:
    """Test ParallelProcessor."""

    @pytest.mark.asyncio
    async def test_results_follow_query_order(self):
        queries = _queries(["p1", "p2", "p3"])
        processor = ParallelProcessor(FakeClient(ANSWERS))
        results = await processor.process_queries(queries, "Acme Dental")

        assert [(r.model, r.prompt_type) for r in results] == [(q.model, q.prompt_type) for q in queries]
        assert [r.mentioned for r in results] == [True, False, True] * 2
        assert results[2].rank_position == 1
        assert results[2].competitor_mentions == ["Family Dental"]

    @pytest.mark.asyncio
    async def test_query_parameters_are_forwarded(self):
        client = FakeClient(ANSWERS)
        await ParallelProcessor(client).process_queries(_queries(["p1"], models=("m",)), "Acme Dental")
        assert client.calls == [("m", "p1", 0.5, None)]

    @pytest.mark.asyncio
    async def test_one_failure_is_isolated(self):
        """One of N queries raises; the other N-1 are aggregated."""
        queries = _queries(["p1", "p2", "p3"], models=("model-a",))
        client = FakeClient(ANSWERS, failing={"p2"})
        results = await ParallelProcessor(client).process_queries(queries, "Acme Dental")

        assert len(results) == 3
        errors = [r for r in results if r.error]
        assert len(errors) == 1
        assert errors[0].prompt_type == PromptType.OPINION
        assert errors[0].error == "ConnectionError: socket closed"
        assert errors[0].mentioned is False

        valid = filter_valid_results(results)
        assert len(valid) == 2
        assert calculate_metrics(valid).mention_rate == 100

    @pytest.mark.asyncio
    async def test_analyzer_failure_is_isolated(self):
        class ExplodingAnalyzer:
            resolver = None

            async def analyze(self, query, response, business_name):
                raise RuntimeError(f"cannot analyze {query.prompt}")

        queries = _queries(["p1"], models=("model-a",))
        processor = ParallelProcessor(FakeClient(ANSWERS), analyzer=ExplodingAnalyzer())
        results = await processor.process_queries(queries, "Acme Dental")

        assert results[0].error == "RuntimeError: cannot analyze p1"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        class CancellingClient(FakeClient):
            async def query(self, model, prompt, temperature=None, max_tokens=None):
                raise asyncio.CancelledError()

        processor = ParallelProcessor(CancellingClient(ANSWERS))
        with pytest.raises(asyncio.CancelledError):
            await processor.process_queries(_queries(["p1"]), "Acme Dental")

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        client = FakeClient(ANSWERS, delay=0.01)
        processor = ParallelProcessor(client, max_concurrency=2)
        results = await processor.process_queries(_queries(["p1", "p2", "p3"]), "Acme Dental")

        assert len(results) == 6
        assert client.peak <= 2

    @pytest.mark.asyncio
    async def test_unbounded_runs_all_at_once(self):
        client = FakeClient(ANSWERS, delay=0.01)
        await ParallelProcessor(client).process_queries(_queries(["p1", "p2", "p3"]), "Acme Dental")
        assert client.peak == 6

    @pytest.mark.asyncio
    async def test_processing_stats(self):
        client = FakeClient(ANSWERS, failing={"p2"})
        results = await ParallelProcessor(client).process_queries(_queries(["p1", "p2", "p3"]), "Acme Dental")

        stats = ParallelProcessor.get_processing_stats(results)
        assert stats["total"] == 6
        assert stats["successful"] == 4
        assert stats["failed"] == 2
        assert stats["mentions"] == 4
        assert stats["tokens_used"] == 40
        assert stats["by_model"]["model-a"]["queries"] == 3
        assert stats["by_model"]["model-a"]["errors"] == 1
        assert stats["by_model"]["model-a"]["mentions"] == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        processor = ParallelProcessor(FakeClient(ANSWERS))
        assert await processor.process_queries([], "Acme Dental") == []
        assert ParallelProcessor.get_processing_stats([])["total"] == 0

    @pytest.mark.asyncio
    async def test_no_state_kept_between_runs(self):
        """Concurrent batches on one processor each get their own results."""
        processor = ParallelProcessor(FakeClient(ANSWERS, failing={"p2"}, delay=0.01))
        first, second = await asyncio.gather(
            processor.process_queries(_queries(["p1", "p2"], models=("model-a",)), "Acme Dental"),
            processor.process_queries(_queries(["p3"], models=("model-b",)), "Acme Dental"),
        )

        assert ParallelProcessor.get_processing_stats(first)["failed"] == 1
        assert ParallelProcessor.get_processing_stats(second)["failed"] == 0
        assert list(ParallelProcessor.get_processing_stats(second)["by_model"]) == ["model-b"]
        assert not hasattr(processor, "processing_stats")
