"""
Model Query Client

Async client for chat-completion providers (OpenRouter by default).

Every call resolves to a ModelResponse:
- a real completion, possibly served from the response cache
- mock content when mock mode is on or no API key is configured
- mock content flagged with ``is_fallback`` and ``error`` when the provider
  failed (terminal 4xx, or transient errors that exhausted their retries)

Provider failures never propagate out of ``query``.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..models import ModelQuery, ModelResponse
from .cache import ResponseCache
from .mock import MockResponseGenerator

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Error returned by (or while reaching) a completion provider."""

    def __init__(
        self,
        message: str,
        status_code: int = None,
        response: dict = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.retryable = retryable


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (408, 429, 500, 502, 503, 504)


@dataclass
class MockConfig:
    """Explicit switch for mock responses."""

    use_mock: bool = False
    mock_generator: Optional[MockResponseGenerator] = None

    def __post_init__(self):
        if self.mock_generator is None:
            self.mock_generator = MockResponseGenerator()


class ModelQueryClient:
    """
    Async client for OpenRouter-compatible chat completion APIs.

    Usage:
        client = ModelQueryClient(api_key="sk-or-...")

        response = await client.query("openai/gpt-4-turbo", "What are the best...")
        # response.content, response.tokens_used, response.processing_time

        await client.close()
    """

    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        mock_config: Optional[MockConfig] = None,
        cache: Optional[ResponseCache] = None,
        timeout: float = 60.0,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        referer: str = "https://localhost",
        app_title: str = "Business Visibility Fingerprinting",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Provider API key. Without one, every query is mocked.
            base_url: Provider base URL (defaults to OpenRouter)
            retry_config: Retry configuration (optional)
            mock_config: Mock mode switch and generator (optional)
            cache: Response cache shared across runs (optional)
            timeout: Request timeout in seconds
            temperature: Default sampling temperature
            max_tokens: Default completion length limit
            referer: Value for the HTTP-Referer attribution header
            app_title: Value for the X-Title attribution header
            transport: Custom httpx transport, used by tests
        """
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.retry_config = retry_config or RetryConfig()
        self.mock_config = mock_config or MockConfig()
        self.cache = cache
        self.temperature = temperature
        self.max_tokens = max_tokens

        self._client: Optional[httpx.AsyncClient] = None
        if api_key:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                    "HTTP-Referer": referer,
                    "X-Title": app_title,
                },
                timeout=httpx.Timeout(timeout),
                transport=transport,
            )
        self._closed = False

        if self.use_mock:
            logger.info("ModelQueryClient running in mock mode")

    @property
    def use_mock(self) -> bool:
        """True when queries are answered by the mock generator."""
        return self.mock_config.use_mock or not self.api_key

    async def query(
        self,
        model: str,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelResponse:
        """
        Send one prompt to one model.

        Args:
            model: Provider model identifier (e.g. "openai/gpt-4-turbo")
            prompt: User prompt
            temperature: Sampling temperature (overrides default)
            max_tokens: Completion length limit (overrides default)

        Returns:
            ModelResponse; never raises for provider failures
        """
        start = time.perf_counter()

        if self.use_mock:
            return self._mock_response(model, prompt, start)

        if self._closed:
            return self._mock_response(model, prompt, start, error="Client has been closed")

        if self.cache is not None:
            cached = self.cache.get(model, prompt)
            if cached is not None:
                return ModelResponse(
                    content=cached["content"],
                    tokens_used=cached.get("tokens_used", 0),
                    model=model,
                    processing_time=self._elapsed_ms(start),
                    cached=True,
                    request_id=cached.get("request_id"),
                )

        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

        try:
            data = await self._request_with_retry(payload)
            content, tokens_used = self._parse_completion(data)
        except ProviderError as e:
            logger.warning(f"Query to {model} failed, using fallback content: {e}")
            return self._mock_response(model, prompt, start, error=str(e))

        request_id = data.get("id") if isinstance(data.get("id"), str) else None
        served_by = data.get("model") if isinstance(data.get("model"), str) else model

        if self.cache is not None:
            self.cache.set(
                model,
                prompt,
                {"content": content, "tokens_used": tokens_used, "request_id": request_id},
            )

        return ModelResponse(
            content=content,
            tokens_used=tokens_used,
            model=served_by,
            processing_time=self._elapsed_ms(start),
            request_id=request_id,
        )

    async def query_parallel(self, queries: List[ModelQuery]) -> List[ModelResponse]:
        """
        Run several queries concurrently.

        Results keep the order of ``queries``. A failing query only affects
        its own slot.
        """
        return await asyncio.gather(
            *(
                self.query(q.model, q.prompt, temperature=q.temperature, max_tokens=q.max_tokens)
                for q in queries
            )
        )

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _request_with_retry(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Make request with retry logic."""
        config = self.retry_config
        last_exception = None

        for attempt in range(config.max_retries + 1):
            try:
                response = await self._client.post("/chat/completions", json=payload)

                if response.status_code >= 400:
                    error_data = self._error_body(response)

                    if response.status_code in config.retryable_status_codes:
                        last_exception = ProviderError(
                            f"API error: {response.status_code}",
                            status_code=response.status_code,
                            response=error_data,
                            retryable=True,
                        )
                    else:
                        message = error_data.get("error", response.status_code)
                        if isinstance(message, dict):
                            message = message.get("message", response.status_code)
                        raise ProviderError(
                            f"API error: {message}",
                            status_code=response.status_code,
                            response=error_data,
                        )
                else:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise ProviderError(
                            f"Malformed response payload: {e}",
                            status_code=response.status_code,
                        ) from e

            except httpx.TimeoutException as e:
                last_exception = ProviderError(f"Request timed out: {e}", retryable=True)
            except httpx.RequestError as e:
                last_exception = ProviderError(f"Request failed: {e}", retryable=True)

            if attempt < config.max_retries:
                delay = min(
                    config.initial_delay * (config.exponential_base**attempt),
                    config.max_delay,
                )
                logger.warning(
                    f"Provider request failed, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{config.max_retries + 1})"
                )
                await asyncio.sleep(delay)

        raise last_exception

    @staticmethod
    def _error_body(response: httpx.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {"error": response.text[:200]}
        return body if isinstance(body, dict) else {"error": body}

    @staticmethod
    def _parse_completion(data: Any) -> tuple:
        """Extract (content, total tokens); raises ProviderError on any shape mismatch."""
        if not isinstance(data, dict):
            raise ProviderError(f"Malformed response payload: expected object, got {type(data).__name__}")

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ProviderError("Malformed response payload: no choices")

        choice = choices[0]
        message = choice.get("message") if isinstance(choice, dict) else None
        if not isinstance(message, dict):
            raise ProviderError("Malformed response payload: choice without message")

        content = message.get("content")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise ProviderError(f"Malformed response payload: content is {type(content).__name__}")

        usage = data.get("usage")
        if usage is None:
            usage = {}
        if not isinstance(usage, dict):
            raise ProviderError("Malformed response payload: usage is not an object")

        tokens = usage.get("total_tokens", 0)
        if not isinstance(tokens, int) or isinstance(tokens, bool):
            tokens = 0
        return content, tokens

    # =========================================================================
    # Mock / fallback
    # =========================================================================

    def _mock_response(
        self,
        model: str,
        prompt: str,
        start: float,
        error: Optional[str] = None,
    ) -> ModelResponse:
        content = self.mock_config.mock_generator.generate(model, prompt)
        return ModelResponse(
            content=content,
            tokens_used=len(content) // 4,
            model=model,
            processing_time=self._elapsed_ms(start),
            is_fallback=True,
            error=error,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 2)

    async def close(self):
        """Close the HTTP client and flush the response cache."""
        if not self._closed:
            if self._client is not None:
                await self._client.aclose()
            if self.cache is not None:
                self.cache.flush()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
