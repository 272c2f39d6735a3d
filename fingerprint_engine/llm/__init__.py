"""Provider access: query client, response cache and mock responses."""

from .cache import CacheEntry, ResponseCache
from .client import MockConfig, ModelQueryClient, ProviderError, RetryConfig
from .mock import MockResponseGenerator

__all__ = [
    "CacheEntry",
    "ResponseCache",
    "MockConfig",
    "ModelQueryClient",
    "ProviderError",
    "RetryConfig",
    "MockResponseGenerator",
]
