"""AI client management for program ingestor API."""
from .client_factory import AIClientFactory, AIRequestContext
from .retry import (
    create_async_retrying,
    is_rate_limit_error,
    retry_async_call,
)

__all__ = [
    "AIClientFactory",
    "AIRequestContext",
    "create_async_retrying",
    "is_rate_limit_error",
    "retry_async_call",
]
