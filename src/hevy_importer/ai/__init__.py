"""AI client management for workout program extraction."""
from .client_factory import AIClientFactory
from .retry import (
    create_retry_decorator,
    is_retryable_error,
    retry_sync_call,
)

__all__ = [
    "AIClientFactory",
    "create_retry_decorator",
    "is_retryable_error",
    "retry_sync_call",
]
