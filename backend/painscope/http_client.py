"""
Async HTTP Client Configuration

Timeout presets and pooled ``httpx.AsyncClient`` construction for the
embedding collaborator.
"""

from typing import Optional

import httpx


# Timeout configurations (in seconds)
class Timeouts:
    """Timeout presets for external services."""
    OPENAI_EMBEDDING = 15.0  # embeddings (batch)
    CONNECT = 5.0
    DEFAULT = 10.0


# Retry configuration
class RetryConfig:
    """Retry settings handed to the OpenAI SDK."""
    MAX_RETRIES = 2
    RETRYABLE_CODES = {429, 500, 502, 503, 504}


def get_timeout(service: str, seconds: Optional[float] = None) -> httpx.Timeout:
    """Timeout for a service, or an explicit override in seconds."""
    timeouts = {
        "openai_embedding": Timeouts.OPENAI_EMBEDDING,
    }
    if seconds is None:
        seconds = timeouts.get(service.lower(), Timeouts.DEFAULT)
    return httpx.Timeout(seconds, connect=Timeouts.CONNECT)


def build_client(service: str, timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Pooled client for one service. The owner must ``aclose()`` it on shutdown."""
    return httpx.AsyncClient(
        timeout=get_timeout(service, timeout),
        limits=httpx.Limits(max_keepalive_connections=20, max_connections=50),
        follow_redirects=True,
    )


def is_retryable_error(status_code: int) -> bool:
    """Check if an HTTP error is retryable."""
    return status_code in RetryConfig.RETRYABLE_CODES
