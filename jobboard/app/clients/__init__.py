"""Backend clients for the job-board API.

This package provides:
- Sliding window rate limiter (RateLimiter, RateLimiterStats)
- Rate-limited HTTP client (ApiClient)
- Credential stores for access/refresh tokens
- Retry policy for 429 responses (RateLimitRetryPolicy, parse_retry_after)
- Client factory (ClientFactory, ClientConfig, ClientType)
"""

from jobboard.app.clients.base import ApiClient
from jobboard.app.clients.credentials import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    CredentialStore,
    InMemoryCredentialStore,
    JSONFileCredentialStore,
    clear_tokens,
    store_tokens,
)
from jobboard.app.clients.factory import ClientConfig, ClientFactory, ClientType
from jobboard.app.clients.rate_limiter import RateLimiter, RateLimiterStats
from jobboard.app.clients.retry import RateLimitRetryPolicy, parse_retry_after

__all__ = [
    # Client
    "ApiClient",
    # Credentials
    "ACCESS_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
    "CredentialStore",
    "InMemoryCredentialStore",
    "JSONFileCredentialStore",
    "clear_tokens",
    "store_tokens",
    # Factory
    "ClientConfig",
    "ClientFactory",
    "ClientType",
    # Rate limiting
    "RateLimiter",
    "RateLimiterStats",
    # Retry
    "RateLimitRetryPolicy",
    "parse_retry_after",
]
