"""
Upstream data source clients.

Available sources:
- CFBDClient: College Football Data API (REST and GraphQL) for games and lines
"""
from .base import (
    BaseDataSource,
    DataSourceError,
    DataSourceHealth,
    DataSourceStatus,
    RateLimitError,
    AuthenticationError,
    DataNotAvailableError,
    RetryPolicy,
    CircuitBreaker,
)
from .cfbd import CFBDClient

__all__ = [
    # Base classes
    "BaseDataSource",
    "DataSourceError",
    "DataSourceHealth",
    "DataSourceStatus",
    "RateLimitError",
    "AuthenticationError",
    "DataNotAvailableError",
    "RetryPolicy",
    "CircuitBreaker",
    # Clients
    "CFBDClient",
]
