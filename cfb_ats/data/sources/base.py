"""
Shared plumbing for upstream data source clients.

Every client gets:
- A small exception hierarchy that says whether a failure may be retried
- Exponential backoff between attempts
- A circuit breaker that stops calling a source that keeps failing
- A health snapshot for status reporting
"""
import asyncio
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


class DataSourceStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


@dataclass
class DataSourceHealth:
    """Point-in-time health of one source."""

    source_name: str
    status: DataSourceStatus
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None
    latency_ms: Optional[float] = None


# =============================================================================
# ERRORS
# =============================================================================
class DataSourceError(Exception):
    """A request to an upstream source failed."""

    def __init__(
        self,
        message: str,
        source_name: str,
        original_error: Optional[Exception] = None,
        retry_allowed: bool = True,
    ):
        super().__init__(message)
        self.source_name = source_name
        self.original_error = original_error
        self.retry_allowed = retry_allowed


class RateLimitError(DataSourceError):
    """The source asked us to slow down (HTTP 429)."""

    def __init__(self, source_name: str, retry_after_seconds: Optional[int] = None):
        super().__init__(f"{source_name} rate limit hit", source_name, retry_allowed=True)
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(DataSourceError):
    """Credentials were missing or rejected; retrying cannot help."""

    def __init__(self, source_name: str, message: str = "Authentication failed"):
        super().__init__(message, source_name, retry_allowed=False)


class DataNotAvailableError(DataSourceError):
    """The source has no data for the request (e.g. HTTP 404)."""

    def __init__(self, source_name: str, message: str):
        super().__init__(message, source_name, retry_allowed=False)


# =============================================================================
# RETRY & CIRCUIT BREAKER
# =============================================================================
@dataclass
class RetryPolicy:
    """How many times to try a request and how long to wait in between."""

    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    backoff_factor: float = 2.0
    jitter: bool = True

    def delay_for(self, attempt: int, error: Optional[Exception] = None) -> float:
        """Seconds to sleep after failed attempt number ``attempt`` (1-based)."""
        if isinstance(error, RateLimitError) and error.retry_after_seconds:
            return min(float(error.retry_after_seconds), self.max_delay_seconds)

        delay = min(
            self.initial_delay_seconds * self.backoff_factor ** (attempt - 1),
            self.max_delay_seconds,
        )
        if self.jitter:
            delay *= 0.5 + random.random()
        return delay


@dataclass
class CircuitBreaker:
    """
    Closed -> open after ``failure_threshold`` consecutive failures; open ->
    half-open once ``recovery_timeout`` has passed; half-open -> closed after
    ``half_open_successes`` successful calls.
    """

    failure_threshold: int = 5
    recovery_timeout: timedelta = timedelta(seconds=60)
    half_open_successes: int = 3

    state: str = field(default="closed", init=False)
    failures: int = field(default=0, init=False)
    opened_at: Optional[datetime] = field(default=None, init=False)
    _trial_successes: int = field(default=0, init=False)

    def allows_request(self, now: Optional[datetime] = None) -> bool:
        if self.state != "open":
            return True
        now = now or datetime.now()
        if self.opened_at and now - self.opened_at >= self.recovery_timeout:
            self.state = "half-open"
            self._trial_successes = 0
            return True
        return False

    def record_success(self) -> bool:
        """Returns True when this success closed a half-open breaker."""
        if self.state == "half-open":
            self._trial_successes += 1
            if self._trial_successes >= self.half_open_successes:
                self.reset()
                return True
            return False
        self.failures = 0
        return False

    def record_failure(self, now: Optional[datetime] = None) -> bool:
        """Returns True when this failure opened the breaker."""
        self.failures += 1
        if self.state == "half-open" or self.failures >= self.failure_threshold:
            opened = self.state != "open"
            self.state = "open"
            self.opened_at = now or datetime.now()
            return opened
        return False

    def reset(self) -> None:
        self.state = "closed"
        self.failures = 0
        self.opened_at = None
        self._trial_successes = 0


# =============================================================================
# BASE CLIENT
# =============================================================================
class BaseDataSource(ABC):
    """
    Base class for upstream clients.

    Subclasses issue each request through ``_with_retry`` so that backoff,
    circuit breaking and health tracking apply uniformly.
    """

    def __init__(
        self,
        source_name: str,
        enabled: bool = True,
        retry_policy: Optional[RetryPolicy] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.source_name = source_name
        self.enabled = enabled
        self.retry_policy = retry_policy or RetryPolicy()
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self._health = DataSourceHealth(
            source_name=source_name,
            status=DataSourceStatus.HEALTHY if enabled else DataSourceStatus.DISABLED,
        )
        self.logger = logger.bind(source=source_name)

    @property
    def is_available(self) -> bool:
        return self.enabled and self.circuit_breaker.allows_request()

    @abstractmethod
    async def health_check(self) -> DataSourceHealth:
        """Cheap connectivity check against the source."""

    async def _with_retry(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Await ``operation`` until it succeeds or attempts run out.

        Errors marked ``retry_allowed=False`` propagate immediately; once
        attempts are exhausted a ``DataSourceError`` wrapping the last error
        is raised.
        """
        if not self.is_available:
            raise DataSourceError(
                f"{self.source_name} is disabled or its circuit is open",
                self.source_name,
                retry_allowed=False,
            )

        started = datetime.now()
        attempts = self.retry_policy.max_attempts
        last_error: Optional[DataSourceError] = None

        for attempt in range(1, attempts + 1):
            try:
                result = await operation()
            except DataSourceError as e:
                last_error = e
                self.logger.warning(f"Attempt {attempt}/{attempts} failed: {e}")
                if not e.retry_allowed:
                    self._on_failure(str(e))
                    raise
                if attempt < attempts:
                    await asyncio.sleep(self.retry_policy.delay_for(attempt, e))
                continue

            self._on_success((datetime.now() - started).total_seconds() * 1000)
            return result

        self._on_failure(str(last_error))
        raise DataSourceError(
            f"{self.source_name}: giving up after {attempts} attempts",
            self.source_name,
            original_error=last_error,
            retry_allowed=False,
        )

    def _on_success(self, latency_ms: float) -> None:
        health = self._health
        health.last_success = datetime.now()
        health.latency_ms = latency_ms
        health.consecutive_failures = 0
        health.error_message = None
        health.status = DataSourceStatus.HEALTHY
        if self.circuit_breaker.record_success():
            self.logger.info("Circuit breaker closed")

    def _on_failure(self, message: str) -> None:
        health = self._health
        health.last_failure = datetime.now()
        health.consecutive_failures += 1
        health.error_message = message

        if self.circuit_breaker.record_failure():
            health.status = DataSourceStatus.UNHEALTHY
            self.logger.error(
                f"Circuit breaker opened after {self.circuit_breaker.failures} failures"
            )
        elif health.consecutive_failures >= 2:
            health.status = DataSourceStatus.DEGRADED

    def get_health(self) -> DataSourceHealth:
        return self._health

    def reset_circuit_breaker(self) -> None:
        self.circuit_breaker.reset()
        self._health.status = DataSourceStatus.HEALTHY if self.enabled else DataSourceStatus.DISABLED
        self._health.consecutive_failures = 0
        self._health.error_message = None
