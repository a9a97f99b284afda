"""
Resilience utilities for error handling and fault tolerance.

This module provides:
- retry_with_backoff decorator for transient startup/connection errors
- CircuitBreaker class for external service calls (GitHub, LLM provider)
- Partial-failure reporting for batch operations
"""

import asyncio
import time
import logging
from typing import Awaitable, Callable, Optional, TypeVar, ParamSpec
from functools import wraps
from enum import Enum

logger = logging.getLogger(__name__)

# Type variables for generic decorator
P = ParamSpec('P')
T = TypeVar('T')


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreakerOpenError(Exception):
    """Raised when circuit breaker is open."""
    pass


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,)
):
    """
    Decorator for retrying async functions with exponential backoff.

    Only used for infrastructure calls (connection pools). The analysis
    provider is deliberately not wrapped: enrichment retries are manual.

    Args:
        max_retries: Maximum number of attempts (default: 3)
        base_delay: Initial delay in seconds between retries (default: 1.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)
        exceptions: Tuple of exception types to catch and retry (default: all exceptions)

    Returns:
        Decorated function with retry logic

    Example:
        @retry_with_backoff(max_retries=3, base_delay=1.0)
        async def connect():
            return await aiomysql.create_pool(...)
    """
    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(max_retries):
                try:
                    result = await func(*args, **kwargs)

                    if attempt > 0:
                        logger.info(
                            f"{func.__name__} succeeded on attempt {attempt + 1}/{max_retries}"
                        )

                    return result

                except exceptions as e:
                    if attempt == max_retries - 1:
                        logger.error(
                            f"{func.__name__} failed after {max_retries} attempts: {e}",
                            exc_info=True
                        )
                        raise

                    delay = min(base_delay * (exponential_base ** attempt), max_delay)

                    logger.warning(
                        f"{func.__name__} failed on attempt {attempt + 1}/{max_retries}: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )

                    await asyncio.sleep(delay)

            raise RuntimeError(f"{func.__name__} called with max_retries={max_retries}")

        return async_wrapper

    return decorator


class CircuitBreaker:
    """
    Circuit breaker pattern implementation for external service calls.

    The circuit breaker prevents cascading failures by:
    - Tracking failure rates for external service calls
    - Opening the circuit (rejecting requests) when failure threshold is exceeded
    - Periodically testing if the service has recovered (half-open state)
    - Closing the circuit when service is healthy again

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: Service is failing, requests are rejected immediately
    - HALF_OPEN: Testing if service recovered, limited requests allowed

    Args:
        name: Service name used in log lines
        failure_threshold: Number of consecutive failures before opening circuit (default: 5)
        timeout: Seconds to wait before attempting recovery (default: 60)
        half_open_max_calls: Max calls allowed in half-open state (default: 3)

    Example:
        circuit_breaker = CircuitBreaker("github", failure_threshold=5, timeout=60)

        async def fetch():
            return await circuit_breaker.call(lambda: client.get(url))
    """

    def __init__(
        self,
        name: str = "external",
        failure_threshold: int = 5,
        timeout: int = 60,
        half_open_max_calls: int = 3
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.half_open_max_calls = half_open_max_calls

        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = CircuitState.CLOSED
        self.half_open_calls = 0

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute function with circuit breaker protection.

        Args:
            func: Zero-argument callable returning an awaitable

        Returns:
            Function result

        Raises:
            CircuitBreakerOpenError: If circuit is open
            Exception: Any exception raised by the function
        """
        if self.state == CircuitState.OPEN:
            if self.last_failure_time and (time.time() - self.last_failure_time) > self.timeout:
                logger.info(f"Circuit breaker '{self.name}' transitioning to HALF_OPEN state")
                self.state = CircuitState.HALF_OPEN
                self.half_open_calls = 0
            else:
                raise CircuitBreakerOpenError(
                    f"Circuit breaker '{self.name}' is OPEN. Service unavailable. "
                    f"Will retry after {self.timeout}s timeout."
                )

        if self.state == CircuitState.HALF_OPEN:
            if self.half_open_calls >= self.half_open_max_calls:
                raise CircuitBreakerOpenError(
                    f"Circuit breaker '{self.name}' is HALF_OPEN and max test calls reached"
                )
            self.half_open_calls += 1

        try:
            result = await func()
        except Exception:
            self._record_failure()
            raise

        self._record_success()
        return result

    def _record_success(self) -> None:
        """Record successful call."""
        self.success_count += 1

        if self.state == CircuitState.HALF_OPEN:
            if self.success_count >= self.half_open_max_calls:
                logger.info(f"Circuit breaker '{self.name}' transitioning to CLOSED state (service recovered)")
                self.state = CircuitState.CLOSED
                self.failure_count = 0
                self.success_count = 0
                self.half_open_calls = 0
        elif self.state == CircuitState.CLOSED:
            self.failure_count = 0

    def _record_failure(self) -> None:
        """Record failed call."""
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == CircuitState.HALF_OPEN:
            logger.warning(f"Circuit breaker '{self.name}' transitioning to OPEN state (service still failing)")
            self.state = CircuitState.OPEN
            self.success_count = 0
            self.half_open_calls = 0
        elif self.state == CircuitState.CLOSED:
            if self.failure_count >= self.failure_threshold:
                logger.warning(
                    f"Circuit breaker '{self.name}' transitioning to OPEN state "
                    f"(failure threshold {self.failure_threshold} exceeded)"
                )
                self.state = CircuitState.OPEN
                self.success_count = 0

    def get_state(self) -> CircuitState:
        """Get current circuit breaker state."""
        return self.state

    def reset(self) -> None:
        """Manually reset circuit breaker to closed state."""
        logger.info(f"Circuit breaker '{self.name}' manually reset to CLOSED state")
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.half_open_calls = 0
        self.last_failure_time = None


def handle_partial_failure(
    operation_name: str,
    total_items: int,
    successful_items: int,
    errors: list,
    context: dict
) -> None:
    """
    Log the outcome of a batch where individual items may fail.

    Args:
        operation_name: Name of the operation
        total_items: Total number of items processed
        successful_items: Number of successful items
        errors: List of error messages
        context: Additional context information
    """
    failed_items = total_items - successful_items

    if failed_items > 0:
        logger.warning(
            f"Partial failure in {operation_name}: "
            f"{successful_items}/{total_items} succeeded, {failed_items} failed",
            extra={
                "operation": operation_name,
                "total_items": total_items,
                "successful_items": successful_items,
                "failed_items": failed_items,
                "errors": errors[:10],
                **context,
            }
        )
    else:
        logger.info(
            f"{operation_name} completed successfully: {successful_items}/{total_items}",
            extra={
                "operation": operation_name,
                "total_items": total_items,
                **context,
            }
        )


def create_github_circuit_breaker() -> CircuitBreaker:
    """Create circuit breaker configured for GitHub API calls."""
    return CircuitBreaker(
        name="github",
        failure_threshold=5,
        timeout=60,
        half_open_max_calls=3
    )


def create_llm_circuit_breaker() -> CircuitBreaker:
    """Create circuit breaker configured for LLM API calls."""
    return CircuitBreaker(
        name="llm",
        failure_threshold=3,
        timeout=30,
        half_open_max_calls=2
    )
