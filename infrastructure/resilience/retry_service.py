"""
Resilience service for retry logic and circuit breaking around the mood oracle.
"""

import time
import random
from typing import Callable, Any, Optional
from datetime import datetime
from enum import Enum
import threading
import openai

from config.app_config import RetryConfig
from infrastructure.monitoring.logging_service import get_logger

logger = get_logger(__name__)

# Transient errors worth another attempt
RETRIABLE_ERRORS = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.InternalServerError,
)

# Permanent errors, never retried
NON_RETRIABLE_ERRORS = (
    openai.AuthenticationError,
    openai.BadRequestError,
    openai.ContentFilterFinishReasonError,
)


def exponential_backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """
    Calculate exponential backoff delay with jitter

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (2 ** attempt), max_delay)

    # Jitter spreads out simultaneous retries
    jitter = random.uniform(0, 0.1 * delay)

    return delay + jitter


class CircuitBreakerState(Enum):
    """Circuit breaker states"""
    CLOSED = "closed"      # Normal operation, requests pass through
    OPEN = "open"          # Requests are blocked
    HALF_OPEN = "half_open"  # Testing if service has recovered


class CircuitBreakerError(Exception):
    """Raised when a call is blocked by an open circuit"""
    pass


class CircuitBreaker:
    """
    Circuit breaker for external API calls

    States:
    - CLOSED: Normal operation, all requests pass through
    - OPEN: Requests fail fast without hitting the API
    - HALF_OPEN: One trial request is allowed through
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: tuple = RETRIABLE_ERRORS,
        name: str = "CircuitBreaker"
    ):
        """
        Initialize circuit breaker

        Args:
            failure_threshold: Number of failures before opening circuit
            recovery_timeout: Seconds to wait before attempting recovery
            expected_exception: Exceptions that count as failures
            name: Name for logging and identification
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.name = name

        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = None
        self.state = CircuitBreakerState.CLOSED

        self._lock = threading.Lock()

        logger.info(f"CircuitBreaker '{name}' initialized with threshold={failure_threshold}, timeout={recovery_timeout}s")

    def _should_attempt_reset(self) -> bool:
        if self.last_failure_time is None:
            return False

        time_since_failure = datetime.now() - self.last_failure_time
        return time_since_failure.total_seconds() >= self.recovery_timeout

    def _record_success(self):
        with self._lock:
            self.failure_count = 0
            self.success_count += 1

            if self.state == CircuitBreakerState.HALF_OPEN:
                self.state = CircuitBreakerState.CLOSED
                logger.info(f"CircuitBreaker '{self.name}' recovered - state: CLOSED")

    def _record_failure(self):
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = datetime.now()

            if self.state == CircuitBreakerState.HALF_OPEN:
                self.state = CircuitBreakerState.OPEN
                logger.warning(f"CircuitBreaker '{self.name}' recovery failed - state: OPEN")

            elif self.state == CircuitBreakerState.CLOSED and self.failure_count >= self.failure_threshold:
                self.state = CircuitBreakerState.OPEN
                logger.warning(f"CircuitBreaker '{self.name}' opened - failures: {self.failure_count}")

    def can_execute(self) -> bool:
        """Check if a request can be executed"""
        with self._lock:
            if self.state == CircuitBreakerState.CLOSED:
                return True

            if self.state == CircuitBreakerState.OPEN:
                if self._should_attempt_reset():
                    self.state = CircuitBreakerState.HALF_OPEN
                    logger.info(f"CircuitBreaker '{self.name}' attempting recovery - state: HALF_OPEN")
                    return True
                return False

            # HALF_OPEN
            return True

    def execute(self, func: Callable) -> Any:
        """
        Execute a function with circuit breaker protection

        Raises:
            CircuitBreakerError: If circuit is open
            Exception: Whatever the function raised
        """
        if not self.can_execute():
            remaining_time = self.recovery_timeout
            if self.last_failure_time:
                elapsed = (datetime.now() - self.last_failure_time).total_seconds()
                remaining_time = max(0, self.recovery_timeout - elapsed)

            raise CircuitBreakerError(
                f"Circuit breaker '{self.name}' is OPEN. "
                f"Service appears to be down. Retry in {remaining_time:.0f}s."
            )

        try:
            result = func()
        except self.expected_exception:
            self._record_failure()
            raise
        except Exception as e:
            # Only expected exceptions count as circuit failures
            logger.warning(f"CircuitBreaker '{self.name}' encountered non-tracked exception: {e.__class__.__name__}")
            raise

        self._record_success()
        return result

    def get_state(self) -> dict:
        """Get current circuit breaker state for monitoring"""
        with self._lock:
            remaining_timeout = 0
            if self.last_failure_time and self.state == CircuitBreakerState.OPEN:
                elapsed = (datetime.now() - self.last_failure_time).total_seconds()
                remaining_timeout = max(0, self.recovery_timeout - elapsed)

            return {
                "name": self.name,
                "state": self.state.value,
                "failure_count": self.failure_count,
                "success_count": self.success_count,
                "failure_threshold": self.failure_threshold,
                "remaining_timeout": remaining_timeout,
                "last_failure_time": self.last_failure_time.isoformat() if self.last_failure_time else None
            }

    def reset(self):
        """Manually reset the circuit breaker to CLOSED state"""
        with self._lock:
            self.state = CircuitBreakerState.CLOSED
            self.failure_count = 0
            self.last_failure_time = None
            logger.info(f"CircuitBreaker '{self.name}' manually reset - state: CLOSED")


class RetryService:
    """
    Retry with exponential backoff plus a circuit breaker for the mood oracle.
    Constructed once per process and handed to the oracle client.
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 20.0,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.logger = get_logger(__name__)
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exception=RETRIABLE_ERRORS,
            name="MoodOracle"
        )

    @classmethod
    def from_config(cls, retry_config: RetryConfig) -> 'RetryService':
        return cls(
            max_retries=retry_config.max_retries,
            base_delay=retry_config.base_delay,
            max_delay=retry_config.max_delay,
            failure_threshold=retry_config.failure_threshold,
            recovery_timeout=retry_config.recovery_timeout
        )

    def retry_with_backoff(
        self,
        func: Callable,
        on_retry: Optional[Callable[[int, Exception], None]] = None
    ) -> Any:
        """
        Execute a function, retrying transient OpenAI errors with exponential backoff

        Args:
            func: Function to execute
            on_retry: Optional callback for retry events (attempt_number, exception)

        Returns:
            Function result if successful

        Raises:
            The last exception if all retries are exhausted
        """
        for attempt in range(self.max_retries + 1):  # +1 for initial attempt
            try:
                result = func()
            except RETRIABLE_ERRORS as e:
                if attempt == self.max_retries:
                    self.logger.error(f"Oracle call failed after {self.max_retries} retries: {str(e)}")
                    raise

                delay = exponential_backoff_delay(attempt, self.base_delay, self.max_delay)
                self.logger.warning(f"Attempt {attempt + 1} failed ({e.__class__.__name__}), retrying in {delay:.2f}s")

                if on_retry:
                    on_retry(attempt + 1, e)

                self._sleep(delay)
                continue
            except NON_RETRIABLE_ERRORS as e:
                self.logger.warning(f"Non-retriable error encountered: {e.__class__.__name__}: {str(e)}")
                raise

            if attempt > 0:
                self.logger.info(f"Oracle call succeeded after {attempt} retries")
            return result

    def retry_with_circuit_breaker(
        self,
        func: Callable,
        on_retry: Optional[Callable[[int, Exception], None]] = None
    ) -> Any:
        """
        Execute a function with both retry logic and circuit breaker protection

        Raises:
            CircuitBreakerError: If the circuit is open; not retried
            The last exception if all retries are exhausted
        """
        return self.retry_with_backoff(
            lambda: self.circuit_breaker.execute(func),
            on_retry=on_retry
        )
