"""
Resilience infrastructure - retry logic and circuit breaking for external calls.
"""

from .retry_service import (
    RetryService,
    CircuitBreaker,
    CircuitBreakerState,
    CircuitBreakerError,
    RETRIABLE_ERRORS,
    NON_RETRIABLE_ERRORS,
    exponential_backoff_delay
)

__all__ = [
    'RetryService',
    'CircuitBreaker',
    'CircuitBreakerState',
    'CircuitBreakerError',
    'RETRIABLE_ERRORS',
    'NON_RETRIABLE_ERRORS',
    'exponential_backoff_delay'
]
