"""
Monitoring infrastructure - structured logging and error tracking.
"""

from .logging_service import (
    ORACLE_CALL,
    ORACLE_RESPONSE_VALIDATION,
    RECOMMENDATIONS,
    StructuredFormatter,
    ErrorTracker,
    setup_logging,
    get_logger,
    log_execution_time,
    log_oracle_usage,
    log_recommendation_event,
    log_session_event,
    initialize_logging,
    get_error_tracker
)

__all__ = [
    'ORACLE_CALL',
    'ORACLE_RESPONSE_VALIDATION',
    'RECOMMENDATIONS',
    'StructuredFormatter',
    'ErrorTracker',
    'setup_logging',
    'get_logger',
    'log_execution_time',
    'log_oracle_usage',
    'log_recommendation_event',
    'log_session_event',
    'initialize_logging',
    'get_error_tracker'
]
