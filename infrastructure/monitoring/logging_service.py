"""
Logging for the mood chat stack: JSON records, handler setup from LoggingConfig,
and event helpers for oracle calls, recommendations and session lifecycle.
"""

import logging
import logging.handlers
import json
import time
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional
from contextlib import contextmanager

from config.app_config import AppConfig, LoggingConfig, get_config


ERRORS_LOGGER = "moodmix.errors"

# Error tracker contexts
ORACLE_CALL = "oracle_call"
ORACLE_RESPONSE_VALIDATION = "oracle_response_validation"
RECOMMENDATIONS = "recommendations"

_LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
_LOG_FILE_BACKUPS = 5

# LogRecord attributes that are not ``extra=`` fields
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    Formats records as one JSON object per line; ``extra=`` fields go under "extra"
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        extra_fields = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


def _is_own_handler(handler: logging.Handler) -> bool:
    return getattr(handler, "moodmix_handler", False)


def setup_logging(logging_config: Optional[LoggingConfig] = None, debug: Optional[bool] = None) -> logging.Logger:
    """
    Install console (and optionally rotating file) handlers on the root logger

    Handlers from an earlier call are replaced; handlers installed by anything
    else are left alone.

    Args:
        logging_config: Levels, format and log file; defaults to the global config
        debug: Human-readable console output instead of JSON

    Returns:
        logging.Logger: The root logger
    """
    if logging_config is None or debug is None:
        app_config = get_config()
        logging_config = logging_config or app_config.logging
        debug = app_config.debug if debug is None else debug

    level = logging.getLevelName(logging_config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if _is_own_handler(h)]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(logging.Formatter(logging_config.format + " [%(filename)s:%(lineno)d]"))
    else:
        console_handler.setFormatter(StructuredFormatter())
    console_handler.moodmix_handler = True
    root_logger.addHandler(console_handler)

    if logging_config.enable_file_logging:
        log_file_path = Path(logging_config.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=_LOG_FILE_MAX_BYTES,
            backupCount=_LOG_FILE_BACKUPS,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        file_handler.moodmix_handler = True
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Log the duration of a block; failures are logged and re-raised

    Args:
        logger: Logger instance
        operation: Description of the operation, e.g. "mood oracle call"
        **extra_fields: Additional fields for every record
    """
    logger.debug(f"Starting {operation}", extra={"operation": operation, **extra_fields})
    started = time.perf_counter()

    try:
        yield
    except Exception as e:
        logger.error(f"Failed {operation}: {e}", extra={
            "operation": operation,
            "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            "status": "error",
            "error_type": type(e).__name__,
            **extra_fields
        })
        raise

    logger.info(f"Completed {operation}", extra={
        "operation": operation,
        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
        "status": "success",
        **extra_fields
    })


def log_oracle_usage(logger: logging.Logger, model: str, usage: Optional[Mapping[str, Any]]):
    """
    Log token usage reported for one oracle call

    Args:
        logger: Logger instance
        model: Model name
        usage: Token counts as reported by the chat client; may be missing
    """
    usage = usage or {}
    logger.info(f"Oracle usage: {usage.get('total_tokens', 0)} tokens on {model}", extra={
        "event_type": "oracle_usage",
        "model": model,
        "prompt_tokens": usage.get("input_tokens", usage.get("prompt_tokens", 0)),
        "completion_tokens": usage.get("output_tokens", usage.get("completion_tokens", 0)),
        "total_tokens": usage.get("total_tokens", 0),
    })


def log_recommendation_event(
    logger: logging.Logger,
    outcome: str,
    genres: Iterable[str],
    track_count: int = 0,
    error: Optional[Exception] = None
):
    """
    Log the outcome of a track recommendation lookup

    Args:
        outcome: "served" or "failed"
        genres: Seed genres sent to the recommender
        track_count: Tracks returned
        error: Failure cause, if any
    """
    extra = {
        "event_type": "recommendations",
        "outcome": outcome,
        "genres": list(genres),
        "track_count": track_count,
    }
    if error is None:
        logger.info(f"Recommendations {outcome}: {track_count} tracks", extra=extra)
    else:
        extra["error_type"] = type(error).__name__
        logger.warning(f"Recommendations {outcome}, continuing without them: {error}", extra=extra)


def log_session_event(logger: logging.Logger, event_type: str, session_id: str, **details):
    """Log a chat session lifecycle event ("created", "deleted", ...)"""
    logger.info(f"Session {event_type}: {session_id}", extra={
        "event_type": "session_event",
        "session_event": event_type,
        "session_id": session_id,
        **details
    })


class ErrorTracker:
    """
    Counts errors per (type, context) and logs each occurrence
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.error_counts: Dict[str, int] = {}

    def track_error(self, error: Exception, context: str = "", **extra_info):
        """
        Track and log an error

        Args:
            error: Exception that occurred
            context: Where it occurred, e.g. ORACLE_CALL
            **extra_info: Additional fields for the log record
        """
        error_type = type(error).__name__
        error_key = f"{error_type}:{context}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.logger.error(f"Error in {context}: {error}", extra={
            "event_type": "error",
            "error_type": error_type,
            "context": context,
            "error_count": self.error_counts[error_key],
            **extra_info
        })

    def get_error_summary(self) -> Dict[str, Any]:
        return {
            "total_errors": sum(self.error_counts.values()),
            "unique_errors": len(self.error_counts),
            "error_breakdown": dict(self.error_counts),
        }

    def reset(self) -> None:
        self.error_counts.clear()


# Global instances
_logger_setup = False
_error_tracker: Optional[ErrorTracker] = None


def initialize_logging(config: Optional[AppConfig] = None) -> ErrorTracker:
    """
    Configure logging once per process and return the shared error tracker

    An explicit config always (re)applies its settings.

    Returns:
        ErrorTracker: Global error tracker instance
    """
    global _logger_setup

    if config is not None:
        setup_logging(config.logging, config.debug)
        _logger_setup = True
    elif not _logger_setup:
        setup_logging()
        _logger_setup = True

    return get_error_tracker()


def get_error_tracker() -> ErrorTracker:
    """Get the shared error tracker; does not touch handler setup"""
    global _error_tracker

    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger(ERRORS_LOGGER))
    return _error_tracker
