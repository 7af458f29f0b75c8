"""
Utility modules for error capture.
"""

from errorcapture.utils.logging import (
    get_logger,
    setup_logging,
    JSONFormatter,
    LogContext,
    log_error_captured,
    log_collection_failure,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "LogContext",
    "log_error_captured",
    "log_collection_failure",
]
