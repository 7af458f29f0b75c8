"""Host framework middleware."""

from errorcapture.middleware.error_capture import ErrorCaptureMiddleware, log_error_record

__all__ = [
    "ErrorCaptureMiddleware",
    "log_error_record",
]
