"""
Error capture middleware for Starlette and FastAPI applications.
"""

import inspect
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from errorcapture.adapters.starlette import StarletteRequestSnapshot
from errorcapture.config import Settings
from errorcapture.models.error import ErrorRecord
from errorcapture.services.filters import FilterRegistry
from errorcapture.utils.logging import get_logger

logger = get_logger(__name__)

ErrorHandler = Callable[[ErrorRecord], Any]


def log_error_record(record: ErrorRecord) -> None:
    """Default handler: log the captured error with its detailed JSON."""
    exception = record.exception
    logger.error(
        f"Unhandled {record.type} on {record.http_method} {record.url}: {record.message}",
        extra={
            "error_guid": str(record.guid),
            "application_name": record.application_name,
            "error_hash": record.error_hash,
            "status_code": record.status_code,
            "error_record": record.to_detailed_json(),
        },
        exc_info=(type(exception), exception, exception.__traceback__) if exception else None,
    )


class ErrorCaptureMiddleware(BaseHTTPMiddleware):
    """
    Captures unhandled exceptions as error records.

    The record handed to the handler is a clone, so the handler may queue or
    modify it freely. The original exception is always re-raised.
    """

    def __init__(
        self,
        app: ASGIApp,
        handler: Optional[ErrorHandler] = None,
        application_name: Optional[str] = None,
        settings: Optional[Settings] = None,
        filters: Optional[FilterRegistry] = None,
    ):
        """
        Initialize the middleware.

        Args:
            app: Downstream ASGI application
            handler: Receives each captured record; may be sync or async
            application_name: Overrides the configured application name
            settings: Settings to use instead of get_settings()
            filters: Filter registry to use instead of get_filter_registry()
        """
        super().__init__(app)
        self.handler = handler or log_error_record
        self.application_name = application_name
        self.settings = settings
        self.filters = filters

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # The form must be read before the downstream app consumes the body.
        # An unhandled exception has no response yet; the server answers 500.
        snapshot = await StarletteRequestSnapshot.capture(request, status_code=500)
        try:
            return await call_next(request)
        except Exception as exc:
            await self._capture(exc, snapshot)
            raise
        finally:
            await snapshot.close()

    async def _capture(self, exc: Exception, snapshot: StarletteRequestSnapshot) -> None:
        try:
            record = ErrorRecord.from_exception(
                exc,
                snapshot,
                self.application_name,
                settings=self.settings,
                filters=self.filters,
            )
        except Exception as e:
            logger.error(f"Failed to capture error record: {e}", exc_info=True)
            return

        try:
            result = self.handler(record.clone())
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                f"Error handler failed: {e}",
                extra={"error_guid": str(record.guid)},
                exc_info=True
            )
