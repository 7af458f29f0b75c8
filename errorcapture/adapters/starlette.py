"""
Request snapshot adapter for Starlette and FastAPI.

Form data has to be read asynchronously, so it is read up front with
read_form() and handed to the snapshot; every other collection is read
from the request object on demand without blocking.
"""

from typing import Iterable, List, Optional, Tuple

from starlette.datastructures import FormData
from starlette.requests import Request

from errorcapture.exceptions import CollectionReadError
from errorcapture.utils.logging import get_logger

logger = get_logger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class StarletteRequestSnapshot:
    """RequestSnapshot backed by a Starlette request."""

    def __init__(
        self,
        request: Request,
        status_code: Optional[int] = None,
        form: Optional[FormData] = None,
        form_error: Optional[Exception] = None,
    ):
        """
        Initialize the snapshot.

        Args:
            request: The request being served
            status_code: Response status at the moment of capture
            form: Form data read beforehand with read_form()
            form_error: Error raised while reading the form, if any
        """
        self._request = request
        self._status_code = status_code
        self._form = form
        self._form_error = form_error

    @staticmethod
    async def read_form(request: Request) -> Tuple[Optional[FormData], Optional[Exception]]:
        """
        Read and cache the request form, if the request carries one.

        The body is cached on the request first so downstream handlers can
        still read it.

        Returns:
            Tuple of (form data or None, error raised while parsing or None)
        """
        content_type = request.headers.get("content-type", "")
        if not content_type.startswith(FORM_CONTENT_TYPES):
            return None, None

        try:
            await request.body()
            return await request.form(), None
        except Exception as e:
            logger.warning(f"Could not read request form: {e}")
            return None, e

    @classmethod
    async def capture(cls, request: Request, status_code: Optional[int] = None) -> "StarletteRequestSnapshot":
        """Build a snapshot, reading the form first."""
        form, form_error = await cls.read_form(request)
        return cls(request, status_code=status_code, form=form, form_error=form_error)

    async def close(self) -> None:
        """Release uploaded files held by the pre-read form."""
        if self._form is not None:
            await self._form.close()

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    def query_items(self) -> Iterable[Tuple[str, str]]:
        return self._request.query_params.multi_items()

    def form_items(self) -> Iterable[Tuple[str, str]]:
        if self._form_error is not None:
            raise CollectionReadError("form", str(self._form_error))
        if self._form is None:
            return []
        # Uploaded files are recorded by file name only
        return [
            (name, value if isinstance(value, str) else (value.filename or ""))
            for name, value in self._form.multi_items()
        ]

    def cookie_items(self) -> Iterable[Tuple[str, str]]:
        return list(self._request.cookies.items())

    def header_items(self) -> Iterable[Tuple[str, str]]:
        return self._request.headers.items()

    def server_variable_items(self) -> Iterable[Tuple[str, str]]:
        request = self._request
        url = request.url
        client = request.client
        default_port = 443 if url.scheme in ("https", "wss") else 80

        variables: List[Tuple[str, str]] = [
            ("HTTP_HOST", request.headers.get("host", url.netloc)),
            ("URL", url.path),
            ("PATH_INFO", url.path),
            ("REQUEST_METHOD", request.method),
            ("QUERY_STRING", url.query),
            ("REMOTE_ADDR", client.host if client else ""),
            ("SERVER_NAME", url.hostname or ""),
            ("SERVER_PORT", str(url.port or default_port)),
            ("SERVER_PROTOCOL", f"HTTP/{request.scope.get('http_version', '1.1')}"),
            ("HTTPS", "on" if url.scheme in ("https", "wss") else "off"),
        ]
        for name, value in request.headers.items():
            if name.lower() in ("host", "cookie"):
                continue
            variables.append(("HTTP_" + name.upper().replace("-", "_"), value))
        return variables
