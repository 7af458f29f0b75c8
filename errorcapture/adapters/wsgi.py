"""Request snapshot adapter for WSGI environments."""

from http.cookies import SimpleCookie
from typing import Any, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

# Environ keys that are not headers despite the HTTP-like content
_CONTENT_HEADERS = {"CONTENT_TYPE": "Content-Type", "CONTENT_LENGTH": "Content-Length"}


class WSGIRequestSnapshot:
    """
    RequestSnapshot backed by a WSGI environ.

    The request body is not read here; by the time an error is captured the
    application usually consumed it, so parsed form fields are passed in.
    """

    def __init__(
        self,
        environ: Mapping[str, Any],
        status_code: Optional[int] = None,
        form: Optional[Iterable[Tuple[str, str]]] = None,
    ):
        self._environ = environ
        self._status_code = status_code
        self._form = list(form) if form is not None else []

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    def query_items(self) -> Iterable[Tuple[str, str]]:
        return parse_qsl(self._environ.get("QUERY_STRING", ""), keep_blank_values=True)

    def form_items(self) -> Iterable[Tuple[str, str]]:
        return list(self._form)

    def cookie_items(self) -> Iterable[Tuple[str, str]]:
        cookie = SimpleCookie()
        cookie.load(self._environ.get("HTTP_COOKIE", ""))
        return [(name, morsel.value) for name, morsel in cookie.items()]

    def header_items(self) -> Iterable[Tuple[str, str]]:
        headers: List[Tuple[str, str]] = []
        for key, value in self._environ.items():
            if key.startswith("HTTP_"):
                headers.append((key[5:].replace("_", "-").title(), value))
            elif key in _CONTENT_HEADERS and value:
                headers.append((_CONTENT_HEADERS[key], value))
        return headers

    def server_variable_items(self) -> Iterable[Tuple[str, str]]:
        environ = self._environ
        variables: List[Tuple[str, str]] = [
            ("URL", environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")),
        ]
        for key, value in environ.items():
            # CGI variables are upper case; wsgi.* and server specific keys are not
            if not isinstance(value, str) or not key.isupper() or key == "HTTP_COOKIE":
                continue
            variables.append((key, value))
        if "HTTP_HOST" not in environ and "SERVER_NAME" in environ:
            variables.append(("HTTP_HOST", environ["SERVER_NAME"]))
        return variables
