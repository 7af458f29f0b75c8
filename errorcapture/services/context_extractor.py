"""
Request context extraction and redaction.

Turns a request snapshot into the multi-valued collections stored on an
error record: query string, form, cookies, headers and server variables.
Sensitive form fields and cookies are replaced according to the filter
registry, and the Cookie header is dropped because cookies are recorded
separately.

A collection that cannot be read is replaced by a single sentinel entry
carrying the failure message; the other collections are still captured.
"""

import ipaddress
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Protocol, Tuple, runtime_checkable

from errorcapture.models.name_value import NameValueCollection
from errorcapture.services.filters import FilterRegistry
from errorcapture.utils.logging import get_logger, log_collection_failure

logger = get_logger(__name__)

# Name of the sentinel entry substituted for an unreadable collection
COLLECTION_ERROR_KEY = "CollectionFetchError"

# Returned by get_remote_ip() when no address is known
UNKNOWN_IP = "0.0.0.0"

Pairs = Iterable[Tuple[str, str]]


@runtime_checkable
class RequestSnapshot(Protocol):
    """
    Read-only view of the request being served when an error was raised.

    Host adapters implement this for their framework. Every method may raise;
    the extractor degrades the affected collection instead of failing.
    """

    @property
    def status_code(self) -> Optional[int]:
        """Response status at the moment of capture."""
        ...

    def query_items(self) -> Pairs:
        ...

    def form_items(self) -> Pairs:
        ...

    def cookie_items(self) -> Pairs:
        ...

    def header_items(self) -> Pairs:
        ...

    def server_variable_items(self) -> Pairs:
        """CGI-style variables: HTTP_HOST, URL, REQUEST_METHOD, QUERY_STRING, REMOTE_ADDR, ..."""
        ...


@dataclass
class RequestContext:
    """Collections extracted from a request snapshot."""

    server_variables: NameValueCollection
    query_string: NameValueCollection
    form: NameValueCollection
    cookies: NameValueCollection
    request_headers: NameValueCollection
    status_code: Optional[int] = None


class ContextExtractor:
    """
    Extracts and redacts request collections for an error record.

    The filter registry is only read, never modified.
    """

    def __init__(self, filters: FilterRegistry):
        self._filters = filters

    @property
    def filters(self) -> FilterRegistry:
        return self._filters

    def extract(self, request: RequestSnapshot) -> RequestContext:
        """
        Read every collection from the request snapshot.

        Args:
            request: Snapshot of the failing request

        Returns:
            RequestContext with redacted collections and the current status code
        """
        context = RequestContext(
            server_variables=self._read("server_variables", request.server_variable_items),
            query_string=self._read("query_string", request.query_items),
            form=self._read("form", request.form_items),
            cookies=self._read("cookies", request.cookie_items),
            request_headers=self._read("request_headers", request.header_items, exclude_cookie=True),
            status_code=self._read_status_code(request),
        )

        self._mask(context.form, self._filters.form_filters)
        self._mask(context.cookies, self._filters.cookie_filters)
        return context

    def _read(
        self,
        name: str,
        getter: Callable[[], Pairs],
        exclude_cookie: bool = False,
    ) -> NameValueCollection:
        collection = NameValueCollection()
        try:
            for key, value in getter():
                if exclude_cookie and key.lower() == "cookie":
                    continue
                collection.add(key, value)
        except Exception as e:
            log_collection_failure(logger, name, e)
            return NameValueCollection([(COLLECTION_ERROR_KEY, str(e))])
        return collection

    def _read_status_code(self, request: RequestSnapshot) -> Optional[int]:
        try:
            status_code = request.status_code
        except Exception as e:
            log_collection_failure(logger, "status_code", e)
            return None
        return int(status_code) if status_code is not None else None

    @staticmethod
    def _mask(collection: NameValueCollection, filters: Mapping[str, str]) -> None:
        if COLLECTION_ERROR_KEY in collection:
            return
        for name, replacement in filters.items():
            if name in collection:
                collection.set(name, replacement)


def _is_private(address: str) -> bool:
    ip = ipaddress.ip_address(address)
    return ip.is_private or ip.is_loopback or ip.is_link_local


def _first_valid_ip(value: str) -> Optional[str]:
    for candidate in value.split(","):
        candidate = candidate.strip()
        try:
            ipaddress.ip_address(candidate)
        except ValueError:
            continue
        return candidate
    return None


def get_remote_ip(server_variables: NameValueCollection) -> str:
    """
    Best guess at the client address for a request.

    REMOTE_ADDR may be a proxy, so a public address forwarded through
    HTTP_X_FORWARDED_FOR takes precedence.

    Args:
        server_variables: Server variables of the request

    Returns:
        Client IP address, or UNKNOWN_IP when none is known
    """
    ip = server_variables.get("REMOTE_ADDR")
    forwarded = server_variables.get("HTTP_X_FORWARDED_FOR")

    if forwarded:
        forwarded_ip = _first_valid_ip(forwarded)
        if forwarded_ip and not _is_private(forwarded_ip):
            ip = forwarded_ip

    return ip if ip else UNKNOWN_IP
