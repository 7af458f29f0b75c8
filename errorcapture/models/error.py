"""Error record data model."""

import socket
import traceback
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Mapping, Optional

from errorcapture.exceptions import InvalidArgumentError
from errorcapture.models.name_value import NameValueCollection

if TYPE_CHECKING:
    from errorcapture.config import Settings
    from errorcapture.services.context_extractor import RequestContext, RequestSnapshot
    from errorcapture.services.filters import FilterRegistry


def _type_name(exception: BaseException) -> str:
    cls = type(exception)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _source(exception: BaseException) -> Optional[str]:
    """Module name of the frame that raised the exception."""
    tb = exception.__traceback__
    if tb is None:
        return None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_globals.get("__name__")


def _message(exception: BaseException) -> str:
    try:
        return str(exception)
    except Exception:
        return f"<unprintable {type(exception).__name__} object>"


def _clean_text(value: Optional[str]) -> Optional[str]:
    """Escape lone surrogates (e.g. from surrogateescape-decoded paths) so the text is valid UTF-8."""
    if value is None:
        return None
    return value.encode("utf-8", "backslashreplace").decode("utf-8")


def _clean_collection(collection: Optional[NameValueCollection]) -> Optional[NameValueCollection]:
    if collection is None:
        return None
    return NameValueCollection((_clean_text(name), _clean_text(value)) for name, value in collection)


def innermost_exception(exception: BaseException) -> BaseException:
    """Follow the __cause__ / __context__ chain down to the root cause."""
    seen = {id(exception)}
    current = exception
    while True:
        inner = current.__cause__
        if inner is None and not current.__suppress_context__:
            inner = current.__context__
        if inner is None or id(inner) in seen:
            return current
        seen.add(id(inner))
        current = inner


def builtin_exception_predicate(modules: Iterable[str]) -> Callable[[BaseException], bool]:
    """
    Build a predicate classifying exceptions defined in `modules` as framework built-ins.

    Built-in exceptions are unwrapped to their root cause because the wrapper
    rarely adds anything useful for grouping.
    """
    module_names = frozenset(modules)

    def is_builtin(exception: BaseException) -> bool:
        return type(exception).__module__ in module_names

    return is_builtin


class ErrorRecord:
    """
    A logical application error, as opposed to the exception it represents.

    Built once per failure by from_exception(). Afterwards only external
    collaborators change it: the rollup bookkeeping (duplicate_count,
    is_duplicate), protection and deletion flags, and the storage id.
    Use clone() before handing a record to anything that runs on its own.
    """

    def __init__(self, guid: Optional[uuid.UUID] = None):
        self.id: int = 0
        self.guid: uuid.UUID = guid or uuid.uuid4()

        self.exception: Optional[BaseException] = None
        self.application_name: Optional[str] = None
        self.machine_name: Optional[str] = None
        self.type: Optional[str] = None
        self.source: Optional[str] = None
        self.message: Optional[str] = None
        self.detail: Optional[str] = None
        self.sql: Optional[str] = None
        self.creation_date: datetime = datetime.now(timezone.utc)
        self.status_code: Optional[int] = None

        self.server_variables: Optional[NameValueCollection] = None
        self.query_string: Optional[NameValueCollection] = None
        self.form: Optional[NameValueCollection] = None
        self.cookies: Optional[NameValueCollection] = None
        self.request_headers: Optional[NameValueCollection] = None
        self.custom_data: Optional[Dict[str, str]] = None

        self.error_hash: Optional[int] = None
        self.duplicate_count: int = 1
        self.is_duplicate: bool = False
        self.is_protected: bool = False
        self.deletion_date: Optional[datetime] = None
        self.rollup_per_server: bool = False
        self.full_json: Optional[str] = None

        # Derived request fields; a key is present once the value is resolved
        self._derived: Dict[str, Optional[str]] = {}

    @classmethod
    def from_exception(
        cls,
        exception: Optional[BaseException],
        request: Optional["RequestSnapshot"] = None,
        application_name: Optional[str] = None,
        *,
        custom_data: Optional[Mapping[str, str]] = None,
        rollup_per_server: Optional[bool] = None,
        settings: Optional["Settings"] = None,
        filters: Optional["FilterRegistry"] = None,
        is_builtin: Optional[Callable[[BaseException], bool]] = None,
    ) -> "ErrorRecord":
        """
        Build an error record from an exception and, optionally, the request being served.

        When the exception is a framework built-in wrapper, message, type and
        source are taken from the innermost exception of its chain; detail
        always holds the full text of the outer exception.

        Args:
            exception: The exception being captured
            request: Snapshot of the failing request, if any
            application_name: Overrides the configured application name
            custom_data: Extra key/value pairs to attach
            rollup_per_server: Overrides the configured per-server rollup flag
            settings: Settings to use instead of get_settings()
            filters: Filter registry to use instead of get_filter_registry()
            is_builtin: Decides whether an exception should be unwrapped

        Returns:
            Fully populated ErrorRecord with its hash computed

        Raises:
            InvalidArgumentError: If exception is None
        """
        if exception is None:
            raise InvalidArgumentError("An exception is required to create an error record")

        from errorcapture.config import get_settings
        from errorcapture.services.context_extractor import ContextExtractor
        from errorcapture.services.filters import get_filter_registry
        from errorcapture.utils.logging import get_logger, log_error_captured

        settings = settings or get_settings()
        filters = filters or get_filter_registry()
        if is_builtin is None:
            is_builtin = builtin_exception_predicate(settings.builtin_exception_modules)

        base_exception = innermost_exception(exception) if is_builtin(exception) else exception

        record = cls()
        record.exception = exception
        record.application_name = application_name or settings.application_name
        record.machine_name = settings.machine_name or socket.gethostname()
        record.type = _type_name(base_exception)
        record.message = _message(base_exception)
        record.source = _source(base_exception)
        record.detail = "".join(
            traceback.format_exception(type(exception), exception, exception.__traceback__)
        )
        record.creation_date = datetime.now(timezone.utc)
        record.duplicate_count = 1
        record.rollup_per_server = (
            settings.rollup_per_server if rollup_per_server is None else rollup_per_server
        )

        if request is not None:
            record._set_context(ContextExtractor(filters).extract(request))

        record._add_from_data(exception, filters)
        if custom_data:
            if record.custom_data is None:
                record.custom_data = {}
            record.custom_data.update({str(k): str(v) for k, v in custom_data.items()})

        record._clean_text_fields()
        record.error_hash = record.get_hash()

        log_error_captured(get_logger(__name__), record)
        return record

    def _set_context(self, context: "RequestContext") -> None:
        self.server_variables = context.server_variables
        self.query_string = context.query_string
        self.form = context.form
        self.cookies = context.cookies
        self.request_headers = context.request_headers
        self.status_code = context.status_code

    def _add_from_data(self, exception: BaseException, filters: "FilterRegistry") -> None:
        """Copy SQL text and matching exception metadata onto the record."""
        data = getattr(exception, "data", None)
        if not isinstance(data, Mapping):
            data = {}

        sql = data.get("SQL")
        if isinstance(sql, str):
            self.sql = sql

        # SQLAlchemy's StatementError carries the failing statement
        statement = getattr(exception, "statement", None)
        if self.sql is None and isinstance(statement, str):
            self.sql = statement

        for key, value in data.items():
            if not filters.includes_data_key(str(key)):
                continue
            if self.custom_data is None:
                self.custom_data = {}
            self.custom_data[str(key)] = "" if value is None else str(value)

    def _clean_text_fields(self) -> None:
        """Make every captured string encodable as UTF-8."""
        self.type = _clean_text(self.type)
        self.source = _clean_text(self.source)
        self.message = _clean_text(self.message)
        self.detail = _clean_text(self.detail)
        self.sql = _clean_text(self.sql)
        self.server_variables = _clean_collection(self.server_variables)
        self.query_string = _clean_collection(self.query_string)
        self.form = _clean_collection(self.form)
        self.cookies = _clean_collection(self.cookies)
        self.request_headers = _clean_collection(self.request_headers)
        if self.custom_data is not None:
            self.custom_data = {
                _clean_text(key): _clean_text(value) for key, value in self.custom_data.items()
            }

    def get_hash(self) -> Optional[int]:
        """
        Compute the rollup hash for this error.

        Not cached: error_hash keeps the value computed at construction
        until a caller explicitly assigns the result of this method.
        """
        from errorcapture.services.error_hash import compute_error_hash

        return compute_error_hash(self.detail, self.machine_name, self.rollup_per_server)

    def _derive(self, field: str, compute: Callable[[NameValueCollection], Optional[str]]) -> Optional[str]:
        if field not in self._derived:
            variables = self.server_variables
            self._derived[field] = "" if variables is None else compute(variables)
        return self._derived[field]

    @property
    def host(self) -> Optional[str]:
        """The URL host of the request causing this error."""
        return self._derive("host", lambda variables: variables.get("HTTP_HOST"))

    @host.setter
    def host(self, value: Optional[str]) -> None:
        self._derived["host"] = value

    @property
    def url(self) -> Optional[str]:
        """The URL path of the request causing this error."""
        return self._derive("url", lambda variables: variables.get("URL"))

    @url.setter
    def url(self, value: Optional[str]) -> None:
        self._derived["url"] = value

    @property
    def http_method(self) -> Optional[str]:
        """The HTTP method of the request causing this error, e.g. GET or POST."""
        return self._derive("http_method", lambda variables: variables.get("REQUEST_METHOD"))

    @http_method.setter
    def http_method(self, value: Optional[str]) -> None:
        self._derived["http_method"] = value

    @property
    def ip_address(self) -> Optional[str]:
        """The client IP address of the request causing this error."""
        from errorcapture.services.context_extractor import get_remote_ip

        return self._derive("ip_address", get_remote_ip)

    @ip_address.setter
    def ip_address(self, value: Optional[str]) -> None:
        self._derived["ip_address"] = value

    def clone(self) -> "ErrorRecord":
        """
        Copy the error and its collections so later in-memory changes
        to either copy do not affect the other.
        """
        copy = ErrorRecord(guid=self.guid)
        copy.id = self.id
        copy.exception = self.exception
        copy.application_name = self.application_name
        copy.machine_name = self.machine_name
        copy.type = self.type
        copy.source = self.source
        copy.message = self.message
        copy.detail = self.detail
        copy.sql = self.sql
        copy.creation_date = self.creation_date
        copy.status_code = self.status_code

        copy.server_variables = self.server_variables.copy() if self.server_variables is not None else None
        copy.query_string = self.query_string.copy() if self.query_string is not None else None
        copy.form = self.form.copy() if self.form is not None else None
        copy.cookies = self.cookies.copy() if self.cookies is not None else None
        copy.request_headers = self.request_headers.copy() if self.request_headers is not None else None
        copy.custom_data = dict(self.custom_data) if self.custom_data is not None else None

        copy.error_hash = self.error_hash
        copy.duplicate_count = self.duplicate_count
        copy.is_duplicate = self.is_duplicate
        copy.is_protected = self.is_protected
        copy.deletion_date = self.deletion_date
        copy.rollup_per_server = self.rollup_per_server
        copy.full_json = self.full_json
        copy._derived = dict(self._derived)
        return copy

    def to_json(self) -> str:
        """Full JSON representation of this error."""
        from errorcapture.services.codec import to_json

        return to_json(self)

    def to_detailed_json(self) -> str:
        """Reduced JSON representation safe to hand outside the application."""
        from errorcapture.services.codec import to_detailed_json

        return to_detailed_json(self)

    @classmethod
    def from_json(cls, data: Any) -> "ErrorRecord":
        """Rebuild an error from its full JSON representation."""
        from errorcapture.services.codec import from_json

        return from_json(data)

    def __str__(self) -> str:
        return self.message or ""

    def __repr__(self) -> str:
        return f"ErrorRecord(guid={self.guid!s}, type={self.type!r}, error_hash={self.error_hash!r})"
