"""Data models for error capture."""

from .error import ErrorRecord, innermost_exception, builtin_exception_predicate
from .name_value import NameValueCollection
from .serialization import DetailedErrorPayload, ErrorPayload, NameValuePair

__all__ = [
    # Error models
    "ErrorRecord",
    "innermost_exception",
    "builtin_exception_predicate",
    # Collection models
    "NameValueCollection",
    # Serialization models
    "NameValuePair",
    "ErrorPayload",
    "DetailedErrorPayload",
]
