"""Capture application errors as deduplicatable, serializable records."""

from errorcapture.config import Settings, get_settings
from errorcapture.exceptions import (
    CollectionReadError,
    ErrorCaptureError,
    InvalidArgumentError,
    SerializationError,
)
from errorcapture.models import ErrorRecord, NameValueCollection
from errorcapture.services import (
    COLLECTION_ERROR_KEY,
    ContextExtractor,
    FilterRegistry,
    RequestSnapshot,
    compute_error_hash,
    from_json,
    get_filter_registry,
    to_detailed_json,
    to_json,
)

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "ErrorCaptureError",
    "InvalidArgumentError",
    "CollectionReadError",
    "SerializationError",
    "ErrorRecord",
    "NameValueCollection",
    "COLLECTION_ERROR_KEY",
    "ContextExtractor",
    "FilterRegistry",
    "RequestSnapshot",
    "compute_error_hash",
    "from_json",
    "get_filter_registry",
    "to_detailed_json",
    "to_json",
]
