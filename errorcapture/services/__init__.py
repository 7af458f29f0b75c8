"""Error capture services package."""

from errorcapture.services.filters import (
    FilterRegistry,
    get_filter_registry,
    reset_filter_registry
)
from errorcapture.services.context_extractor import (
    COLLECTION_ERROR_KEY,
    ContextExtractor,
    RequestContext,
    RequestSnapshot,
    get_remote_ip
)
from errorcapture.services.error_hash import compute_error_hash
from errorcapture.services.codec import (
    from_json,
    to_detailed_json,
    to_json
)

__all__ = [
    'FilterRegistry',
    'get_filter_registry',
    'reset_filter_registry',
    'COLLECTION_ERROR_KEY',
    'ContextExtractor',
    'RequestContext',
    'RequestSnapshot',
    'get_remote_ip',
    'compute_error_hash',
    'from_json',
    'to_detailed_json',
    'to_json'
]
