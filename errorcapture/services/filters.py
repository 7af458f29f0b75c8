"""
Redaction filter registry.

Holds the form and cookie filters (name -> replacement) and the pattern that
selects which exception metadata keys are copied into an error's custom data.
The registry is filled at startup and read concurrently by every failing
request afterwards.
"""

import re
import threading
from types import MappingProxyType
from typing import Mapping, Optional, Pattern, TYPE_CHECKING

if TYPE_CHECKING:
    from errorcapture.config import Settings


def _normalize(filters: Optional[Mapping[str, Optional[str]]]) -> Mapping[str, str]:
    return MappingProxyType({
        name: replacement if replacement is not None else ""
        for name, replacement in (filters or {}).items()
    })


def _compile(pattern: Optional[str]) -> Optional[Pattern[str]]:
    if not pattern:
        return None
    return re.compile(pattern, re.IGNORECASE | re.DOTALL)


class FilterRegistry:
    """
    Form and cookie redaction filters plus the custom data include pattern.

    Readers get immutable mapping views, so lookups need no locking. Writers
    build a new mapping under a lock and swap it in.
    """

    def __init__(
        self,
        form_filters: Optional[Mapping[str, Optional[str]]] = None,
        cookie_filters: Optional[Mapping[str, Optional[str]]] = None,
        data_include_pattern: Optional[str] = None,
    ):
        """
        Initialize the registry.

        Args:
            form_filters: Form field name -> replacement value (None blanks the value)
            cookie_filters: Cookie name -> replacement value (None blanks the value)
            data_include_pattern: Regex matched case-insensitively against exception metadata keys
        """
        self._lock = threading.Lock()
        self._form_filters = _normalize(form_filters)
        self._cookie_filters = _normalize(cookie_filters)
        self._data_include_regex = _compile(data_include_pattern)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "FilterRegistry":
        """Build a registry from the configured filters."""
        return cls(
            form_filters=settings.form_filters,
            cookie_filters=settings.cookie_filters,
            data_include_pattern=settings.data_include_pattern,
        )

    @property
    def form_filters(self) -> Mapping[str, str]:
        return self._form_filters

    @property
    def cookie_filters(self) -> Mapping[str, str]:
        return self._cookie_filters

    @property
    def data_include_regex(self) -> Optional[Pattern[str]]:
        return self._data_include_regex

    def add_form_filter(self, name: str, replacement: Optional[str] = None) -> None:
        with self._lock:
            filters = dict(self._form_filters)
            filters[name] = replacement
            self._form_filters = _normalize(filters)

    def add_cookie_filter(self, name: str, replacement: Optional[str] = None) -> None:
        with self._lock:
            filters = dict(self._cookie_filters)
            filters[name] = replacement
            self._cookie_filters = _normalize(filters)

    def set_data_include_pattern(self, pattern: Optional[str]) -> None:
        compiled = _compile(pattern)
        with self._lock:
            self._data_include_regex = compiled

    def includes_data_key(self, key: str) -> bool:
        """Whether an exception metadata key should be copied into custom data."""
        regex = self._data_include_regex
        return regex is not None and regex.search(key) is not None


_filter_registry: Optional[FilterRegistry] = None
_registry_lock = threading.Lock()


def get_filter_registry() -> FilterRegistry:
    """
    Get or create the process-wide filter registry.

    Built from get_settings() on first use.

    Returns:
        FilterRegistry instance
    """
    global _filter_registry
    if _filter_registry is None:
        with _registry_lock:
            if _filter_registry is None:
                from errorcapture.config import get_settings
                _filter_registry = FilterRegistry.from_settings(get_settings())
    return _filter_registry


def reset_filter_registry() -> None:
    """Drop the process-wide registry so the next call rebuilds it."""
    global _filter_registry
    with _registry_lock:
        _filter_registry = None
