"""
Shared fixtures for error capture unit tests.
"""

from typing import Iterable, Optional, Tuple

import pytest

from errorcapture.config import Settings
from errorcapture.services.filters import FilterRegistry


class FakeSnapshot:
    """In-memory RequestSnapshot; collections named in `failing` raise when read."""

    def __init__(
        self,
        query: Iterable[Tuple[str, str]] = (),
        form: Iterable[Tuple[str, str]] = (),
        cookies: Iterable[Tuple[str, str]] = (),
        headers: Iterable[Tuple[str, str]] = (),
        server_variables: Iterable[Tuple[str, str]] = (),
        status_code: Optional[int] = 500,
        failing: Iterable[str] = (),
    ):
        self.query = list(query)
        self.form = list(form)
        self.cookies = list(cookies)
        self.headers = list(headers)
        self.server_variables = list(server_variables)
        self._status_code = status_code
        self.failing = set(failing)

    def _items(self, name, items):
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")
        return list(items)

    @property
    def status_code(self):
        if "status_code" in self.failing:
            raise RuntimeError("response already disposed")
        return self._status_code

    def query_items(self):
        return self._items("query", self.query)

    def form_items(self):
        return self._items("form", self.form)

    def cookie_items(self):
        return self._items("cookies", self.cookies)

    def header_items(self):
        return self._items("headers", self.headers)

    def server_variable_items(self):
        return self._items("server_variables", self.server_variables)


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and any .env file."""
    return Settings(
        _env_file=None,
        application_name="checkout",
        machine_name="web-01",
        rollup_per_server=False,
    )


@pytest.fixture
def filters() -> FilterRegistry:
    """Registry with the filters used across tests."""
    return FilterRegistry(
        form_filters={"password": "[redacted]", "card_number": None},
        cookie_filters={"session": "[session]"},
        data_include_pattern="^Redis-.*|^Tenant",
    )


@pytest.fixture
def snapshot() -> FakeSnapshot:
    """A typical failing POST request."""
    return FakeSnapshot(
        query=[("tag", "a"), ("tag", "b"), ("page", "2")],
        form=[("user", "alice"), ("password", "secret123")],
        cookies=[("session", "abc123"), ("theme", "dark")],
        headers=[
            ("Host", "shop.example.com"),
            ("Cookie", "session=abc123; theme=dark"),
            ("Accept", "text/html"),
        ],
        server_variables=[
            ("HTTP_HOST", "shop.example.com"),
            ("URL", "/cart/checkout"),
            ("REQUEST_METHOD", "POST"),
            ("QUERY_STRING", "tag=a&tag=b&page=2"),
            ("REMOTE_ADDR", "10.0.0.5"),
            ("HTTP_X_FORWARDED_FOR", "93.184.216.34, 10.0.0.1"),
        ],
        status_code=500,
    )


@pytest.fixture
def make_snapshot():
    """Factory for custom request snapshots."""
    return FakeSnapshot
