"""
Unit tests for request context extraction and redaction.
"""

import logging

import pytest

from errorcapture.models.name_value import NameValueCollection
from errorcapture.services.context_extractor import (
    COLLECTION_ERROR_KEY,
    UNKNOWN_IP,
    ContextExtractor,
    RequestSnapshot,
    get_remote_ip,
)
from errorcapture.services.filters import FilterRegistry


def test_fake_snapshot_satisfies_protocol(snapshot):
    """Test that the test snapshot implements the capability interface."""
    assert isinstance(snapshot, RequestSnapshot)


def test_form_redaction_scenario(make_snapshot):
    """Test redacting a password while leaving other fields alone."""
    request = make_snapshot(form=[("password", "secret123"), ("user", "alice")])
    extractor = ContextExtractor(FilterRegistry(form_filters={"password": "[redacted]"}))

    context = extractor.extract(request)

    assert context.form.to_dict() == {"password": "[redacted]", "user": "alice"}


def test_filter_never_invents_fields(make_snapshot):
    """Test that filters for absent fields add nothing."""
    request = make_snapshot(form=[("user", "alice")], cookies=[("theme", "dark")])
    extractor = ContextExtractor(FilterRegistry(
        form_filters={"password": "[redacted]"},
        cookie_filters={"session": "x"},
    ))

    context = extractor.extract(request)

    assert context.form.items() == [("user", "alice")]
    assert context.cookies.items() == [("theme", "dark")]


def test_filter_without_replacement_blanks_value(snapshot, filters):
    """Test that a filter with no replacement empties the value."""
    snapshot.form.append(("card_number", "4111111111111111"))

    context = ContextExtractor(filters).extract(snapshot)

    assert context.form.get("card_number") == ""


def test_repeated_filtered_field_collapses(make_snapshot):
    """Test that every value of a filtered field is replaced."""
    request = make_snapshot(form=[("password", "one"), ("user", "alice"), ("password", "two")])
    extractor = ContextExtractor(FilterRegistry(form_filters={"password": "[redacted]"}))

    context = extractor.extract(request)

    assert context.form.get_all("password") == ["[redacted]"]
    assert "one" not in [value for _, value in context.form]


def test_cookie_redaction(snapshot, filters):
    """Test cookie filters, with unfiltered cookies passing through."""
    context = ContextExtractor(filters).extract(snapshot)

    assert context.cookies.items() == [("session", "[session]"), ("theme", "dark")]


@pytest.mark.parametrize("cookie_header", ["Cookie", "cookie", "COOKIE", "cOoKiE"])
def test_cookie_header_is_excluded(make_snapshot, cookie_header):
    """Test that the Cookie header is dropped regardless of casing."""
    request = make_snapshot(headers=[("Accept", "*/*"), (cookie_header, "a=b"), ("X-Trace", "1")])

    context = ContextExtractor(FilterRegistry()).extract(request)

    assert all(name.lower() != "cookie" for name, _ in context.request_headers)
    assert context.request_headers.items() == [("Accept", "*/*"), ("X-Trace", "1")]


def test_repeated_query_parameters_are_kept(snapshot, filters):
    """Test that multi-valued query parameters are preserved."""
    context = ContextExtractor(filters).extract(snapshot)

    assert context.query_string.items() == [("tag", "a"), ("tag", "b"), ("page", "2")]


def test_status_code_is_read(snapshot, filters):
    """Test that the response status at capture time is recorded."""
    snapshot._status_code = 503

    context = ContextExtractor(filters).extract(snapshot)

    assert context.status_code == 503


def test_failing_status_code_degrades_to_none(make_snapshot):
    """Test that an unreadable status code does not abort extraction."""
    request = make_snapshot(query=[("a", "1")], failing=["status_code"])

    context = ContextExtractor(FilterRegistry()).extract(request)

    assert context.status_code is None
    assert context.query_string.items() == [("a", "1")]


def test_failing_collection_becomes_sentinel(snapshot, filters, caplog):
    """Test that one unreadable collection does not prevent capturing the rest."""
    snapshot.failing = {"headers", "form"}

    with caplog.at_level(logging.WARNING):
        context = ContextExtractor(filters).extract(snapshot)

    assert context.request_headers == NameValueCollection([(COLLECTION_ERROR_KEY, "headers unavailable")])
    assert context.form == NameValueCollection([(COLLECTION_ERROR_KEY, "form unavailable")])
    assert context.query_string.get_all("tag") == ["a", "b"]
    assert context.cookies.get("session") == "[session]"
    assert context.server_variables.get("HTTP_HOST") == "shop.example.com"
    assert "Error parsing form collection" in caplog.text


def test_extraction_does_not_mutate_registry(snapshot, filters):
    """Test that the registry is read only."""
    form_before = dict(filters.form_filters)
    cookies_before = dict(filters.cookie_filters)

    ContextExtractor(filters).extract(snapshot)

    assert dict(filters.form_filters) == form_before
    assert dict(filters.cookie_filters) == cookies_before


def test_raw_snapshot_is_not_modified(snapshot, filters):
    """Test that redaction works on the extracted copy only."""
    ContextExtractor(filters).extract(snapshot)

    assert ("password", "secret123") in snapshot.form


class TestRemoteIP:
    """Test client address resolution from server variables."""

    def test_remote_addr(self):
        variables = NameValueCollection([("REMOTE_ADDR", "198.51.100.4")])
        assert get_remote_ip(variables) == "198.51.100.4"

    def test_public_forwarded_address_wins(self):
        variables = NameValueCollection([
            ("REMOTE_ADDR", "10.0.0.5"),
            ("HTTP_X_FORWARDED_FOR", "93.184.216.34, 10.0.0.1"),
        ])
        assert get_remote_ip(variables) == "93.184.216.34"

    def test_private_forwarded_address_ignored(self):
        variables = NameValueCollection([
            ("REMOTE_ADDR", "198.51.100.4"),
            ("HTTP_X_FORWARDED_FOR", "192.168.1.20"),
        ])
        assert get_remote_ip(variables) == "198.51.100.4"

    def test_invalid_forwarded_value_ignored(self):
        variables = NameValueCollection([
            ("REMOTE_ADDR", "198.51.100.4"),
            ("HTTP_X_FORWARDED_FOR", "unknown"),
        ])
        assert get_remote_ip(variables) == "198.51.100.4"

    def test_unknown(self):
        assert get_remote_ip(NameValueCollection()) == UNKNOWN_IP
