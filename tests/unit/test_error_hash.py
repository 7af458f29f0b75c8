"""
Unit tests for error identity hashing.
"""

import pytest

from errorcapture.services.error_hash import (
    ROLLUP_MULTIPLIER,
    _to_int32,
    compute_error_hash,
    string_hash,
)

DETAIL = 'Traceback (most recent call last):\n  File "app.py", line 3, in <module>\nValueError: boom\n'


def test_hash_is_deterministic():
    """Test that identical detail always hashes to the same value."""
    assert compute_error_hash(DETAIL) == compute_error_hash(DETAIL)
    assert compute_error_hash(DETAIL, None, False) == string_hash(DETAIL)


@pytest.mark.parametrize("detail", ["", None])
@pytest.mark.parametrize("rollup", [True, False])
def test_empty_detail_has_no_hash(detail, rollup):
    """Test that an empty detail never produces a hash."""
    assert compute_error_hash(detail, "web-01", rollup) is None


def test_hash_fits_in_signed_32_bits():
    """Test that hashes are signed 32-bit integers."""
    for detail in [DETAIL, "a", "b" * 10_000, "ünïcödé"]:
        for machine in [None, "web-01", "web-02"]:
            value = compute_error_hash(detail, machine, True)
            assert -2**31 <= value < 2**31


def test_rollup_per_server_mixes_machine_name():
    """Test the per-server mixing rule."""
    expected = _to_int32(_to_int32(string_hash(DETAIL) * ROLLUP_MULTIPLIER) ^ string_hash("web-01"))

    assert compute_error_hash(DETAIL, "web-01", True) == expected


def test_different_machines_hash_differently():
    """Test that the same error on two servers gets two hashes when rolling up per server."""
    assert compute_error_hash(DETAIL, "web-01", True) != compute_error_hash(DETAIL, "web-02", True)


def test_machine_name_ignored_without_rollup():
    """Test that the machine name only matters when rolling up per server."""
    assert compute_error_hash(DETAIL, "web-01", False) == compute_error_hash(DETAIL, "web-02", False)


def test_rollup_without_machine_name():
    """Test that per-server rollup without a machine name falls back to the content hash."""
    assert compute_error_hash(DETAIL, "", True) == compute_error_hash(DETAIL)
    assert compute_error_hash(DETAIL, None, True) == compute_error_hash(DETAIL)


def test_different_details_hash_differently():
    """Test that distinct details produce distinct hashes."""
    assert compute_error_hash(DETAIL) != compute_error_hash(DETAIL + "x")


def test_to_int32_wraps():
    """Test 32-bit wrapping."""
    assert _to_int32(2**31) == -2**31
    assert _to_int32(2**32 + 5) == 5
    assert _to_int32(-1) == -1


def test_lone_surrogates_are_hashed():
    """Test that text with lone surrogates hashes instead of raising."""
    value = compute_error_hash("bad filename \udcff", "web-01", True)

    assert -2**31 <= value < 2**31
    assert string_hash("bad filename \udcff") != string_hash("bad filename \udcfe")
