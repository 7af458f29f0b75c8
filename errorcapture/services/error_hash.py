"""
Identity hashing for error rollup.

The hash is a quick comparison value used by stores to collapse repeated
occurrences of the same error. It is advisory only: collisions are possible
and it is never used as a key.
"""

import hashlib
from typing import Optional

# Multiplier used when mixing the machine name into the hash
ROLLUP_MULTIPLIER = 397


def _to_int32(value: int) -> int:
    """Wrap an arbitrary integer to a signed 32-bit value."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(value: str) -> int:
    """
    Stable signed 32-bit hash of a string.

    Uses the first four bytes of the SHA-256 digest so the result is the
    same in every process; the builtin hash() is salted per interpreter.
    Lone surrogates are hashed as-is rather than rejected.
    """
    digest = hashlib.sha256(value.encode("utf-8", "surrogatepass")).digest()
    return int.from_bytes(digest[:4], "little", signed=True)


def compute_error_hash(
    detail: Optional[str],
    machine_name: Optional[str] = None,
    rollup_per_server: bool = False,
) -> Optional[int]:
    """
    Compute the identity hash of an error.

    Args:
        detail: Full error detail (stack trace and chained causes)
        machine_name: Host the error happened on
        rollup_per_server: Keep identical errors from different hosts apart

    Returns:
        Signed 32-bit hash, or None when there is no detail to hash
    """
    if not detail:
        return None

    result = string_hash(detail)
    if rollup_per_server and machine_name:
        result = _to_int32(_to_int32(result * ROLLUP_MULTIPLIER) ^ string_hash(machine_name))

    return result
