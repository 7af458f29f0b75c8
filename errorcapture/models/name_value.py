"""Ordered multi-valued name/value collection."""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple


class NameValueCollection:
    """
    Ordered sequence of (name, value) pairs where names may repeat.

    Repeated query string parameters or headers are kept as separate
    entries, in the order they were added. Name lookups ignore case;
    the original casing is preserved for output.
    """

    def __init__(self, pairs: Optional[Iterable[Tuple[str, Optional[str]]]] = None):
        self._pairs: List[Tuple[str, Optional[str]]] = []
        if pairs is not None:
            for name, value in pairs:
                self.add(name, value)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, Optional[str]]]) -> "NameValueCollection":
        return cls(pairs)

    def add(self, name: str, value: Optional[str]) -> None:
        """Append a pair, keeping any existing values for the same name."""
        self._pairs.append((str(name), value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the last value added for `name`, or `default`."""
        key = name.lower()
        for pair_name, value in reversed(self._pairs):
            if pair_name.lower() == key:
                return value
        return default

    def get_all(self, name: str) -> List[Optional[str]]:
        key = name.lower()
        return [value for pair_name, value in self._pairs if pair_name.lower() == key]

    def set(self, name: str, value: Optional[str]) -> None:
        """
        Replace every value of `name` with a single value.

        The surviving entry keeps the position of the first occurrence;
        a name that is not present yet is appended.
        """
        key = name.lower()
        replaced = False
        pairs: List[Tuple[str, Optional[str]]] = []
        for pair_name, pair_value in self._pairs:
            if pair_name.lower() != key:
                pairs.append((pair_name, pair_value))
            elif not replaced:
                pairs.append((pair_name, value))
                replaced = True
        if not replaced:
            pairs.append((name, value))
        self._pairs = pairs

    def remove(self, name: str) -> None:
        key = name.lower()
        self._pairs = [pair for pair in self._pairs if pair[0].lower() != key]

    def names(self) -> List[str]:
        """Distinct names in first-seen order."""
        seen = set()
        result = []
        for name, _ in self._pairs:
            if name.lower() not in seen:
                seen.add(name.lower())
                result.append(name)
        return result

    def items(self) -> List[Tuple[str, Optional[str]]]:
        return list(self._pairs)

    def to_dict(self) -> Dict[str, Optional[str]]:
        """
        Single-valued view; the last value wins for repeated names.

        Names differing only in case share one key, spelled as first seen.
        """
        keys: Dict[str, str] = {}
        result: Dict[str, Optional[str]] = {}
        for name, value in self._pairs:
            key = keys.setdefault(name.lower(), name)
            result[key] = value
        return result

    def copy(self) -> "NameValueCollection":
        return NameValueCollection(self._pairs)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = name.lower()
        return any(pair_name.lower() == key for pair_name, _ in self._pairs)

    def __iter__(self) -> Iterator[Tuple[str, Optional[str]]]:
        return iter(list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NameValueCollection):
            return NotImplemented
        return self._pairs == other._pairs

    def __repr__(self) -> str:
        return f"NameValueCollection({self._pairs!r})"
