"""Match a canonical scan key against in-memory catalog or customer records.

Matching runs in two passes and favours precision over recall:

1. *Exact pass* returns the first record where the key equals one of its
   comparable fields, checked in priority order serial → stock code →
   barcode → name.
2. *Fallback pass* only runs when the exact pass misses. It returns the first
   record where the key is a substring of serial, stock code or barcode. The
   display name is left out so short keys do not hit random product names.

The fallback tolerates OCR noise such as dropped leading zeros. An operator
confirms the matched item on screen before it is committed, so the occasional
false positive is acceptable. Absence is a normal result and returns ``None``.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence, TypeVar

__all__ = ["Matchable", "match_candidate", "exact_match", "partial_match"]


class Matchable(Protocol):
    def match_fields(self) -> Sequence[Optional[str]]:
        """Return (serial, stock code, barcode, name) in priority order."""


T = TypeVar("T", bound=Matchable)

# The last comparable field (display name) only takes part in the exact pass.
_FALLBACK_FIELD_COUNT = 3


def _comparable(values: Iterable[Optional[str]]) -> list[str]:
    return [value.strip().lower() for value in values if value and value.strip()]


def exact_match(key: str, candidates: Iterable[T]) -> Optional[T]:
    for candidate in candidates:
        if key in _comparable(candidate.match_fields()):
            return candidate
    return None


def partial_match(key: str, candidates: Iterable[T]) -> Optional[T]:
    for candidate in candidates:
        fields = _comparable(candidate.match_fields()[:_FALLBACK_FIELD_COUNT])
        if any(key in field for field in fields):
            return candidate
    return None


def match_candidate(key: str, candidates: Sequence[T]) -> Optional[T]:
    """Return the record matching ``key`` or ``None``.

    ``key`` is expected to be canonical already (see ``normalize_scan_code``).
    An empty key never matches.
    """

    if not key:
        return None
    found = exact_match(key, candidates)
    if found is None:
        found = partial_match(key, candidates)
    return found
