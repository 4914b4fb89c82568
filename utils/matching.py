"""Text matching utilities for keyword handlers.

Provides normalization and case-insensitive keyword lookup.
"""
from typing import Iterable, Optional, Tuple, TypeVar

T = TypeVar("T")


def normalize_phrase(s: str) -> str:
    """
    Normalize a phrase for whitespace/case-insensitive matching.
    - strip leading/trailing whitespace
    - lower-case
    """
    return s.strip().lower()


def first_keyword_match(
    text: str, table: Iterable[Tuple[str, T]]
) -> Optional[Tuple[str, T]]:
    """Return the first ``(keyword, value)`` whose keyword occurs in ``text``.

    Matching is case-insensitive substring containment; table order
    decides between several matching keywords. Empty keywords never match.
    """
    haystack = text.casefold()
    for keyword, value in table:
        needle = normalize_phrase(keyword).casefold()
        if needle and needle in haystack:
            return keyword, value
    return None
