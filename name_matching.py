"""Fuzzy institution-name matching against normalized lookup keys."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TypeVar

T = TypeVar("T")

# Words of this length or shorter ("of", "at", ...) never count as overlap.
_MIN_OVERLAP_WORD_LENGTH = 3
_MIN_SHARED_WORDS = 2


def normalize_name(text: str | None) -> str:
    """Lower-case and collapse whitespace."""
    if not text:
        return ""
    return " ".join(text.lower().split())


def name_variations(name: str) -> list[str]:
    """Return textual variations of a normalized name, in the order they are tried."""
    return [
        name.replace(" university", "", 1),
        name.replace(" college", "", 1),
        name.replace("university of ", "", 1),
        name.removeprefix("the "),
        name.replace("-", " "),
        name.replace(" ", "-"),
        name.replace("st.", "saint"),
        name.replace("saint", "st."),
    ]


def word_overlap(a: str, b: str, min_length: int = 0) -> int:
    """Count words of ``a`` longer than ``min_length - 1`` chars that also appear in ``b``."""
    b_words = set(b.split())
    return sum(1 for word in set(a.split()) if len(word) >= min_length and word in b_words)


def resolve_key(name: str | None, keys: Iterable[str]) -> str | None:
    """Map a free-text name onto the best matching key, or None.

    Keys must already be normalized. Token-overlap ties keep the first key in
    iteration order.
    """
    target = normalize_name(name)
    if not target:
        return None

    key_list = list(keys)
    key_set = set(key_list)

    if target in key_set:
        return target

    for variant in name_variations(target):
        if variant and variant in key_set:
            return variant

    best_key: str | None = None
    best_score = 0
    for key in key_list:
        score = word_overlap(target, key, min_length=_MIN_OVERLAP_WORD_LENGTH)
        if score > best_score and score >= _MIN_SHARED_WORDS:
            best_score = score
            best_key = key

    return best_key


def match_record(name: str | None, mapping: Mapping[str, T]) -> T | None:
    """Return the record for the best-matching key in ``mapping``, or None."""
    key = resolve_key(name, mapping.keys())
    return mapping[key] if key is not None else None
