"""Deterministic normalization helpers for security matching.

Everything here is pure: the same input always yields the same key, which
keeps duplicate detection idempotent across aggregation passes.
"""

from __future__ import annotations

import re
from typing import Final

from rapidfuzz.distance import Levenshtein

EXCHANGE_SUFFIXES: Final[tuple[str, ...]] = (".O", ".N", ".L", ".TO", ".OL", ".ST", ".CO", ".HE")
ENTITY_SUFFIXES: Final[tuple[str, ...]] = (
    "inc",
    "corp",
    "corporation",
    "company",
    "co",
    "ltd",
    "limited",
    "plc",
    "ag",
    "sa",
    "nv",
    "ab",
    "asa",
    "oyj",
)

_SYMBOL_SEPARATORS = re.compile(r"[-_\s]")
_ENTITY_SUFFIX_WORDS = re.compile(r"\b(" + "|".join(ENTITY_SUFFIXES) + r")\b")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_symbol(symbol: str) -> str:
    """Uppercase, drop one known exchange suffix, and remove separators.

    ``"aapl.o"`` and ``"AAPL"`` both normalize to ``"AAPL"``.
    """

    normalized = symbol.strip().upper()
    for suffix in EXCHANGE_SUFFIXES:
        if normalized.endswith(suffix) and len(normalized) > len(suffix):
            normalized = normalized[: -len(suffix)]
            break
    return _SYMBOL_SEPARATORS.sub("", normalized)


def normalize_name(name: str) -> str:
    """Lowercase and strip entity suffixes and punctuation from a company name."""

    lowered = name.lower()
    without_suffixes = _ENTITY_SUFFIX_WORDS.sub("", lowered)
    without_punctuation = _PUNCTUATION.sub("", without_suffixes)
    return _WHITESPACE.sub(" ", without_punctuation).strip()


def name_similarity(first: str, second: str) -> float:
    """Return ``1 - distance / max(len)``; two empty names are not similar."""

    if not first and not second:
        return 0.0
    return Levenshtein.normalized_similarity(first, second)
