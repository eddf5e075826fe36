from __future__ import annotations

import pytest

from brokermerge.domain.reconciliation.normalize import (
    name_similarity,
    normalize_name,
    normalize_symbol,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("AAPL", "AAPL"),
        ("aapl.o", "AAPL"),
        (" EQNR.OL ", "EQNR"),
        ("BRK-B", "BRKB"),
        ("brk_b", "BRKB"),
        ("VOLV B.ST", "VOLVB"),
    ],
)
def test_normalize_symbol(raw: str, expected: str) -> None:
    assert normalize_symbol(raw) == expected


def test_normalize_symbol_strips_only_one_suffix() -> None:
    assert normalize_symbol("ABC.TO.L") == "ABC.TO"


def test_normalize_symbol_keeps_bare_suffix() -> None:
    assert normalize_symbol(".O") == ".O"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Apple Inc.", "apple"),
        ("Equinor ASA", "equinor"),
        ("Microsoft Corporation", "microsoft"),
        ("Novo Nordisk A/S", "novo nordisk as"),
        ("  Volvo   AB  ", "volvo"),
    ],
)
def test_normalize_name(raw: str, expected: str) -> None:
    assert normalize_name(raw) == expected


def test_normalize_name_only_strips_whole_words() -> None:
    assert normalize_name("Coca Cola") == "coca cola"


def test_name_similarity_bounds() -> None:
    assert name_similarity("apple", "apple") == 1.0
    assert name_similarity("abc", "xyz") == 0.0
    assert name_similarity("", "") == 0.0
    assert name_similarity("apple", "") == 0.0
    assert name_similarity("microsoft", "microsft") == pytest.approx(1 - 1 / 9)


def test_name_similarity_is_one_minus_edit_distance_over_longest() -> None:
    assert name_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
    assert name_similarity("alphabet class a", "alphabet class c") == pytest.approx(1 - 1 / 16)
