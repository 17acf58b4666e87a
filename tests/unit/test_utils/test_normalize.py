"""Tests for name and address normalization."""

import pytest

from commission_guard.utils.normalize import normalize_address, normalize_name, split_parties


@pytest.mark.unit
def test_normalize_name_collapses_whitespace_and_case():
    assert normalize_name("  JOHN   Smith ") == "john smith"
    assert normalize_name(None) == ""


@pytest.mark.unit
@pytest.mark.parametrize("raw,expected", [
    ("JOHN SMITH & JANE SMITH", ["john smith", "jane smith"]),
    ("John Smith and Jane Smith", ["john smith", "jane smith"]),
    ("John Smith; Jane Smith / Trust", ["john smith", "jane smith", "trust"]),
    ("Alexandra Anderson", ["alexandra anderson"]),
    ("", []),
])
def test_split_parties(raw, expected):
    assert split_parties(raw) == expected


@pytest.mark.unit
def test_normalize_address():
    assert normalize_address("123 Main St. ,  Austin,TX") == "123 main st, austin, tx"
    assert normalize_address(None) == ""
