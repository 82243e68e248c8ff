import pytest

from costscan.extractors.ex_amounts import ex_amounts
from costscan.extractors.ex_currency import detect_currency, ex_currency
from costscan.extractors.utils_amounts import _norm_amount, parse_numeric, plausible_amount

@pytest.mark.parametrize("raw,expected", [
    ("1.170,00", 1170.0),
    ("1,170.00", 1170.0),
    ("1 170,00", 1170.0),
    ("250,50", 250.5),
    ("1000.00", 1000.0),
    ("12.345.678,90", 12345678.9),
])
def test_norm_amount(raw, expected):
    assert _norm_amount(raw) == pytest.approx(expected)

def test_parse_numeric_rejects_non_positive():
    assert parse_numeric("0,00") is None
    assert parse_numeric(-5) is None
    assert parse_numeric(True) is None
    assert parse_numeric("abc") is None
    assert parse_numeric(42) == 42.0

def test_plausibility_bounds():
    assert plausible_amount(0.01)
    assert not plausible_amount(0)
    assert not plausible_amount(1_000_000)

def test_amounts_near_labels_and_currency():
    text = "Ukupno: 1.170,00\nNeto 85,47 EUR\nUsluga 12,00"
    cands = ex_amounts(text)
    by_source = {(c.source, c.value) for c in cands}
    assert ("label", 1170.0) in by_source
    assert ("currency", 85.47) in by_source
    assert ("bare", 12.0) in by_source

def test_implausible_amounts_dropped():
    cands = ex_amounts("Total: 2.000.000,00\nIznos 0,00")
    assert cands == []

def test_currency_after_amount_wins():
    assert detect_currency("Iznos 100,00 EUR, kurs prema USD") == "EUR"
    assert [c.source for c in ex_currency("100,00 eur")][0] == "after-amount"

def test_currency_token_and_default():
    assert detect_currency("plaćeno u usd") == "USD"
    assert detect_currency("Nema valute ovdje") == "BAM"
