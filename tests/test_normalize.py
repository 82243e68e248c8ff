import pytest

from costscan.extractors.normalize import normalize

SAMPLES = [
    "Фактура број 12",
    "Љубљана  ,, Џеп...",
    "Ukupno:   1.170,00KM\r\nPDV 17 %",
    "a . . . b , , c",
    "Datum:\t01.06.2024\n\n  Rok   plaćanja 30 dana",
    "",
    "12abc 3 4x,,,,y....z",
]

def test_transliterates_cyrillic():
    assert normalize("Фактура број 12") == "Faktura broj 12"
    assert normalize("Љубљана") == "Ljubljana"
    assert normalize("ЏЕП") == "DžEP"

def test_spaces_digits_and_punctuation():
    assert normalize("a   b\t c") == "a b c"
    assert normalize("100KM") == "100 KM"
    assert normalize("kraj....") == "kraj."
    assert normalize("x,,, y") == "x, y"

def test_keeps_lines():
    assert normalize("Račun\r\nDatum: 01.06.2024").splitlines() == ["Račun", "Datum: 01.06.2024"]

def test_empty_input():
    assert normalize("") == ""
    assert normalize(None) == ""

@pytest.mark.parametrize("text", SAMPLES)
def test_idempotent(text):
    once = normalize(text)
    assert normalize(once) == once
