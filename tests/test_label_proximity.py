import datetime as dt

from costscan.extractors.label_proximity import ex_label_proximity, find_label, value_after_label

def test_exact_label_with_flexible_spaces():
    assert find_label("UKUPNO  ZA PLATITI: 117,00", "ukupno za platiti") == (0, 18)

def test_missing_label():
    assert find_label("Nema ničega", "Iznos") is None
    assert find_label("Iznos 1,00", "   ") is None

def test_fuzzy_label_tolerates_ocr_noise():
    assert value_after_label("Ukupn0: 1000.00", "Ukupno") == "1000.00"

def test_value_preferences():
    text = "Datum računa: 05.02.2024 Broj: INV-77/24 Napomena: hvala"
    assert value_after_label(text, "Datum računa", prefer_date=True) == "05.02.2024"
    assert value_after_label(text, "Broj", prefer_doc_number=True) == "INV-77/24"
    assert value_after_label(text, "Napomena") == "hvala"

def test_typed_candidates_in_label_order():
    text = "Datum računa: O5.O2.2024\nOsnovica: 1.000,00\nValuta: EUR"
    mappings = {
        "issue_date": ["Datum računa"],
        "subtotal_tax_excluded": ["Osnovica"],
        "currency": ["Valuta"],
    }
    got = {c.field: c.value for c in ex_label_proximity(text, mappings)}
    assert got == {
        "issue_date": dt.date(2024, 2, 5),
        "subtotal_tax_excluded": 1000.0,
        "currency": "EUR",
    }

def test_unreadable_values_are_dropped():
    cands = ex_label_proximity("Iznos: nepoznat", {"total_amount": ["Iznos"]})
    assert cands == []

def test_amount_value_is_a_single_number():
    assert value_after_label("Ukupno: 1000.00 1170.00", "Ukupno") == "1000.00"
    assert value_after_label("Ukupno: 1.170,00 KM", "Ukupno") == "1.170,00"
    assert ex_label_proximity("Iznos: 1.250.000,00", {"total_amount": ["Iznos"]}) == []

def test_document_type_label_ignores_card_payment():
    cands = ex_label_proximity("Vrsta: faktura, credit card", {"document_type": ["Vrsta"]})
    assert [c.value for c in cands] == ["invoice"]
