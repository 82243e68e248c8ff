import datetime as dt

from costscan.due_dates import compute_due_date, payment_days
from costscan.extractors.fuzzy import similarity, window_similarity
from costscan.matching import best_supplier_match, is_own_company, match_supplier, rank_suppliers
from costscan.models import CompanyIdentity, SupplierRecord

ELEKTRO = SupplierRecord(id=1, name="Elektro Plus d.o.o.", tax_id="4200123450008",
                         email="info@elektroplus.ba", city="Sarajevo", payment_terms="Net 30")
DRVO = SupplierRecord(id=2, name="Drvo Commerce", city="Tuzla")

def test_similarity_bounds():
    assert similarity("Acme", "Acme") == 100.0
    assert similarity("", "Acme") == 0.0
    assert similarity("abcd", "wxyz") == 0.0
    assert window_similarity("elektro plus", "racun elektr0 plus doo") >= 90

def test_exact_name_and_ids_win(invoice_text):
    best = best_supplier_match(invoice_text, [DRVO, ELEKTRO])
    assert best.supplier is ELEKTRO
    assert "name" in best.matched_fields
    assert "tax_id" in best.matched_fields
    assert "email" in best.matched_fields
    assert best.score > 300

def test_fuzzy_name_match():
    assert match_supplier("ELEKTR0 PLUS DOO\nRačun 5", [ELEKTRO, DRVO]) is ELEKTRO

def test_phone_and_website_match():
    s = SupplierRecord(id=3, name="Nepoznato Ime", phone="+387 33/123-456", website="https://www.elektroplus.ba/")
    best = best_supplier_match("Kontakt: +387 33 123 456, web www.elektroplus.ba", [s])
    assert best.matched_fields == ["phone", "website"]
    assert best.score == 70.0

def test_below_threshold_returns_none():
    s = SupplierRecord(id=4, name="Sasvim Drugačiji", website="drugaciji.ba")
    assert match_supplier("Elektro Plus d.o.o.\nSarajevo", [s]) is None
    assert rank_suppliers("", [ELEKTRO]) == []

def test_own_company_is_never_returned(invoice_text):
    company = CompanyIdentity(name="Elektro Plus", address="Zmaja od Bosne 7")
    assert is_own_company(ELEKTRO, company)
    assert match_supplier(invoice_text, [ELEKTRO, DRVO], company) is None

def test_company_overlap_in_either_direction():
    company = CompanyIdentity(name="Elektro Plus d.o.o. Sarajevo")
    assert is_own_company(SupplierRecord(name="Elektro Plus"), company)
    assert is_own_company(SupplierRecord(name="Drvo"), CompanyIdentity(name="Drvo Commerce"))
    assert not is_own_company(SupplierRecord(name="Drvo 42"), CompanyIdentity(name="Kamen Commerce", tax_id="42"))

def test_payment_days():
    assert payment_days(30) == 30
    assert payment_days("Net 30") == 30
    assert payment_days("45 dana") == 45
    assert payment_days("odmah") is None
    assert payment_days(None) is None

def test_compute_due_date():
    assert compute_due_date("Net 30", dt.date(2024, 3, 1)) == dt.date(2024, 3, 31)
    assert compute_due_date(15, "2024-03-01") == dt.date(2024, 3, 16)
    assert compute_due_date("COD", dt.date(2024, 3, 1)) is None
    assert compute_due_date(0, dt.date(2024, 3, 1)) is None
    assert compute_due_date(10, "nije datum") is None

def test_persisted_company_record_excludes_itself(invoice_text):
    company = CompanyIdentity.from_dict({"company_name": "Elektro Plus d.o.o.", "tax_id": "999"})
    assert company.name == "Elektro Plus d.o.o."
    assert match_supplier(invoice_text, [ELEKTRO], company) is None
    legal = CompanyIdentity.from_dict({"company_name": "EP", "legal_name": "Elektro Plus društvo"})
    assert "Elektro Plus društvo" in list(legal.values())
    assert is_own_company(SupplierRecord(name="Elektro Plus"), legal)
