import datetime as dt

import pytest
from PIL import Image

from conftest import INVOICE_TEXT, FakeRecognizer
from costscan.config import Settings
from costscan.errors import BackendUnavailable, RecognitionFailure, ScanError, UnsupportedInput
from costscan.extractors import pdf_basic
from costscan.extractors.io_pdf_image import best_attempt, check_mime_type, select_best_result
from costscan.extractors.pdf_basic import scan_document
from costscan.models import ExtractedFields, RecognitionResult, SupplierRecord

ELEKTRO = SupplierRecord(id=1, name="Elektro Plus d.o.o.", tax_id="4200123450008", payment_terms="Net 30")
IMG = Image.new("L", (10, 10), 255)

class FakeGemini:
    def __init__(self, result, available=True):
        self.result = result
        self.available = available
        self.calls = 0

    def is_available(self):
        return self.available

    def extract(self, data, mime_type, filename="document"):
        self.calls += 1
        return self.result

def _scan(data, mime="image/png", **kw):
    kw.setdefault("recognizers", [FakeRecognizer()])
    kw.setdefault("settings", Settings())
    return scan_document(data, mime, filename="racun.png", **kw)

def test_mime_checks():
    assert check_mime_type("IMAGE/JPG") == "image/jpeg"
    with pytest.raises(UnsupportedInput):
        check_mime_type("text/plain")

def test_first_success_kept_unless_more_confident_and_long():
    rec = FakeRecognizer({"6": ("kratko", 95.0), "11": ("Racun broj 12 ukupno", 90.0),
                          "12": ("Racun broj 12 ukupno 117,00", 97.0)})
    text, conf, engine = best_attempt(rec, IMG)
    assert (text, engine) == ("Racun broj 12 ukupno 117,00", "fake-psm12")
    assert conf == pytest.approx(0.97)

    rec = FakeRecognizer({"6": ("Racun broj 12 ukupno", 50.0), "11": ("x", 99.0)})
    assert best_attempt(rec, IMG)[2] == "fake-psm6"

def test_all_attempts_failing():
    rec = FakeRecognizer({"6": RuntimeError("psm 6"), "4": RuntimeError("psm 4")})
    with pytest.raises(RecognitionFailure):
        best_attempt(rec, IMG)

def test_best_result_across_engines():
    short = RecognitionResult(raw_text="abc", confidence=0.95, processing_time_ms=1, engine_id="a")
    full = RecognitionResult(raw_text=INVOICE_TEXT, confidence=0.7, processing_time_ms=1, engine_id="b",
                             structured_guess=ExtractedFields(supplier_name="X", total_amount=1.0))
    assert select_best_result([short, full]).engine_id == "b"
    with pytest.raises(RecognitionFailure):
        select_best_result([])

def test_ocr_scan_with_supplier_terms(png_bytes):
    out = _scan(png_bytes, suppliers=[ELEKTRO], engine="ocr")
    f = out.fields
    assert out.result.engine_id == "fake-psm6"
    assert out.result.confidence == pytest.approx(0.88)
    assert out.supplier is ELEKTRO and out.match_score > 0
    assert f.supplier_name == "Elektro Plus d.o.o."
    assert f.document_number == "RN-2024/0157"
    assert (f.subtotal_tax_excluded, f.total_amount) == (1000.0, 1170.0)
    assert f.issue_date == dt.date(2024, 6, 1)
    assert f.due_date == dt.date(2024, 7, 1)
    assert not out.needs_review
    assert out.to_dict()["meta"]["engine"] == "fake-psm6"

def test_unknown_engine_and_type(png_bytes):
    with pytest.raises(ScanError) as exc:
        _scan(png_bytes, engine="magic")
    assert exc.value.code == "bad_request"
    with pytest.raises(UnsupportedInput):
        _scan(b"abc", mime="text/csv")

def test_forced_ai_without_backend(png_bytes):
    with pytest.raises(BackendUnavailable):
        _scan(png_bytes, engine="ai")
    with pytest.raises(BackendUnavailable):
        _scan(png_bytes, engine="ai", gemini=FakeGemini(None, available=False))

def test_auto_uses_ai_and_verifies_supplier(png_bytes):
    guess = ExtractedFields(supplier_name="Elektro Plus", total_amount=1170.0, subtotal_tax_excluded=1000.0,
                            issue_date=dt.date(2024, 6, 1), due_date=dt.date(2024, 6, 20))
    ai = RecognitionResult(raw_text='{"supplier_name": "Elektro Plus"}', confidence=0.85,
                           processing_time_ms=5, engine_id="gemini-ai", structured_guess=guess)
    rec = FakeRecognizer()
    out = _scan(png_bytes, suppliers=[ELEKTRO], gemini=FakeGemini(ai), recognizers=[rec])
    assert rec.calls == []
    assert out.supplier is ELEKTRO and out.match_score is None
    assert out.fields.supplier_name == "Elektro Plus d.o.o."
    # échéance lue par l'IA : pas de recalcul depuis les conditions de paiement
    assert out.fields.due_date == dt.date(2024, 6, 20)

def test_auto_falls_back_to_ocr_when_ai_fails(png_bytes):
    failed = RecognitionResult(raw_text="quota", confidence=0.1, processing_time_ms=1,
                               engine_id="gemini-error", error="recognition_failed")
    out = _scan(png_bytes, gemini=FakeGemini(failed))
    assert out.result.engine_id == "fake-psm6"
    assert out.fields.total_amount == pytest.approx(1170.0)

def test_malformed_ai_reply_still_reconciled(png_bytes):
    raw = RecognitionResult(raw_text=INVOICE_TEXT, confidence=0.85, processing_time_ms=1,
                            engine_id="gemini-ai", error="malformed_reply")
    out = _scan(png_bytes, engine="ai", gemini=FakeGemini(raw))
    assert out.needs_review
    assert out.fields.document_number == "RN-2024/0157"

def test_recognition_failure_gives_fallback(png_bytes):
    out = _scan(png_bytes, recognizers=[FakeRecognizer(error=RuntimeError("tesseract absent"))], engine="ocr")
    assert out.result.engine_id == "fallback"
    assert out.needs_review
    assert "tesseract absent" in out.result.raw_text
    assert out.fields == ExtractedFields()
    assert out.supplier is None

def test_pdf_text_layer_skips_ocr(monkeypatch):
    monkeypatch.setattr(pdf_basic, "pdf_text_layer", lambda data: [INVOICE_TEXT, ""])
    monkeypatch.setattr(pdf_basic, "render_pdf_pages", lambda *a, **kw: pytest.fail("OCR inattendu"))
    out = _scan(b"%PDF-1.4", mime="application/pdf", engine="ocr")
    assert out.result.engine_id == "pdf-text"
    assert out.result.confidence == pytest.approx(0.9)
    assert out.fields.total_amount == pytest.approx(1170.0)

def test_scanned_pdf_pages_are_ocred(monkeypatch):
    monkeypatch.setattr(pdf_basic, "pdf_text_layer", lambda data: ["  "])
    monkeypatch.setattr(pdf_basic, "render_pdf_pages", lambda data, dpi=200, max_pages=3: [IMG, IMG])
    out = _scan(b"%PDF-1.4", mime="application/pdf", engine="ocr")
    assert out.result.engine_id == "fake-pdf"
    assert "--- Page 1 ---" in out.result.raw_text
    assert "--- Page 2 ---" in out.result.raw_text
    assert out.result.confidence == pytest.approx(0.88)

def test_default_recognizers_follow_settings():
    recs = pdf_basic.default_recognizers(Settings(ocr_engines=["tesseract", "paddle", "easyocr"]))
    assert [r.name for r in recs] == ["tesseract", "paddleocr"]
    assert [r.name for r in pdf_basic.default_recognizers(Settings(ocr_engines=[]))] == ["tesseract"]

def test_printed_due_date_kept_over_payment_terms(png_bytes):
    text = "Elektro Plus d.o.o.\nJIB: 4200123450008\nDatum: 01.06.2024\nRok plaćanja: 16.06.2024\nUkupno 117,00"
    out = _scan(png_bytes, suppliers=[ELEKTRO], engine="ocr",
                recognizers=[FakeRecognizer({"6": (text, 90.0)})])
    assert out.supplier is ELEKTRO
    assert out.fields.due_date == dt.date(2024, 6, 16)
