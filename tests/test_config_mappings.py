import json

from costscan.config import Settings
from costscan.mappings import MAPPED_FIELDS, dump_mappings, load_mappings, normalize_mappings

def test_legacy_single_string_becomes_list():
    m = load_mappings(json.dumps({"total_amount": "Ukupno", "issue_date": ["Datum", "", "Datum", 7]}))
    assert m["total_amount"] == ["Ukupno"]
    assert m["issue_date"] == ["Datum"]
    assert m["due_date"] == []
    assert set(MAPPED_FIELDS) <= set(m)

def test_unreadable_blob_gives_empty_mappings():
    assert load_mappings("{pas du json") == {f: [] for f in MAPPED_FIELDS}
    assert load_mappings("[1, 2]") == {f: [] for f in MAPPED_FIELDS}
    assert load_mappings(None) == {f: [] for f in MAPPED_FIELDS}

def test_dump_is_loadable():
    blob = dump_mappings({"currency": "Valuta"})
    assert load_mappings(blob)["currency"] == ["Valuta"]
    assert normalize_mappings({"currency": 3})["currency"] == []

def test_settings_from_env(monkeypatch):
    for k in ("GEMINI_API_KEY", "GEMINI_MODEL", "OCR_LANG", "OCR_DPI"):
        monkeypatch.delenv(k, raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "k-123")
    monkeypatch.setenv("GEMINI_FALLBACK_MODELS", "gemini-a, ,gemini-b")
    monkeypatch.setenv("OCR_PSM_MODES", "6,4")
    monkeypatch.setenv("MAX_PAGES", "beaucoup")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = Settings.from_env()
    assert s.gemini_api_key == "k-123" and s.ai_configured
    assert s.gemini_model == "gemini-2.5-pro"
    assert s.gemini_fallback_models == ["gemini-a", "gemini-b"]
    assert s.ocr_psm_modes == ["6", "4"]
    assert s.max_pages == 3
    assert s.ocr_dpi == 200
    assert s.ocr_lang == "hrv+srp+eng"
    assert s.log_level == "DEBUG"

def test_settings_without_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    assert not Settings.from_env().ai_configured
