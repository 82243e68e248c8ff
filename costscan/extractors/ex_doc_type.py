# costscan/extractors/ex_doc_type.py
from __future__ import annotations

from .patterns import DOC_TYPE_KEYWORDS, DOCUMENT_TYPES

def detect_document_type(text: str) -> str:
    for doc_type, rx in DOC_TYPE_KEYWORDS:
        if rx.search(text or ""):
            return doc_type
    return "invoice"

def coerce_document_type(value) -> str:
    """Valeur libre (modèle, formulaire) -> invoice | quote | credit_note | other."""
    if not isinstance(value, str) or not value.strip():
        return "invoice"
    v = value.strip().lower().replace("-", "_").replace(" ", "_")
    if v in DOCUMENT_TYPES:
        return v
    if v in ("credit", "creditnote", "knjizno_odobrenje"):
        return "credit_note"
    if v in ("receipt", "potvrda", "proforma", "delivery_note"):
        return "other"
    if v in ("quotation", "offer", "ponuda"):
        return "quote"
    return "other"
