# costscan/extractors/fields.py
from __future__ import annotations
import logging
from typing import Optional, Sequence

from costscan.models import ExtractedFields
from .ex_amounts import ex_amounts
from .ex_currency import ex_currency
from .ex_dates import extract_dates
from .ex_doc_number import best_document_number
from .ex_doc_type import detect_document_type
from .ex_supplier import supplier_name_from_text
from .patterns import DEFAULT_CURRENCY, DOC_TYPE_KEYWORDS
from .summary import detect_vat_rate, infer_amounts

log = logging.getLogger(__name__)

DESCRIPTION_CHARS = 200

def _largest_amount(text: str) -> Optional[float]:
    values = [c.value for c in ex_amounts(text)]
    return max(values) if values else None

def _document_type_or_empty(text: str) -> str:
    if any(rx.search(text) for _, rx in DOC_TYPE_KEYWORDS):
        return detect_document_type(text)
    return ""

def _first_currency_or_empty(text: str) -> str:
    cands = ex_currency(text)
    return cands[0].value if cands else ""

def _fill_fields_from_text(text: str,
                           doc_number_labels: Optional[Sequence[str]] = None) -> ExtractedFields:
    """
    Devine tous les champs depuis le seul texte. Devise et type restent vides
    quand rien n'est trouvé, pour laisser une chance aux libellés utilisateur.
    """
    text = text or ""
    fields = ExtractedFields(currency="", document_type="")
    fields.supplier_name = supplier_name_from_text(text)
    fields.document_type = _document_type_or_empty(text)
    fields.currency = _first_currency_or_empty(text)
    fields.issue_date, fields.due_date, fields.due_date_inferred = extract_dates(text)
    fields.document_number = best_document_number(text, doc_number_labels) or ""

    rate = detect_vat_rate(text)
    total = _largest_amount(text)
    if total is not None:
        fields.subtotal_tax_excluded, _, fields.total_amount = infer_amounts(total, None, rate)
    fields.vat_rate = rate or 0.0
    fields.description = text.strip()[:DESCRIPTION_CHARS]
    log.debug("champs texte: %s", fields)
    return fields

def guess_fields(text: str, doc_number_labels: Optional[Sequence[str]] = None) -> ExtractedFields:
    """Suggestion complète (valeurs par défaut appliquées) tirée des extracteurs seuls."""
    fields = _fill_fields_from_text(text, doc_number_labels)
    fields.currency = fields.currency or DEFAULT_CURRENCY
    fields.document_type = fields.document_type or "invoice"
    return fields
