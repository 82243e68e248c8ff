# costscan/extractors/validators.py
import datetime as dt
import logging
from typing import Any

from .patterns import CURRENCIES, DOCUMENT_TYPES

log = logging.getLogger(__name__)

def soft_validate(field: str, value: Any) -> float:
    """Renvoie un multiplicateur 0..1 (qualité) selon le champ."""
    if value in (None, ""):
        return 0.0

    if field in ("issue_date", "due_date"):
        if not isinstance(value, dt.date):
            return 0.0
        # documents récents plus probables
        return 1.0 if 2000 <= value.year <= dt.date.today().year + 1 else 0.6

    if field == "currency":
        return 1.0 if value in CURRENCIES else 0.0

    if field == "document_type":
        return 1.0 if value in DOCUMENT_TYPES else 0.0

    return 1.0

def enforce_amount_order(fields) -> None:
    """total >= hors taxe, toujours : sinon on échange les deux montants."""
    sub, tot = fields.subtotal_tax_excluded, fields.total_amount
    if sub is not None and tot is not None and tot < sub:
        log.debug("montants inversés (%s < %s), échange", tot, sub)
        fields.subtotal_tax_excluded, fields.total_amount = tot, sub
