# costscan/due_dates.py
from __future__ import annotations
import datetime as dt
import re
from typing import Optional, Union

from .extractors.utils_dates import DateLike, add_days, to_date

_FIRST_INT_RE = re.compile(r"\d+")

def payment_days(payment_terms: Union[int, str, None]) -> Optional[int]:
    """30 -> 30 ; 'Net 30' -> 30 ; '30 dana' -> 30 ; autre forme -> None."""
    if isinstance(payment_terms, bool):
        return None
    if isinstance(payment_terms, int):
        return payment_terms
    if isinstance(payment_terms, float) and payment_terms.is_integer():
        return int(payment_terms)
    if isinstance(payment_terms, str):
        m = _FIRST_INT_RE.search(payment_terms)
        return int(m.group(0)) if m else None
    return None

def compute_due_date(payment_terms: Union[int, str, None], issue_date: DateLike) -> Optional[dt.date]:
    days = payment_days(payment_terms)
    if days is None or days <= 0:
        return None
    issued = to_date(issue_date)
    if issued is None:
        return None
    return add_days(issued, days)
