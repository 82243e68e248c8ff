# costscan/extractors/ex_currency.py
from __future__ import annotations
from typing import List

from .candidates import Cand
from .patterns import CURRENCIES, CURRENCY_AFTER_AMOUNT_RE, CURRENCY_TOKEN_RE, DEFAULT_CURRENCY

def ex_currency(text: str) -> List[Cand]:
    cands: List[Cand] = []
    for rx, source, conf in ((CURRENCY_AFTER_AMOUNT_RE, "after-amount", 0.9),
                             (CURRENCY_TOKEN_RE, "token", 0.7)):
        for m in rx.finditer(text or ""):
            cur = m.group(1).upper()
            if cur in CURRENCIES:
                cands.append(Cand("currency", cur, conf, source, pos=m.start(1)))
    return cands

def detect_currency(text: str) -> str:
    """Premier code valide (montant + devise d'abord), BAM par défaut."""
    cands = ex_currency(text)
    return cands[0].value if cands else DEFAULT_CURRENCY
