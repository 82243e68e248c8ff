# costscan/extractors/ex_amounts.py
from __future__ import annotations
import logging
from typing import List

from .candidates import Cand
from .patterns import AMOUNT_LABEL_RE, AMOUNT_CURRENCY_RE, AMOUNT_TOKEN_RE
from .utils_amounts import _norm_amount, plausible_amount

log = logging.getLogger(__name__)

# (regex, groupe du montant, source, confiance)
_SCANS = (
    (AMOUNT_LABEL_RE,    2, "label",    0.85),
    (AMOUNT_CURRENCY_RE, 1, "currency", 0.75),
    (AMOUNT_TOKEN_RE,    1, "bare",     0.5),
)

def ex_amounts(text: str) -> List[Cand]:
    """
    Tous les montants plausibles (0 < v < 1 000 000) : près d'un libellé,
    devant une devise, puis balayage nu. Liste non triée, avec doublons ;
    le classement revient au réconciliateur.
    """
    cands: List[Cand] = []
    for rx, group, source, conf in _SCANS:
        for m in rx.finditer(text or ""):
            v = _norm_amount(m.group(group))
            if not plausible_amount(v):
                continue
            cands.append(Cand("amount", v, conf, source, pos=m.start(group),
                              meta={"match": m.group(0).strip()}))
    log.debug("ex_amounts: %d candidats", len(cands))
    return cands
