# costscan/extractors/ex_doc_number.py
from __future__ import annotations
import logging
import re
from typing import List, Optional, Sequence

from .candidates import Cand
from .label_proximity import value_after_label
from .patterns import DATE_SHAPED_RE, DOC_NUMBER_LABELS, DOC_NUMBER_RES

log = logging.getLogger(__name__)

_EDGE_PUNCT_RE = re.compile(r"^[^\w]+|[^\w]+$")
_SEPARATOR_RE = re.compile(r"[-/.]")

def _clean(token: str) -> str:
    return _EDGE_PUNCT_RE.sub("", " ".join((token or "").split()))

def score_document_number(token: str) -> int:
    """
    Score d'un candidat numéro de document.
    Chiffres : +10 (+1 par chiffre, max 10) ; séparateur : +5 ; lettres ET chiffres : +5.
    Purement alphabétique ou en forme de date : 0, disqualifié.
    Longueur hors [3, 30] : -2 ; au-delà de 50 : encore -5.
    """
    s = _clean(token)
    if not s:
        return 0
    if DATE_SHAPED_RE.match(s):
        return 0
    digits = sum(ch.isdigit() for ch in s)
    letters = sum(ch.isalpha() for ch in s)
    if digits == 0:
        return 0

    score = 10 + min(digits, 10)
    if _SEPARATOR_RE.search(s):
        score += 5
    if letters:
        score += 5
    if 3 <= len(s) <= 30:
        score += 2
    else:
        score -= 2
    if len(s) > 50:
        score -= 5
    return max(score, 0)

def ex_doc_number(text: str, labels: Optional[Sequence[str]] = None) -> List[Cand]:
    """
    Candidats depuis les libellés (utilisateur sinon par défaut) puis les regex
    génériques. Un libellé utilisateur qui donne un candidat écarte les regex.
    """
    cands: List[Cand] = []
    if not text:
        return cands

    for label in (labels or DOC_NUMBER_LABELS):
        if not label or not label.strip():
            continue
        raw = value_after_label(text, label, prefer_doc_number=True)
        token = _clean(raw or "")
        sc = score_document_number(token)
        if sc > 0:
            cands.append(Cand("document_number", token, min(1.0, sc / 40), "label",
                              meta={"label": label, "score": sc}))
    if labels and cands:
        return cands

    for rx in DOC_NUMBER_RES:
        for m in rx.finditer(text):
            token = _clean(m.group(1))
            sc = score_document_number(token)
            if sc > 0:
                cands.append(Cand("document_number", token, min(1.0, sc / 40), "regex",
                                  pos=m.start(1), meta={"score": sc}))
    return cands

def best_document_number(text: str, labels: Optional[Sequence[str]] = None) -> Optional[str]:
    cands = ex_doc_number(text, labels)
    if not cands:
        return None
    # à score égal, le premier trouvé (libellés avant regex)
    best = max(cands, key=lambda c: c.meta["score"])
    log.debug("document_number=%r score=%s (%d candidats)", best.value, best.meta["score"], len(cands))
    return best.value
