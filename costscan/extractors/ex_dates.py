# costscan/extractors/ex_dates.py
from __future__ import annotations
import datetime as dt
import logging
import re
from typing import List, Optional, Tuple

from .candidates import Cand
from .patterns import (
    LABELED_DATE_PATTERNS, STANDALONE_DATE_PATTERNS, AGGRESSIVE_DATE_PATTERNS,
    DELIVERY_CONTEXT_RE,
)
from .utils_dates import add_days, parse_date_string, parse_eight_digits

log = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 15

def _key(s: str) -> str:
    return re.sub(r"\s+", "", s)

def _near_delivery_label(text: str, start: int, end: int, radius: int) -> bool:
    ctx = text[max(0, start - radius): min(len(text), end + radius)]
    return DELIVERY_CONTEXT_RE.search(ctx) is not None

def _captured(cands: List[Cand], raw: str) -> bool:
    k = _key(raw)
    return any(_key(c.meta["raw"]) == k for c in cands)

def _labeled_pass(text: str, cands: List[Cand]) -> None:
    for rx, is_delivery in LABELED_DATE_PATTERNS:
        for m in rx.finditer(text):
            raw = _key(m.group(2))
            if _captured(cands, raw):
                continue
            d = parse_date_string(raw)
            if d is None:
                continue
            cands.append(Cand("date", d, 0.9, "labeled", pos=m.start(2),
                              meta={"raw": raw, "excluded": is_delivery, "label": m.group(1)}))
            log.debug("date %s (%s) libellé=%r", raw, "livraison" if is_delivery else "ok", m.group(1))

def _standalone_pass(text: str, cands: List[Cand]) -> None:
    for rx in STANDALONE_DATE_PATTERNS:
        for m in rx.finditer(text):
            raw = _key(m.group(1))
            if _captured(cands, raw) or _near_delivery_label(text, m.start(1), m.end(1), 50):
                continue
            d = parse_date_string(raw)
            if d is None:
                log.debug("date illisible: %r", raw)
                continue
            cands.append(Cand("date", d, 0.7, "standalone", pos=m.start(1),
                              meta={"raw": raw, "excluded": False}))

def _aggressive_pass(text: str, cands: List[Cand]) -> None:
    for rx in AGGRESSIVE_DATE_PATTERNS:
        for m in rx.finditer(text):
            raw = _key(m.group(1))
            if _captured(cands, raw) or _near_delivery_label(text, m.start(1), m.end(1), 30):
                continue
            if m.group(1).isdigit():
                d = parse_eight_digits(raw)
            else:
                # espaces seuls entre groupes -> séparateur point
                relaxed = re.sub(r"\s*([./-])\s*", r"\1", m.group(1).strip())
                relaxed = re.sub(r"[./-]+", ".", re.sub(r"\s+", ".", relaxed))
                d = parse_date_string(relaxed)
            if d is None:
                continue
            cands.append(Cand("date", d, 0.4, "aggressive", pos=m.start(1),
                              meta={"raw": raw, "excluded": False}))

def _valid_sorted(cands: List[Cand]) -> List[Cand]:
    return sorted((c for c in cands if not c.meta.get("excluded")), key=lambda c: c.value)

def ex_dates(text: str) -> List[Cand]:
    """
    Toutes les dates trouvées, y compris celles marquées exclues (livraison).
    Passe 1 : libellés ; passe 2 : dates isolées ; passe 3 (seulement si rien
    de valide) : séparateurs relâchés et suites de 8 chiffres.
    """
    text = text or ""
    cands: List[Cand] = []
    try:
        _labeled_pass(text, cands)
        _standalone_pass(text, cands)
        if not _valid_sorted(cands):
            _aggressive_pass(text, cands)
    except Exception as e:
        log.warning("ex_dates: extraction interrompue (%s)", e)
    return cands

def pick_dates(cands: List[Cand]) -> Tuple[Optional[dt.date], Optional[dt.date], bool]:
    """
    La plus ancienne date valide = émission, la suivante = échéance ;
    une seule date -> échéance = émission + 15 jours.
    Le booléen indique une échéance calculée plutôt que lue.
    """
    valid = _valid_sorted(cands)
    if not valid:
        return None, None, False
    issue = valid[0].value
    if len(valid) > 1:
        return issue, valid[1].value, False
    return issue, add_days(issue, DEFAULT_DUE_DAYS), True

def pick_issue_and_due(cands: List[Cand]) -> Tuple[Optional[dt.date], Optional[dt.date]]:
    issue, due, _ = pick_dates(cands)
    return issue, due

def extract_dates(text: str) -> Tuple[Optional[dt.date], Optional[dt.date], bool]:
    return pick_dates(ex_dates(text))

def extract_issue_and_due(text: str) -> Tuple[Optional[dt.date], Optional[dt.date]]:
    return pick_issue_and_due(ex_dates(text))
