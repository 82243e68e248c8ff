# costscan/extractors/label_proximity.py
from __future__ import annotations
import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .candidates import Cand
from .fuzzy import similarity, words_with_spans
from .patterns import CURRENCIES, DOC_TYPE_KEYWORDS
from .utils_amounts import parse_numeric, plausible_amount
from .utils_dates import parse_ocr_date

log = logging.getLogger(__name__)

Span = Tuple[int, int]

_DASHES_RE = re.compile(r"[‐-―−]")
_SKIP_SEPARATORS = " \t\n:;,-"

# champ -> (préférence date, préférence numéro de document)
FIELD_PREFS = {
    "subtotal_tax_excluded": (False, False),
    "total_amount":          (False, False),
    "currency":              (False, False),
    "document_type":         (False, False),
    "issue_date":            (True, False),
    "due_date":              (True, False),
    "document_number":       (False, True),
}

def _fold(s: str) -> str:
    # même longueur que l'original : les positions restent valables
    return _DASHES_RE.sub("-", s.lower())

def find_label(text: str, label: str, threshold: float = 80) -> Optional[Span]:
    """
    Position (début, fin) d'un libellé dans le texte, tolérance ~80 % :
    1) correspondance exacte (espaces souples), 2) mot à mot flou
    (jusqu'à 2 mots sautés), 3) fenêtre glissante caractère par caractère.
    """
    if not label or not label.strip() or not text:
        return None
    folded = _fold(text)
    pwords = _fold(label).split()

    m = re.search(r"\s+".join(re.escape(w) for w in pwords), folded)
    if m:
        return m.start(), m.end()

    twords = words_with_spans(folded)
    for i in range(0, len(twords) - len(pwords) + 1):
        matched, total, positions = 0, 0.0, []
        ti = i
        for pw in pwords:
            if ti >= len(twords):
                break
            best, best_idx = 0.0, ti
            for k in range(3):
                if ti + k >= len(twords):
                    break
                s = similarity(pw, twords[ti + k][0])
                if s > best:
                    best, best_idx = s, ti + k
            if best >= threshold - 10:
                matched += 1
                total += best
                positions.append(best_idx)
                ti = best_idx + 1
            else:
                ti += 1
        if positions and matched / len(pwords) >= 0.75 and total / matched >= threshold - 15:
            return twords[positions[0]][1], twords[positions[-1]][2]

    needle = " ".join(pwords)
    plen = len(needle)
    min_len = max(3, int(plen * 0.7))
    for i in range(0, len(folded) - min_len + 1):
        for size in range(min_len, min(plen + 5, len(folded) - i) + 1):
            if similarity(needle, folded[i:i + size]) >= threshold:
                return i, i + size
    return None

_DATE_FIRST_RES = (
    re.compile(r"^\d{1,2}\s*[./-]\s*\d{1,2}\s*[./-]\s*\d{4}"),
    re.compile(r"^\d{4}[./-]\d{1,2}[./-]\d{1,2}"),
    re.compile(r"^\d{1,2}[./-]\d{1,2}[./-]\d{2}(?!\d)"),
)
_DATE_LOOSE_RE = re.compile(r"^[\d./-]+(?=\s|$|[^\d./-])")
_NUMBER_RE = re.compile(
    r"^(?:\d{1,3}(?:[ \u00a0.,]\d{3}(?!\d))+(?:[.,]\d{1,2})?|\d+(?:[.,]\d{1,2})?)(?![.,]?\d)"
)
_DOC_TOKEN_RE = re.compile(r"^[\w\-/.]+")
_DOC_SPLIT_RE = re.compile(r"[\s:;,|]")
_TEXT_RE = re.compile(r"^[^\n:;]+")

def _date_value(rest: str) -> Optional[str]:
    for rx in _DATE_FIRST_RES:
        m = rx.match(rest)
        if m:
            return re.sub(r"\s+", "", m.group(0))
    m = _DATE_LOOSE_RE.match(rest)
    if m and re.search(r"[./-]", m.group(0)) and len(m.group(0).strip()) >= 6:
        return m.group(0).strip()
    return None

def _doc_value(rest: str) -> Optional[str]:
    m = _DOC_TOKEN_RE.match(rest)
    if m:
        token = _DOC_SPLIT_RE.split(m.group(0).strip())[0].strip()
        if 2 <= len(token) <= 50:
            return token
    return None

def value_after_label(text: str, label: str, threshold: float = 80,
                      prefer_date: bool = False, prefer_doc_number: bool = False) -> Optional[str]:
    """Valeur brute qui suit le libellé (date, numéro, montant ou texte jusqu'à la fin de ligne)."""
    span = find_label(text, label, threshold)
    if span is None:
        return None
    start = span[1]
    while start < len(text) and text[start] in _SKIP_SEPARATORS:
        start += 1
    if start >= len(text):
        return None
    rest = text[start:]

    if prefer_doc_number:
        v = _doc_value(rest)
        if v:
            return v
    if prefer_date:
        v = _date_value(rest)
        if v:
            return v
    else:
        m = _NUMBER_RE.match(rest)
        if m and m.group(0).strip():
            return m.group(0).strip()
        v = _date_value(rest)
        if v:
            return v
        if not prefer_doc_number:
            v = _doc_value(rest)
            if v:
                return v

    m = _TEXT_RE.match(rest)
    if m and m.group(0).strip():
        t = m.group(0).strip()
        if re.fullmatch(r"[A-Za-z0-9][A-Za-z0-9\-/. ]*", t) and 2 <= len(t) <= 50:
            return _DOC_SPLIT_RE.split(t)[0].strip()
        return t
    m = re.match(r"^\S+", rest)
    return m.group(0) if m else None

def _doc_type_from_value(val: str) -> Optional[str]:
    for doc_type, rx in DOC_TYPE_KEYWORDS:
        if rx.search(val):
            return doc_type
    if re.search(r"potvrda|receipt", val, re.IGNORECASE):
        return "other"
    return None

def _typed(field: str, raw: str):
    if field in ("subtotal_tax_excluded", "total_amount"):
        v = parse_numeric(raw)
        return v if plausible_amount(v) else None
    if field in ("issue_date", "due_date"):
        return parse_ocr_date(raw)
    if field == "currency":
        up = raw.strip().upper()[:3]
        return up if up in CURRENCIES else None
    if field == "document_type":
        return _doc_type_from_value(raw)
    if field == "document_number":
        cleaned = re.sub(r"^[^\w]+|[^\w]+$", "", " ".join(raw.split()))
        return cleaned if len(cleaned) >= 2 and re.search(r"[\dA-Za-z]", cleaned) else None
    return raw.strip() or None

def ex_label_proximity(text: str, mappings: Dict[str, Sequence[str]],
                       threshold: float = 80) -> List[Cand]:
    """Un candidat par libellé utilisateur trouvé, dans l'ordre des libellés."""
    cands: List[Cand] = []
    if not text:
        return cands
    for field, labels in (mappings or {}).items():
        prefer_date, prefer_doc = FIELD_PREFS.get(field, (False, False))
        for label in labels or []:
            if not label or not label.strip():
                continue
            raw = value_after_label(text, label, threshold, prefer_date, prefer_doc)
            if not raw:
                continue
            value = _typed(field, raw)
            if value is None:
                log.debug("label %r (%s): valeur rejetée %r", label, field, raw)
                continue
            cands.append(Cand(field, value, 0.8, "label", meta={"label": label, "raw": raw}))
    return cands
