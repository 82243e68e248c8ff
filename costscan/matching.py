# costscan/matching.py
from __future__ import annotations
import logging
import math
import re
from typing import Iterable, List, Optional

from .extractors.fuzzy import window_similarity
from .extractors.normalize import normalize
from .models import CompanyIdentity, SupplierMatchCandidate, SupplierRecord

log = logging.getLogger(__name__)

MIN_SCORE = 30.0

# poids par champ
NAME_EXACT, NAME_FUZZY_MIN, NAME_FUZZY_W, NAME_WORDS = 150.0, 60.0, 2.0, 80.0
TAX_EXACT, TAX_FUZZY_MIN, TAX_FUZZY_W = 100.0, 80.0, 1.5
ADDR_EXACT, ADDR_FUZZY_MIN, ADDR_FUZZY_W = 60.0, 65.0, 0.8
CITY_FUZZY_MIN, CITY_FUZZY_W = 75.0, 0.6
EMAIL_EXACT, PHONE_EXACT, WEBSITE_EXACT = 50.0, 40.0, 30.0
CONTACT_FUZZY_MIN, CONTACT_FUZZY_W = 75.0, 0.5

_PHONE_SEP_RE = re.compile(r"[\s\-/().]")
_SCHEME_RE = re.compile(r"^(?:https?://)?(?:www\.)?", re.IGNORECASE)

def _low(s: Optional[str]) -> str:
    return " ".join((s or "").lower().split())

def _name_words_hit(name: str, text: str) -> bool:
    words = [w for w in name.split() if len(w) > 2]
    if not words:
        return False
    hits = sum(1 for w in words if w in text)
    return hits >= math.ceil(0.6 * len(words))

def is_own_company(supplier: SupplierRecord, company: Optional[CompanyIdentity]) -> bool:
    """Le nom du fournisseur recoupe un champ de notre société (dans un sens ou l'autre)."""
    if company is None:
        return False
    name = _low(supplier.name)
    if not name:
        return False
    for value in company.values():
        v = _low(value)
        if len(v) > 3 and (v in name or name in v):
            return True
    return False

def score_supplier(text: str, supplier: SupplierRecord) -> SupplierMatchCandidate:
    """`text` : texte déjà normalisé et en minuscules."""
    cand = SupplierMatchCandidate(supplier=supplier)

    def hit(label: str, points: float) -> None:
        cand.score += points
        cand.matched_fields.append(label)

    name = _low(supplier.name)
    if name:
        if name in text:
            hit("name", NAME_EXACT)
        else:
            sim = window_similarity(name, text)
            if sim >= NAME_FUZZY_MIN:
                hit("name~%.0f" % sim, NAME_FUZZY_W * sim)
            elif _name_words_hit(name, text):
                hit("name-words", NAME_WORDS)

    tax = _low(supplier.tax_id)
    if tax:
        if tax in text or tax.replace(" ", "") in text.replace(" ", ""):
            hit("tax_id", TAX_EXACT)
        else:
            sim = window_similarity(tax, text)
            if sim >= TAX_FUZZY_MIN:
                hit("tax_id~%.0f" % sim, TAX_FUZZY_W * sim)

    addr = _low(supplier.address)
    if addr:
        if len(addr) > 5 and addr in text:
            hit("address", ADDR_EXACT)
        else:
            sim = window_similarity(addr, text)
            if sim >= ADDR_FUZZY_MIN:
                hit("address~%.0f" % sim, ADDR_FUZZY_W * sim)

    city = _low(supplier.city)
    if city:
        sim = window_similarity(city, text)
        if sim >= CITY_FUZZY_MIN:
            hit("city~%.0f" % sim, CITY_FUZZY_W * sim)

    email = _low(supplier.email)
    if email and email in text:
        hit("email", EMAIL_EXACT)

    phone = _PHONE_SEP_RE.sub("", supplier.phone or "")
    if sum(ch.isdigit() for ch in phone) >= 6 and phone in _PHONE_SEP_RE.sub("", text):
        hit("phone", PHONE_EXACT)

    site = _SCHEME_RE.sub("", _low(supplier.website)).rstrip("/")
    if site and site in text:
        hit("website", WEBSITE_EXACT)

    contact = _low(supplier.contact_person)
    if contact:
        sim = window_similarity(contact, text)
        if sim >= CONTACT_FUZZY_MIN:
            hit("contact~%.0f" % sim, CONTACT_FUZZY_W * sim)

    return cand

def rank_suppliers(raw_text: str,
                   suppliers: Iterable[SupplierRecord],
                   company: Optional[CompanyIdentity] = None) -> List[SupplierMatchCandidate]:
    """Candidats retenus (score > 30, au moins un champ), du meilleur au moins bon."""
    text = _low(normalize(raw_text))
    if not text:
        return []
    kept: List[SupplierMatchCandidate] = []
    for supplier in suppliers or []:
        if is_own_company(supplier, company):
            log.debug("fournisseur %r exclu (notre société)", supplier.name)
            continue
        cand = score_supplier(text, supplier)
        if cand.score > MIN_SCORE and cand.matched_fields:
            kept.append(cand)
            log.debug("fournisseur %r: %.1f %s", supplier.name, cand.score, cand.matched_fields)
    kept.sort(key=lambda c: c.score, reverse=True)
    return kept

def best_supplier_match(raw_text: str,
                        suppliers: Iterable[SupplierRecord],
                        company: Optional[CompanyIdentity] = None) -> Optional[SupplierMatchCandidate]:
    ranked = rank_suppliers(raw_text, suppliers, company)
    return ranked[0] if ranked else None

def match_supplier(raw_text: str,
                   suppliers: Iterable[SupplierRecord],
                   company: Optional[CompanyIdentity] = None) -> Optional[SupplierRecord]:
    best = best_supplier_match(raw_text, suppliers, company)
    return best.supplier if best else None
