# costscan/extractors/ex_supplier.py
from __future__ import annotations
import logging
import re
from typing import List, Optional, Tuple

from costscan.models import SupplierContact
from .candidates import Cand
from .patterns import (
    ADDRESS_HINT_RE, BARE_AMOUNT_PREFIX_RE, BARE_DATE_RE, CURRENCY_SYMBOL_RE, DATE_SHAPED_RE,
    EMAIL_RE, PHONE_BARE_RE, PHONE_LABEL_RE, SUPPLIER_SKIP_PREFIX_RE, TAX_ID_LABEL_RE,
    WEBSITE_LABEL_RE, WEBSITE_RE,
)

log = logging.getLogger(__name__)

HEADER_LINES = 8

def _header(text: str, n: int = HEADER_LINES) -> List[str]:
    lines = [ln.strip() for ln in (text or "").splitlines()]
    return [ln for ln in lines if ln][:n]

def _is_supplier_line(line: str) -> bool:
    if not (3 < len(line) < 100):
        return False
    if line[0].isdigit():
        return False
    if CURRENCY_SYMBOL_RE.search(line):
        return False
    if BARE_AMOUNT_PREFIX_RE.match(line):
        return False
    if SUPPLIER_SKIP_PREFIX_RE.match(line):
        return False
    if BARE_DATE_RE.match(line):
        return False
    return True

def ex_supplier_name(text: str) -> List[Cand]:
    """Première ligne plausible parmi les 8 premières lignes non vides (0 ou 1 candidat)."""
    for i, line in enumerate(_header(text)):
        if _is_supplier_line(line):
            return [Cand("supplier_name", line, 0.6, "header", meta={"line": i})]
    return []

def supplier_name_from_text(text: str) -> str:
    cands = ex_supplier_name(text)
    return cands[0].value if cands else ""

# ---------------------------------------------------------------- contacts

_POSTCODE_RE = re.compile(r"^\d{4,6}\s+")

def split_address(address: str) -> Tuple[str, str]:
    """
    'Zmaja od Bosne 7, 71000 Sarajevo, BiH' -> ('Sarajevo', 'BiH').
    Deux segments : le dernier est la ville ; un seul : rien.
    """
    parts = [p.strip() for p in (address or "").split(",") if p.strip()]
    if len(parts) >= 3:
        city, country = parts[-2], parts[-1]
    elif len(parts) == 2:
        city, country = parts[-1], ""
    else:
        return "", ""
    return _POSTCODE_RE.sub("", city).strip(), country

def _find_address(lines: List[str]) -> str:
    for line in lines:
        if EMAIL_RE.search(line) or PHONE_LABEL_RE.search(line):
            continue
        if ADDRESS_HINT_RE.search(line):
            return line.strip(" ,;")
    return ""

def _find_phone(text: str) -> str:
    m = PHONE_LABEL_RE.search(text)
    if m:
        return m.group(1).strip()
    for m in PHONE_BARE_RE.finditer(text):
        tok = m.group(1).strip()
        if DATE_SHAPED_RE.match(tok):
            continue
        if sum(ch.isdigit() for ch in tok) >= 6:
            return tok
    return ""

def _find_website(text: str, email: str) -> str:
    m = WEBSITE_RE.search(text)
    if m:
        return m.group(1).rstrip(".")
    m = WEBSITE_LABEL_RE.search(text)
    if m and (not email or m.group(1) not in email):
        return m.group(1).rstrip(".")
    return ""

def extract_supplier_contact(text: str, name: Optional[str] = None) -> SupplierContact:
    """
    Bloc de coordonnées du fournisseur : adresse (dans l'en-tête), téléphone,
    e-mail, site web et identifiant fiscal (texte complet). Ne lève jamais.
    """
    text = text or ""
    contact = SupplierContact(name=name if name is not None else supplier_name_from_text(text))
    try:
        header = _header(text)
        contact.address = _find_address(header)
        contact.city, contact.country = split_address(contact.address)
        m = EMAIL_RE.search(text)
        contact.email = m.group(1) if m else ""
        contact.phone = _find_phone(text)
        contact.website = _find_website(text, contact.email)
        m = TAX_ID_LABEL_RE.search(text)
        contact.tax_id = m.group(1) if m else ""
    except Exception as e:
        log.warning("extract_supplier_contact: interrompu (%s)", e)
    return contact
