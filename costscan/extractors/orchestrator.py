# costscan/extractors/orchestrator.py
from __future__ import annotations
import dataclasses
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from costscan.mappings import normalize_mappings
from costscan.models import ExtractedFields
from .candidates import Cand
from .ex_doc_number import best_document_number
from .fields import DESCRIPTION_CHARS, _fill_fields_from_text
from .label_proximity import ex_label_proximity
from .normalize import normalize
from .patterns import DEFAULT_CURRENCY
from .summary import rate_from_amounts, ratio_matches
from .validators import enforce_amount_order, soft_validate

log = logging.getLogger(__name__)

AMOUNT_FIELDS = ("subtotal_tax_excluded", "total_amount")
# champs remplis par libellé seulement s'ils sont encore vides
FILL_IF_EMPTY = ("issue_date", "due_date", "currency", "document_type")

def _weigh(c: Cand) -> float:
    return max(0.0, min(1.0, c.conf * soft_validate(c.field, c.value)))

def resolve_fields(cands: List[Cand]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Meilleur candidat par champ (à confiance égale : ordre d'arrivée) + détail des alternatives."""
    by_field: Dict[str, List[Cand]] = {}
    for c in cands:
        c.conf = _weigh(c)
        if c.conf > 0:
            by_field.setdefault(c.field, []).append(c)

    final: Dict[str, Any] = {}
    confs: Dict[str, Any] = {}
    for field, lst in by_field.items():
        lst.sort(key=lambda x: x.conf, reverse=True)
        top = lst[0]
        final[field] = top.value
        confs[field] = {
            "value": top.value,
            "conf": round(top.conf, 3),
            "source": top.source,
            "alts": [
                {"value": a.value, "conf": round(a.conf, 3), "source": a.source}
                for a in lst[1:3]
            ],
        }
    return final, confs

def pair_amounts(subtotals: Sequence[float],
                 totals: Sequence[float]) -> Tuple[Optional[float], Optional[float]]:
    """
    Choix (hors taxe, total) parmi les candidats des libellés :
    1) total > hors taxe et total ~ hors taxe x 1,17 (+/- 5 %) ;
    2) sinon premier couple total > hors taxe ;
    3) sinon premier candidat de chaque champ.
    """
    for s in subtotals:
        for t in totals:
            if t > s and ratio_matches(s, t):
                return s, t
    for s in subtotals:
        for t in totals:
            if t > s:
                return s, t
    return (subtotals[0] if subtotals else None), (totals[0] if totals else None)

def _is_empty(v: Any) -> bool:
    return v is None or v == ""

def _merge(primary: ExtractedFields, fallback: ExtractedFields) -> ExtractedFields:
    """Valeurs de `primary` d'abord, trous comblés par `fallback` ; les montants vont par paire."""
    merged = dataclasses.replace(primary)
    keep_amounts = any(getattr(primary, f) is not None for f in AMOUNT_FIELDS)
    for f in dataclasses.fields(ExtractedFields):
        if f.name == "due_date_inferred" or (keep_amounts and f.name in AMOUNT_FIELDS):
            continue
        if _is_empty(getattr(merged, f.name)) or (f.name == "vat_rate" and not merged.vat_rate):
            setattr(merged, f.name, getattr(fallback, f.name))
            if f.name == "due_date":
                merged.due_date_inferred = fallback.due_date_inferred
    return merged

def _has_content(guess: Optional[ExtractedFields]) -> bool:
    if guess is None:
        return False
    return any(not _is_empty(getattr(guess, f)) for f in (
        "supplier_name", "subtotal_tax_excluded", "total_amount",
        "issue_date", "due_date", "document_number",
    ))

def _labels_for(mappings: Mapping[str, List[str]], fields: Sequence[str]) -> Dict[str, List[str]]:
    return {f: mappings.get(f, []) for f in fields if mappings.get(f)}

def _apply_amounts(out: ExtractedFields, text: str, mappings: Mapping[str, List[str]]) -> None:
    labels = _labels_for(mappings, AMOUNT_FIELDS)
    if not labels:
        return
    cands = ex_label_proximity(text, labels)
    subtotals = [c.value for c in cands if c.field == "subtotal_tax_excluded"]
    totals = [c.value for c in cands if c.field == "total_amount"]
    if not subtotals and not totals:
        return
    sub, tot = pair_amounts(subtotals, totals)
    log.debug("montants libellés: hors taxe=%s total=%s (candidats %s / %s)", sub, tot, subtotals, totals)
    if sub is not None:
        out.subtotal_tax_excluded = sub
    if tot is not None:
        out.total_amount = tot

def _apply_fill_if_empty(out: ExtractedFields, text: str, mappings: Mapping[str, List[str]]) -> None:
    wanted = [f for f in FILL_IF_EMPTY if _is_empty(getattr(out, f))]
    labels = _labels_for(mappings, wanted)
    if not labels:
        return
    final, confs = resolve_fields(ex_label_proximity(text, labels))
    for field, value in final.items():
        setattr(out, field, value)
        log.debug("%s <- libellé %r (conf %s)", field, value, confs[field]["conf"])

def reconcile(raw_text: str,
              mappings: Optional[Mapping[str, Any]] = None,
              structured_guess: Optional[ExtractedFields] = None) -> ExtractedFields:
    """
    Fusionne la suggestion structurée (IA) avec les extracteurs et les
    libellés utilisateur. Résultat toujours complet ; ne lève pas sur un
    texte vide ou des libellés absurdes.
    """
    text = normalize(raw_text)
    maps = normalize_mappings(mappings)

    doc_labels = maps.get("document_number") or None
    pattern = _fill_fields_from_text(text, doc_labels)
    if _has_content(structured_guess):
        out = _merge(structured_guess, pattern)
        log.debug("graine: suggestion structurée (%s)", structured_guess.supplier_name or "sans fournisseur")
    else:
        out = pattern

    _apply_amounts(out, text, maps)
    _apply_fill_if_empty(out, text, maps)

    if not out.document_number and doc_labels:
        out.document_number = best_document_number(text, doc_labels) or ""

    out.currency = out.currency or DEFAULT_CURRENCY
    out.document_type = out.document_type or "invoice"
    enforce_amount_order(out)
    if not out.vat_rate:
        out.vat_rate = rate_from_amounts(out.subtotal_tax_excluded, out.total_amount) or 0.0
    if not out.description:
        out.description = text.strip()[:DESCRIPTION_CHARS]
    return out
