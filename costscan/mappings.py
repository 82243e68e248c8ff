# costscan/mappings.py
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

log = logging.getLogger(__name__)

MAPPED_FIELDS = (
    "subtotal_tax_excluded",
    "total_amount",
    "currency",
    "document_type",
    "issue_date",
    "due_date",
    "document_number",
)

FieldMappings = Dict[str, List[str]]

def empty_mappings() -> FieldMappings:
    return {f: [] for f in MAPPED_FIELDS}

def normalize_mappings(raw: Optional[Mapping[str, Any]]) -> FieldMappings:
    """
    Ancien format : un libellé (str) par champ -> liste d'un élément.
    Libellés vides ou non textuels ignorés, ordre conservé, doublons retirés.
    Les champs inconnus sont gardés tels quels (listes).
    """
    out = empty_mappings()
    if not raw:
        return out
    for key, val in raw.items():
        if isinstance(val, str):
            val = [val]
        elif not isinstance(val, (list, tuple)):
            log.debug("mapping %s ignoré (type %s)", key, type(val).__name__)
            continue
        labels: List[str] = []
        for lab in val:
            if isinstance(lab, str) and lab.strip() and lab.strip() not in labels:
                labels.append(lab.strip())
        out[str(key)] = labels
    return out

def load_mappings(blob: Optional[str]) -> FieldMappings:
    """Blob JSON persisté par l'hôte ; blob illisible = mappings vides."""
    if not blob or not blob.strip():
        return empty_mappings()
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        log.warning("mappings: JSON illisible (%s)", e)
        return empty_mappings()
    if not isinstance(data, dict):
        log.warning("mappings: objet attendu, reçu %s", type(data).__name__)
        return empty_mappings()
    return normalize_mappings(data)

def dump_mappings(mappings: Mapping[str, Any]) -> str:
    return json.dumps(normalize_mappings(mappings), ensure_ascii=False)
