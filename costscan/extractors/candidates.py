# costscan/extractors/candidates.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict

@dataclass
class Cand:
    field: str                 # "amount", "issue_date", "document_number", "currency", ...
    value: Any
    conf: float                # 0..1
    source: str                # "label", "currency", "bare", "labeled", "standalone", "aggressive", ...
    pos: int = -1              # offset dans le texte, -1 si inconnu
    meta: Dict[str, Any] = field(default_factory=dict)
