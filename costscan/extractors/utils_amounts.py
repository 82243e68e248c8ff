from __future__ import annotations
import re
from typing import Any, Optional

from .patterns import MAX_PLAUSIBLE_AMOUNT

_NUM_CHARS_RE = re.compile(r"[^\d.,]")

def _norm_amount(s: str | None) -> float | None:
    """'1.170,00' / '1,170.00' / '1 170,00' / '250,50' -> float (point décimal)."""
    if not s:
        return None
    s = str(s).strip()
    neg = s.startswith("-")
    s = _NUM_CHARS_RE.sub("", s).strip(".,")
    if not s:
        return None
    if "," in s and "." in s:
        # le dernier séparateur est le décimal
        dec_sep = "," if s.rfind(",") > s.rfind(".") else "."
        thou_sep = "." if dec_sep == "," else ","
        s = s.replace(thou_sep, "").replace(dec_sep, ".")
    elif "," in s or "." in s:
        sep = "," if "," in s else "."
        head, _, tail = s.rpartition(sep)
        if s.count(sep) > 1 or len(tail) == 3:
            s = s.replace(sep, "")
        else:
            s = f"{head}.{tail}"
    try:
        v = float(s)
    except ValueError:
        return None
    return -v if neg else v

def plausible_amount(v: Optional[float]) -> bool:
    return v is not None and 0 < v < MAX_PLAUSIBLE_AMOUNT

def parse_numeric(val: Any) -> Optional[float]:
    """Nombre venant d'un libellé utilisateur ou du modèle ; None si absent ou <= 0."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        num = float(val)
    else:
        num = _norm_amount(str(val))
    if num is None or num != num or num <= 0:
        return None
    return num
