# costscan/extractors/summary.py
from __future__ import annotations
import re
from typing import Optional, Tuple

from .patterns import VAT_RATE_RE

REGIONAL_VAT_RATE = 17.0
TAX_RATIO = 1.0 + REGIONAL_VAT_RATE / 100.0
TAX_RATIO_TOLERANCE = 0.05

def detect_vat_rate(text: str) -> Optional[float]:
    """Premier 'NN %' plausible (0 < taux <= 30) ; '100 %' ou '5,5 %' collés à d'autres chiffres ignorés."""
    for m in VAT_RATE_RE.finditer(text or ""):
        if m.start() > 0 and text[m.start() - 1].isdigit():
            continue
        raw = re.sub(r"[\s%]", "", m.group(1)).replace(",", ".")
        try:
            rate = float(raw)
        except ValueError:
            continue
        if 0 < rate <= 30:
            return rate
    return None

def ratio_matches(subtotal: float, total: float,
                  ratio: float = TAX_RATIO, tolerance: float = TAX_RATIO_TOLERANCE) -> bool:
    """total ~ subtotal x ratio, à +/- tolerance (relative) près."""
    if subtotal <= 0:
        return False
    expected = subtotal * ratio
    return abs(total - expected) <= expected * tolerance

def infer_amounts(total: Optional[float],
                  subtotal: Optional[float],
                  vat_rate: Optional[float]) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """
    Complète le trio (hors taxe, TVA, total) à partir du taux.
    Sans taux explicite on raisonne avec le taux régional.
    """
    rate = (vat_rate if vat_rate else REGIONAL_VAT_RATE) / 100.0
    sub, tot = subtotal, total
    vat = None

    if tot is not None and sub is None:
        sub = round(tot / (1.0 + rate), 2)
    if sub is not None and tot is None:
        tot = round(sub * (1.0 + rate), 2)
    if sub is not None and tot is not None:
        vat = round(tot - sub, 2)
    return sub, vat, tot

def rate_from_amounts(subtotal: Optional[float], total: Optional[float]) -> Optional[float]:
    if not subtotal or not total or total <= subtotal:
        return None
    return round((total / subtotal - 1.0) * 100.0, 2)
