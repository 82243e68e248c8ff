# costscan/extractors/fuzzy.py
from __future__ import annotations
import re
from typing import List, Tuple

from rapidfuzz.distance import Levenshtein

_WORD_RE = re.compile(r"\S+")

def similarity(a: str, b: str) -> float:
    """Similarité 0..100 (distance de Levenshtein normalisée, insensible à la casse)."""
    if a == b:
        return 100.0
    if not a or not b:
        return 0.0
    return round(Levenshtein.normalized_similarity(a.lower(), b.lower()) * 100, 2)

def words_with_spans(text: str) -> List[Tuple[str, int, int]]:
    return [(m.group(0), m.start(), m.end()) for m in _WORD_RE.finditer(text or "")]

def window_similarity(needle: str, haystack: str) -> float:
    """
    Meilleure similarité entre `needle` et une fenêtre de mots de `haystack`
    de même longueur (+/- 1 mot). Sert à comparer un nom/une adresse à un
    texte OCR complet sans que la longueur du texte écrase le score.
    """
    needle = " ".join((needle or "").lower().split())
    if not needle or not haystack:
        return 0.0
    words = [w for w, _, _ in words_with_spans(haystack.lower())]
    n = len(needle.split())
    best = 0.0
    for size in {max(1, n - 1), n, n + 1}:
        for i in range(0, max(1, len(words) - size + 1)):
            s = similarity(needle, " ".join(words[i:i + size]))
            if s > best:
                best = s
                if best >= 100.0:
                    return best
    return best
