# costscan/extractors/normalize.py
from __future__ import annotations
import logging
import re

log = logging.getLogger(__name__)

CYRILLIC_TO_LATIN = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "ђ": "đ", "е": "e", "ж": "ž",
    "з": "z", "и": "i", "ј": "j", "к": "k", "л": "l", "љ": "lj", "м": "m", "н": "n",
    "њ": "nj", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "ћ": "ć", "у": "u",
    "ф": "f", "х": "h", "ц": "c", "ч": "č", "џ": "dž", "ш": "š",
    "А": "A", "Б": "B", "В": "V", "Г": "G", "Д": "D", "Ђ": "Đ", "Е": "E", "Ж": "Ž",
    "З": "Z", "И": "I", "Ј": "J", "К": "K", "Л": "L", "Љ": "Lj", "М": "M", "Н": "N",
    "Њ": "Nj", "О": "O", "П": "P", "Р": "R", "С": "S", "Т": "T", "Ћ": "Ć", "У": "U",
    "Ф": "F", "Х": "H", "Ц": "C", "Ч": "Č", "Џ": "Dž", "Ш": "Š",
}
_TRANSLIT = str.maketrans(CYRILLIC_TO_LATIN)

_HSPACE_RE = re.compile(r"[^\S\n]+")          # espaces sauf retour ligne
_DIGIT_LETTER_RE = re.compile(r"(\d)([^\W\d_])")
_DOTS_RE = re.compile(r"\.(?:\s*\.)+")
_COMMAS_RE = re.compile(r",(?:\s*,)+")

def _collapse_spaces(s: str) -> str:
    lines = (_HSPACE_RE.sub(" ", l).strip() for l in s.split("\n"))
    return "\n".join(lines).strip()

# chaque étape doit être idempotente : normalize(normalize(x)) == normalize(x)
_STEPS = (
    ("translit", lambda s: s.translate(_TRANSLIT)),
    ("spaces",   _collapse_spaces),
    ("digits",   lambda s: _DIGIT_LETTER_RE.sub(r"\1 \2", s)),
    ("dots",     lambda s: _DOTS_RE.sub(".", s)),
    ("commas",   lambda s: _COMMAS_RE.sub(",", s)),
)

def normalize(text: str | None) -> str:
    """
    Nettoyage cosmétique du texte OCR (translittération cyrillique -> latin,
    espaces, chiffres collés aux lettres, ponctuation répétée).
    Ne lève jamais : en cas d'erreur on rend le dernier état propre.
    """
    if not text:
        return ""
    out = text.replace("\r\n", "\n").replace("\r", "\n")
    for name, step in _STEPS:
        try:
            out = step(out)
        except Exception as e:
            log.warning("normalize: étape %s en échec (%s)", name, e)
            return out
    return out
