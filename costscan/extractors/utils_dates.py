from __future__ import annotations
import datetime as dt
import re
from typing import Optional, Union

MONTHS = {
    "januar": 1, "januara": 1, "january": 1, "jan": 1,
    "februar": 2, "februara": 2, "february": 2, "feb": 2,
    "mart": 3, "marta": 3, "march": 3, "mar": 3,
    "april": 4, "aprila": 4, "apr": 4,
    "maj": 5, "maja": 5, "may": 5,
    "jun": 6, "juna": 6, "june": 6,
    "jul": 7, "jula": 7, "july": 7,
    "avgust": 8, "avgusta": 8, "august": 8, "aug": 8, "avg": 8,
    "septembar": 9, "septembra": 9, "september": 9, "sep": 9, "sept": 9,
    "oktobar": 10, "oktobra": 10, "october": 10, "okt": 10, "oct": 10,
    "novembar": 11, "novembra": 11, "november": 11, "nov": 11,
    "decembar": 12, "decembra": 12, "december": 12, "dec": 12,
}

_MONTH_WORD_RE = re.compile(r"^(\d{1,2})\.?[\s./-]*([^\W\d_]+)\.?[\s./-]*(\d{2,4})$")
_EIGHT_DIGITS_RE = re.compile(r"^\d{8}$")

DateLike = Union[str, dt.date, None]

def make_date(year: int, month: int, day: int) -> Optional[dt.date]:
    """Construit une date et refuse tout ce qui ne fait pas l'aller-retour (30 février...)."""
    if not (1900 <= year <= 2100 and 1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        d = dt.date(year, month, day)
    except ValueError:
        return None
    if (d.year, d.month, d.day) != (year, month, day):
        return None
    return d

def _full_year(y: int, raw: str) -> int:
    if len(raw) <= 2:
        return 2000 + y if y < 50 else 1900 + y
    return y

def parse_eight_digits(s: str) -> Optional[dt.date]:
    """'20240315' (AAAAMMJJ) puis '15032024' (JJMMAAAA)."""
    if not _EIGHT_DIGITS_RE.match(s or ""):
        return None
    return (make_date(int(s[:4]), int(s[4:6]), int(s[6:]))
            or make_date(int(s[4:]), int(s[2:4]), int(s[:2])))

def parse_date_string(s: str | None) -> Optional[dt.date]:
    """
    Formats acceptés : JJ.MM.AAAA, JJ/MM/AAAA, JJ-MM-AAAA (année sur 2 ou 4 chiffres),
    AAAA-MM-JJ (et variantes . /), '15 januar 2024', '15-mar-2024'.
    Ne lève jamais.
    """
    if not s or not str(s).strip():
        return None
    s = str(s).strip()

    m = _MONTH_WORD_RE.match(s)
    if m:
        month = MONTHS.get(m.group(2).lower())
        if not month:
            return None
        return make_date(_full_year(int(m.group(3)), m.group(3)), month, int(m.group(1)))

    for sep in ("/", "-", "."):
        if sep in s:
            parts = s.split(sep)
            break
    else:
        return parse_eight_digits(s)

    if len(parts) != 3:
        return None
    parts = [re.sub(r"\D", "", p) for p in parts]
    if not all(parts):
        return None

    if len(parts[0]) == 4:
        return make_date(int(parts[0]), int(parts[1]), int(parts[2]))
    return make_date(_full_year(int(parts[2]), parts[2]), int(parts[1]), int(parts[0]))

def to_date(v: DateLike) -> Optional[dt.date]:
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    return parse_date_string(v)

def add_days(d: dt.date, days: int) -> dt.date:
    return d + dt.timedelta(days=days)

_OCR_DATE_RES = (
    (re.compile(r"(?<!\d)(\d{4})[./-](\d{1,2})[./-](\d{1,2})"), "ymd"),
    (re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{4})"), "dmy"),
    (re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{2})(?!\d)"), "dmy"),
)

def parse_ocr_date(s: str | None) -> Optional[dt.date]:
    """Date lue derrière un libellé : corrige O->0 et I/l->1 avant l'analyse."""
    if not s or not s.strip():
        return None
    cleaned = re.sub(r"[Oo]", "0", s)
    cleaned = re.sub(r"[Il]", "1", cleaned)
    cleaned = re.sub(r"\s*([./-])\s*", r"\1", cleaned)
    cleaned = " ".join(re.sub(r"[^\d./-]", " ", cleaned).split())
    for rx, order in _OCR_DATE_RES:
        m = rx.search(cleaned)
        if not m:
            continue
        a, b, c = m.groups()
        if order == "ymd":
            d = make_date(int(a), int(b), int(c))
        else:
            d = make_date(_full_year(int(c), c), int(b), int(a))
        if d:
            return d
    return None
