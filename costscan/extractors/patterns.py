# costscan/extractors/patterns.py
from __future__ import annotations
import re

PATTERNS_VERSION = "v2.1.0"

CURRENCIES = ("BAM", "EUR", "USD", "RSD")
DEFAULT_CURRENCY = "BAM"
DOCUMENT_TYPES = ("invoice", "quote", "credit_note", "other")

# ---- montants
_AMOUNT = r"\d{1,3}(?:[ \u00a0.,]\d{3})+[.,]\d{2}(?![.,]?\d)|\d+[.,]\d{2}(?![.,]?\d)"
AMOUNT_TOKEN_RE = re.compile(rf"(?<![\d.,])({_AMOUNT})")
AMOUNT_LABEL_RE = re.compile(
    rf"(ukupno|total|iznos|za\s+platiti|za\s+naplatu)[:\s]*({_AMOUNT})", re.IGNORECASE
)
AMOUNT_CURRENCY_RE = re.compile(
    rf"(?<![\d.,])({_AMOUNT})\s*(?:EUR|USD|BAM|RSD|€|\$)", re.IGNORECASE
)
MAX_PLAUSIBLE_AMOUNT = 1_000_000

# ---- devise
CURRENCY_AFTER_AMOUNT_RE = re.compile(r"\d+[.,]\d{2}\s*(EUR|USD|BAM|RSD)\b", re.IGNORECASE)
CURRENCY_TOKEN_RE = re.compile(r"\b(EUR|USD|BAM|RSD)\b", re.IGNORECASE)

# ---- dates
DELIVERY_LABELS = r"datum\s+isporuke|datum\s+dostave|datum\s+otpreme|delivery\s+date"
ISSUE_LABELS = (
    r"datum\s+izdavanja|datum\s+ra[cč]una|datum\s+fakture|issue\s+date|invoice\s+date|datum"
)
DUE_LABELS = (
    r"datum\s+dospije[cćč]a|datum\s+dospe[cćč]a|due\s+date|dospije[cćč]a|dospe[cćč]a"
    r"|rok\s+pla[cćč]anja|valuta\s+pla[cćč]anja"
)
DELIVERY_CONTEXT_RE = re.compile(DELIVERY_LABELS, re.IGNORECASE)

_DATE_DOTS = r"\d{1,2}\s*\.\s*\d{1,2}\s*\.\s*\d{4}"
_DATE_SEP = r"\d{1,2}[./-]\d{1,2}[./-]\d{2,4}"

# (regex, exclu ?), passe 1, dates précédées d'un libellé
LABELED_DATE_PATTERNS = [
    (re.compile(rf"({DELIVERY_LABELS})[:\s]*({_DATE_DOTS})", re.IGNORECASE), True),
    (re.compile(rf"({DELIVERY_LABELS})[:\s]*({_DATE_SEP})", re.IGNORECASE), True),
    (re.compile(rf"({ISSUE_LABELS})[:\s]*({_DATE_DOTS})", re.IGNORECASE), False),
    (re.compile(rf"({ISSUE_LABELS})[:\s]*({_DATE_SEP})", re.IGNORECASE), False),
    (re.compile(rf"({DUE_LABELS})[:\s]*({_DATE_DOTS})", re.IGNORECASE), False),
    (re.compile(rf"({DUE_LABELS})[:\s]*({_DATE_SEP})", re.IGNORECASE), False),
]

MONTH_NAMES = (
    r"januar[a]?|februar[a]?|mart[a]?|april[a]?|maj[a]?|jun[a]?|jul[a]?|avgust[a]?|august"
    r"|septemb[a]?r[a]?|oktob[a]?r[a]?|novemb[a]?r[a]?|decemb[a]?r[a]?"
    r"|january|february|march|may|june|july|september|october|november|december"
)

# passe 2, dates isolées
STANDALONE_DATE_PATTERNS = [
    re.compile(rf"\b({_DATE_DOTS})\b"),
    re.compile(rf"(?:^|[^\d])({_DATE_DOTS})(?:[^\d]|$)"),
    re.compile(r"\b(\d{1,2}\s*\.\s*\d{1,2}\s*\.\s*\d{2})\b"),
    re.compile(r"\b(\d{1,2}[./-]\d{1,2}[./-]\d{4})\b"),
    re.compile(r"\b(\d{1,2}[./-]\d{1,2}[./-]\d{2})\b"),
    re.compile(r"\b(\d{4}[./-]\d{1,2}[./-]\d{1,2})\b"),
    re.compile(rf"\b(\d{{1,2}}\.?\s+(?:{MONTH_NAMES})\s+\d{{4}})\b", re.IGNORECASE),
]

# passe 3, séparateurs relâchés + suites de 8 chiffres
AGGRESSIVE_DATE_PATTERNS = [
    re.compile(r"\b(\d{1,4}[./\-\s]+\d{1,2}[./\-\s]+\d{2,4})\b"),
    re.compile(
        r"\b(\d{1,2}[./\-\s]+(?:jan|feb|mar|apr|maj|may|jun|jul|avg|aug|sep|okt|oct|nov|dec)[a-z]*[./\-\s]+\d{2,4})\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(\d{8})\b"),
]

DATE_SHAPED_RE = re.compile(r"^\d{1,2}[./-]\d{1,2}[./-]\d{2,4}$|^\d{4}[./-]\d{1,2}[./-]\d{1,2}$")

# ---- numéro de document
DOC_NUMBER_LABELS = [
    "broj fakture", "broj računa", "faktura br", "račun br", "faktura", "račun",
    "invoice no", "invoice number", "invoice", "broj", "number", "br.",
]
DOC_NUMBER_RES = [
    re.compile(
        r"\b(?:faktura|ra[cč]un|invoice|doc|no)\b[\s:.#]*(?:br(?:oj)?\b\.?)?[\s:.#]*([A-Z0-9][A-Z0-9\-/.]*)",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:broj|number|br\.)[\s:#]*([A-Z0-9][A-Z0-9\-/.]*)", re.IGNORECASE),
    re.compile(r"\b([A-Z]{2,}\d{4,})\b"),
]

# ---- type de document (ordre = priorité)
DOC_TYPE_KEYWORDS = [
    ("invoice", re.compile(r"faktura|(?<!pred)ra[cč]un|invoice", re.IGNORECASE)),
    ("quote", re.compile(r"ponuda|predra[cč]un|quote|quotation", re.IGNORECASE)),
    ("credit_note", re.compile(r"knji[zž]no\s+odobrenje|credit\s+note", re.IGNORECASE)),
]

VAT_RATE_RE = re.compile(r"(\d{1,2}(?:[.,]\d)?\s*%)")

# ---- fournisseur
SUPPLIER_SKIP_PREFIX_RE = re.compile(
    r"^(datum|date|total|ukupno|iznos|faktura|ra[cč]un|invoice|ponuda|predra[cč]un)", re.IGNORECASE
)
CURRENCY_SYMBOL_RE = re.compile(r"[€$£]")
BARE_AMOUNT_PREFIX_RE = re.compile(r"^\d+[.,]\d{2}")
BARE_DATE_RE = re.compile(r"^\d{1,2}[./-]\d{1,2}[./-]\d{2,4}$")

EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
WEBSITE_RE = re.compile(r"\b((?:https?://|www\.)[^\s,;]+)", re.IGNORECASE)
WEBSITE_LABEL_RE = re.compile(
    r"\b(?:web|website|internet|url)\b\s*[:.]?\s*([a-z0-9][a-z0-9.-]*\.[a-z]{2,}(?:/\S*)?)", re.IGNORECASE
)
PHONE_LABEL_RE = re.compile(
    r"\b(?:tel(?:efon)?|phone|fax|mob(?:itel)?|gsm)\b\.?\s*[:.]?\s*(\+?[\d(][\d\s()/.-]{4,}\d)", re.IGNORECASE
)
PHONE_BARE_RE = re.compile(r"(?<![\w.,])((?:\+|00|0)\d{1,4}(?:[ /-]\d{1,4}){2,5})(?![\w.,])")
TAX_ID_LABEL_RE = re.compile(
    r"\b(?:JIB|PIB|OIB|IDB|ID\s*broj|PDV\s*broj|PDV|VAT(?:\s*(?:no|number|id))?|tax\s*id)\b"
    r"\s*[.:]?\s*(?:broj\s*[:.]?\s*)?([A-Z]{0,2}\d[\dA-Z-]{5,19})",
    re.IGNORECASE,
)
ADDRESS_HINT_RE = re.compile(
    r"\b(?:ulica|bb|street|cesta|put|trg|bulevar|avenue|road)\b|\b(?:ul|str|b\.b)\."
    r"|^[^\d\W][\w .'-]+\s\d{1,4}[a-zA-Z]?\s*,"
    r"|\b\d{5}\s+[^\W\d]",
    re.IGNORECASE,
)
