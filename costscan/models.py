# costscan/models.py
from __future__ import annotations
import datetime as dt
from dataclasses import asdict, dataclass, field, fields as dc_fields
from typing import Any, Dict, Iterator, List, Optional, Union

REVIEW_CONFIDENCE = 0.2

def _s(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()

def _iso(d: Optional[dt.date]) -> Optional[str]:
    return d.isoformat() if d else None

@dataclass
class ExtractedFields:
    """Jeu de suggestions canonique : un champ = une valeur (vide/None si rien)."""
    supplier_name: str = ""
    document_type: str = "invoice"
    subtotal_tax_excluded: Optional[float] = None
    total_amount: Optional[float] = None
    currency: str = "BAM"
    issue_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    document_number: str = ""
    vat_rate: float = 0.0
    description: str = ""
    # échéance calculée (émission + 15 j), pas lue sur le document
    due_date_inferred: bool = field(default=False, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d.pop("due_date_inferred")
        d["issue_date"] = _iso(self.issue_date)
        d["due_date"] = _iso(self.due_date)
        return d

@dataclass
class SupplierContact:
    name: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    tax_id: str = ""

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in dc_fields(self))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass(frozen=True)
class RecognitionResult:
    raw_text: str
    confidence: float
    processing_time_ms: int
    engine_id: str
    structured_guess: Optional[ExtractedFields] = None
    supplier_contact: Optional[SupplierContact] = None
    error: Optional[str] = None

    def __post_init__(self):
        # bornes du contrat : confiance dans [0, 1], durée >= 0
        object.__setattr__(self, "confidence", max(0.0, min(1.0, float(self.confidence))))
        object.__setattr__(self, "processing_time_ms", max(0, int(self.processing_time_ms)))
        object.__setattr__(self, "raw_text", self.raw_text or "")

    @property
    def needs_review(self) -> bool:
        return self.error is not None or self.confidence < REVIEW_CONFIDENCE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw_text": self.raw_text,
            "confidence": round(self.confidence, 3),
            "processing_time_ms": self.processing_time_ms,
            "engine_id": self.engine_id,
            "structured_guess": self.structured_guess.to_dict() if self.structured_guess else None,
            "supplier_contact": self.supplier_contact.to_dict() if self.supplier_contact else None,
            "error": self.error,
        }

@dataclass
class SupplierRecord:
    id: Any = None
    name: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    tax_id: str = ""
    contact_person: str = ""
    payment_terms: Union[int, str, None] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SupplierRecord":
        terms = d.get("payment_terms")
        if terms is not None and not isinstance(terms, int):
            terms = _s(terms) or None
        return cls(
            id=d.get("id"),
            name=_s(d.get("name")),
            address=_s(d.get("address")),
            city=_s(d.get("city")),
            country=_s(d.get("country")),
            phone=_s(d.get("phone")),
            email=_s(d.get("email")),
            website=_s(d.get("website")),
            tax_id=_s(d.get("tax_id")),
            contact_person=_s(d.get("contact_person")),
            payment_terms=terms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass
class CompanyIdentity:
    """Notre propre société : sert à ne jamais se reconnaître comme fournisseur."""
    name: str = ""
    legal_name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    tax_id: str = ""
    email: str = ""
    phone: str = ""

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "CompanyIdentity":
        d = d or {}
        values = {f.name: _s(d.get(f.name)) for f in dc_fields(cls)}
        # fiche société persistée : company_name / legal_name
        values["name"] = values["name"] or _s(d.get("company_name"))
        return cls(**values)

    def values(self) -> Iterator[str]:
        for f in dc_fields(self):
            v = getattr(self, f.name)
            if v:
                yield v

@dataclass
class SupplierMatchCandidate:
    supplier: SupplierRecord
    score: float = 0.0
    matched_fields: List[str] = field(default_factory=list)

@dataclass
class ScanOutcome:
    """Résultat complet d'un scan, remis à la couche formulaire."""
    result: RecognitionResult
    fields: ExtractedFields
    supplier: Optional[SupplierRecord] = None
    match_score: Optional[float] = None
    supplier_contact: Optional[SupplierContact] = None

    @property
    def needs_review(self) -> bool:
        return self.result.needs_review

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": self.fields.to_dict(),
            "supplier": self.supplier.to_dict() if self.supplier else None,
            "match_score": round(self.match_score, 2) if self.match_score is not None else None,
            "supplier_contact": self.supplier_contact.to_dict() if self.supplier_contact else None,
            "needs_review": self.needs_review,
            "meta": {
                "engine": self.result.engine_id,
                "confidence": round(self.result.confidence, 3),
                "processing_time_ms": self.result.processing_time_ms,
                "error": self.result.error,
            },
            "raw_text": self.result.raw_text,
        }
