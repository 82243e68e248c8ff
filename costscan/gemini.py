# costscan/gemini.py
from __future__ import annotations
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from google import genai
from google.genai import types

from .config import Settings
from .errors import BackendUnavailable, MalformedModelReply, RecognitionFailure, ScanError
from .extractors.ex_doc_type import coerce_document_type
from .extractors.io_pdf_image import check_mime_type, fallback_text
from .extractors.json_reply import parse_model_reply
from .extractors.patterns import CURRENCIES, DEFAULT_CURRENCY
from .extractors.utils_amounts import parse_numeric
from .extractors.utils_dates import parse_date_string
from .models import ExtractedFields, RecognitionResult, SupplierContact

log = logging.getLogger(__name__)

ENGINE_ID = "gemini-ai"
ERROR_ENGINE_ID = "gemini-error"
AI_CONFIDENCE = 0.85
ERROR_CONFIDENCE = 0.1

EXTRACTION_PROMPT = """Please extract all relevant information from this invoice document and provide it in the following structured JSON format:
{
  "supplier_name": "<Supplier/Company Name>",
  "supplier_address": "<Full address of the supplier>",
  "supplier_city": "<City of the supplier>",
  "supplier_country": "<Country of the supplier>",
  "supplier_phone": "<Phone number of the supplier>",
  "supplier_email": "<Email address of the supplier>",
  "supplier_website": "<Website URL of the supplier>",
  "supplier_tax_id": "<Tax ID/VAT number of the supplier>",
  "document_number": "<Invoice/Document Number>",
  "document_type": "invoice|quote|credit_note|other",
  "issue_date": "<Issue Date in YYYY-MM-DD format>",
  "due_date": "<Due Date in YYYY-MM-DD format>",
  "subtotal_tax_excluded": <Subtotal amount without tax (number)>,
  "total_amount": <Total amount with tax (number)>,
  "currency": "<Currency code: EUR|USD|BAM|RSD>",
  "vat_rate": <VAT rate percentage (number)>,
  "description": "<Brief description of the document>"
}

Important:
- Extract dates in DD.MM.YYYY, DD/MM/YYYY, or YYYY-MM-DD format and convert to YYYY-MM-DD
- Extract amounts as numbers (remove currency symbols and spaces)
- Extract supplier contact information from the document header/footer
- If currency is not specified, default to "BAM"
- If document_type is not clear, default to "invoice"
- Return ONLY valid JSON, no additional text or markdown formatting
- If a field cannot be found, use empty string "" for text fields or 0 for numbers"""

# champ canonique -> clés acceptées, dans l'ordre
FIELD_KEYS: Dict[str, Tuple[str, ...]] = {
    "supplier_name": ("supplier_name", "companyName"),
    "document_number": ("document_number", "invoiceNumber"),
    "document_type": ("document_type",),
    "issue_date": ("issue_date", "invoiceDate"),
    "due_date": ("due_date",),
    "subtotal_tax_excluded": ("subtotal_tax_excluded", "taxableAmount"),
    "total_amount": ("total_amount", "total", "amountPayable"),
    "currency": ("currency",),
    "vat_rate": ("vat_rate",),
    "description": ("description",),
}
CONTACT_KEYS: Dict[str, Tuple[str, ...]] = {
    "address": ("supplier_address", "address"),
    "city": ("supplier_city", "city"),
    "country": ("supplier_country", "country"),
    "phone": ("supplier_phone", "phone", "telephone"),
    "email": ("supplier_email", "email"),
    "website": ("supplier_website", "website", "url"),
    "tax_id": ("supplier_tax_id", "tax_id", "vat_number", "taxNumber"),
}

def _pick(data: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    """Première valeur scalaire non vide ; listes/objets = absents."""
    for k in keys:
        v = data.get(k)
        if isinstance(v, (dict, list)) or v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None

def _text(v: Any) -> str:
    if v is None or isinstance(v, bool):
        return ""
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return str(v).strip()

def map_reply(data: Dict[str, Any]) -> Tuple[ExtractedFields, Optional[SupplierContact]]:
    """Réponse JSON du modèle -> champs canoniques (+ coordonnées fournisseur si présentes)."""
    get = lambda name: _pick(data, FIELD_KEYS[name])

    currency = _text(get("currency")).upper()
    fields = ExtractedFields(
        supplier_name=_text(get("supplier_name")),
        document_type=coerce_document_type(get("document_type")),
        subtotal_tax_excluded=parse_numeric(get("subtotal_tax_excluded")),
        total_amount=parse_numeric(get("total_amount")),
        currency=currency if currency in CURRENCIES else DEFAULT_CURRENCY,
        issue_date=parse_date_string(_text(get("issue_date"))),
        due_date=parse_date_string(_text(get("due_date"))),
        document_number=_text(get("document_number")),
        vat_rate=parse_numeric(get("vat_rate")) or 0.0,
        description=_text(get("description")),
    )

    contact = SupplierContact(name=fields.supplier_name,
                              **{k: _text(_pick(data, keys)) for k, keys in CONTACT_KEYS.items()})
    if not (contact.address or contact.phone or contact.email):
        contact = None
    return fields, contact

class GeminiExtractor:
    """
    Adaptateur IA : envoie le fichier au modèle avec un prompt fixe et
    ramène un RecognitionResult. `extract` ne lève jamais.
    Le client est injecté (tests) ou créé à la première utilisation.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        self.settings = settings or Settings.from_env()
        self._client = client
        self.model: Optional[str] = None
        self._init_error: Optional[str] = None

    def _candidate_models(self) -> List[str]:
        out: List[str] = []
        for name in [self.settings.gemini_model, *self.settings.gemini_fallback_models]:
            if name and name not in out:
                out.append(name)
        return out

    def _ensure_ready(self) -> None:
        if self.model is not None:
            return
        if self._client is None:
            if not self.settings.gemini_api_key:
                raise BackendUnavailable("clé API Gemini absente (GEMINI_API_KEY)")
            try:
                self._client = genai.Client(api_key=self.settings.gemini_api_key)
            except Exception as e:
                raise BackendUnavailable(f"client Gemini: {e}") from e

        for name in self._candidate_models():
            try:
                self._client.models.get(model=name)
            except Exception as e:
                log.warning("modèle %s indisponible (%s)", name, e)
                continue
            self.model = name
            log.info("Gemini prêt, modèle %s", name)
            return
        raise BackendUnavailable("aucun modèle Gemini disponible")

    def is_available(self) -> bool:
        try:
            self._ensure_ready()
        except BackendUnavailable as e:
            if self._init_error != str(e):
                log.warning("Gemini indisponible: %s", e)
            self._init_error = str(e)
            return False
        return True

    def _generate(self, file_bytes: bytes, mime_type: str) -> str:
        try:
            resp = self._client.models.generate_content(
                model=self.model,
                contents=[types.Part.from_bytes(data=file_bytes, mime_type=mime_type), EXTRACTION_PROMPT],
                config=types.GenerateContentConfig(temperature=0.1),
            )
        except Exception as e:
            raise RecognitionFailure(f"Gemini API error: {e}") from e
        return (getattr(resp, "text", None) or "").strip()

    def extract(self, file_bytes: bytes, mime_type: str, filename: str = "document") -> RecognitionResult:
        start = time.monotonic()
        elapsed = lambda: int((time.monotonic() - start) * 1000)
        try:
            mime = check_mime_type(mime_type)
            self._ensure_ready()
            text = self._generate(file_bytes, mime)
        except ScanError as e:
            log.error("Gemini: %s (%s)", e, e.code)
            return RecognitionResult(
                raw_text=fallback_text(filename, mime_type, len(file_bytes or b""), str(e)),
                confidence=ERROR_CONFIDENCE,
                processing_time_ms=elapsed(),
                engine_id=ERROR_ENGINE_ID,
                error=e.code,
            )

        try:
            data = parse_model_reply(text)
        except MalformedModelReply as e:
            log.warning("réponse Gemini sans JSON exploitable: %s", e)
            return RecognitionResult(raw_text=text or str(e), confidence=AI_CONFIDENCE,
                                     processing_time_ms=elapsed(), engine_id=ENGINE_ID, error=e.code)

        fields, contact = map_reply(data)
        log.debug("Gemini: %d clés, fournisseur=%r", len(data), fields.supplier_name)
        return RecognitionResult(
            raw_text=text,
            confidence=AI_CONFIDENCE,
            processing_time_ms=elapsed(),
            engine_id=ENGINE_ID,
            structured_guess=fields,
            supplier_contact=contact,
        )

    def close(self) -> None:
        closer = getattr(self._client, "close", None)
        if callable(closer):
            closer()
        self._client = None
        self.model = None
