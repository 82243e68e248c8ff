# costscan/extractors/pdf_basic.py
from __future__ import annotations
import logging
import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from costscan.config import Settings
from costscan.due_dates import compute_due_date
from costscan.errors import BackendUnavailable, MalformedModelReply, ScanError
from costscan.matching import best_supplier_match
from costscan.models import (
    CompanyIdentity, ExtractedFields, RecognitionResult, ScanOutcome, SupplierRecord,
)
from .ex_supplier import extract_supplier_contact
from .fields import guess_fields
from .fuzzy import similarity
from .io_pdf_image import (
    MIN_TEXT_LAYER_CHARS, PDF_TEXT_CONFIDENCE, PDF_TEXT_ENGINE, PaddleRecognizer, TesseractRecognizer,
    best_attempt, check_mime_type, fallback_result, load_image, ocr_pages,
    pdf_text_layer, render_pdf_pages, select_best_result,
)
from .normalize import normalize
from .orchestrator import reconcile
from .patterns import PATTERNS_VERSION

log = logging.getLogger(__name__)

ENGINES = ("auto", "ai", "ocr")
AI_SUPPLIER_MIN_SIMILARITY = 80.0

def default_recognizers(settings: Settings) -> List[Any]:
    recs: List[Any] = []
    for name in settings.ocr_engines:
        if name == "tesseract":
            recs.append(TesseractRecognizer(lang=settings.ocr_lang, psm_modes=settings.ocr_psm_modes))
        elif name in ("paddle", "paddleocr"):
            recs.append(PaddleRecognizer())
        else:
            log.warning("moteur OCR inconnu ignoré: %s", name)
    return recs or [TesseractRecognizer(lang=settings.ocr_lang, psm_modes=settings.ocr_psm_modes)]

# -------------------------
# Reconnaissance OCR
# -------------------------

def _contact_or_none(text: str):
    contact = extract_supplier_contact(text)
    return None if contact.is_empty() else contact

def _ocr_result(text: str, conf: float, engine_id: str, start: float) -> RecognitionResult:
    clean = normalize(text)
    return RecognitionResult(
        raw_text=text,
        confidence=conf,
        processing_time_ms=int((time.monotonic() - start) * 1000),
        engine_id=engine_id,
        structured_guess=guess_fields(clean),
        supplier_contact=_contact_or_none(clean),
    )

def recognize_document(data: bytes, mime_type: str,
                       recognizers: Sequence[Any],
                       settings: Optional[Settings] = None) -> RecognitionResult:
    """
    PDF : couche texte d'abord (pdfplumber) ; moins de 50 caractères ->
    rastérisation des premières pages puis OCR. Image : OCR direct.
    Chaque moteur essaie ses modes ; le meilleur résultat global est gardé.
    Lève RecognitionFailure (ou l'erreur du décodeur) si rien n'aboutit.
    """
    settings = settings or Settings.from_env()
    start = time.monotonic()

    if mime_type == "application/pdf":
        try:
            text = "\n".join(p for p in pdf_text_layer(data) if p).strip()
        except Exception as e:
            log.warning("couche texte PDF illisible (%s), passage en OCR", e)
            text = ""
        if len(text) >= MIN_TEXT_LAYER_CHARS:
            return _ocr_result(text, PDF_TEXT_CONFIDENCE, PDF_TEXT_ENGINE, start)
        log.info("couche texte PDF pauvre (%d car.), OCR des %d premières pages", len(text), settings.max_pages)
        images = render_pdf_pages(data, dpi=settings.ocr_dpi, max_pages=settings.max_pages)
        run = lambda rec: ocr_pages(rec, images)
    else:
        image = load_image(data)
        run = lambda rec: best_attempt(rec, image)

    results: List[RecognitionResult] = []
    last_error: Optional[Exception] = None
    for rec in recognizers:
        try:
            text, conf, engine_id = run(rec)
        except Exception as e:
            log.warning("moteur %s en échec: %s", getattr(rec, "name", rec), e)
            last_error = e
            continue
        results.append(_ocr_result(text, conf, engine_id, start))
    if not results and last_error is not None:
        raise last_error
    return select_best_result(results)

# -------------------------
# Fournisseur
# -------------------------

def _verified_ai_supplier(name: str, suppliers: Iterable[SupplierRecord]) -> Optional[SupplierRecord]:
    """Nom proposé par l'IA retrouvé dans l'annuaire (inclusion ou similarité >= 80)."""
    low = " ".join(name.lower().split())
    if not low:
        return None
    best, best_sim = None, 0.0
    for s in suppliers:
        known = " ".join(s.name.lower().split())
        if not known:
            continue
        if known == low or (len(known) > 3 and (known in low or low in known)):
            return s
        sim = similarity(low, known)
        if sim >= AI_SUPPLIER_MIN_SIMILARITY and sim > best_sim:
            best, best_sim = s, sim
    return best

def _due_date_missing(fields: ExtractedFields) -> bool:
    # échéance absente ou seulement calculée (émission + 15 j)
    return fields.due_date is None or fields.due_date_inferred

# -------------------------
# Pipeline
# -------------------------

def scan_document(data: bytes,
                  mime_type: str,
                  filename: str = "document",
                  mappings: Optional[Mapping[str, Any]] = None,
                  suppliers: Optional[Iterable[SupplierRecord]] = None,
                  company: Optional[CompanyIdentity] = None,
                  engine: str = "auto",
                  gemini: Any = None,
                  recognizers: Optional[Sequence[Any]] = None,
                  settings: Optional[Settings] = None) -> ScanOutcome:
    """
    engine: "auto" | "ai" | "ocr"
    Lève UnsupportedInput (type MIME) ou BackendUnavailable (IA forcée mais
    absente) ; toute autre panne donne un résultat dégradé à relire.
    """
    mime = check_mime_type(mime_type)
    engine = (engine or "auto").lower()
    if engine not in ENGINES:
        raise ScanError(f"moteur inconnu: {engine}", code="bad_request")
    settings = settings or Settings.from_env()
    suppliers = list(suppliers or [])
    start = time.monotonic()

    use_ai = False
    if engine == "ai":
        if gemini is None or not gemini.is_available():
            raise BackendUnavailable("extraction IA demandée mais Gemini n'est pas configuré")
        use_ai = True
    elif engine == "auto":
        use_ai = gemini is not None and gemini.is_available()

    result: Optional[RecognitionResult] = None
    if use_ai:
        result = gemini.extract(data, mime, filename=filename)
        if result.structured_guess is None and result.error != MalformedModelReply.code and engine == "auto":
            log.warning("extraction IA en échec (%s), repli OCR", result.error)
            result = None

    from_ai = result is not None
    if result is None:
        try:
            result = recognize_document(data, mime, recognizers or default_recognizers(settings), settings)
        except Exception as e:
            log.exception("reconnaissance impossible pour %s", filename)
            result = fallback_result(filename, mime, len(data or b""), str(e),
                                     int((time.monotonic() - start) * 1000))

    outcome = ScanOutcome(result=result, fields=ExtractedFields(), supplier_contact=result.supplier_contact)
    if result.error and result.error != MalformedModelReply.code:
        # rien d'exploitable : champs par défaut, saisie manuelle
        return outcome

    ai_guess = result.structured_guess if from_ai else None
    outcome.fields = reconcile(result.raw_text, mappings, ai_guess)

    verified = _verified_ai_supplier(ai_guess.supplier_name, suppliers) if ai_guess else None
    if verified is not None:
        outcome.supplier = verified
        outcome.fields.supplier_name = verified.name
        log.debug("fournisseur IA vérifié: %r", verified.name)
    else:
        match = best_supplier_match(result.raw_text, suppliers, company)
        if match is not None:
            outcome.supplier = match.supplier
            outcome.match_score = match.score
            outcome.fields.supplier_name = match.supplier.name

    if outcome.supplier is not None and _due_date_missing(outcome.fields):
        due = compute_due_date(outcome.supplier.payment_terms, outcome.fields.issue_date)
        if due is not None:
            outcome.fields.due_date = due

    if outcome.supplier_contact is None and outcome.supplier is None:
        contact = extract_supplier_contact(normalize(result.raw_text), outcome.fields.supplier_name)
        outcome.supplier_contact = None if contact.is_empty() else contact

    log.info("scan %s: moteur=%s conf=%.2f fournisseur=%r (patterns %s)", filename, result.engine_id,
             result.confidence, outcome.fields.supplier_name, PATTERNS_VERSION)
    return outcome
