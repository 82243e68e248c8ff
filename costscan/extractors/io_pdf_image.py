# costscan/extractors/io_pdf_image.py
from __future__ import annotations
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pdfplumber
import pypdfium2 as pdfium
import pytesseract
from PIL import Image, ImageOps

from costscan.errors import RecognitionFailure, UnsupportedInput
from costscan.models import RecognitionResult

log = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = ("application/pdf", "image/png", "image/jpeg")
_MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}
MIME_BY_EXT = {".pdf": "application/pdf", ".png": "image/png", ".jpg": "image/jpeg", ".jpeg": "image/jpeg"}

MIN_TEXT_LAYER_CHARS = 50
MIN_OCR_TEXT_CHARS = 10
PDF_TEXT_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.1
PDF_TEXT_ENGINE = "pdf-text"
FALLBACK_ENGINE = "fallback"

# ---------------------------------------------------------------- types MIME

def mime_type_for(filename: str) -> str:
    return MIME_BY_EXT.get(Path(filename or "").suffix.lower(), "application/octet-stream")

def check_mime_type(mime_type: Optional[str]) -> str:
    """Type MIME normalisé ; UnsupportedInput hors {pdf, png, jpeg}."""
    mime = (mime_type or "").split(";")[0].strip().lower()
    mime = _MIME_ALIASES.get(mime, mime)
    if mime not in ALLOWED_MIME_TYPES:
        raise UnsupportedInput(f"Unsupported file type: {mime_type or 'inconnu'}")
    return mime

def fallback_text(filename: str, mime_type: Optional[str], size_bytes: int, error: str) -> str:
    return (
        "Document Processing Failed\n\n"
        f"File: {filename}\n"
        f"Type: {mime_type or 'unknown'}\n"
        f"Size: {size_bytes / 1024:.1f} KB\n\n"
        f"Error: {error or 'Unknown error'}\n\n"
        "Please enter the document data manually."
    )

def fallback_result(filename: str, mime_type: Optional[str], size_bytes: int,
                    error: str, processing_time_ms: int = 0,
                    code: str = RecognitionFailure.code) -> RecognitionResult:
    return RecognitionResult(
        raw_text=fallback_text(filename, mime_type, size_bytes, error),
        confidence=FALLBACK_CONFIDENCE,
        processing_time_ms=processing_time_ms,
        engine_id=FALLBACK_ENGINE,
        error=code,
    )

# ---------------------------------------------------------------- images

def load_image(data: bytes) -> Image.Image:
    """Octets -> image PIL en niveaux de gris, orientation EXIF appliquée."""
    img = Image.open(io.BytesIO(data))
    img = ImageOps.exif_transpose(img)
    return ImageOps.grayscale(img)

def render_pdf_pages(data: bytes, dpi: int = 200, max_pages: Optional[int] = 3) -> List[Image.Image]:
    """Rastérise les premières pages via pypdfium2 (sans Poppler)."""
    doc = pdfium.PdfDocument(data)
    try:
        n = len(doc)
        limit = min(n, max_pages) if (isinstance(max_pages, int) and max_pages > 0) else n
        imgs: List[Image.Image] = []
        for i in range(limit):
            page = doc[i]
            pil = page.render(scale=dpi / 72.0).to_pil()
            page.close()
            imgs.append(ImageOps.grayscale(pil))
        return imgs
    finally:
        doc.close()

def pdf_text_layer(data: bytes) -> List[str]:
    """Texte natif de chaque page, dans l'ordre des pages."""
    pages: List[str] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")
    return pages

# ---------------------------------------------------------------- moteurs OCR

class TesseractRecognizer:
    """
    Tesseract via pytesseract. Une tentative par mode de segmentation (psm) ;
    confiance = moyenne des mots reconnus, échelle 0..100.
    """
    name = "tesseract"

    def __init__(self, lang: str = "hrv+srp+eng", psm_modes: Sequence[str] = ("6", "11", "12", "1")):
        self.lang = lang
        self.psm_modes = [str(m) for m in psm_modes] or ["6"]

    def attempts(self) -> List[Optional[str]]:
        return list(self.psm_modes)

    def engine_id(self, attempt: Optional[str]) -> str:
        return f"tesseract-psm{attempt}" if attempt else "tesseract"

    def _config(self, psm: Optional[str]) -> str:
        return f"--oem 1 --psm {psm or 6}"

    def _image_to_data(self, image: Image.Image, psm: Optional[str]) -> Dict[str, List[Any]]:
        try:
            return pytesseract.image_to_data(image, lang=self.lang, config=self._config(psm),
                                             output_type=pytesseract.Output.DICT)
        except pytesseract.TesseractError as e:
            if self.lang == "eng" or "language" not in str(e).lower():
                raise
            log.warning("tesseract: langue %s indisponible, repli sur eng", self.lang)
            self.lang = "eng"
            return pytesseract.image_to_data(image, lang=self.lang, config=self._config(psm),
                                             output_type=pytesseract.Output.DICT)

    def recognize(self, image: Image.Image, attempt: Optional[str] = None) -> Tuple[str, float]:
        data = self._image_to_data(image, attempt)
        lines: Dict[Tuple[int, int, int], List[str]] = {}
        confs: List[float] = []
        for i, word in enumerate(data.get("text", [])):
            word = (word or "").strip()
            try:
                conf = float(data["conf"][i])
            except (TypeError, ValueError):
                conf = -1.0
            if not word or conf < 0:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)
            confs.append(conf)
        text = "\n".join(" ".join(ws) for ws in lines.values())
        return text, (sum(confs) / len(confs) if confs else 0.0)

class PaddleRecognizer:
    """PaddleOCR (optionnel, extra `paddle`) ; modèle chargé à la première utilisation."""
    name = "paddleocr"

    def __init__(self, lang: str = "latin", min_score: float = 0.5):
        self.lang = lang
        self.min_score = min_score
        self._ocr = None

    def attempts(self) -> List[Optional[str]]:
        return [None]

    def engine_id(self, attempt: Optional[str]) -> str:
        return self.name

    def _get(self):
        if self._ocr is None:
            from paddleocr import PaddleOCR  # import tardif
            self._ocr = PaddleOCR(lang=self.lang, use_angle_cls=True, show_log=False)
        return self._ocr

    def recognize(self, image: Image.Image, attempt: Optional[str] = None) -> Tuple[str, float]:
        result = self._get().ocr(np.array(image), cls=True)
        lines: List[str] = []
        scores: List[float] = []
        # result: list[pages] -> list[ [bbox, (text, score)], ... ]
        if result and result[0]:
            for det in result[0]:
                text, score = det[1]
                if text and score >= self.min_score:
                    lines.append(text)
                    scores.append(float(score) * 100.0)
        return "\n".join(lines), (sum(scores) / len(scores) if scores else 0.0)

# ---------------------------------------------------------------- sélection

def best_attempt(recognizer, image: Image.Image) -> Tuple[str, float, str]:
    """
    Tentatives séquentielles ; on garde la première réussie, remplacée par
    une suivante plus confiante dont le texte dépasse 10 caractères.
    Renvoie (texte, confiance 0..1, engine_id). RecognitionFailure si tout échoue.
    """
    best: Optional[Tuple[str, float, str]] = None
    errors: List[str] = []
    for attempt in recognizer.attempts():
        try:
            text, conf = recognizer.recognize(image, attempt)
        except Exception as e:
            log.warning("%s: tentative %s en échec (%s)", recognizer.name, attempt, e)
            errors.append(f"{attempt}: {e}")
            continue
        log.debug("%s psm=%s conf=%.1f len=%d", recognizer.name, attempt, conf, len(text))
        if best is None or (conf / 100.0 > best[1] and len(text) > MIN_OCR_TEXT_CHARS):
            best = (text, conf / 100.0, recognizer.engine_id(attempt))
    if best is None:
        raise RecognitionFailure(f"{recognizer.name}: toutes les tentatives ont échoué ({'; '.join(errors)})")
    return best

def _guess_field_count(result: RecognitionResult) -> int:
    g = result.structured_guess
    if g is None:
        return 0
    return sum(1 for v in g.to_dict().values() if v not in (None, "", 0, 0.0))

def result_score(result: RecognitionResult) -> float:
    score = result.confidence
    score += min(0.2, len(result.raw_text) / 1000.0)
    score += _guess_field_count(result) * 0.05
    if len(result.raw_text) < MIN_OCR_TEXT_CHARS:
        score -= 0.3
    return score

def select_best_result(results: Sequence[RecognitionResult]) -> RecognitionResult:
    """Meilleur résultat entre moteurs (confiance, longueur, champs devinés)."""
    if not results:
        raise RecognitionFailure("aucun résultat de reconnaissance")
    if len(results) == 1:
        return results[0]
    ranked = sorted(results, key=result_score, reverse=True)
    log.debug("moteurs classés: %s", [(r.engine_id, round(result_score(r), 3)) for r in ranked])
    return ranked[0]

def ocr_pages(recognizer, images: Sequence[Image.Image]) -> Tuple[str, float, str]:
    """OCR page par page ; textes séparés par '--- Page N ---', confiance moyenne."""
    chunks: List[str] = []
    confs: List[float] = []
    for n, img in enumerate(images, start=1):
        text, conf, _ = best_attempt(recognizer, img)
        chunks.append(f"\n--- Page {n} ---\n{text}\n")
        confs.append(conf)
    if not confs:
        raise RecognitionFailure("PDF sans page à reconnaître")
    return "".join(chunks).strip(), sum(confs) / len(confs), f"{recognizer.name}-pdf"
