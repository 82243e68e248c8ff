# costscan/config.py
from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_FALLBACK_MODELS = ("gemini-2.5-flash", "gemini-2.0-flash", "gemini-1.5-pro", "gemini-1.5-flash")
DEFAULT_PSM_MODES = ("6", "11", "12", "1")
DEFAULT_OCR_ENGINES = ("tesseract",)

def _csv(value: Optional[str], default: Tuple[str, ...]) -> List[str]:
    if not value:
        return list(default)
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or list(default)

def _int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default

@dataclass
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    gemini_fallback_models: List[str] = field(default_factory=lambda: list(DEFAULT_FALLBACK_MODELS))
    ocr_lang: str = "hrv+srp+eng"
    ocr_psm_modes: List[str] = field(default_factory=lambda: list(DEFAULT_PSM_MODES))
    ocr_engines: List[str] = field(default_factory=lambda: list(DEFAULT_OCR_ENGINES))
    max_pages: int = 3
    ocr_dpi: int = 200
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL") or DEFAULT_MODEL,
            gemini_fallback_models=_csv(os.getenv("GEMINI_FALLBACK_MODELS"), DEFAULT_FALLBACK_MODELS),
            ocr_lang=os.getenv("OCR_LANG") or "hrv+srp+eng",
            ocr_psm_modes=_csv(os.getenv("OCR_PSM_MODES"), DEFAULT_PSM_MODES),
            ocr_engines=[e.lower() for e in _csv(os.getenv("OCR_ENGINES"), DEFAULT_OCR_ENGINES)],
            max_pages=max(1, _int(os.getenv("MAX_PAGES"), 3)),
            ocr_dpi=max(72, _int(os.getenv("OCR_DPI"), 200)),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def ai_configured(self) -> bool:
        return bool(self.gemini_api_key)
