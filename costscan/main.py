# costscan/main.py
from __future__ import annotations
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename

from costscan.config import Settings
from costscan.errors import BackendUnavailable, ScanError, UnsupportedInput
from costscan.extractors.io_pdf_image import mime_type_for
from costscan.extractors.patterns import PATTERNS_VERSION
from costscan.extractors.pdf_basic import scan_document
from costscan.gemini import GeminiExtractor
from costscan.mappings import normalize_mappings
from costscan.models import CompanyIdentity, SupplierRecord

log = logging.getLogger(__name__)

ALLOWED_EXTS = {".pdf", ".png", ".jpg", ".jpeg"}
SERVICE = "costscan"

_STATUS_BY_CODE = {
    UnsupportedInput.code: 415,
    BackendUnavailable.code: 503,
    "bad_request": 400,
}

class BadRequest(ScanError):
    code = "bad_request"

def _json_form(name: str, default: Any) -> Any:
    raw = request.form.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise BadRequest(f"champ '{name}': JSON invalide ({e.msg})") from e

def _suppliers() -> List[SupplierRecord]:
    data = _json_form("suppliers", [])
    if not isinstance(data, list):
        raise BadRequest("champ 'suppliers': liste attendue")
    return [SupplierRecord.from_dict(d) for d in data if isinstance(d, dict)]

def _company() -> Optional[CompanyIdentity]:
    data = _json_form("company", None)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise BadRequest("champ 'company': objet attendu")
    return CompanyIdentity.from_dict(data)

def _mappings() -> Dict[str, List[str]]:
    data = _json_form("mappings", {})
    if not isinstance(data, dict):
        raise BadRequest("champ 'mappings': objet attendu")
    return normalize_mappings(data)

def create_app(settings: Optional[Settings] = None,
               gemini: Optional[GeminiExtractor] = None,
               recognizers: Optional[list] = None) -> Flask:
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    CORS(app)
    app.config["SETTINGS"] = settings
    # un seul client IA par processus, créé paresseusement par l'extracteur
    app.config["GEMINI"] = gemini if gemini is not None else GeminiExtractor(settings)
    app.config["RECOGNIZERS"] = recognizers

    @app.get("/")
    def root():
        return jsonify({"ok": True, "service": SERVICE, "path": "/"}), 200

    @app.get("/health")
    def health():
        return jsonify({"ok": True}), 200

    @app.get("/healthz")
    def healthz():
        return jsonify({"ok": True, "service": SERVICE, "patterns": PATTERNS_VERSION}), 200

    @app.get("/debug/info")
    def debug_info():
        bins = {
            "tesseract": shutil.which("tesseract") or "",
            "python": sys.executable,
        }
        ai = {
            "configured": settings.ai_configured,
            "model": settings.gemini_model,
        }
        return jsonify({"ok": True, "bins": bins, "ai": ai, "ocr_lang": settings.ocr_lang}), 200

    @app.post("/scan")
    def api_scan():
        try:
            file = request.files.get("file")
            if not file or not getattr(file, "filename", ""):
                return _json_err("bad_request", "Aucun fichier reçu", 400)
            safe_name = secure_filename(file.filename) or "document"
            ext = Path(safe_name).suffix.lower()
            if ext not in ALLOWED_EXTS:
                return _json_err("unsupported_type", f"Extension non supportée: {ext}", 415)

            mime = file.mimetype
            if not mime or mime == "application/octet-stream":
                mime = mime_type_for(safe_name)

            outcome = scan_document(
                file.read(),
                mime,
                filename=safe_name,
                mappings=_mappings(),
                suppliers=_suppliers(),
                company=_company(),
                engine=request.args.get("engine") or "auto",
                gemini=app.config["GEMINI"],
                recognizers=app.config["RECOGNIZERS"],
                settings=settings,
            )
            return jsonify({"ok": True, **outcome.to_dict()}), 200
        except ScanError as e:
            log.warning("scan refusé: %s (%s)", e, e.code)
            return _json_err(e.code, str(e), _STATUS_BY_CODE.get(e.code, 500))
        except Exception as e:
            log.exception("scan: erreur interne")
            return _json_err("internal_error", str(e), 500)

    return app

def _json_err(code: str, msg: str, status: int):
    return jsonify({"ok": False, "error": {"code": code, "message": msg}}), status
