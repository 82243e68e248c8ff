# costscan/errors.py
from __future__ import annotations

class ScanError(Exception):
    code = "scan_error"

    def __init__(self, message: str = "", code: str | None = None):
        super().__init__(message or self.code)
        if code:
            self.code = code

class BackendUnavailable(ScanError):
    """Client IA non configuré ou impossible à initialiser."""
    code = "backend_unavailable"

class UnsupportedInput(ScanError):
    code = "unsupported_type"

class RecognitionFailure(ScanError):
    code = "recognition_failed"

class MalformedModelReply(ScanError):
    """Réponse du modèle sans JSON exploitable."""
    code = "malformed_reply"
