# costscan/extractors/json_reply.py
from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, Optional

from costscan.errors import MalformedModelReply

log = logging.getLogger(__name__)

_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

def _loads(candidate: str) -> Optional[Any]:
    for attempt in (candidate, _TRAILING_COMMA_RE.sub(r"\1", candidate)):
        try:
            return json.loads(attempt)
        except (json.JSONDecodeError, ValueError):
            continue
    return None

def _balanced_object(text: str, start: int) -> Optional[str]:
    """Sous-chaîne '{...}' équilibrée qui commence à `start` (chaînes JSON respectées)."""
    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape:
            escape = False
            continue
        if ch == "\\":
            if in_string:
                escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None

def parse_model_reply(text: str) -> Dict[str, Any]:
    """
    Objet JSON d'une réponse de modèle : bloc ```json d'abord, puis premier
    objet '{...}' équilibré (virgules finales tolérées).
    Lève MalformedModelReply si rien d'exploitable.
    """
    if not text or not text.strip():
        raise MalformedModelReply("réponse vide")

    m = _FENCED_RE.search(text)
    if m:
        data = _loads(m.group(1).strip())
        if isinstance(data, dict):
            return data
        log.debug("bloc ```json illisible, recherche d'un objet brut")

    for i, ch in enumerate(text):
        if ch != "{":
            continue
        candidate = _balanced_object(text, i)
        if candidate is None:
            break
        data = _loads(candidate)
        if isinstance(data, dict):
            return data

    raise MalformedModelReply("aucun objet JSON dans la réponse (%d caractères)" % len(text))
