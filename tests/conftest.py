import io
from types import SimpleNamespace

import pytest
from PIL import Image

INVOICE_TEXT = (
    "Elektro Plus d.o.o.\n"
    "Zmaja od Bosne 7, 71000 Sarajevo, BiH\n"
    "Tel: +387 33 123 456\n"
    "E-mail: info@elektroplus.ba\n"
    "www.elektroplus.ba\n"
    "JIB: 4200123450008\n"
    "Račun broj: RN-2024/0157\n"
    "Datum: 01.06.2024\n"
    "Osnovica: 1.000,00\n"
    "PDV 17%\n"
    "Ukupno za platiti: 1.170,00 KM\n"
)

class FakeRecognizer:
    """Moteur OCR de test : une réponse (texte, confiance 0..100) par tentative."""
    name = "fake"

    def __init__(self, answers=None, error=None):
        self.answers = answers or {"6": (INVOICE_TEXT, 88.0)}
        self.error = error
        self.calls = []

    def attempts(self):
        return list(self.answers) or ["6"]

    def engine_id(self, attempt):
        return f"fake-psm{attempt}"

    def recognize(self, image, attempt=None):
        self.calls.append(attempt)
        if self.error is not None:
            raise self.error
        answer = self.answers[attempt]
        if isinstance(answer, Exception):
            raise answer
        return answer

class FakeModels:
    def __init__(self, reply="", missing=(), error=None):
        self.reply = reply
        self.missing = set(missing)
        self.error = error
        self.generated = []

    def get(self, model):
        if model in self.missing:
            raise RuntimeError(f"404 model {model} not found")
        return SimpleNamespace(name=model)

    def generate_content(self, model, contents, config=None):
        self.generated.append((model, contents))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)

class FakeGenaiClient:
    def __init__(self, reply="", missing=(), error=None):
        self.models = FakeModels(reply, missing, error)
        self.closed = False

    def close(self):
        self.closed = True

@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (120, 60), "white").save(buf, format="PNG")
    return buf.getvalue()

@pytest.fixture
def invoice_text():
    return INVOICE_TEXT
