import pytest

from slipcheck.integrations.ocr import ReceiptRecognizer
from slipcheck.models import ReceiptImage
from tests.utils import ScriptedEngine, make_png

VALID_RECEIPT_TEXT = """SUPERMAL KARAWACI
Resto Nusantara
20 Dec 2025
19:45
Nasi Goreng 120.000
Es Teh 80.000
Total payment: 200.000
Terima kasih"""


@pytest.fixture
def receipt_image() -> ReceiptImage:
    return ReceiptImage(content=make_png(), media_type="image/png", name="struk.png")


@pytest.fixture
def valid_receipt_text() -> str:
    return VALID_RECEIPT_TEXT


@pytest.fixture
def valid_recognizer() -> ReceiptRecognizer:
    """Recognizer whose engine always reads a valid Mission 1 receipt."""
    return ReceiptRecognizer(ScriptedEngine(VALID_RECEIPT_TEXT))
