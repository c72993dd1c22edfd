"""Unit tests for recognition engines and the receipt recognizer."""

from unittest.mock import Mock, patch

import pytest
import pytesseract
from google.api_core import exceptions as google_exceptions

from slipcheck.config import OCRConfig, OCREngineKind
from slipcheck.integrations.ocr import (
    ReceiptRecognizer,
    RecognitionError,
    TesseractEngine,
    VisionEngine,
    create_engine,
)
from slipcheck.models import ReceiptImage
from tests.utils import ScriptedEngine, make_png

pytestmark = pytest.mark.unit


def _vision_response(text: str | None) -> Mock:
    mock_response = Mock()
    mock_response.error.message = ""
    if text is None:
        mock_response.text_annotations = []
    else:
        mock_annotation = Mock()
        mock_annotation.description = text
        mock_response.text_annotations = [mock_annotation]
    return mock_response


class TestVisionEngineInitialization:
    """Client setup."""

    def test_creates_default_client_lazily(self):
        with patch(
            "slipcheck.integrations.ocr.vision.ImageAnnotatorClient"
        ) as mock_client_class:
            engine = VisionEngine()
            mock_client_class.assert_not_called()

            assert engine.client is mock_client_class.return_value
            assert engine.client is mock_client_class.return_value
            mock_client_class.assert_called_once()

    def test_accepts_custom_client(self):
        mock_client = Mock()
        engine = VisionEngine(client=mock_client)
        assert engine.client is mock_client


class TestVisionTextExtraction:
    """Text detection calls and response handling."""

    def test_returns_full_text_annotation(self):
        mock_client = Mock()
        mock_client.text_detection.return_value = _vision_response(
            "STRUK\nTotal payment: 200.000"
        )

        engine = VisionEngine(client=mock_client)
        result = engine.extract_text(b"image-bytes", ["id", "en"])

        assert result == "STRUK\nTotal payment: 200.000"
        mock_client.text_detection.assert_called_once()

    def test_sends_language_hints(self):
        mock_client = Mock()
        mock_client.text_detection.return_value = _vision_response("x")

        VisionEngine(client=mock_client).extract_text(b"image-bytes", ["id", "en"])

        kwargs = mock_client.text_detection.call_args.kwargs
        assert list(kwargs["image_context"].language_hints) == ["id", "en"]
        assert kwargs["image"].content == b"image-bytes"

    def test_no_text_returns_empty_string(self):
        mock_client = Mock()
        mock_client.text_detection.return_value = _vision_response(None)

        engine = VisionEngine(client=mock_client)

        assert engine.extract_text(b"blank", ["id"]) == ""

    def test_api_error_raises_recognition_error(self):
        mock_client = Mock()
        mock_response = _vision_response(None)
        mock_response.error.message = "Bad image data"
        mock_client.text_detection.return_value = mock_response

        engine = VisionEngine(client=mock_client)

        with pytest.raises(RecognitionError, match="Bad image data"):
            engine.extract_text(b"broken", ["id"])


class TestVisionRetries:
    """Transient API failures are retried with tenacity."""

    def test_transient_error_is_retried(self):
        mock_client = Mock()
        mock_client.text_detection.side_effect = [
            google_exceptions.ServiceUnavailable("busy"),
            _vision_response("Total payment: 200.000"),
        ]

        engine = VisionEngine(client=mock_client, wait_seconds=0)
        result = engine.extract_text(b"image-bytes", ["id"])

        assert result == "Total payment: 200.000"
        assert mock_client.text_detection.call_count == 2

    def test_gives_up_after_max_attempts(self):
        mock_client = Mock()
        mock_client.text_detection.side_effect = google_exceptions.DeadlineExceeded(
            "slow"
        )

        engine = VisionEngine(client=mock_client, max_attempts=2, wait_seconds=0)

        with pytest.raises(google_exceptions.DeadlineExceeded):
            engine.extract_text(b"image-bytes", ["id"])
        assert mock_client.text_detection.call_count == 2

    def test_permanent_error_is_not_retried(self):
        mock_client = Mock()
        mock_client.text_detection.side_effect = google_exceptions.PermissionDenied(
            "billing disabled"
        )

        engine = VisionEngine(client=mock_client, wait_seconds=0)

        with pytest.raises(google_exceptions.PermissionDenied):
            engine.extract_text(b"image-bytes", ["id"])
        assert mock_client.text_detection.call_count == 1


class TestTesseractEngine:
    """Local engine through pytesseract."""

    def test_language_spec(self):
        assert TesseractEngine.language_spec(["id", "en"]) == "ind+eng"
        assert TesseractEngine.language_spec(["jpn"]) == "jpn"

    def test_extract_text_passes_languages_and_config(self):
        engine = TesseractEngine(config="--psm 4")

        with patch(
            "slipcheck.integrations.ocr.pytesseract.image_to_string",
            return_value="TOTAL 50.000",
        ) as mock_ocr:
            result = engine.extract_text(make_png(), ["id", "en"])

        assert result == "TOTAL 50.000"
        _, kwargs = mock_ocr.call_args
        assert kwargs == {"lang": "ind+eng", "config": "--psm 4"}

    def test_custom_binary_path(self, monkeypatch):
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "tesseract")

        TesseractEngine(tesseract_cmd="/opt/bin/tesseract")

        assert pytesseract.pytesseract.tesseract_cmd == "/opt/bin/tesseract"


class TestCreateEngine:
    def test_vision_is_default(self):
        engine = create_engine(OCRConfig(max_attempts=5))
        assert isinstance(engine, VisionEngine)
        assert engine.max_attempts == 5

    def test_tesseract(self):
        engine = create_engine(OCRConfig(engine=OCREngineKind.TESSERACT))
        assert isinstance(engine, TesseractEngine)


class TestReceiptRecognizer:
    """Recognizer never raises and always reports start and finish."""

    def _image(self) -> ReceiptImage:
        return ReceiptImage(content=b"png", media_type="image/png", name="s.png")

    def test_returns_engine_text(self):
        engine = ScriptedEngine("Total payment: 200.000")
        recognizer = ReceiptRecognizer(engine)

        assert recognizer.recognize(self._image()) == "Total payment: 200.000"
        assert engine.calls == [b"png"]

    def test_passes_configured_languages(self):
        engine = Mock()
        engine.extract_text.return_value = "text"
        recognizer = ReceiptRecognizer(engine, OCRConfig(languages=("en",)))

        recognizer.recognize(self._image())

        engine.extract_text.assert_called_once_with(b"png", ("en",))

    def test_engine_failure_yields_empty_text(self):
        engine = Mock()
        engine.extract_text.side_effect = RecognitionError("Bad image data")
        progress = []

        result = ReceiptRecognizer(engine).recognize(
            self._image(), on_progress=progress.append
        )

        assert result == ""
        assert progress == [0, 100]

    def test_reports_progress(self):
        progress = []
        ReceiptRecognizer(ScriptedEngine("x")).recognize(
            self._image(), on_progress=progress.append
        )
        assert progress == [0, 100]

    def test_from_config(self):
        config = OCRConfig(engine=OCREngineKind.TESSERACT, languages=("id",))
        recognizer = ReceiptRecognizer.from_config(config)

        assert isinstance(recognizer.engine, TesseractEngine)
        assert recognizer.config is config
