"""Text recognition engines and the receipt recognizer that wraps them."""

import io
import logging
import threading
from collections.abc import Callable, Sequence
from typing import Protocol

import pytesseract
from google.api_core import exceptions as google_exceptions
from google.cloud import vision
from PIL import Image
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from slipcheck.config import OCRConfig, OCREngineKind
from slipcheck.models import ReceiptImage

logger = logging.getLogger(__name__)

# Vision API failures worth another attempt.
TRANSIENT_VISION_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
)

# ISO 639-1 hints to Tesseract traineddata names.
TESSERACT_LANGUAGES = {"id": "ind", "en": "eng"}


class RecognitionError(Exception):
    """Raised by an engine when recognition could not be performed."""


class RecognitionEngine(Protocol):
    """Anything that turns image bytes into a text transcript."""

    def extract_text(self, content: bytes, languages: Sequence[str]) -> str: ...


class VisionEngine:
    """
    Recognition engine backed by the Google Cloud Vision API.

    Uses TEXT_DETECTION with language hints, retrying transient API errors.
    """

    def __init__(
        self,
        client: vision.ImageAnnotatorClient | None = None,
        max_attempts: int = 3,
        wait_seconds: float = 0.5,
    ) -> None:
        """
        Initialize the Vision engine.

        Args:
            client: Optional pre-configured ImageAnnotatorClient.
                   If None, a default client will be created lazily on first use.
            max_attempts: Total attempts per image for transient API errors.
            wait_seconds: Base delay of the exponential backoff between attempts.
        """
        self._client = client
        self._client_initialized = client is not None
        self._client_lock = threading.Lock()
        self.max_attempts = max_attempts
        self.wait_seconds = wait_seconds

    @property
    def client(self) -> vision.ImageAnnotatorClient:
        """Lazily initialize and return the Vision API client.

        Uses double-check locking for thread-safe lazy initialization, since
        recognition runs in executor threads.
        """
        if not self._client_initialized:
            with self._client_lock:
                if not self._client_initialized:
                    self._client = vision.ImageAnnotatorClient()
                    self._client_initialized = True
        return self._client  # type: ignore[return-value]

    def extract_text(self, content: bytes, languages: Sequence[str]) -> str:
        """
        Extract text from image bytes.

        Returns:
            Full detected text, or an empty string if none was found.

        Raises:
            RecognitionError: If the API reports an error for the image.
            google.api_core.exceptions.GoogleAPIError: If the call keeps failing.
        """
        image = vision.Image(content=content)  # type: ignore
        image_context = vision.ImageContext(language_hints=list(languages))

        for attempt in Retrying(
            retry=retry_if_exception_type(TRANSIENT_VISION_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.wait_seconds, max=8),
            reraise=True,
        ):
            with attempt:
                # text_detection is added to the client at runtime
                response = self.client.text_detection(  # type: ignore
                    image=image, image_context=image_context
                )

        if response.error.message:
            raise RecognitionError(response.error.message)

        # The first annotation contains the entire detected text
        if response.text_annotations:
            return response.text_annotations[0].description

        return ""


class TesseractEngine:
    """Local recognition engine using the Tesseract binary via pytesseract."""

    def __init__(
        self, tesseract_cmd: str | None = None, config: str = "--oem 3 --psm 6"
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.config = config

    @staticmethod
    def language_spec(languages: Sequence[str]) -> str:
        """["id", "en"] -> "ind+eng"."""
        return "+".join(TESSERACT_LANGUAGES.get(lang, lang) for lang in languages)

    def extract_text(self, content: bytes, languages: Sequence[str]) -> str:
        with Image.open(io.BytesIO(content)) as image:
            image.load()
            return pytesseract.image_to_string(
                image, lang=self.language_spec(languages), config=self.config
            )


def create_engine(config: OCRConfig) -> RecognitionEngine:
    """Build the engine selected in configuration."""
    if config.engine is OCREngineKind.TESSERACT:
        return TesseractEngine(config.tesseract_cmd, config.tesseract_config)
    return VisionEngine(max_attempts=config.max_attempts)


class ReceiptRecognizer:
    """
    Runs a recognition engine over receipt images.

    Recognition failures are expected with phone photos, so any engine error
    is logged and reported as an empty transcript rather than raised.
    """

    def __init__(
        self, engine: RecognitionEngine, config: OCRConfig | None = None
    ) -> None:
        self.engine = engine
        self.config = config or OCRConfig()

    @classmethod
    def from_config(cls, config: OCRConfig) -> "ReceiptRecognizer":
        return cls(create_engine(config), config)

    def recognize(
        self,
        image: ReceiptImage,
        on_progress: Callable[[int], None] | None = None,
    ) -> str:
        """
        Recognize the text on a receipt image.

        Args:
            image: Image to recognize.
            on_progress: Optional callback receiving progress from 0 to 100.

        Returns:
            The transcript, or an empty string if recognition failed.
        """
        if on_progress:
            on_progress(0)

        try:
            text = self.engine.extract_text(image.content, self.config.languages)
        except Exception as e:
            logger.warning("Text recognition failed for %s: %s", image.name, e)
            text = ""

        if on_progress:
            on_progress(100)

        return text or ""
