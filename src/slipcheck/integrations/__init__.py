"""Slipcheck integrations module."""

from slipcheck.integrations.local_export import ReviewExporter
from slipcheck.integrations.ocr import (
    ReceiptRecognizer,
    RecognitionEngine,
    RecognitionError,
    TesseractEngine,
    VisionEngine,
    create_engine,
)

__all__ = [
    "ReceiptRecognizer",
    "RecognitionEngine",
    "RecognitionError",
    "ReviewExporter",
    "TesseractEngine",
    "VisionEngine",
    "create_engine",
]
