"""Receipt text normalization and field extraction."""

from slipcheck.extraction.fields import (
    extract_amount,
    extract_date,
    extract_receipt_fields,
    extract_time,
)
from slipcheck.extraction.normalize import fix_digits, normalize_text

__all__ = [
    "extract_amount",
    "extract_date",
    "extract_receipt_fields",
    "extract_time",
    "fix_digits",
    "normalize_text",
]
