"""Checks applied to receipt files before they enter the pipeline."""

from pathlib import Path

from slipcheck.models import ReceiptImage

MAX_RECEIPT_BYTES = 10 * 1024 * 1024

MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}
ALLOWED_MEDIA_TYPES = frozenset(MEDIA_TYPES.values())

RECEIPT_TOO_LARGE = "Ukuran file maksimal 10MB"
RECEIPT_INVALID_TYPE = "Format file harus JPG, PNG, atau WebP"
RECEIPT_REQUIRED = "Foto struk wajib diupload"


class ReceiptFileError(ValueError):
    """Raised when a receipt file cannot be accepted for processing."""


def media_type_for(path: Path) -> str | None:
    return MEDIA_TYPES.get(path.suffix.lower())


def is_receipt_file(path: Path) -> bool:
    return path.is_file() and media_type_for(path) is not None


def load_receipt_image(path: Path) -> ReceiptImage:
    """
    Read a receipt photo from disk after checking its type and size.

    Raises:
        ReceiptFileError: If the file is missing, empty, too large or not
            one of the accepted image formats.
    """
    if not path.exists() or not path.is_file():
        raise ReceiptFileError(RECEIPT_REQUIRED)

    media_type = media_type_for(path)
    if media_type is None:
        raise ReceiptFileError(RECEIPT_INVALID_TYPE)

    size = path.stat().st_size
    if size == 0:
        raise ReceiptFileError(RECEIPT_REQUIRED)
    if size > MAX_RECEIPT_BYTES:
        raise ReceiptFileError(RECEIPT_TOO_LARGE)

    return ReceiptImage.from_path(path, media_type)
