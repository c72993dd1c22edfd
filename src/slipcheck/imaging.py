"""Receipt photo enhancement ahead of text recognition.

Everything here is pure: each step returns a new pixel buffer and the
caller's image is never modified. Enhancement is best effort, so any
decoding or processing failure hands back the original image.
"""

import io
import logging

import numpy as np
from PIL import Image, ImageOps
from pillow_heif import register_heif_opener

from slipcheck.config import PreprocessSettings
from slipcheck.models import ReceiptImage

logger = logging.getLogger(__name__)

# Lets Image.open decode HEIC/HEIF photos.
register_heif_opener()

DEFAULT_PREPROCESS_SETTINGS = PreprocessSettings()
CONTRAST_MIDPOINT = 128.0


def target_size(
    width: int, height: int, file_size: int, settings: PreprocessSettings
) -> tuple[tuple[int, int], bool]:
    """Decide the working size of an image.

    Small or low-resolution photos are scaled up by ``settings.scale_factor``
    and then capped to ``settings.max_dimension`` on the longest side.

    Returns:
        ((width, height), upscaled)
    """
    longest = max(width, height)
    if (
        longest >= settings.upscale_below_px
        and file_size >= settings.upscale_below_bytes
    ):
        return (width, height), False

    new_width = width * settings.scale_factor
    new_height = height * settings.scale_factor
    new_longest = max(new_width, new_height)
    if new_longest > settings.max_dimension:
        ratio = settings.max_dimension / new_longest
        new_width *= ratio
        new_height *= ratio

    return (max(1, round(new_width)), max(1, round(new_height))), True


def sharpen(pixels: np.ndarray, strength: float) -> np.ndarray:
    """Unsharp mask: push each interior pixel away from its 3x3 mean.

    Only the colour channels are touched; the border row and column of the
    image and any alpha channel are copied through unchanged.
    """
    out = pixels.copy()
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return out

    rgb = pixels[..., :3].astype(np.float32)
    window_sum = np.zeros((height - 2, width - 2, 3), dtype=np.float32)
    for dy in range(3):
        for dx in range(3):
            window_sum += rgb[dy : dy + height - 2, dx : dx + width - 2]
    local_mean = window_sum / 9.0

    centre = rgb[1:-1, 1:-1]
    sharpened = centre + strength * (centre - local_mean)
    out[1:-1, 1:-1, :3] = np.clip(np.rint(sharpened), 0, 255).astype(np.uint8)
    return out


def stretch_contrast(pixels: np.ndarray, factor: float) -> np.ndarray:
    """Scale colour channels around the midpoint; alpha is left alone."""
    out = pixels.copy()
    rgb = pixels[..., :3].astype(np.float32)
    stretched = factor * (rgb - CONTRAST_MIDPOINT) + CONTRAST_MIDPOINT
    out[..., :3] = np.clip(np.rint(stretched), 0, 255).astype(np.uint8)
    return out


def _has_alpha(image: Image.Image) -> bool:
    if image.mode in ("RGBA", "LA", "PA"):
        return True
    return image.mode == "P" and "transparency" in image.info


def preprocess_image(
    image: ReceiptImage, settings: PreprocessSettings = DEFAULT_PREPROCESS_SETTINGS
) -> ReceiptImage:
    """
    Prepare a receipt photo for recognition.

    Steps: EXIF orientation, adaptive upscaling with LANCZOS resampling,
    unsharp mask (stronger when upscaled), contrast stretch, PNG encoding.

    Args:
        image: The uploaded receipt image.
        settings: Thresholds and strengths for each step.

    Returns:
        A new PNG-encoded ReceiptImage, or ``image`` itself if it could not
        be processed.
    """
    try:
        with Image.open(io.BytesIO(image.content)) as source:
            oriented = ImageOps.exif_transpose(source)
            working = oriented.convert("RGBA" if _has_alpha(oriented) else "RGB")

        size, upscaled = target_size(
            working.width, working.height, image.size, settings
        )
        if size != working.size:
            working = working.resize(size, Image.Resampling.LANCZOS)

        strength = (
            settings.sharpen_strength if upscaled else settings.sharpen_strength_light
        )
        pixels = np.asarray(working)
        pixels = sharpen(pixels, strength)
        pixels = stretch_contrast(pixels, settings.contrast_factor)

        buffer = io.BytesIO()
        Image.fromarray(pixels).save(buffer, format="PNG")
    except (OSError, ValueError, MemoryError, Image.DecompressionBombError) as e:
        logger.warning("Image preprocessing skipped for %s: %s", image.name, e)
        return image

    content = buffer.getvalue()
    logger.debug(
        "Preprocessed %s to %dx%d (upscaled=%s)", image.name, *size, upscaled
    )
    return ReceiptImage(
        content=content, media_type="image/png", size=len(content), name=image.name
    )
