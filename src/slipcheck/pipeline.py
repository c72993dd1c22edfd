"""Receipt processing pipeline: preprocess, recognize, extract, validate."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from functools import partial
from pathlib import Path

from slipcheck.config import AmountRules, EventConfig, PreprocessSettings
from slipcheck.extraction.fields import DEFAULT_AMOUNT_RULES, extract_receipt_fields
from slipcheck.imaging import DEFAULT_PREPROCESS_SETTINGS, preprocess_image
from slipcheck.intake import ReceiptFileError, load_receipt_image
from slipcheck.integrations.ocr import ReceiptRecognizer
from slipcheck.models import (
    ExtractedReceiptData,
    MissionRequirement,
    ReceiptCheckResult,
    ReceiptImage,
)
from slipcheck.validation import validate_receipt_for_mission

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str], None]


def choose_best(
    primary: ExtractedReceiptData, fallback: ExtractedReceiptData
) -> ExtractedReceiptData:
    """Pick the higher-confidence attempt; ties keep the primary attempt."""
    if fallback.confidence > primary.confidence:
        return fallback
    return primary


async def recognize_and_extract(
    image: ReceiptImage,
    recognizer: ReceiptRecognizer,
    rules: AmountRules = DEFAULT_AMOUNT_RULES,
    on_progress: ProgressCallback | None = None,
) -> ExtractedReceiptData:
    """Run one recognition attempt on an image and extract its fields."""

    name = image.name or "receipt"

    def report(percent: int) -> None:
        if on_progress:
            on_progress("ocr_progress", f"Recognizing {name}: {percent}%")

    # Recognition blocks, so it runs in an executor to keep the loop free
    loop = asyncio.get_event_loop()
    text = await loop.run_in_executor(
        None, partial(recognizer.recognize, image, on_progress=report)
    )
    return extract_receipt_fields(text, rules)


async def process_receipt(
    image: ReceiptImage,
    recognizer: ReceiptRecognizer,
    settings: PreprocessSettings = DEFAULT_PREPROCESS_SETTINGS,
    rules: AmountRules = DEFAULT_AMOUNT_RULES,
    on_progress: ProgressCallback | None = None,
) -> ExtractedReceiptData:
    """
    Extract date, time and amount from a receipt photo.

    The enhanced image is tried first. If that attempt finds nothing at all,
    the original image is recognized as well (crisp photos can be hurt by
    sharpening) and the higher-confidence result is returned.

    Args:
        image: Uploaded receipt image.
        recognizer: Recognizer wrapping the configured engine.
        settings: Preprocessing tunables.
        rules: Amount plausibility and tie-break constants.
        on_progress: Optional callback for progress updates (event_type, message)

    Returns:
        Extracted fields. Never raises for bad input or engine failures;
        those yield an all-empty, zero-confidence result.
    """
    name = image.name or "receipt"
    try:
        loop = asyncio.get_event_loop()
        processed = await loop.run_in_executor(None, preprocess_image, image, settings)
        if on_progress:
            on_progress("preprocess", f"Prepared {name} for recognition")

        primary = await recognize_and_extract(processed, recognizer, rules, on_progress)
        if primary.confidence > 0 or processed is image:
            return primary

        if on_progress:
            on_progress("fallback", f"Nothing found in enhanced {name}, retrying")
        fallback = await recognize_and_extract(image, recognizer, rules, on_progress)
        return choose_best(primary, fallback)

    except Exception as e:
        logger.exception("Receipt processing failed for %s", name)
        if on_progress:
            on_progress("process_error", f"Failed to process {name}: {e}")
        return ExtractedReceiptData.empty()


def process_receipt_sync(
    image: ReceiptImage,
    recognizer: ReceiptRecognizer,
    settings: PreprocessSettings = DEFAULT_PREPROCESS_SETTINGS,
    rules: AmountRules = DEFAULT_AMOUNT_RULES,
) -> ExtractedReceiptData:
    """Blocking wrapper around process_receipt for non-async callers."""
    return asyncio.run(process_receipt(image, recognizer, settings, rules))


async def check_receipt_file(
    path: Path,
    recognizer: ReceiptRecognizer,
    mission: MissionRequirement,
    event: EventConfig,
    settings: PreprocessSettings = DEFAULT_PREPROCESS_SETTINGS,
    rules: AmountRules = DEFAULT_AMOUNT_RULES,
    on_progress: ProgressCallback | None = None,
) -> ReceiptCheckResult:
    """Load, process and validate a single receipt file."""
    result = ReceiptCheckResult(file_name=path.name)

    try:
        image = load_receipt_image(path)
    except ReceiptFileError as e:
        result.error = str(e)
        if on_progress:
            on_progress("intake_error", f"Rejected {path.name}: {e}")
        return result

    extraction = await process_receipt(image, recognizer, settings, rules, on_progress)
    verdict = validate_receipt_for_mission(mission, extraction, event)
    result.extraction = extraction
    result.verdict = verdict

    if on_progress:
        status = "valid" if verdict.is_valid else "; ".join(verdict.errors)
        on_progress(
            "check_success" if verdict.is_valid else "check_invalid",
            f"{path.name}: confidence {extraction.confidence}% ({status})",
        )
    return result


async def run_batch(
    paths: Iterable[Path],
    recognizer: ReceiptRecognizer,
    mission: MissionRequirement,
    event: EventConfig,
    settings: PreprocessSettings = DEFAULT_PREPROCESS_SETTINGS,
    rules: AmountRules = DEFAULT_AMOUNT_RULES,
    on_progress: ProgressCallback | None = None,
) -> list[ReceiptCheckResult]:
    """Check many receipt files concurrently.

    Each file is handled independently; results keep the input order.
    """
    tasks = [
        asyncio.create_task(
            check_receipt_file(
                path, recognizer, mission, event, settings, rules, on_progress
            )
        )
        for path in paths
    ]
    results = await asyncio.gather(*tasks)
    return list(results)
