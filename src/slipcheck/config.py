"""Event, mission and OCR configuration."""

import datetime
import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from slipcheck.models import MAX_RECEIPT_AMOUNT, MIN_RECEIPT_AMOUNT, MissionRequirement

DEFAULT_EVENT_DATE = datetime.date(2025, 12, 20)
DEFAULT_LANGUAGES = ("id", "en")


class EventConfig(BaseModel):
    """The promotional event every receipt must be dated on."""

    model_config = ConfigDict(frozen=True)

    name: str = "Christmas Super Midnight Sale"
    date: datetime.date = DEFAULT_EVENT_DATE
    location: str = "Supermal Karawaci"


class OCREngineKind(str, Enum):
    """Available text recognition engines."""

    VISION = "vision"
    TESSERACT = "tesseract"


class OCRConfig(BaseModel):
    """Recognition engine configuration, injected into the recognizer."""

    model_config = ConfigDict(frozen=True)

    engine: OCREngineKind = OCREngineKind.VISION
    languages: tuple[str, ...] = DEFAULT_LANGUAGES
    tesseract_cmd: str | None = None
    tesseract_config: str = "--oem 3 --psm 6"
    max_attempts: int = Field(3, ge=1)


class PreprocessSettings(BaseModel):
    """Tunables for the image enhancement pass."""

    model_config = ConfigDict(frozen=True)

    upscale_below_px: int = 1500
    upscale_below_bytes: int = 200 * 1024
    scale_factor: float = 2.0
    max_dimension: int = 3000
    sharpen_strength: float = 0.6
    sharpen_strength_light: float = 0.3
    contrast_factor: float = 1.2


class AmountRules(BaseModel):
    """Plausibility range and tie-break constants for amount selection.

    These were tuned against sample receipts from the event's tenants.
    """

    model_config = ConfigDict(frozen=True)

    min_amount: int = MIN_RECEIPT_AMOUNT
    max_amount: int = MAX_RECEIPT_AMOUNT
    preferred_floor: int = 100_000

    @model_validator(mode="after")
    def check_range(self) -> "AmountRules":
        # ExtractedReceiptData only holds amounts within these bounds
        if (
            self.min_amount < MIN_RECEIPT_AMOUNT
            or self.max_amount > MAX_RECEIPT_AMOUNT
        ):
            raise ValueError(
                f"amount range must stay within {MIN_RECEIPT_AMOUNT}"
                f"..{MAX_RECEIPT_AMOUNT}"
            )
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount must not exceed max_amount")
        return self

    def is_plausible(self, amount: int) -> bool:
        return self.min_amount <= amount <= self.max_amount


MISSION_1 = MissionRequirement(
    id=1,
    name="Misi F&B",
    category="Food & Beverage",
    min_amount=150_000,
    min_time="19:30",
    min_time_display="19.30 WIB",
    description="Belanja di tenant F&B min. Rp 150.000",
)

MISSION_2 = MissionRequirement(
    id=2,
    name="Misi Fashion",
    category="Fashion & Accessories",
    min_amount=250_000,
    min_time="20:00",
    min_time_display="20.00 WIB",
    description="Belanja di tenant Fashion min. Rp 250.000",
)

MISSIONS = (MISSION_1, MISSION_2)


def get_mission_config(mission_id: int) -> MissionRequirement:
    for mission in MISSIONS:
        if mission.id == mission_id:
            return mission
    raise KeyError(f"Unknown mission: {mission_id}")


def load_ocr_config() -> OCRConfig:
    """Build OCR configuration from SLIPCHECK_* environment variables."""
    kwargs: dict = {}
    engine = os.getenv("SLIPCHECK_OCR_ENGINE")
    if engine:
        kwargs["engine"] = OCREngineKind(engine.strip().lower())
    languages = os.getenv("SLIPCHECK_OCR_LANGUAGES")
    if languages:
        kwargs["languages"] = tuple(
            lang.strip() for lang in languages.split(",") if lang.strip()
        )
    tesseract_cmd = os.getenv("TESSERACT_CMD")
    if tesseract_cmd:
        kwargs["tesseract_cmd"] = tesseract_cmd
    return OCRConfig(**kwargs)


def load_event_config() -> EventConfig:
    """Build event configuration, honouring SLIPCHECK_EVENT_DATE (YYYY-MM-DD)."""
    event_date = os.getenv("SLIPCHECK_EVENT_DATE")
    if event_date:
        return EventConfig(date=datetime.date.fromisoformat(event_date.strip()))
    return EventConfig()
