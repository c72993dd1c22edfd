"""Data models for receipt extraction and mission validation."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

MIN_RECEIPT_AMOUNT = 1_000
MAX_RECEIPT_AMOUNT = 50_000_000

DATE_WEIGHT = 30
TIME_WEIGHT = 30
AMOUNT_WEIGHT = 40


class ReceiptImage(BaseModel):
    """Raw image bytes for a single processing request."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(..., repr=False)
    media_type: str = "application/octet-stream"
    size: int = 0
    name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def fill_size(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("size"):
            data = {**data, "size": len(data.get("content") or b"")}
        return data

    @classmethod
    def from_path(cls, path: Path, media_type: str) -> "ReceiptImage":
        content = path.read_bytes()
        return cls(
            content=content, media_type=media_type, size=len(content), name=path.name
        )


class ExtractedReceiptData(BaseModel):
    """Structured fields extracted from recognized receipt text.

    Confidence is derived from which fields are present and cannot be set.
    """

    model_config = ConfigDict(frozen=True)

    date: str | None = None  # raw matched substring, e.g. "20 Dec 2025"
    time: str | None = None  # raw matched substring, e.g. "19:45"
    amount: int | None = Field(None, ge=MIN_RECEIPT_AMOUNT, le=MAX_RECEIPT_AMOUNT)
    raw_text: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def confidence(self) -> int:
        score = 0
        if self.date:
            score += DATE_WEIGHT
        if self.time:
            score += TIME_WEIGHT
        if self.amount is not None:
            score += AMOUNT_WEIGHT
        return score

    @classmethod
    def empty(cls) -> "ExtractedReceiptData":
        return cls()


class MissionRequirement(BaseModel):
    """Static requirements a receipt must meet for one mission."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    category: str
    min_amount: int = Field(..., gt=0)
    min_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")  # "HH:MM"
    min_time_display: str
    description: str = ""

    @property
    def min_time_minutes(self) -> int:
        hours, minutes = self.min_time.split(":")
        return int(hours) * 60 + int(minutes)


class ValidationVerdict(BaseModel):
    """Pass/fail outcome of a receipt against one mission."""

    model_config = ConfigDict(frozen=True)

    errors: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return not self.errors


class ReceiptCheckResult(BaseModel):
    """Outcome of checking a single receipt file.

    Attributes:
        file_name: Name of the receipt file
        extraction: Extracted fields (None if the file was rejected at intake)
        verdict: Mission verdict (None if the file was rejected at intake)
        error: Intake error message, if any
    """

    file_name: str
    extraction: ExtractedReceiptData | None = None
    verdict: ValidationVerdict | None = None
    error: str | None = None
