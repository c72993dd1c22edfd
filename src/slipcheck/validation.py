"""Mission rules for extracted receipt data."""

import datetime
import logging
import re

from slipcheck.config import EventConfig
from slipcheck.extraction.patterns import (
    DATE_MONTH_NAME_PATTERNS,
    DMY_DATE_PATTERN,
    MONTHS,
    YMD_DATE_PATTERN,
)
from slipcheck.models import ExtractedReceiptData, MissionRequirement, ValidationVerdict
from slipcheck.utils.amounts import format_rupiah_short

logger = logging.getLogger(__name__)

DEFAULT_EVENT = EventConfig()

INDONESIAN_MONTHS = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]  # fmt: skip

DAY_FIRST_PATTERN, MONTH_FIRST_PATTERN = DATE_MONTH_NAME_PATTERNS

TIME_VALUE_RE = re.compile(
    r"(\d{1,2})[:.](\d{2})(?:[:.]\d{2})?(?:\s*([ap])\.?m\b)?", re.IGNORECASE
)


def format_indonesian_date(value: datetime.date) -> str:
    """2025-12-20 -> "20 Desember 2025"."""
    return f"{value.day} {INDONESIAN_MONTHS[value.month - 1]} {value.year}"


def receipt_date_message(event: EventConfig) -> str:
    return f"Struk harus bertanggal {format_indonesian_date(event.date)}"


def receipt_time_message(mission: MissionRequirement) -> str:
    return f"Waktu transaksi minimal {mission.min_time_display}"


def receipt_amount_message(mission: MissionRequirement) -> str:
    return f"Jumlah transaksi minimal {format_rupiah_short(mission.min_amount)}"


def _full_year(raw: str | None, default: int) -> int:
    if not raw:
        return default
    year = int(raw)
    return 2000 + year if year < 100 else year


def _mentions_date_loosely(value: str, target: datetime.date) -> bool:
    """Day, month (number or name) and year each appear as separate tokens."""
    month_names = [name for name, number in MONTHS.items() if number == target.month]
    day_re = rf"(?<!\d)0?{target.day}(?!\d)"
    month_re = rf"(?<!\d)0?{target.month}(?!\d)|\b(?:{'|'.join(month_names)})\b"
    year_re = rf"(?<!\d)(?:{target.year}|{target.year % 100:02d})(?!\d)"
    return all(
        re.search(pattern, value, re.IGNORECASE)
        for pattern in (day_re, month_re, year_re)
    )


def validate_receipt_date(
    date_string: str | None, event: EventConfig = DEFAULT_EVENT
) -> bool:
    """
    Check that an extracted date string is the event date.

    Month-name dates are tried first, then DD/MM/YYYY, then YYYY-MM-DD. The
    first format that parses decides the outcome. Only when none parse is a
    loose token check used.
    """
    if not date_string:
        return False

    target = event.date
    expected = (target.day, target.month, target.year)

    match = DAY_FIRST_PATTERN.search(date_string)
    if match:
        day = int(match.group(1))
        month = MONTHS[match.group(2).lower()]
        year = _full_year(match.group(3), target.year)
        return (day, month, year) == expected

    match = MONTH_FIRST_PATTERN.search(date_string)
    if match:
        month = MONTHS[match.group(1).lower()]
        day = int(match.group(2))
        year = _full_year(match.group(3), target.year)
        return (day, month, year) == expected

    match = DMY_DATE_PATTERN.search(date_string)
    if match:
        day, month, year = (int(group) for group in match.groups())
        return (day, month, year) == expected

    match = YMD_DATE_PATTERN.search(date_string)
    if match:
        year, month, day = (int(group) for group in match.groups())
        return (day, month, year) == expected

    return _mentions_date_loosely(date_string, target)


def parse_time_to_minutes(time_string: str | None) -> int | None:
    """
    Convert "19:45", "19.45", "19:45:10" or "7:45 PM" to minutes since midnight.

    Returns None if no time can be read.
    """
    if not time_string:
        return None

    match = TIME_VALUE_RE.search(time_string)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = (match.group(3) or "").upper()

    if period == "P" and hours != 12:
        hours += 12
    elif period == "A" and hours == 12:
        hours = 0

    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def validate_receipt_time(time_string: str | None, min_time: str) -> bool:
    receipt_minutes = parse_time_to_minutes(time_string)
    if receipt_minutes is None:
        return False
    min_hours, min_minutes = (int(part) for part in min_time.split(":"))
    return receipt_minutes >= min_hours * 60 + min_minutes


def validate_receipt_amount(amount: int | None, min_amount: int) -> bool:
    return amount is not None and amount >= min_amount


def validate_receipt_for_mission(
    mission: MissionRequirement,
    data: ExtractedReceiptData,
    event: EventConfig = DEFAULT_EVENT,
) -> ValidationVerdict:
    """
    Validate extracted receipt fields against a mission.

    Every rule is checked so the verdict lists all failures, always in the
    order date, time, amount.
    """
    errors = []

    if not validate_receipt_date(data.date, event):
        errors.append(receipt_date_message(event))

    if not validate_receipt_time(data.time, mission.min_time):
        errors.append(receipt_time_message(mission))

    if not validate_receipt_amount(data.amount, mission.min_amount):
        errors.append(receipt_amount_message(mission))

    if errors:
        logger.debug("Receipt failed %s: %s", mission.name, errors)

    return ValidationVerdict(errors=errors)
