"""Rupiah amount parsing and display formatting."""

import math
import re

CURRENCY_RE = re.compile(r"rupiah|idr|rp\.?|[.,]-+\s*$|\s+", re.IGNORECASE)
NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def parse_amount(value: str) -> int:
    """
    Parse a localized amount string into an integer number of Rupiah.

    Dots-only and commas-only strings are treated as thousands separators
    ("150.000" and "150,000" are both 150000). When both appear, whichever
    separator comes last is the decimal point ("1.000,50" and "1,000.50").

    Args:
        value: Raw amount text, optionally with "Rp"/"IDR", whitespace and
            a trailing ",-" as in "Rp 150.000,-".

    Returns:
        The amount rounded half-up to an integer, or 0 if it does not parse.
    """
    cleaned = CURRENCY_RE.sub("", value or "")

    has_dot = "." in cleaned
    has_comma = "," in cleaned

    if has_dot and not has_comma:
        cleaned = cleaned.replace(".", "")
    elif has_comma and not has_dot:
        cleaned = cleaned.replace(",", "")
    elif has_dot and has_comma:
        if cleaned.rfind(".") > cleaned.rfind(","):
            # 1,000.50
            cleaned = cleaned.replace(",", "")
        else:
            # 1.000,50
            cleaned = cleaned.replace(".", "").replace(",", ".")

    if not NUMBER_RE.fullmatch(cleaned):
        return 0

    return math.floor(float(cleaned) + 0.5)


def format_thousands(amount: int) -> str:
    """Group digits with dots, the Indonesian way: 150000 -> "150.000"."""
    return f"{amount:,}".replace(",", ".")


def format_rupiah(amount: int) -> str:
    """Full currency display, e.g. "Rp 150.000"."""
    return f"Rp {format_thousands(amount)}"


def format_rupiah_short(amount: int) -> str:
    """
    Compact currency display used in participant-facing messages.

    150000 -> "Rp 150 ribu", 1500000 -> "Rp 1,5 juta", 2000000 -> "Rp 2 juta".
    """
    if amount < 1_000:
        return f"Rp {format_thousands(amount)}"
    thousands = round(amount / 1_000)
    if thousands < 1_000:
        return f"Rp {thousands} ribu"
    millions = f"{amount / 1_000_000:.1f}".removesuffix(".0").replace(".", ",")
    return f"Rp {millions} juta"
