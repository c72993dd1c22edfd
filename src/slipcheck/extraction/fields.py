"""Date, time and amount extraction from recognized receipt text."""

import logging
import re
from collections import Counter

from slipcheck.config import AmountRules
from slipcheck.extraction.normalize import normalize_text
from slipcheck.extraction.patterns import (
    DATE_CONTEXT_WINDOW,
    DATE_MONTH_NAME_PATTERNS,
    DATE_NUMERIC_PATTERNS,
    EXCLUSION_PATTERNS,
    GROUPED_NUMBER_PATTERN,
    PAYMENT_PATTERN_GROUPS,
    TIME_PATTERNS,
    TOTAL_FALLBACK_PATTERNS,
)
from slipcheck.models import ExtractedReceiptData
from slipcheck.utils.amounts import parse_amount

logger = logging.getLogger(__name__)

DEFAULT_AMOUNT_RULES = AmountRules()

_DIGIT_BEFORE_RE = re.compile(r"\d[/\-.]?$")
_DIGIT_AFTER_RE = re.compile(r"^[/\-.]?\d")


def _touches_digit_run(text: str, start: int, end: int) -> bool:
    """True if a numeric date match is glued to surrounding digits (an ID)."""
    before = text[max(0, start - DATE_CONTEXT_WINDOW) : start]
    after = text[end : end + DATE_CONTEXT_WINDOW]
    return bool(_DIGIT_BEFORE_RE.search(before) or _DIGIT_AFTER_RE.search(after))


def _is_plausible_numeric_date(match: re.Match) -> bool:
    first, second, third = (int(group) for group in match.groups())
    if len(match.group(1)) == 4:
        return 2020 <= first <= 2030 and 1 <= second <= 12 and 1 <= third <= 31
    return 1 <= first <= 31 and 1 <= second <= 12


def extract_date(text: str) -> str | None:
    """
    Find the transaction date in receipt text.

    Dates written with a month name are preferred. Numeric dates are only
    accepted when they are not part of a longer digit run and their
    components are plausible.

    Returns:
        The matched substring verbatim, or None.
    """
    for pattern in DATE_MONTH_NAME_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()

    for pattern in DATE_NUMERIC_PATTERNS:
        for match in pattern.finditer(text):
            if _touches_digit_run(text, match.start(), match.end()):
                continue
            if _is_plausible_numeric_date(match):
                return match.group(0)

    return None


def extract_time(text: str) -> str | None:
    """Find the transaction time; returns the matched substring or None."""
    for pattern in TIME_PATTERNS:
        for match in pattern.finditer(text):
            hour = int(match.group(1))
            minute = int(match.group(2))
            meridiem = match.group(4) if pattern.groups >= 4 else None
            max_hour = 12 if meridiem else 23
            if 0 <= hour <= max_hour and 0 <= minute <= 59:
                return match.group(0).strip()
    return None


def find_excluded_amounts(text: str) -> set[int]:
    """Amounts printed next to discount, savings or change keywords."""
    excluded = set()
    for pattern in EXCLUSION_PATTERNS:
        for match in pattern.finditer(text):
            amount = parse_amount(match.group(1))
            if amount:
                excluded.add(amount)
    return excluded


def extract_amount(
    text: str,
    rules: AmountRules = DEFAULT_AMOUNT_RULES,
    excluded: set[int] | None = None,
) -> int | None:
    """
    Find the amount actually paid on a receipt.

    Strategy, in order:
    1. Collect discount/savings figures, which are never returned.
    2. Payment keywords (total payment, bank, payment method, total sales):
       first plausible match wins.
    3. Generic totals: smallest candidate at or above the preferred floor,
       else the smallest candidate.
    4. Any thousands-grouped number: the most repeated value, ties going to
       the smaller one.

    Args:
        text: Receipt text.
        rules: Plausible range and tie-break floor.
        excluded: Discount figures to skip. Collected from ``text`` if None.

    Returns:
        Amount in Rupiah within the plausible range, or None.
    """
    if excluded is None:
        excluded = find_excluded_amounts(text)

    def eligible(raw: str) -> int | None:
        amount = parse_amount(raw)
        if rules.is_plausible(amount) and amount not in excluded:
            return amount
        return None

    for group_name, patterns in PAYMENT_PATTERN_GROUPS:
        for pattern in patterns:
            for match in pattern.finditer(text):
                amount = eligible(match.group(1))
                if amount is not None:
                    logger.debug("Amount %d from %s keyword", amount, group_name)
                    return amount

    candidates = sorted(
        {
            amount
            for pattern in TOTAL_FALLBACK_PATTERNS
            for match in pattern.finditer(text)
            if (amount := eligible(match.group(1))) is not None
        }
    )
    if candidates:
        for amount in candidates:
            if amount >= rules.preferred_floor:
                return amount
        return candidates[0]

    counts = Counter(
        amount
        for match in GROUPED_NUMBER_PATTERN.finditer(text)
        if (amount := eligible(match.group(1))) is not None
    )
    if counts:
        amount, _ = min(counts.items(), key=lambda item: (-item[1], item[0]))
        return amount

    return None


def extract_receipt_fields(
    text: str, rules: AmountRules = DEFAULT_AMOUNT_RULES
) -> ExtractedReceiptData:
    """
    Extract date, time and amount from recognized text.

    The raw text is tried first because normalization can remove artifacts
    some patterns rely on; fields still missing are retried on the
    normalized text. Discount figures found in either version are excluded
    from both passes, so a misread "Hernat" still hides its amount.
    """
    normalized = normalize_text(text)
    excluded = find_excluded_amounts(text) | find_excluded_amounts(normalized)

    date = extract_date(text) or extract_date(normalized)
    time = extract_time(text) or extract_time(normalized)
    amount = extract_amount(text, rules, excluded)
    if amount is None:
        amount = extract_amount(normalized, rules, excluded)

    return ExtractedReceiptData(date=date, time=time, amount=amount, raw_text=text)
