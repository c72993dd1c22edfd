"""Regex pattern groups for receipt field extraction.

Groups are kept separate and ordered by priority so that each one can be
exercised on its own. Keywords cover Indonesian and English receipts.
"""

import re

# Month names and abbreviations seen on Indonesian and English receipts.
MONTHS = {
    "jan": 1, "januari": 1, "january": 1,
    "feb": 2, "peb": 2, "februari": 2, "february": 2,
    "mar": 3, "maret": 3, "march": 3,
    "apr": 4, "april": 4,
    "mei": 5, "may": 5,
    "jun": 6, "juni": 6, "june": 6,
    "jul": 7, "juli": 7, "july": 7,
    "agu": 8, "agt": 8, "ags": 8, "aug": 8, "agustus": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "okt": 10, "oct": 10, "oktober": 10, "october": 10,
    "nov": 11, "nop": 11, "november": 11,
    "des": 12, "dec": 12, "desember": 12, "december": 12,
}  # fmt: skip

# Longest first so "januari" wins over "jan".
MONTH_NAMES = "|".join(sorted(MONTHS, key=len, reverse=True))

CURRENCY = r"(?:rp\.?|idr)?"
SEPARATOR = r"\s*[:=]?\s*"
# "150.000", "1,250,000.00" or a bare "150000".
AMOUNT = r"(\d{1,3}(?:[.,]\d{3})+(?:[.,]\d{1,2})?|\d+)"
GROUPED_AMOUNT = r"(\d{1,3}(?:[.,]\d{3})+)"

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

DATE_MONTH_NAME_PATTERNS = [
    # 20 Dec 2025, 20-Desember-25, 20 Des
    re.compile(
        rf"(?<!\d)(\d{{1,2}})[\s\-/.]*({MONTH_NAMES})\.?(?![a-z])"
        rf"(?:[\s\-/.,'’]*(\d{{4}}|\d{{2}})(?!\d|[:.]\d))?",
        re.IGNORECASE,
    ),
    # Dec 20, 2025
    re.compile(
        rf"(?<![a-z])({MONTH_NAMES})\.?\s+(\d{{1,2}})(?!\d),?\s*(\d{{4}})(?!\d)",
        re.IGNORECASE,
    ),
]

DMY_DATE_PATTERN = re.compile(r"(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})")
YMD_DATE_PATTERN = re.compile(r"(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})")

DATE_NUMERIC_PATTERNS = [DMY_DATE_PATTERN, YMD_DATE_PATTERN]

# Characters inspected on each side of a numeric date for ID-like digit runs.
DATE_CONTEXT_WINDOW = 5

# ---------------------------------------------------------------------------
# Times
# ---------------------------------------------------------------------------

TIME_PREFIX_PATTERNS = [
    # Jam 19.45, Pukul: 20:05, Waktu 19:30
    re.compile(
        r"\b(?:jam|pukul|pkl|waktu|time)\.?\s*[:.]?\s*(\d{1,2})[:.](\d{2})(?!\d)",
        re.IGNORECASE,
    ),
]

TIME_CLOCK_PATTERNS = [
    # 19:45, 19:45:12, 7:45 PM
    re.compile(
        r"(?<![\d.])(\d{1,2}):(\d{2})(?::(\d{2}))?(?![\d:])"
        r"(?:\s*([ap])\.?m\.?(?![a-z]))?",
        re.IGNORECASE,
    ),
]

TIME_PATTERNS = TIME_PREFIX_PATTERNS + TIME_CLOCK_PATTERNS

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

EXCLUSION_PATTERNS = [
    re.compile(
        r"\b(?:anda\s*hemat|hemat|you\s*save|savings?|diskon|disc(?:ount)?|"
        r"potongan|promo|cashback|voucher|kembalian|kembali|change)\b\.?"
        rf"{SEPARATOR}-?\s*{CURRENCY}\s*-?\s*{AMOUNT}",
        re.IGNORECASE,
    ),
]

TOTAL_PAYMENT_PATTERNS = [
    re.compile(
        r"\b(?:total\s*(?:pembayaran|bayar|dibayar|payment|paid)|"
        r"jumlah\s*(?:pembayaran|bayar|dibayar)|amount\s*paid)\b"
        rf"{SEPARATOR}{CURRENCY}\s*{AMOUNT}",
        re.IGNORECASE,
    ),
]

BANK_PAYMENT_PATTERNS = [
    re.compile(
        r"\b(?:bca|bni|bri|mandiri|cimb(?:\s*niaga)?|permata|danamon|btn|bsi|"
        r"mega|ocbc(?:\s*nisp)?)(?:\s*(?:debit|kredit|credit|card|edc))?"
        rf"\s*:\s*{CURRENCY}\s*{AMOUNT}",
        re.IGNORECASE,
    ),
]

PAYMENT_METHOD_PATTERNS = [
    re.compile(
        r"\b(?:tunai|cash|kartu\s*(?:debit|kredit)|debit(?:\s*card)?|"
        r"credit\s*card|kartu|card|qris|gopay|ovo|dana|shopeepay|linkaja|"
        r"e-?wallet)\s*:\s*"
        rf"{CURRENCY}\s*{AMOUNT}",
        re.IGNORECASE,
    ),
]

TOTAL_SALES_PATTERNS = [
    re.compile(
        r"\btotal\s*(?:penjualan|sales|belanja|transaksi)\b"
        rf"{SEPARATOR}{CURRENCY}\s*{AMOUNT}",
        re.IGNORECASE,
    ),
]

# Tried in order; the first plausible, non-excluded match wins.
PAYMENT_PATTERN_GROUPS = [
    ("total_payment", TOTAL_PAYMENT_PATTERNS),
    ("bank", BANK_PAYMENT_PATTERNS),
    ("payment_method", PAYMENT_METHOD_PATTERNS),
    ("total_sales", TOTAL_SALES_PATTERNS),
]

TOTAL_FALLBACK_PATTERNS = [
    re.compile(rf"\bgrand\s*total\b{SEPARATOR}{CURRENCY}\s*{AMOUNT}", re.IGNORECASE),
    re.compile(
        rf"^[ \t]*total\b{SEPARATOR}{CURRENCY}\s*{AMOUNT}",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(rf":\s*{CURRENCY}\s*{GROUPED_AMOUNT}(?!\d)", re.IGNORECASE),
]

GROUPED_NUMBER_PATTERN = re.compile(rf"(?<![\d.,]){GROUPED_AMOUNT}(?![\d])")
