"""Cleanup of raw OCR text before field extraction."""

import re

# Symbols OCR tends to emit for smudges, logos and receipt borders.
NOISE_RE = re.compile(r"[~`^*_=\\<>{}\[\]\"«»•¬©®§¦]")

HORIZONTAL_SPACE_RE = re.compile(r"[ \t\f\v\u00a0]+")
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

# Common misreadings of receipt keywords.
KEYWORD_CORRECTIONS = [
    (re.compile(r"\bt[o0]ta[l1i|!](?!\w)", re.IGNORECASE), "total"),
    (re.compile(r"\bba[yv][a4][rt](?!\w)", re.IGNORECASE), "bayar"),
    (re.compile(r"\btuna[i1l|!](?!\w)", re.IGNORECASE), "tunai"),
    (re.compile(r"\bjum[l1|]ah(?!\w)", re.IGNORECASE), "jumlah"),
    (re.compile(r"\bd[i1l]sk[o0]n(?!\w)", re.IGNORECASE), "diskon"),
    (re.compile(r"\bhe(?:m|rn)at(?!\w)", re.IGNORECASE), "hemat"),
    (re.compile(r"\bpembayar[a4]n(?!\w)", re.IGNORECASE), "pembayaran"),
    (re.compile(r"\bgr[a4]nd(?!\w)", re.IGNORECASE), "grand"),
]

# Glyphs commonly confused with digits.
DIGIT_CONFUSIONS = str.maketrans(
    {
        "O": "0", "o": "0", "Q": "0",
        "l": "1", "I": "1", "i": "1", "|": "1", "!": "1",
        "Z": "2", "z": "2",
        "S": "5", "s": "5",
        "G": "6", "b": "6",
        "B": "8",
        "g": "9", "q": "9",
    }
)  # fmt: skip

_CONFUSABLE = "OoQlIi|!ZzSsGbBgq"
# A run of digits, confusable glyphs and numeric separators, not glued to a word.
NUMERIC_RUN_RE = re.compile(
    rf"(?<![A-Za-z])[0-9{re.escape(_CONFUSABLE)}.,:/\-]*[0-9]"
    rf"[0-9{re.escape(_CONFUSABLE)}.,:/\-]*(?![A-Za-z])"
)


def fix_digits(segment: str) -> str:
    """Map digit look-alikes to digits in a segment that contains a digit.

    Segments without any digit are returned unchanged so ordinary words
    are never rewritten.
    """
    if not any(ch.isdigit() for ch in segment):
        return segment
    return segment.translate(DIGIT_CONFUSIONS)


def _keep_case(replacement: str):
    def substitute(match: re.Match) -> str:
        found = match.group(0)
        if found.isupper():
            return replacement.upper()
        if found[0].isupper():
            return replacement.capitalize()
        return replacement

    return substitute


def normalize_text(text: str) -> str:
    """
    Clean OCR output so extraction patterns can match.

    Noise symbols become spaces, known keyword misreadings are repaired,
    whitespace is collapsed and digit look-alikes inside numeric runs are
    mapped back to digits, e.g. "Tota1 payment: 1O0.OOO" becomes
    "Total payment: 100.000".
    """
    if not text:
        return ""

    cleaned = NOISE_RE.sub(" ", text)

    for pattern, replacement in KEYWORD_CORRECTIONS:
        cleaned = pattern.sub(_keep_case(replacement), cleaned)

    cleaned = HORIZONTAL_SPACE_RE.sub(" ", cleaned)
    cleaned = EXCESS_NEWLINES_RE.sub("\n\n", cleaned)

    cleaned = NUMERIC_RUN_RE.sub(lambda m: fix_digits(m.group(0)), cleaned)

    return cleaned.strip()
