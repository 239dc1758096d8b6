"""
Canonical value forms for the Slot Hunter.

Every value the engine compares (a day, a time, an employee name) is first
brought to a canonical string. Date and time forms are zero-padded so that
plain string comparison preserves chronological order, which is what makes
Span matching a simple `lower <= value <= upper` check.
"""

import re
from datetime import date as date_type
from typing import Optional

DATE_DAY_FIRST = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
DATE_YEAR_FIRST = re.compile(r"^(\d{4})\.(\d{1,2})\.(\d{1,2})$")
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{1,2})$")

# How far (in years) a date literal may stray from the current year
YEAR_WINDOW = 1


def canonical_date(value: str, today: Optional[date_type] = None) -> str:
    """
    Bring a plain date literal to `YYYY.MM.DD`.

    Accepts `D.M.YYYY` and `YYYY.M.D`. Raises ValueError on bad syntax or
    on out-of-range parts.
    """
    text = value.strip()
    day_first = DATE_DAY_FIRST.match(text)
    year_first = DATE_YEAR_FIRST.match(text)

    if day_first:
        d, m, y = (int(part) for part in day_first.groups())
    elif year_first:
        y, m, d = (int(part) for part in year_first.groups())
    else:
        raise ValueError(f"Invalid plain date syntax '{value}'")

    current_year = (today or date_type.today()).year
    if y < current_year - YEAR_WINDOW or y > current_year + YEAR_WINDOW:
        raise ValueError(f"Invalid year '{y}' in plain date '{value}'")
    if m < 1 or m > 12:
        raise ValueError(f"Invalid month '{m}' in plain date '{value}'")
    if d < 1 or d > 31:
        raise ValueError(f"Invalid day '{d}' in plain date '{value}'")

    return f"{y:04d}.{m:02d}.{d:02d}"


def canonical_time(value: str) -> str:
    """Bring a plain time literal (`H:M`) to `HH:MM`."""
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid plain time syntax '{value}'")

    h, m = (int(part) for part in match.groups())
    if h < 0 or h > 23:
        raise ValueError(f"Invalid hour '{h}' in plain time '{value}'")
    if m < 0 or m > 59:
        raise ValueError(f"Invalid minute '{m}' in plain time '{value}'")

    return f"{h:02d}:{m:02d}"


def canonical_employee(value: str) -> str:
    """Letters only, case-folded. Never fails."""
    letters = "".join(ch for ch in value if ch.isalpha())
    return letters.casefold().replace("ё", "е")


def parse_canonical_date(value: str) -> date_type:
    """Turn a canonical `YYYY.MM.DD` string into a calendar date."""
    y, m, d = (int(part) for part in value.split("."))
    return date_type(y, m, d)


def normalize_display(value: str) -> str:
    """Collapse whitespace and upper-case the first letter."""
    text = re.sub(r"\s+", " ", value).strip()
    return text[:1].upper() + text[1:]


PROVIDER_NAME_RULES = [
    (re.compile(r"\s+"), " "),
    (re.compile(r"[«»'\"]+"), ""),
    (re.compile(r"г\.(?=\S)"), "г. "),
    (re.compile(r"\s*им\.(?=\S)"), " им. "),
    (re.compile(r"(?<= им\. [А-ЯЁ]\.)\s*(?=[А-ЯЁ]\.)"), ""),
    (re.compile(r"(?<= им\. [А-ЯЁ]\.[А-ЯЁ]\.)\s*"), " "),
    (re.compile(r"[N№]\s*(?=\d)"), "№"),
    (re.compile(r"^\s*г\s*у\s*з\b\s*", re.IGNORECASE), "ГУЗ "),
]
PROVIDER_LEGAL_PREFIX = re.compile(r"^гуз ", re.IGNORECASE)


def normalize_provider_name(value: str) -> str:
    """
    Bring a provider name to the form the source publishes:
    no quotes, `г. ` / ` им. ` spacing, `№8` numbering, upper-case `ГУЗ` prefix.
    """
    text = value
    for pattern, replacement in PROVIDER_NAME_RULES:
        text = pattern.sub(replacement, text)
    text = text.strip()
    return text[:1].upper() + text[1:]


def build_provider_fingerprint(value: str) -> int:
    """Fingerprint of a provider name; the legal-form prefix `ГУЗ` is optional."""
    return build_fingerprint(PROVIDER_LEGAL_PREFIX.sub("", normalize_provider_name(value)))


def build_fingerprint(value: str) -> int:
    """
    Non-cryptographic 32-bit signed hash of a normalized display string.

    Only letters and digits take part, lower-cased, with `ё` folded to `е`,
    so "Dr. Smith" and "dr smith" share a fingerprint.
    """
    normalized = "".join(ch for ch in value if ch.isalnum()).lower().replace("ё", "е")

    h = 0
    for ch in normalized:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h
