"""Auction date parsing for the formats found in US land auction listings."""

import re
from datetime import datetime, timedelta, timezone

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# "September 9th, 2025", "Sept 9, 2025", "Bids Due: Oct. 24 2025"
MONTH_NAME_PATTERN = re.compile(
    r"\b(Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?\s+"
    r"(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})\b",
    re.IGNORECASE,
)
# "12/15/2025" or "12-15-2025"
US_NUMERIC_PATTERN = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b")
# "2025-12-15"
ISO_PATTERN = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")

DATE_DISPLAY_FORMAT = "%b %d, %Y"


def _build(year: int, month: int, day: int) -> datetime | None:
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def search_date(text: str) -> datetime | None:
    """Find the first recognizable date in free text."""
    if not text:
        return None

    match = MONTH_NAME_PATTERN.search(text)
    if match:
        month = MONTHS[match.group(1)[:3].lower()]
        found = _build(int(match.group(3)), month, int(match.group(2)))
        if found:
            return found

    match = US_NUMERIC_PATTERN.search(text)
    if match:
        found = _build(int(match.group(3)), int(match.group(1)), int(match.group(2)))
        if found:
            return found

    match = ISO_PATTERN.search(text)
    if match:
        return _build(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    return None


def parse_auction_date(value: str | datetime | None) -> datetime | None:
    """
    Parse a provider date value into a timezone-aware datetime.

    Examples:
        "2025-12-15" -> 2025-12-15 00:00 UTC
        "2025-12-15T10:00:00Z" -> 2025-12-15 10:00 UTC
        "Saturday, September 9th, 2025 at 10AM" -> 2025-09-09 00:00 UTC
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        return search_date(text)


def extract_date_from_text(*texts: str | None, reference: datetime | None = None) -> datetime | None:
    """
    Look for an auction date in title/description text.

    Dates more than a year before or two years after ``reference`` are
    rejected as unlikely auction dates.
    """
    combined = " ".join(t for t in texts if t)
    found = search_date(combined)
    if found is None:
        return None

    now = reference or datetime.now(timezone.utc)
    if now - timedelta(days=365) <= found <= now + timedelta(days=730):
        return found
    return None


def format_auction_date(value: datetime | None) -> str:
    if value is None:
        return "Date TBD"
    return value.strftime(DATE_DISPLAY_FORMAT)
