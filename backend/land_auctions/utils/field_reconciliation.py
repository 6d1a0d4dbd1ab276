"""Ordered-preference merge of synonym keys returned by the extraction provider."""

import re
from typing import Any

# canonical field -> accepted source keys, most preferred first
FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "title": ("title",),
    "description": ("description",),
    "auction_date": ("auction_date", "date"),
    "address": ("address", "location"),
    "acreage": ("acreage", "acres"),
    "land_type": ("land_type", "property_type"),
    "county": ("county",),
    "state": ("state",),
}

_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return not value
    return False


def reconcile_fields(
    raw: dict[str, Any],
    synonyms: dict[str, tuple[str, ...]] = FIELD_SYNONYMS,
) -> dict[str, Any]:
    """
    Collapse provider keys into canonical fields.

    For each canonical field the first non-empty source key wins; a synonym
    is only consulted when the preferred key is absent or empty. Missing
    fields resolve to ``None``.
    """
    merged: dict[str, Any] = {}
    for canonical, keys in synonyms.items():
        merged[canonical] = None
        for key in keys:
            value = raw.get(key)
            if not is_empty(value):
                merged[canonical] = value.strip() if isinstance(value, str) else value
                break
    return merged


def parse_acreage(value: Any) -> float | None:
    """
    Coerce an acreage value to float.

    Examples:
        155.29 -> 155.29
        "155.29 +/-" -> 155.29
        "1,240 acres" -> 1240.0
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None
    if isinstance(value, str):
        match = _NUMBER.search(value)
        if match:
            number = float(match.group(0).replace(",", ""))
            return number if number > 0 else None
    return None
