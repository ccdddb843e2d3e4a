"""Rule-based helpers: number normalization, bulk-intent phrases and the
delete-all confirmation phrase."""
import re
from typing import Any, Optional

CONFIRM_DELETE_ALL_PHRASE = "DELETE ALL PRODUCTS"

# Fallback classifier only; the explicit `scope` field is the contract.
BULK_PHRASES = [
    "all products", "all product", "all items", "all stock", "all stocks",
    "every product", "every item", "stock of all", "entire stock", "whole stock",
]

_BULK_PATTERNS = [re.compile(rf"\b{re.escape(p)}\b") for p in BULK_PHRASES]

_CURRENCY_PREFIX = re.compile(r"^(?:rp\.?|idr|\$)\s*", re.IGNORECASE)
_GROUPED = re.compile(r"^\d{1,3}(?:([.,])\d{3})(?:\1\d{3})*$")
_PLAIN = re.compile(r"^\d+$")
_ZERO_DECIMALS = re.compile(r"^(\d+)[.,]0+$")


def normalize_number(value: Any, field: str = "value") -> Optional[int]:
    """Coerce a loosely-typed number ("1.500.000", "1,500,000", "Rp 20000",
    7.0) into a plain int. Returns None for None/empty input."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"{field} must be a whole number")
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a number")

    s = _CURRENCY_PREFIX.sub("", value.strip()).replace(" ", "")
    if not s:
        return None
    negative = s.startswith("-")
    if negative:
        s = s[1:]
    if _PLAIN.match(s):
        n = int(s)
    elif _GROUPED.match(s):
        n = int(re.sub(r"[.,]", "", s))
    else:
        m = _ZERO_DECIMALS.match(s)
        if not m:
            raise ValueError(f"{field} must be a number, got {value!r}")
        n = int(m.group(1))
    return -n if negative else n


def is_bulk_phrase(text: Optional[str]) -> bool:
    """True when a name-like field actually says "all products" or similar."""
    if not isinstance(text, str) or not text.strip():
        return False
    t = " ".join(text.lower().split())
    return any(p.search(t) for p in _BULK_PATTERNS)


def is_delete_all_confirmation(text: Optional[str]) -> bool:
    if not isinstance(text, str):
        return False
    return " ".join(text.split()).upper() == CONFIRM_DELETE_ALL_PHRASE
