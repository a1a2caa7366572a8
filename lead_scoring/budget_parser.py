"""
Budget parsing for free-text monetary strings.

Handles the shapes buyers actually type: "£1.5M", "500k", "£500,000",
"£500k-£750k", "1m to 2m", "2m+". Ranges resolve to their upper bound.
"""

import logging
import math
import re

from .buyer import Buyer

logger = logging.getLogger(__name__)

_STRIP_PATTERN = re.compile(r"[£$€,\s]")
_RANGE_PATTERN = re.compile(r"[-–—]|to")
_AMOUNT_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(k|m)?")

MULTIPLIERS = {
    "k": 1_000,
    "m": 1_000_000,
}


def parse_budget(text) -> float:
    """
    Parse a free-text budget into a number of currency units.

    Args:
        text: Budget text, may be empty or None

    Returns:
        Parsed amount, 0.0 when nothing usable is found
    """
    if text is None:
        return 0.0
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return float(text) if math.isfinite(text) and text > 0 else 0.0

    cleaned = _STRIP_PATTERN.sub("", str(text)).lower()
    if not cleaned:
        return 0.0

    parts = [p for p in _RANGE_PATTERN.split(cleaned) if p]
    if len(parts) >= 2:
        upper = _parse_amount(parts[-1])
        if upper:
            return upper
        return _parse_amount(parts[0])

    return _parse_amount(cleaned)


def _parse_amount(fragment: str) -> float:
    match = _AMOUNT_PATTERN.match(fragment)
    if not match:
        return 0.0
    try:
        value = float(match.group(1))
    except ValueError:
        logger.debug(f"Unparseable budget fragment: {fragment!r}")
        return 0.0
    suffix = match.group(2)
    if suffix:
        value *= MULTIPLIERS[suffix]
    return value


def resolve_budget(buyer: Buyer) -> float:
    """Best budget figure for a buyer: text fields first, then numeric bounds."""
    parsed = parse_budget(buyer.budget) or parse_budget(buyer.budget_range)
    if parsed:
        return parsed
    for bound in (buyer.budget_max, buyer.budget_min):
        if bound and math.isfinite(bound) and bound > 0:
            return float(bound)
    return 0.0
