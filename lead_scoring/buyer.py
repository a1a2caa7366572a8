"""
Buyer snapshot for lead scoring.

A buyer arrives from an intake form, a bulk import or an update trigger with
any subset of fields filled in. ``Buyer.from_dict`` folds the different field
names those producers use onto one canonical record.
"""

import logging
import math
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

Timestamp = Union[str, datetime]


class ConnectionStatus(Enum):
    """UK broker / solicitor connection state."""
    YES = "yes"
    INTRODUCED = "introduced"
    NO = "no"
    ABSENT = "absent"

    @property
    def is_connected(self) -> bool:
        return self in (ConnectionStatus.YES, ConnectionStatus.INTRODUCED)

    @classmethod
    def parse(cls, value: Any) -> "ConnectionStatus":
        if isinstance(value, ConnectionStatus):
            return value
        if value is True:
            return cls.YES
        if value is None:
            return cls.ABSENT
        if value is False:
            return cls.NO
        text = str(value).strip().lower()
        if not text:
            return cls.ABSENT
        if text in ("yes", "true", "y", "connected", "appointed"):
            return cls.YES
        if text == "introduced":
            return cls.INTRODUCED
        return cls.NO


# canonical field -> accepted input keys, first non-empty wins
FIELD_ALIASES: Dict[str, tuple] = {
    "budget": ("budget",),
    "budget_range": ("budget_range",),
    "bedrooms": ("bedrooms", "preferred_bedrooms"),
    "location": ("location", "area", "preferred_location"),
    "timeline": ("timeline", "timeline_to_purchase"),
    "purpose": ("purpose", "purchase_purpose"),
    "ready_in_28_days": ("ready_in_28_days", "ready_within_28_days", "buying_within_28_days"),
}

_TRUE_STRINGS = {"true", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "no", "n", "0"}


@dataclass(frozen=True)
class Buyer:
    """Immutable buyer/lead snapshot. Every field is optional."""

    # Identity
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    # Contact
    email: Optional[str] = None
    phone: Optional[str] = None

    # Geography
    country: Optional[str] = None
    location: Optional[str] = None

    # Financial
    budget: Optional[str] = None
    budget_range: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    payment_method: Optional[str] = None
    mortgage_status: Optional[str] = None
    proof_of_funds: bool = False

    # Requirements / intent
    bedrooms: Optional[int] = None
    timeline: Optional[str] = None
    ready_in_28_days: Optional[bool] = None
    purpose: Optional[str] = None
    source: Optional[str] = None
    source_platform: Optional[str] = None
    status: Optional[str] = None
    last_contact: Optional[Timestamp] = None
    notes: Optional[str] = None

    # Verification
    uk_broker: ConnectionStatus = ConnectionStatus.ABSENT
    uk_solicitor: ConnectionStatus = ConnectionStatus.ABSENT
    connect_to_broker: Optional[bool] = None

    # Lifecycle
    date_added: Optional[Timestamp] = None
    created_at: Optional[Timestamp] = None

    @property
    def display_name(self) -> str:
        """Full name, or first + last joined, or empty string."""
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts)

    @property
    def budget_text(self) -> str:
        return (self.budget or self.budget_range or "").strip()

    @property
    def has_budget(self) -> bool:
        return bool(self.budget_text) or bool(self.budget_min) or bool(self.budget_max)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Buyer":
        """
        Build a buyer from a raw record.

        Args:
            data: Mapping using canonical names or any known alias

        Returns:
            Normalized Buyer
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"Buyer.from_dict expects a mapping, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for f in fields(cls):
            aliases = FIELD_ALIASES.get(f.name, (f.name,))
            raw = _first_present(data, aliases)
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, raw)

        if not values.get("full_name") and values.get("first_name"):
            joined = f"{values['first_name']} {values.get('last_name') or ''}".strip()
            values["full_name"] = joined

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            out[f.name] = value
        return out


def _first_present(data: Mapping[str, Any], keys: tuple) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _coerce(name: str, raw: Any) -> Any:
    if name in ("uk_broker", "uk_solicitor"):
        return ConnectionStatus.parse(raw)
    if name in ("proof_of_funds",):
        return bool(_to_bool(raw))
    if name in ("ready_in_28_days", "connect_to_broker"):
        return _to_bool(raw)
    if name == "bedrooms":
        if isinstance(raw, str) and raw.strip().lower().startswith("studio"):
            return 0
        number = _to_number(raw)
        return int(number) if number is not None else None
    if name in ("budget_min", "budget_max"):
        return _to_number(raw)
    if name in ("last_contact", "date_added", "created_at"):
        return raw if isinstance(raw, datetime) else str(raw)
    if isinstance(raw, str):
        return raw.strip()
    return str(raw)


def _to_bool(raw: Any) -> Optional[bool]:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    text = str(raw).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return None


def _to_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    try:
        number = float(raw) if isinstance(raw, (int, float)) else float(str(raw).replace(",", "").strip())
    except (ValueError, OverflowError):
        logger.debug(f"Ignoring non-numeric value: {raw!r}")
        return None
    # nan and inf are not usable counts or amounts
    if not math.isfinite(number):
        logger.debug(f"Ignoring non-finite value: {raw!r}")
        return None
    return number
