"""
Risk flag generation.

Flags come from an ordered list of named checks; each profile picks the
checks it runs and the cap. Truncation keeps the first N flags in check
order.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from .signal_extractor import LeadFacts
from .spam_detector import SpamCheckResult

logger = logging.getLogger(__name__)

STALE_LEAD_DAYS = 60
LOW_CONFIDENCE_THRESHOLD = 4.0


@dataclass(frozen=True)
class RiskContext:
    """Everything a risk check may look at."""
    facts: LeadFacts
    spam_check: SpamCheckResult
    confidence: float  # on the 0-10 scale
    disqualification_reason: Optional[str] = None


RiskCheck = Callable[[RiskContext], List[str]]


def _cash_without_proof(ctx: RiskContext) -> List[str]:
    if ctx.facts.is_cash and not ctx.facts.proof_of_funds:
        return ["No proof of funds received"]
    return []


def _mortgage_unconfirmed(ctx: RiskContext) -> List[str]:
    if ctx.facts.is_mortgage and not ctx.facts.mortgage_approved:
        return ["Mortgage not yet approved"]
    return []


def _mortgage_unapproved_without_funds(ctx: RiskContext) -> List[str]:
    facts = ctx.facts
    if facts.is_mortgage and not facts.proof_of_funds and not facts.mortgage_approved:
        return ["Mortgage not yet approved"]
    return []


def _international(ctx: RiskContext) -> List[str]:
    if ctx.facts.is_international:
        return ["International buyer - may need extended timeline"]
    return []


def _no_contact(ctx: RiskContext) -> List[str]:
    if not ctx.facts.has_contact:
        return ["No contact details"]
    return []


def _timeline_missing(ctx: RiskContext) -> List[str]:
    if not ctx.facts.has_timeline:
        return ["Timeline not specified"]
    return []


def _timeline_and_readiness_missing(ctx: RiskContext) -> List[str]:
    if ctx.facts.ready_in_28_days:
        return []
    return _timeline_missing(ctx)


def _stale_uncontacted(ctx: RiskContext) -> List[str]:
    age = ctx.facts.lead_age_days
    if age is not None and age > STALE_LEAD_DAYS and not ctx.facts.has_last_contact:
        return [f"Lead is {age} days old"]
    return []


def _stale(ctx: RiskContext) -> List[str]:
    age = ctx.facts.lead_age_days
    if age is not None and age > STALE_LEAD_DAYS:
        return [f"Lead is {age} days old"]
    return []


def _low_confidence(ctx: RiskContext) -> List[str]:
    if ctx.confidence < LOW_CONFIDENCE_THRESHOLD:
        return ["Low data confidence"]
    return []


def _spam_flags(ctx: RiskContext) -> List[str]:
    return list(ctx.spam_check.flags[:2])


def _disqualification_reason(ctx: RiskContext) -> List[str]:
    if ctx.disqualification_reason:
        return [ctx.disqualification_reason]
    return []


def _mortgage_without_broker(ctx: RiskContext) -> List[str]:
    if ctx.facts.is_mortgage and not ctx.facts.broker.is_connected:
        return ["Mortgage buyer without broker"]
    return []


RISK_CHECKS: Dict[str, RiskCheck] = {
    "cash_without_proof": _cash_without_proof,
    "mortgage_unconfirmed": _mortgage_unconfirmed,
    "mortgage_unapproved_without_funds": _mortgage_unapproved_without_funds,
    "international": _international,
    "no_contact": _no_contact,
    "timeline_missing": _timeline_missing,
    "timeline_and_readiness_missing": _timeline_and_readiness_missing,
    "stale_uncontacted": _stale_uncontacted,
    "stale": _stale,
    "low_confidence": _low_confidence,
    "spam_flags": _spam_flags,
    "disqualification_reason": _disqualification_reason,
    "mortgage_without_broker": _mortgage_without_broker,
}


def generate_risk_flags(check_names: Sequence[str], cap: int, ctx: RiskContext) -> List[str]:
    """
    Run the named checks in order and truncate to ``cap``.

    Args:
        check_names: Keys into RISK_CHECKS
        cap: Maximum number of flags
        ctx: Risk context

    Returns:
        Ordered list of flags
    """
    flags: List[str] = []
    for name in check_names:
        flags.extend(RISK_CHECKS[name](ctx))
    return flags[:cap]
