"""
Conversion between result shapes.

Consumers written against the legacy contract (Hot ... Spam labels, P1-P4,
0-10 confidence) can read alternate-profile results through
``convert_to_legacy``.
"""

import logging
from dataclasses import replace

from .classifier import Priority
from .profiles import LEGACY_PROFILE, get_profile
from .scoring_model import ComponentScore, LeadScoreResult, clamp_score, round_one_decimal

logger = logging.getLogger(__name__)

# alternate priority level -> legacy priority code
LEVEL_TO_LEGACY_CODE = {1: "P1", 2: "P2", 3: "P3", 4: "P4", 5: "P4"}


def _legacy_priority(level: int) -> Priority:
    code = LEVEL_TO_LEGACY_CODE.get(level, "P4")
    for priority in LEGACY_PROFILE.priorities.values():
        if priority.code == code:
            return priority
    return LEGACY_PROFILE.default_priority


def confidence_out_of_ten(result: LeadScoreResult) -> float:
    """Confidence on the legacy 0-10 scale, rounded half-up to one decimal."""
    profile = get_profile(result.profile)
    scale = profile.confidence_scale / LEGACY_PROFILE.confidence_scale
    return round_one_decimal(result.confidence.total / scale)


def convert_to_legacy(result: LeadScoreResult) -> LeadScoreResult:
    """
    Map a result onto the legacy contract.

    Args:
        result: Result from any profile

    Returns:
        Result with legacy label, priority and 0-10 confidence
    """
    profile = get_profile(result.profile)
    if profile.name == LEGACY_PROFILE.name:
        return result

    confidence = ComponentScore(
        total=confidence_out_of_ten(result),
        breakdown=result.confidence.breakdown,
    )

    return replace(
        result,
        profile=LEGACY_PROFILE.name,
        classification=profile.to_legacy_label(result.classification),
        priority=_legacy_priority(result.priority.level),
        confidence=confidence,
    )


def nb_score(result: LeadScoreResult) -> int:
    """
    Single 0-100 ranking number.

    50% quality, 30% intent, 20% confidence (as a percentage).
    """
    profile = get_profile(result.profile)
    confidence_pct = result.confidence.total / profile.confidence_scale * 100
    blended = result.quality.total * 0.5 + result.intent.total * 0.3 + confidence_pct * 0.2
    return clamp_score(blended)
