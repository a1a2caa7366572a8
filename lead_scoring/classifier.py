"""
Lead classification and priority assignment.

Classification runs as an ordered decision procedure:

1. Spam -> the profile's spam label (terminal)
2. Auto-disqualification rule, when the profile has one (terminal)
3. Status rules, e.g. "fake" -> Disqualified, "not proceeding" -> Cold (terminal)
4. Threshold table, evaluated top-down, first match wins
5. Budget-tier floor: the final label is the higher-ranked of the
   threshold result and the tier floor. Never applied to terminal outcomes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Sequence, Tuple

from .signal_extractor import LeadFacts, StatusFlag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Threshold:
    """
    One classification row. Every bound that is set must hold.

    ``min_*`` bounds are inclusive, ``*_below`` bounds are exclusive.
    ``signal`` names a boolean attribute of LeadFacts that must be true.
    """
    label: str
    min_combined: Optional[float] = None
    min_quality: Optional[float] = None
    min_intent: Optional[float] = None
    min_confidence: Optional[float] = None
    quality_below: Optional[float] = None
    intent_below: Optional[float] = None
    confidence_below: Optional[float] = None
    signal: Optional[str] = None

    def matches(
        self,
        quality: float,
        intent: float,
        confidence: float,
        combined: float,
        facts: LeadFacts,
    ) -> bool:
        checks = (
            (self.min_combined, lambda b: combined >= b),
            (self.min_quality, lambda b: quality >= b),
            (self.min_intent, lambda b: intent >= b),
            (self.min_confidence, lambda b: confidence >= b),
            (self.quality_below, lambda b: quality < b),
            (self.intent_below, lambda b: intent < b),
            (self.confidence_below, lambda b: confidence < b),
        )
        for bound, test in checks:
            if bound is not None and not test(bound):
                return False
        if self.signal is not None and not getattr(facts, self.signal, False):
            return False
        return True


@dataclass(frozen=True)
class StatusRule:
    """Terminal classification when the status carries any of ``flags``."""
    flags: FrozenSet[StatusFlag]
    label: str
    reason: str


@dataclass(frozen=True)
class BudgetTier:
    """Minimum classification and quality boost for a parsed budget."""
    min_budget: float
    floor: str
    quality_boost: int
    label: str


@dataclass(frozen=True)
class AutoDisqualifyRule:
    """Budget at or above ``min_budget`` with at most ``max_bedrooms`` bedrooms."""
    min_budget: float
    max_bedrooms: int
    reason: str

    def applies(self, facts: LeadFacts) -> bool:
        return (
            facts.budget >= self.min_budget
            and facts.bedrooms is not None
            and facts.bedrooms <= self.max_bedrooms
        )


@dataclass(frozen=True)
class Priority:
    """Response-time tier."""
    code: str
    level: int
    response_time: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priority": self.code,
            "level": self.level,
            "response_time": self.response_time,
            "description": self.description,
        }


@dataclass(frozen=True)
class Classification:
    """Classifier output."""
    label: str
    reason: str
    terminal: bool = False


def budget_tier_for(tiers: Sequence[BudgetTier], budget: float) -> Optional[BudgetTier]:
    """Highest tier whose minimum is met, or None."""
    for tier in sorted(tiers, key=lambda t: t.min_budget, reverse=True):
        if budget >= tier.min_budget:
            return tier
    return None


class LeadClassifier:
    """Applies a profile's classification procedure."""

    def __init__(self, profile):
        self.profile = profile

    def classify(
        self,
        quality: float,
        intent: float,
        confidence: float,
        facts: LeadFacts,
        is_spam: bool,
        is_disqualified: bool = False,
    ) -> Classification:
        """
        Classify a scored lead.

        Args:
            quality: Quality total
            intent: Intent total
            confidence: Confidence total on the profile's scale
            facts: Extracted lead facts
            is_spam: Spam check outcome
            is_disqualified: Auto-disqualification outcome

        Returns:
            Classification
        """
        profile = self.profile

        if is_spam:
            return Classification(profile.spam_label, "Spam check failed", terminal=True)

        if is_disqualified:
            reason = profile.auto_disqualify.reason if profile.auto_disqualify else "Auto-disqualified"
            return Classification(profile.disqualified_label, reason, terminal=True)

        for rule in profile.status_rules:
            if facts.has_flag(*rule.flags):
                logger.debug(f"Status rule matched for '{facts.status_text}': {rule.label}")
                return Classification(rule.label, rule.reason, terminal=True)

        combined = profile.combined_score(quality, intent)
        label = profile.default_label
        reason = "Default classification"
        for index, threshold in enumerate(profile.thresholds):
            if threshold.matches(quality, intent, confidence, combined, facts):
                label = threshold.label
                reason = f"Threshold row {index + 1} matched"
                break

        tier = budget_tier_for(profile.budget_tiers, facts.budget)
        if tier and profile.rank(tier.floor) > profile.rank(label):
            logger.debug(f"Budget floor raised {label} to {tier.floor} ({tier.label})")
            return Classification(tier.floor, f"Budget floor: {tier.label}")

        return Classification(label, reason)


def assign_priority(profile, label: str, facts: LeadFacts, terminal: bool = False) -> Priority:
    """
    Look up the response tier for a classification.

    Signal overrides (e.g. 28-day readiness) apply to non-terminal outcomes only.
    """
    if not terminal:
        for signal, priority in profile.signal_priorities:
            if getattr(facts, signal, False):
                return priority
    return profile.priorities.get(label, profile.default_priority)


def status_rule(flags: Tuple[StatusFlag, ...], label: str, reason: str) -> StatusRule:
    return StatusRule(frozenset(flags), label, reason)
