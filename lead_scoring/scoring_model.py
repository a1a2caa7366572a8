"""
Lead Scoring Model.

Deterministic, rule-based scoring of a buyer snapshot:

- Quality (0-100): can they complete? Profile, finance, verification, fit,
  plus the budget-tier boost and the new-lead bonus.
- Intent (0-100): how urgent? Timeline, purpose, engagement, commitment,
  negative modifiers and the new-lead baseline. Clamped after summing.
- Confidence: how much of the record is populated and corroborated,
  on the profile's scale (0-10 legacy, 0-100 alternate).

The pipeline is the same for every RuleProfile. Nothing is cached between
calls; the same buyer, profile and ``as_of`` always give the same result.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from .buyer import Buyer
from .classifier import LeadClassifier, Priority, assign_priority, budget_tier_for
from .profiles import RuleProfile, get_profile
from .risk_flags import RiskContext, generate_risk_flags
from .rules import ScoreBreakdown, evaluate_categories, format_detail
from .signal_extractor import LeadFacts, extract_facts
from .spam_detector import SpamCheckResult, SpamDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentScore:
    """A sub-score total with its per-category breakdown."""
    total: float
    breakdown: List[ScoreBreakdown] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "breakdown": [b.to_dict() for b in self.breakdown],
        }

    def category(self, name: str) -> Optional[ScoreBreakdown]:
        for item in self.breakdown:
            if item.category == name:
                return item
        return None


@dataclass(frozen=True)
class QualityScore(ComponentScore):
    is_disqualified: bool = False
    disqualification_reason: Optional[str] = None


@dataclass(frozen=True)
class LeadScoreResult:
    """Complete scoring outcome for one buyer under one profile."""
    profile: str
    spam_check: SpamCheckResult
    quality: QualityScore
    intent: ComponentScore
    confidence: ComponentScore
    classification: str
    priority: Priority
    risk_flags: List[str] = field(default_factory=list)
    combined_score: float = 0.0
    ready_in_28_days: bool = False
    low_urgency: bool = False
    classification_reason: str = ""

    @property
    def is_spam(self) -> bool:
        return self.spam_check.is_spam

    @property
    def is_disqualified(self) -> bool:
        return self.quality.is_disqualified

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile": self.profile,
            "spam_check": self.spam_check.to_dict(),
            "quality_score": self.quality.to_dict(),
            "intent_score": self.intent.to_dict(),
            "confidence_score": self.confidence.to_dict(),
            "classification": self.classification,
            "classification_reason": self.classification_reason,
            "priority": self.priority.to_dict(),
            "risk_flags": list(self.risk_flags),
            "combined_score": self.combined_score,
            "is_disqualified": self.quality.is_disqualified,
            "disqualification_reason": self.quality.disqualification_reason,
            "ready_in_28_days": self.ready_in_28_days,
        }

    def to_update_patch(self, scored_at: Optional[datetime] = None) -> Dict[str, Any]:
        """Columns a caller persists on the buyer record."""
        stamp = scored_at or datetime.now(timezone.utc)
        return {
            "ai_quality_score": self.quality.total,
            "ai_intent_score": self.intent.total,
            "ai_confidence": self.confidence.total,
            "ai_classification": self.classification,
            "ai_priority": self.priority.code,
            "ai_risk_flags": list(self.risk_flags),
            "ai_scored_at": stamp.isoformat(),
        }


def clamp_score(value: float, low: float = 0, high: float = 100) -> int:
    """Clamp to [low, high] and round half up to an integer."""
    bounded = max(low, min(high, value))
    return int(Decimal(str(bounded)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class QualityScorer:
    """Quality: capped categories, budget-tier boost, new-lead bonus."""

    def __init__(self, profile: RuleProfile):
        self.profile = profile

    def score(self, facts: LeadFacts) -> QualityScore:
        profile = self.profile

        rule = profile.auto_disqualify
        if rule is not None and rule.applies(facts):
            logger.debug(f"Auto-disqualified: budget={facts.budget}, bedrooms={facts.bedrooms}")
            return QualityScore(
                total=0,
                breakdown=[ScoreBreakdown("Auto-Disqualification", 0, 0, [rule.reason])],
                is_disqualified=True,
                disqualification_reason=rule.reason,
            )

        breakdown = evaluate_categories(profile.quality_categories, facts)

        tier = budget_tier_for(profile.budget_tiers, facts.budget)
        if tier and tier.quality_boost:
            breakdown.append(ScoreBreakdown(
                "Budget Tier", tier.quality_boost, tier.quality_boost,
                [format_detail(tier.quality_boost, f"Budget tier {tier.label}")],
            ))

        if profile.new_lead_quality_bonus and facts.is_new_lead:
            completeness = next(
                (b.score for b in breakdown if b.category == profile.completeness_category), 0
            )
            if completeness >= profile.new_lead_min_completeness:
                bonus = profile.new_lead_quality_bonus
                breakdown.append(ScoreBreakdown(
                    "New Lead Bonus", bonus, bonus,
                    [format_detail(bonus, "New lead with complete profile")],
                ))

        total = clamp_score(sum(b.score for b in breakdown))
        return QualityScore(total=total, breakdown=breakdown)


class IntentScorer:
    """Intent: categories incl. uncapped deductions, new-lead baseline, clamp."""

    def __init__(self, profile: RuleProfile):
        self.profile = profile

    def score(self, facts: LeadFacts) -> ComponentScore:
        profile = self.profile
        breakdown = evaluate_categories(profile.intent_categories, facts)

        baseline = profile.new_lead_intent_baseline
        if baseline and facts.is_new_lead and facts.has_email and facts.has_phone and facts.has_budget:
            breakdown.append(ScoreBreakdown(
                "New Lead Baseline", baseline, baseline,
                [format_detail(baseline, "New lead with contact details and budget")],
            ))

        raw = sum(b.score for b in breakdown)
        return ComponentScore(total=clamp_score(raw), breakdown=breakdown)


class ConfidenceScorer:
    """Confidence: weighted composite of per-category completion ratios."""

    def __init__(self, profile: RuleProfile):
        self.profile = profile

    def score(self, facts: LeadFacts) -> ComponentScore:
        breakdown = evaluate_categories(self.profile.confidence_categories, facts)
        weighted = 0.0
        for category, result in zip(self.profile.confidence_categories, breakdown):
            if category.cap:
                weighted += result.score / category.cap * category.weight
        total = min(self.profile.confidence_scale, max(0.0, round_one_decimal(weighted)))
        return ComponentScore(total=total, breakdown=breakdown)


class LeadScorer:
    """
    Scores buyers under one rule profile.

    Pipeline:
    1. Extract typed facts from the buyer
    2. Spam check
    3. Quality, intent, confidence
    4. Classification (terminal rules, thresholds, budget floor)
    5. Priority and risk flags
    """

    def __init__(self, profile=None):
        """
        Initialize the scorer.

        Args:
            profile: RuleProfile or profile name, defaults to legacy
        """
        self.profile = get_profile(profile)
        self.spam_detector = SpamDetector(self.profile.spam_rules)
        self.quality_scorer = QualityScorer(self.profile)
        self.intent_scorer = IntentScorer(self.profile)
        self.confidence_scorer = ConfidenceScorer(self.profile)
        self.classifier = LeadClassifier(self.profile)

    def score(self, buyer: Buyer, as_of: Optional[datetime] = None) -> LeadScoreResult:
        """
        Score a buyer.

        Args:
            buyer: Buyer snapshot (never mutated)
            as_of: Reference time for lead-age rules, defaults to now

        Returns:
            LeadScoreResult
        """
        profile = self.profile
        facts = extract_facts(buyer, as_of)

        spam_check = self.spam_detector.check(facts)
        quality = self.quality_scorer.score(facts)
        intent = self.intent_scorer.score(facts)
        confidence = self.confidence_scorer.score(facts)

        decision = self.classifier.classify(
            quality=quality.total,
            intent=intent.total,
            confidence=confidence.total,
            facts=facts,
            is_spam=spam_check.is_spam,
            is_disqualified=quality.is_disqualified,
        )
        priority = assign_priority(profile, decision.label, facts, terminal=decision.terminal)

        risk_context = RiskContext(
            facts=facts,
            spam_check=spam_check,
            confidence=confidence.total * 10 / profile.confidence_scale,
            disqualification_reason=quality.disqualification_reason,
        )
        risk_flags = generate_risk_flags(profile.risk_checks, profile.risk_flag_cap, risk_context)

        logger.debug(
            f"Scored lead '{facts.name or 'unknown'}' [{profile.name}]: "
            f"Q={quality.total} I={intent.total} C={confidence.total} -> {decision.label}"
        )

        return LeadScoreResult(
            profile=profile.name,
            spam_check=spam_check,
            quality=quality,
            intent=intent,
            confidence=confidence,
            classification=decision.label,
            priority=priority,
            risk_flags=risk_flags,
            combined_score=round_one_decimal(profile.combined_score(quality.total, intent.total)),
            ready_in_28_days=facts.ready_in_28_days,
            low_urgency=facts.low_urgency,
            classification_reason=decision.reason,
        )


def score(buyer: Buyer, profile=None, as_of: Optional[datetime] = None) -> LeadScoreResult:
    """
    Score a buyer under a rule profile.

    Args:
        buyer: Buyer snapshot
        profile: RuleProfile or name ("legacy" / "alternate"), defaults to legacy
        as_of: Reference time for lead-age rules

    Returns:
        LeadScoreResult
    """
    return LeadScorer(profile).score(buyer, as_of)
