"""
Rule profiles.

A RuleProfile is a complete scoring behaviour expressed as data: rule
tables, thresholds, label set, budget tiers, priorities and risk checks.
The scoring pipeline is the same for every profile.

Two profiles ship:

- ``legacy``: eight-label classification (Spam ... Hot) with budget-tier
  floors and a 0-10 confidence score.
- ``alternate``: six-label classification (Disqualified ... Hot Lead) with
  28-day readiness as a hard Hot Lead rule, auto-disqualification and a
  0-100 confidence score.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from .classifier import (
    AutoDisqualifyRule,
    BudgetTier,
    Priority,
    StatusRule,
    Threshold,
    status_rule,
)
from .rules import Category, Rule
from .signal_extractor import (
    MortgageStatus,
    PipelineStage,
    PurchasePurpose,
    SourceChannel,
    StatusFlag,
    TimelineBucket,
)
from .spam_detector import SpamRules

logger = logging.getLogger(__name__)


class UnknownProfileError(KeyError):
    """Raised when a profile name is not registered."""


@dataclass(frozen=True)
class RuleProfile:
    """Named configuration of the scoring pipeline."""
    name: str
    labels: Tuple[str, ...]  # lowest rank first
    spam_label: str
    disqualified_label: str
    default_label: str
    spam_rules: SpamRules
    quality_categories: Sequence[Category]
    intent_categories: Sequence[Category]
    confidence_categories: Sequence[Category]
    thresholds: Sequence[Threshold]
    priorities: Dict[str, Priority]
    default_priority: Priority
    risk_checks: Tuple[str, ...]
    risk_flag_cap: int
    confidence_scale: float = 10.0
    combined_weights: Tuple[float, float] = (0.5, 0.5)
    budget_tiers: Sequence[BudgetTier] = ()
    status_rules: Sequence[StatusRule] = ()
    auto_disqualify: Optional[AutoDisqualifyRule] = None
    signal_priorities: Tuple[Tuple[str, Priority], ...] = ()
    new_lead_quality_bonus: int = 0
    new_lead_min_completeness: int = 15
    completeness_category: str = "Profile Completeness"
    new_lead_intent_baseline: int = 0
    legacy_labels: Dict[str, str] = field(default_factory=dict)

    def rank(self, label: str) -> int:
        try:
            return self.labels.index(label)
        except ValueError:
            return -1

    def combined_score(self, quality: float, intent: float) -> float:
        quality_weight, intent_weight = self.combined_weights
        return quality_weight * quality + intent_weight * intent

    def to_legacy_label(self, label: str) -> str:
        return self.legacy_labels.get(label, label)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "labels": list(reversed(self.labels)),
            "risk_flag_cap": self.risk_flag_cap,
            "confidence_scale": self.confidence_scale,
            "budget_tiers": [
                {"min_budget": t.min_budget, "floor": t.floor, "quality_boost": t.quality_boost}
                for t in self.budget_tiers
            ],
        }


# ── Shared spam patterns ─────────────────────────────

PLACEHOLDER_NAMES = (
    r"^test", r"^fake", r"^asdf", r"^qwerty", r"^xxx", r"^aaa+$",
    r"^([a-z])\1{2,}$", r"^\d+$", r"^123", r"^n/a$", r"^none$", r"^null$",
)

PLACEHOLDER_EMAILS = (
    r"test@", r"fake@", r"example\.(com|org|net)", r"mailinator", r"tempmail",
    r"guerrillamail", r"@yopmail", r"10minutemail",
)

PLACEHOLDER_PHONES = (
    r"^0{7,}", r"^1{7,}", r"123456789", r"^(\d)\1{6,}",
)

COMMITTED_STAGES = (PipelineStage.RESERVED, PipelineStage.EXCHANGED, PipelineStage.COMPLETED)
ACTIVE_STAGES = (PipelineStage.VIEWING_BOOKED, PipelineStage.NEGOTIATING)


# ── Legacy profile ───────────────────────────────────

LEGACY_QUALITY = (
    Category("Profile Completeness", cap=25, rules=(
        Rule("Name provided", 5, lambda f: f.has_name),
        Rule("Email provided", 5, lambda f: f.has_email),
        Rule("Phone provided", 5, lambda f: f.has_phone),
        Rule("Location specified", 5, lambda f: f.has_location),
        Rule("Country specified", 3, lambda f: bool(f.country)),
        Rule("Bedroom preference specified", 2, lambda f: f.has_bedrooms),
    )),
    Category("Financial Qualification", cap=35, rules=(
        Rule("Cash buyer", 20, lambda f: f.is_cash, group="payment"),
        Rule("Mortgage buyer", 10, lambda f: f.is_mortgage, group="payment"),
        Rule("Mortgage approved/AIP", 10,
             lambda f: f.is_mortgage and f.mortgage == MortgageStatus.APPROVED, group="mortgage"),
        Rule("Mortgage in progress", 5,
             lambda f: f.is_mortgage and f.mortgage == MortgageStatus.IN_PROGRESS, group="mortgage"),
        Rule("Proof of funds received", 10, lambda f: f.proof_of_funds),
        Rule("Budget specified", 5, lambda f: f.has_budget),
    )),
    Category("Verification Status", cap=20, rules=(
        Rule("UK broker connected", 6, lambda f: f.broker.is_connected),
        Rule("UK solicitor appointed", 6, lambda f: f.solicitor.is_connected),
        Rule("Valid email format", 4, lambda f: f.email_valid),
        Rule("Valid phone number", 4, lambda f: len(f.phone_digits) >= 10),
    )),
    Category("Inventory Fit", cap=20, rules=(
        Rule("Location preference specified", 8, lambda f: f.has_location),
        Rule("Bedroom preference specified", 6, lambda f: f.has_bedrooms),
        Rule("Budget range specified", 6, lambda f: f.has_budget),
    )),
)

LEGACY_INTENT = (
    Category("Timeline", cap=30, rules=(
        Rule("Immediate timeline", 30,
             lambda f: f.timeline == TimelineBucket.IMMEDIATE, group="timeline"),
        Rule("Short-term timeline (1-3 months)", 20,
             lambda f: f.timeline == TimelineBucket.SHORT, group="timeline"),
        Rule("Medium-term timeline (3-6 months)", 12,
             lambda f: f.timeline == TimelineBucket.MEDIUM, group="timeline"),
        Rule("Long-term timeline (6-12 months)", 6,
             lambda f: f.timeline == TimelineBucket.LONG, group="timeline"),
        Rule("Timeline specified", 5, lambda f: f.has_timeline, group="timeline"),
    )),
    Category("Purpose", cap=25, rules=(
        Rule("Cash buyer (high intent)", 15, lambda f: f.is_cash, group="payment"),
        Rule("Mortgage buyer (committed to process)", 10, lambda f: f.is_mortgage, group="payment"),
        Rule("Specific property criteria", 10, lambda f: f.has_bedrooms and f.has_location),
    )),
    Category("Engagement", cap=25, rules=(
        Rule("Committed (reserved/exchanged/completed)", 25,
             lambda f: f.stage in COMMITTED_STAGES, group="stage"),
        Rule("Active engagement (viewing/negotiating)", 20,
             lambda f: f.stage in ACTIVE_STAGES, group="stage"),
        Rule("In follow-up stage", 12, lambda f: f.stage == PipelineStage.FOLLOW_UP, group="stage"),
        Rule("Awaiting contact", 8, lambda f: f.is_new_lead, group="stage"),
        Rule("High-intent source", 5, lambda f: f.high_intent_source),
    )),
    Category("Commitment", cap=20, rules=(
        Rule("Proof of funds provided", 8, lambda f: f.proof_of_funds),
        Rule("Mortgage approved/AIP", 7, lambda f: f.mortgage_approved),
        Rule("Solicitor appointed", 5, lambda f: f.solicitor.is_connected),
    )),
    Category("Negative Modifiers", cap=None, rules=(
        Rule("Not proceeding", -50, lambda f: f.has_flag(StatusFlag.NOT_PROCEEDING)),
        Rule("Fake/Unverifiable", -75,
             lambda f: f.has_flag(StatusFlag.FAKE, StatusFlag.UNVERIFIABLE, StatusFlag.DISQUALIFIED)),
        Rule("Duplicate lead", -25, lambda f: f.has_flag(StatusFlag.DUPLICATE)),
        Rule("Stale lead (90+ days, no contact)", -15,
             lambda f: f.lead_age_days is not None and f.lead_age_days > 90 and not f.has_last_contact),
    )),
)

LEGACY_CONFIDENCE = (
    Category("Data Completeness", cap=10, weight=4, rules=(
        Rule("Name provided", 1, lambda f: f.has_name),
        Rule("Email provided", 1, lambda f: f.has_email),
        Rule("Phone provided", 1, lambda f: f.has_phone),
        Rule("Country provided", 1, lambda f: bool(f.country)),
        Rule("Budget provided", 1, lambda f: f.has_budget),
        Rule("Timeline provided", 1, lambda f: f.has_timeline),
        Rule("Payment Method provided", 1, lambda f: bool(f.payment_text)),
        Rule("Location provided", 1, lambda f: f.has_location),
        Rule("Bedrooms provided", 1, lambda f: f.has_bedrooms),
        Rule("Source provided", 1, lambda f: bool(f.source_text)),
    )),
    Category("Verification Level", cap=10, weight=3, rules=(
        Rule("Proof of funds verified", 4, lambda f: f.proof_of_funds),
        Rule("UK broker connected", 3, lambda f: f.broker.is_connected),
        Rule("UK solicitor appointed", 3, lambda f: f.solicitor.is_connected),
    )),
    Category("Engagement Data", cap=10, weight=2, rules=(
        Rule("Advanced in pipeline", 4, lambda f: f.is_advanced_stage),
        Rule("Recent contact logged", 3, lambda f: f.has_last_contact),
        Rule("Detailed notes available", 3, lambda f: f.notes_length > 50),
    )),
    Category("Transcript Quality", cap=10, weight=1, rules=(
        Rule("Comprehensive notes/transcript", 10, lambda f: f.notes_length > 500, group="notes"),
        Rule("Detailed notes", 7, lambda f: f.notes_length > 200, group="notes"),
        Rule("Basic notes", 4, lambda f: f.notes_length > 50, group="notes"),
        Rule("Minimal notes", 2, lambda f: f.notes_length > 0, group="notes"),
    )),
)

LEGACY_BUDGET_TIERS = (
    BudgetTier(2_000_000, "Warm-Qualified", 35, "£2M+"),
    BudgetTier(1_000_000, "Warm-Engaged", 30, "£1M+"),
    BudgetTier(750_000, "Nurture-Premium", 25, "£750k+"),
    BudgetTier(500_000, "Nurture-Premium", 20, "£500k+"),
    BudgetTier(400_000, "Nurture-Standard", 15, "£400k+"),
    BudgetTier(250_000, "Nurture-Standard", 10, "£250k+"),
)

LEGACY_THRESHOLDS = (
    Threshold("Hot", min_combined=70),
    Threshold("Hot", min_quality=70, min_intent=70),
    Threshold("Warm-Qualified", min_combined=60),
    Threshold("Warm-Qualified", min_quality=70, min_intent=45),
    Threshold("Warm-Engaged", min_combined=55),
    Threshold("Warm-Engaged", min_quality=45, min_intent=70),
    Threshold("Nurture-Premium", min_combined=45),
    Threshold("Nurture-Premium", min_quality=55, min_intent=45),
    Threshold("Nurture-Standard", min_combined=35),
    Threshold("Nurture-Standard", min_quality=35, min_intent=35),
)

_P1 = Priority("P1", 1, "<1 hour", "High-value, high-intent lead requiring immediate attention")
_P2 = Priority("P2", 2, "<4 hours", "Qualified lead showing strong interest")
_P3 = Priority("P3", 3, "<24 hours", "Lead requiring nurturing and follow-up")
_P4 = Priority("P4", 4, "48+ hours", "Low priority lead for review")

LEGACY_PRIORITIES = {
    "Hot": _P1,
    "Warm-Qualified": _P2,
    "Warm-Engaged": _P2,
    "Nurture-Premium": _P3,
    "Nurture-Standard": _P3,
}

LEGACY_PROFILE = RuleProfile(
    name="legacy",
    labels=(
        "Spam", "Disqualified", "Cold", "Nurture-Standard", "Nurture-Premium",
        "Warm-Engaged", "Warm-Qualified", "Hot",
    ),
    spam_label="Spam",
    disqualified_label="Disqualified",
    default_label="Cold",
    spam_rules=SpamRules(
        name_patterns=PLACEHOLDER_NAMES,
        email_patterns=PLACEHOLDER_EMAILS,
        phone_patterns=PLACEHOLDER_PHONES,
    ),
    quality_categories=LEGACY_QUALITY,
    intent_categories=LEGACY_INTENT,
    confidence_categories=LEGACY_CONFIDENCE,
    thresholds=LEGACY_THRESHOLDS,
    priorities=LEGACY_PRIORITIES,
    default_priority=_P4,
    risk_checks=(
        "cash_without_proof",
        "mortgage_unconfirmed",
        "international",
        "no_contact",
        "timeline_missing",
        "stale_uncontacted",
        "low_confidence",
    ),
    risk_flag_cap=4,
    confidence_scale=10.0,
    budget_tiers=LEGACY_BUDGET_TIERS,
    status_rules=(
        status_rule(
            (StatusFlag.FAKE, StatusFlag.UNVERIFIABLE, StatusFlag.SPAM, StatusFlag.TEST_LEAD),
            "Disqualified",
            "Status marks lead as fake or unverifiable",
        ),
        status_rule((StatusFlag.NOT_PROCEEDING,), "Cold", "Buyer not proceeding"),
    ),
    new_lead_quality_bonus=10,
    new_lead_min_completeness=15,
    new_lead_intent_baseline=15,
)


# ── Alternate profile ────────────────────────────────

ALTERNATE_QUALITY = (
    Category("Payment Method", cap=30, rules=(
        Rule("Cash buyer", 30, lambda f: f.is_cash, group="payment"),
        Rule("Mortgage buyer seeking broker", 15,
             lambda f: f.is_mortgage and f.wants_broker and not f.broker.is_connected,
             group="payment"),
        Rule("Mortgage buyer with broker", 20,
             lambda f: f.is_mortgage and f.broker.is_connected, group="payment"),
        Rule("Mortgage buyer - broker status unknown", 10, lambda f: f.is_mortgage, group="payment"),
    )),
    Category("Purchase Purpose", cap=15, rules=(
        Rule("Primary residence", 15,
             lambda f: f.purpose == PurchasePurpose.PRIMARY_RESIDENCE, group="purpose"),
        Rule("Dependent studying", 15,
             lambda f: f.purpose == PurchasePurpose.DEPENDENT_STUDYING, group="purpose"),
        Rule("Investment", 10, lambda f: f.purpose == PurchasePurpose.INVESTMENT, group="purpose"),
        Rule("Holiday/second home", 5, lambda f: f.purpose == PurchasePurpose.HOLIDAY_HOME, group="purpose"),
    )),
    Category("Contact Completeness", cap=10, rules=(
        Rule("Complete contact information", 10, lambda f: f.has_name and f.has_contact),
    )),
)

ALTERNATE_INTENT = (
    Category("Purchase Timeline", cap=40, rules=(
        Rule("Ready to purchase within 28 days", 40, lambda f: f.ready_in_28_days, group="timeline"),
        Rule("Looking to purchase within 3 months", 25,
             lambda f: f.timeline in (TimelineBucket.IMMEDIATE, TimelineBucket.SHORT), group="timeline"),
        Rule("Longer timeline (6+ months)", 5,
             lambda f: f.timeline in (TimelineBucket.MEDIUM, TimelineBucket.LONG, TimelineBucket.FLEXIBLE),
             group="timeline"),
    )),
    Category("Purchase Purpose", cap=25, rules=(
        Rule("Dependent studying", 25,
             lambda f: f.purpose == PurchasePurpose.DEPENDENT_STUDYING, group="purpose"),
        Rule("Primary residence", 20,
             lambda f: f.purpose == PurchasePurpose.PRIMARY_RESIDENCE, group="purpose"),
        Rule("Investment", 10, lambda f: f.purpose == PurchasePurpose.INVESTMENT, group="purpose"),
        Rule("Holiday/second home", 5, lambda f: f.purpose == PurchasePurpose.HOLIDAY_HOME, group="purpose"),
    )),
    Category("Commitment Signals", cap=10, rules=(
        Rule("Wants broker connection", 10, lambda f: f.wants_broker),
    )),
    Category("Source", cap=10, rules=(
        Rule("Inquiry via form submission", 10, lambda f: f.channel == SourceChannel.FORM, group="channel"),
        Rule("WhatsApp inquiry", 5, lambda f: f.channel == SourceChannel.WHATSAPP, group="channel"),
    )),
)

ALTERNATE_CONFIDENCE = (
    Category("Data Completeness", cap=100, weight=100, rules=(
        Rule("Name provided", 10, lambda f: f.has_name),
        Rule("Email provided", 15, lambda f: f.has_email),
        Rule("Phone provided", 15, lambda f: f.has_phone),
        Rule("Budget specified", 10, lambda f: f.has_budget),
        Rule("Payment method specified", 10, lambda f: bool(f.payment_text)),
        Rule("Proof of funds provided", 5, lambda f: f.proof_of_funds),
        Rule("Timeline specified", 10, lambda f: f.has_timeline or f.ready_in_28_days),
        Rule("Bedroom preference specified", 5, lambda f: f.has_bedrooms),
        Rule("Location preference specified", 5, lambda f: f.has_location),
        Rule("Lead source tracked", 10, lambda f: bool(f.source_text)),
        Rule("Purchase purpose specified", 5, lambda f: f.purpose != PurchasePurpose.NONE),
    )),
)

ALTERNATE_THRESHOLDS = (
    Threshold("Hot Lead", signal="ready_in_28_days"),
    Threshold("Hot Lead", min_quality=70, min_intent=70, min_confidence=60),
    Threshold("Low Priority", quality_below=40),
    Threshold("Low Priority", signal="low_urgency"),
    Threshold("Needs Qualification", confidence_below=50),
    Threshold("Qualified", min_quality=60, min_intent=50, min_confidence=50),
    Threshold("Nurture", min_quality=50, intent_below=50),
)

ALTERNATE_PRIORITIES = {
    "Hot Lead": Priority("P1", 1, "Within 2 hours", "Hot Lead - High Priority"),
    "Qualified": Priority("P2", 2, "Within 4 hours", "Qualified Lead - Same Day"),
    "Needs Qualification": Priority("P3", 3, "Within 24 hours", "Needs Qualification - Prompt Follow-up"),
    "Nurture": Priority("P4", 4, "Within 48 hours", "Nurture Lead - Scheduled Follow-up"),
    "Low Priority": Priority("P5", 5, "Within 1 week", "Low Priority - When Available"),
    "Disqualified": Priority("P5", 5, "N/A", "Disqualified - No Action Required"),
}

ALTERNATE_PROFILE = RuleProfile(
    name="alternate",
    labels=(
        "Disqualified", "Low Priority", "Nurture", "Needs Qualification", "Qualified", "Hot Lead",
    ),
    spam_label="Disqualified",
    disqualified_label="Disqualified",
    default_label="Needs Qualification",
    spam_rules=SpamRules(
        name_patterns=PLACEHOLDER_NAMES + (
            r"^demo", r"^sample", r"^john\s*doe", r"^jane\s*doe", r"^\s*$",
        ),
        email_patterns=PLACEHOLDER_EMAILS + (
            r"throwaway", r"trash[-_]?mail", r"temp[-_]?mail", r"disposable",
            r"noreply", r"donotreply",
        ),
        phone_patterns=PLACEHOLDER_PHONES + (r"^000", r"^999999"),
        name_weight=35,
        email_weight=40,
        phone_weight=30,
        no_contact_weight=25,
        short_name_weight=20,
        low_budget_weight=30,
        status_weight=50,
        status_flags=frozenset({StatusFlag.FAKE, StatusFlag.SPAM, StatusFlag.UNVERIFIABLE}),
        email_flag='Disposable/fake email: "{email}"',
        low_budget_flag="Budget unrealistically low for UK property",
    ),
    quality_categories=ALTERNATE_QUALITY,
    intent_categories=ALTERNATE_INTENT,
    confidence_categories=ALTERNATE_CONFIDENCE,
    thresholds=ALTERNATE_THRESHOLDS,
    priorities=ALTERNATE_PRIORITIES,
    default_priority=Priority("P4", 4, "Within 48 hours", "Standard Priority"),
    risk_checks=(
        "spam_flags",
        "disqualification_reason",
        "mortgage_unapproved_without_funds",
        "timeline_and_readiness_missing",
        "mortgage_without_broker",
        "international",
        "stale",
    ),
    risk_flag_cap=5,
    confidence_scale=100.0,
    auto_disqualify=AutoDisqualifyRule(
        min_budget=2_000_000,
        max_bedrooms=1,
        reason="Budget £2M+ with studio/1-bed preference is unrealistic",
    ),
    signal_priorities=(
        ("ready_in_28_days", Priority("P1", 1, "Within 1 hour", "28-Day Buyer - Immediate Priority")),
    ),
    legacy_labels={
        "Hot Lead": "Hot",
        "Qualified": "Warm-Qualified",
        "Needs Qualification": "Nurture-Standard",
        "Nurture": "Nurture-Premium",
        "Low Priority": "Cold",
        "Disqualified": "Disqualified",
    },
)


PROFILES: Dict[str, RuleProfile] = {
    LEGACY_PROFILE.name: LEGACY_PROFILE,
    ALTERNATE_PROFILE.name: ALTERNATE_PROFILE,
}


def get_profile(profile=None) -> RuleProfile:
    """
    Resolve a profile by name.

    Args:
        profile: Profile name, a RuleProfile, or None for legacy

    Returns:
        RuleProfile
    """
    if profile is None:
        return LEGACY_PROFILE
    if isinstance(profile, RuleProfile):
        return profile
    key = str(profile).strip().lower()
    if key not in PROFILES:
        raise UnknownProfileError(f"Unknown rule profile: {profile!r}")
    return PROFILES[key]
