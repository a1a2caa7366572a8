"""
Narrative generation for scored leads.

Three deterministic outputs built from a buyer and its LeadScoreResult:
a next action, a recommendation checklist and a three-sentence summary.
Results from any profile are narrated through their legacy label.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, runtime_checkable

from .buyer import Buyer
from .compat import confidence_out_of_ten
from .profiles import get_profile
from .scoring_model import LeadScoreResult
from .signal_extractor import LeadFacts, PipelineStage, extract_facts

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 5
HIGH_BUDGET = 1_000_000

CLASSIFICATION_DESCRIPTORS = {
    "Hot": "high-priority",
    "Warm-Qualified": "financially qualified",
    "Warm-Engaged": "actively engaged",
    "Nurture-Premium": "promising",
    "Nurture-Standard": "developing",
    "Cold": "early-stage",
    "Disqualified": "unqualified",
    "Spam": "suspected spam",
}

TERMINAL_RECOMMENDATIONS = [
    "Review lead data for accuracy",
    "Consider removing from active pipeline",
]


@dataclass(frozen=True)
class NarrativeSummary:
    """Summary, next action and recommendations for one lead."""
    summary: str
    next_action: str
    recommendations: List[str] = field(default_factory=list)
    source: str = "rules"  # rules | llm

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "next_action": self.next_action,
            "recommendations": list(self.recommendations),
            "source": self.source,
        }


def _legacy_label(result: LeadScoreResult) -> str:
    return get_profile(result.profile).to_legacy_label(result.classification)


# ── Next action ──────────────────────────────────────

def next_action(buyer: Buyer, result: LeadScoreResult) -> str:
    """Single imperative next step for the lead."""
    facts = extract_facts(buyer)
    label = _legacy_label(result)

    if label == "Spam":
        return "Review and verify lead authenticity before proceeding"

    if label == "Disqualified":
        return "Archive lead - does not meet minimum qualification criteria"

    if label == "Hot":
        if not facts.has_contact:
            return "Obtain contact details through original source"
        if facts.stage == PipelineStage.VIEWING_BOOKED:
            return "Confirm viewing and prepare property presentation"
        if facts.stage == PipelineStage.NEGOTIATING:
            return "Follow up on offer status and address objections"
        if not facts.proof_of_funds:
            return "Request proof of funds to progress to viewing stage"
        return "Call within 1 hour to book viewing"

    if label == "Warm-Qualified":
        if facts.is_cash and not facts.proof_of_funds:
            return "Request proof of funds to confirm cash buyer status"
        if facts.is_mortgage and not facts.mortgage_approved:
            return "Recommend mortgage broker and request AIP within 5 days"
        if not facts.solicitor.is_connected:
            return "Introduce to panel solicitor to prepare for exchange"
        return "Schedule discovery call to confirm timeline and preferences"

    if label == "Warm-Engaged":
        if not facts.has_timeline:
            return "Clarify purchase timeline and urgency"
        if not facts.has_bedrooms:
            return "Qualify property requirements - bedrooms, location, features"
        return "Send personalized property recommendations to maintain engagement"

    if label == "Nurture-Premium":
        if result.quality.total > result.intent.total:
            return "Re-engage with market update and new property listings"
        return "Add to nurture sequence with educational content about buying process"

    if label == "Nurture-Standard":
        return "Add to automated email nurture sequence"

    return "Low priority - add to long-term nurture campaign"


# ── Recommendations ──────────────────────────────────

def recommendations(buyer: Buyer, result: LeadScoreResult) -> List[str]:
    """Ordered checklist of follow-ups, at most five."""
    label = _legacy_label(result)
    if label in ("Spam", "Disqualified"):
        return list(TERMINAL_RECOMMENDATIONS)

    facts = extract_facts(buyer)
    quality = result.quality.total
    intent = result.intent.total
    recs: List[str] = []

    if not facts.proof_of_funds:
        recs.append("Request proof of funds or bank statement")

    if facts.is_mortgage:
        if not facts.mortgage_approved:
            recs.append("Connect with mortgage advisor for AIP")
        if not facts.broker.is_connected:
            recs.append("Introduce to partner mortgage broker")

    if not facts.solicitor.is_connected and quality >= 50:
        recs.append("Recommend panel solicitor early in process")

    recs.extend(_property_matching(facts))

    if facts.is_international:
        recs.append("Discuss currency exchange and international payment options")
        recs.append("Clarify UK purchase process for overseas buyers")

    if facts.budget >= HIGH_BUDGET:
        recs.append("Offer exclusive/off-market property access")

    if intent < 50 and quality >= 60:
        recs.append("Schedule discovery call to understand timeline")

    if quality < 50 and intent >= 60:
        recs.append("Complete buyer profile with missing information")

    if facts.stage == PipelineStage.VIEWING_BOOKED:
        recs.append("Send viewing confirmation with development details")
        recs.append("Prepare comparable market analysis")

    if not facts.has_timeline:
        recs.append("Clarify purchase timeline in next conversation")

    return recs[:MAX_RECOMMENDATIONS]


def _property_matching(facts: LeadFacts) -> List[str]:
    if facts.has_location and facts.has_bedrooms:
        return [f"Prepare {facts.bedrooms}-bed options in {facts.location}"]
    if facts.has_location:
        return [f"Curate properties in {facts.location} matching budget"]
    return []


# ── Summary ──────────────────────────────────────────

def _financial_status(facts: LeadFacts) -> str:
    if facts.is_cash:
        return "verified cash buyer" if facts.proof_of_funds else "cash buyer (unverified)"
    if facts.is_mortgage:
        return "mortgage buyer with AIP" if facts.mortgage_approved else "mortgage buyer (pending approval)"
    return f"{facts.payment_text or 'unknown payment method'} buyer"


def summary(buyer: Buyer, result: LeadScoreResult) -> str:
    """
    Three templated sentences.

    1. Who they are: name, classification descriptor, finance, geography
    2. Budget and timeline
    3. Stage + SLA for top leads, else top risk flag, else a low-confidence
       caveat, else a quality/intent recap
    """
    facts = extract_facts(buyer)
    label = _legacy_label(result)

    name = facts.name or "This lead"
    location = facts.location or "unspecified location"
    if facts.is_international:
        geography = f"based in {facts.country}, interested in {location}"
    else:
        geography = f"looking in {location}"

    descriptor = CLASSIFICATION_DESCRIPTORS.get(label, "developing")
    first = f"{name} is a {descriptor} {_financial_status(facts)} {geography}."

    budget = facts.budget_text or "unspecified budget"
    timeline = facts.timeline_text or "unspecified timeline"
    second = f"Budget: {budget}. Timeline: {timeline}."

    confidence = confidence_out_of_ten(result)
    if label in ("Hot", "Warm-Qualified"):
        stage = facts.status_text or "Contact Pending"
        third = (
            f'Currently at "{stage}" stage. '
            f"Priority: {result.priority.code} ({result.priority.response_time} response time)."
        )
    elif result.risk_flags:
        third = f"Note: {result.risk_flags[0]}."
    elif confidence < 5:
        third = f"Limited data available - confidence: {confidence}/10."
    else:
        third = f"Quality: {result.quality.total}/100, Intent: {result.intent.total}/100."

    return f"{first} {second} {third}"


def build_narrative(buyer: Buyer, result: LeadScoreResult) -> NarrativeSummary:
    """Deterministic summary, next action and recommendations."""
    return NarrativeSummary(
        summary=summary(buyer, result),
        next_action=next_action(buyer, result),
        recommendations=recommendations(buyer, result),
        source="rules",
    )


@runtime_checkable
class SummaryProvider(Protocol):
    """Protocol for narrative providers."""

    async def summarize(self, buyer: Buyer, result: LeadScoreResult) -> NarrativeSummary:
        """Produce a narrative for a scored lead."""
        ...


class RuleBasedSummaryProvider:
    """Default provider. Pure and immediate; also the fallback for every other provider."""

    name = "rules"

    def generate(self, buyer: Buyer, result: LeadScoreResult) -> NarrativeSummary:
        return build_narrative(buyer, result)

    async def summarize(self, buyer: Buyer, result: LeadScoreResult) -> NarrativeSummary:
        return self.generate(buyer, result)
