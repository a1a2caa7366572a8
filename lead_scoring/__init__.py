"""
Lead Scoring Engine.

This module provides deterministic lead triage for property buyers:
- Spam / fake lead detection
- Quality, intent and confidence scoring
- Classification with budget-tier floors
- Priority (response SLA) and risk flags
- Rule-based narrative (summary, next action, recommendations)
"""

from .buyer import Buyer, ConnectionStatus
from .budget_parser import parse_budget, resolve_budget
from .signal_extractor import LeadFacts, SignalExtractor, extract_facts
from .spam_detector import SpamCheckResult, SpamDetector
from .rules import ScoreBreakdown
from .classifier import Priority
from .profiles import (
    ALTERNATE_PROFILE,
    LEGACY_PROFILE,
    PROFILES,
    RuleProfile,
    UnknownProfileError,
    get_profile,
)
from .scoring_model import ComponentScore, LeadScorer, LeadScoreResult, QualityScore, score
from .compat import confidence_out_of_ten, convert_to_legacy, nb_score
from .narrative import (
    NarrativeSummary,
    RuleBasedSummaryProvider,
    SummaryProvider,
    build_narrative,
    next_action,
    recommendations,
    summary,
)

__all__ = [
    "Buyer",
    "ConnectionStatus",
    "parse_budget",
    "resolve_budget",
    "LeadFacts",
    "SignalExtractor",
    "extract_facts",
    "SpamCheckResult",
    "SpamDetector",
    "ScoreBreakdown",
    "Priority",
    "ALTERNATE_PROFILE",
    "LEGACY_PROFILE",
    "PROFILES",
    "RuleProfile",
    "UnknownProfileError",
    "get_profile",
    "ComponentScore",
    "LeadScorer",
    "LeadScoreResult",
    "QualityScore",
    "score",
    "confidence_out_of_ten",
    "convert_to_legacy",
    "nb_score",
    "NarrativeSummary",
    "RuleBasedSummaryProvider",
    "SummaryProvider",
    "build_narrative",
    "next_action",
    "recommendations",
    "summary",
]
