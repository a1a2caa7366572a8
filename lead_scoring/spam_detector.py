"""
Spam / fake lead detection.

Additive pattern-weight check over the identity and contact fields. Each
triggered check adds its weight and a human-readable flag; the lead is spam
once the total reaches the threshold.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Tuple

from .signal_extractor import LeadFacts, StatusFlag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpamCheckResult:
    """Result of spam detection."""
    is_spam: bool
    flags: List[str] = field(default_factory=list)
    confidence: float = 0.0  # 0-1
    score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_spam": self.is_spam,
            "flags": list(self.flags),
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class SpamRules:
    """Patterns, weights and threshold for one detection policy."""
    name_patterns: Tuple[str, ...]
    email_patterns: Tuple[str, ...]
    phone_patterns: Tuple[str, ...]
    name_weight: int = 30
    email_weight: int = 40
    phone_weight: int = 30
    no_contact_weight: int = 20
    short_name_weight: int = 15
    low_budget_weight: int = 25
    status_weight: int = 0
    status_flags: FrozenSet[StatusFlag] = frozenset()
    threshold: int = 50
    min_plausible_budget: float = 10_000
    email_flag: str = 'Suspicious email domain: "{email}"'
    low_budget_flag: str = "Budget unrealistically low for real estate"
    status_flag: str = "Marked as fake/spam"


class SpamDetector:
    """Scores a lead's identity fields against a set of spam rules."""

    def __init__(self, rules: SpamRules):
        self.rules = rules
        self._names = [re.compile(p, re.IGNORECASE) for p in rules.name_patterns]
        self._emails = [re.compile(p, re.IGNORECASE) for p in rules.email_patterns]
        self._phones = [re.compile(p) for p in rules.phone_patterns]

    def check(self, facts: LeadFacts) -> SpamCheckResult:
        """
        Run every check in order.

        Args:
            facts: Extracted lead facts

        Returns:
            SpamCheckResult
        """
        rules = self.rules
        flags: List[str] = []
        total = 0

        if any(p.search(facts.name) for p in self._names):
            flags.append(f'Suspicious name pattern: "{facts.name}"')
            total += rules.name_weight

        if facts.email and any(p.search(facts.email) for p in self._emails):
            flags.append(rules.email_flag.format(email=facts.email))
            total += rules.email_weight

        if facts.phone_digits and any(p.search(facts.phone_digits) for p in self._phones):
            flags.append(f'Suspicious phone number: "{facts.phone}"')
            total += rules.phone_weight

        if not facts.has_contact:
            flags.append("No contact information provided")
            total += rules.no_contact_weight

        if len(facts.name) < 3:
            flags.append("Name too short or missing")
            total += rules.short_name_weight

        if 0 < facts.budget < rules.min_plausible_budget:
            flags.append(rules.low_budget_flag)
            total += rules.low_budget_weight

        if rules.status_weight and facts.has_flag(*rules.status_flags):
            flags.append(rules.status_flag)
            total += rules.status_weight

        is_spam = total >= rules.threshold
        if is_spam:
            logger.debug(f"Lead flagged as spam (score={total}): {flags}")

        return SpamCheckResult(
            is_spam=is_spam,
            flags=flags,
            confidence=min(total / 100, 1.0),
            score=total,
        )
