"""
Declarative scoring rules.

Each scoring category is a small ordered table of (label, points, predicate)
rules. Rules sharing a ``group`` are alternatives: only the first matching
rule of a group is awarded. The category total is capped when a cap is set.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .signal_extractor import LeadFacts

logger = logging.getLogger(__name__)

Predicate = Callable[[LeadFacts], bool]


@dataclass(frozen=True)
class Rule:
    """One scoring rule."""
    label: str
    points: int
    when: Predicate
    group: Optional[str] = None


@dataclass(frozen=True)
class Category:
    """A capped group of rules. ``cap=None`` means uncapped (deductions)."""
    name: str
    rules: Sequence[Rule]
    cap: Optional[int] = None
    weight: float = 0.0  # used by weighted composites only


@dataclass(frozen=True)
class ScoreBreakdown:
    """Awarded score for one category, with the contributing factors."""
    category: str
    score: float
    max_score: int
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "score": self.score,
            "max_score": self.max_score,
            "details": list(self.details),
        }


def format_detail(points: float, label: str) -> str:
    """Render '+5: Name provided' / '-50: Not proceeding'."""
    sign = "+" if points >= 0 else "-"
    magnitude = abs(points)
    if float(magnitude).is_integer():
        magnitude = int(magnitude)
    return f"{sign}{magnitude}: {label}"


def evaluate_category(category: Category, facts: LeadFacts) -> ScoreBreakdown:
    """
    Evaluate a category against lead facts.

    Args:
        category: Rule table
        facts: Extracted lead facts

    Returns:
        ScoreBreakdown with the capped score
    """
    score = 0
    details: List[str] = []
    awarded_groups = set()

    for rule in category.rules:
        if rule.group is not None and rule.group in awarded_groups:
            continue
        if not rule.when(facts):
            continue
        score += rule.points
        details.append(format_detail(rule.points, rule.label))
        if rule.group is not None:
            awarded_groups.add(rule.group)

    if category.cap is not None:
        score = min(category.cap, score)

    return ScoreBreakdown(
        category=category.name,
        score=score,
        max_score=category.cap or 0,
        details=details,
    )


def evaluate_categories(categories: Sequence[Category], facts: LeadFacts) -> List[ScoreBreakdown]:
    return [evaluate_category(c, facts) for c in categories]
