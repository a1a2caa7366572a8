"""
Service initialization and dependency injection for the lead triage API.

Creates and manages the scorers and the summary provider used by the routes.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from config.settings import get_settings, Settings
from lead_scoring.buyer import Buyer
from lead_scoring.compat import nb_score
from lead_scoring.narrative import NarrativeSummary, RuleBasedSummaryProvider, SummaryProvider
from lead_scoring.profiles import PROFILES, get_profile
from lead_scoring.scoring_model import LeadScorer, LeadScoreResult
from llm.summary_enhancer import create_summary_provider

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ScoredLead:
    """One scored buyer with its narrative."""
    buyer: Buyer
    result: LeadScoreResult
    narrative: NarrativeSummary
    scored_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.buyer.display_name,
            "result": self.result.to_dict(),
            "nb_score": nb_score(self.result),
            "narrative": self.narrative.to_dict(),
            "update_patch": self.result.to_update_patch(self.scored_at),
        }


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 2,
    backoff_seconds: float = 2.0,
    label: str = "operation",
) -> T:
    """
    Run an async operation with bounded retries.

    Waits ``backoff_seconds * attempt`` between tries and re-raises the
    last error once every attempt has failed.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts:
                logger.warning(f"{label} failed after {attempts} attempts: {e}")
                raise
            logger.info(f"Retrying {label} (attempt {attempt}/{attempts}): {e}")
            await asyncio.sleep(backoff_seconds * attempt)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.scorers: Dict[str, LeadScorer] = {}
        self.summary_provider: Optional[SummaryProvider] = None
        self.rule_summaries = RuleBasedSummaryProvider()
        self._initialized = False

    def initialize(self):
        """Initialize all services."""
        if self._initialized:
            return

        self.settings = get_settings()
        logger.info(f"Initializing services with default profile: {self.settings.default_profile}")

        self.scorers = {name: LeadScorer(profile) for name, profile in PROFILES.items()}

        try:
            self.summary_provider = create_summary_provider(self.settings)
        except Exception as e:
            logger.warning(f"Summary provider init failed, running rule-based only: {e}")
            self.summary_provider = self.rule_summaries

        self._initialized = True
        logger.info("All services initialized successfully")

    def scorer(self, profile: Optional[str] = None) -> LeadScorer:
        """Scorer for a profile name; raises UnknownProfileError for unknown names."""
        name = get_profile(profile or self.settings.default_profile).name
        return self.scorers[name]

    async def score_buyer(
        self,
        payload: Any,
        profile: Optional[str] = None,
        as_of: Optional[datetime] = None,
        enhance_summary: Optional[bool] = None,
    ) -> ScoredLead:
        """Score one raw buyer record and narrate the result."""
        buyer = Buyer.from_dict(payload)
        result = self.scorer(profile).score(buyer, as_of)

        if enhance_summary is None:
            enhance_summary = self.settings.enhance_summaries
        provider = self.summary_provider if enhance_summary else self.rule_summaries
        narrative = await provider.summarize(buyer, result)

        return ScoredLead(
            buyer=buyer,
            result=result,
            narrative=narrative,
            scored_at=datetime.now(timezone.utc),
        )

    async def score_with_retry(self, payload: Any, **kwargs) -> ScoredLead:
        """score_buyer under the configured retry budget."""
        return await with_retry(
            lambda: self.score_buyer(payload, **kwargs),
            attempts=self.settings.rescore_attempts,
            backoff_seconds=self.settings.rescore_backoff_seconds,
            label="lead scoring",
        )

    @property
    def is_ready(self) -> bool:
        return self._initialized and bool(self.scorers)

    def health(self) -> Dict[str, Any]:
        """Get health status of services."""
        provider = self.summary_provider
        return {
            "scorers": sorted(self.scorers),
            "default_profile": self.settings.default_profile if self.settings else None,
            "summary_provider": getattr(provider, "name", None),
            "llm_provider": self.settings.llm_provider if self.settings else None,
        }


_services: Optional[Services] = None


def get_services() -> Services:
    """Get the global services instance."""
    global _services
    if _services is None:
        _services = Services()
        _services.initialize()
    return _services


def initialize_services():
    """Initialize services at startup."""
    get_services()
