"""
LLM summary enhancement.

Asks the configured provider for a JSON narrative and falls back to the
rule-based narrative on timeout, provider error or unparseable output.
Scores are never touched; only the narrative text is replaced.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

from config.settings import Settings
from lead_scoring.buyer import Buyer, ConnectionStatus
from lead_scoring.compat import confidence_out_of_ten
from lead_scoring.narrative import (
    MAX_RECOMMENDATIONS,
    NarrativeSummary,
    RuleBasedSummaryProvider,
    SummaryProvider,
)
from lead_scoring.scoring_model import LeadScoreResult

from .providers import Provider, create_provider

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

SYSTEM_PROMPT = """You are a real estate CRM assistant for a UK new-build sales team.

Guidelines:
- Base everything on the buyer data and scores provided
- Never invent budgets, timelines or contact details
- Keep the summary professional and actionable
- Focus on what makes this lead valuable or concerning
- Respond with a single JSON object and nothing else"""

USER_TEMPLATE = """Generate a brief buyer summary, next action, and recommendations.

BUYER DATA:
- Name: {name}
- Email: {email}
- Phone: {phone}
- Country: {country}
- Budget: {budget}
- Payment: {payment}
- Mortgage Status: {mortgage}
- Timeline: {timeline}
- Location Preference: {location}
- Bedrooms: {bedrooms}
- Status: {status}
- Proof of Funds: {proof_of_funds}
- UK Broker: {broker}
- UK Solicitor: {solicitor}

SCORES:
- Classification: {classification}
- Priority: {priority} ({response_time})
- Quality Score: {quality}/100
- Intent Score: {intent}/100
- Confidence: {confidence}/10
- Risk Flags: {risk_flags}

Respond in JSON format:
{{
  "summary": "2-3 sentence buyer summary",
  "nextAction": "Single specific next action",
  "recommendations": ["rec1", "rec2", "rec3"]
}}"""


def build_prompt(buyer: Buyer, result: LeadScoreResult) -> str:
    """Render the user prompt for one scored lead."""
    confidence = confidence_out_of_ten(result)

    return USER_TEMPLATE.format(
        name=buyer.display_name or "Unknown",
        email=buyer.email or "Not provided",
        phone=buyer.phone or "Not provided",
        country=buyer.country or "Not specified",
        budget=buyer.budget_text or "Not specified",
        payment=buyer.payment_method or "Unknown",
        mortgage=buyer.mortgage_status or "N/A",
        timeline=buyer.timeline or "Not specified",
        location=buyer.location or "Not specified",
        bedrooms=buyer.bedrooms if buyer.bedrooms is not None else "Not specified",
        status=buyer.status or "New",
        proof_of_funds="Yes" if buyer.proof_of_funds else "No",
        broker="Yes" if ConnectionStatus.parse(buyer.uk_broker).is_connected else "No",
        solicitor="Yes" if ConnectionStatus.parse(buyer.uk_solicitor).is_connected else "No",
        classification=result.classification,
        priority=result.priority.code,
        response_time=result.priority.response_time,
        quality=result.quality.total,
        intent=result.intent.total,
        confidence=confidence,
        risk_flags=", ".join(result.risk_flags) or "None",
    )


def parse_response(content: str, fallback: NarrativeSummary) -> Optional[NarrativeSummary]:
    """
    Extract the narrative from raw model output.

    Missing fields are filled from ``fallback``. Returns None when no JSON
    object can be decoded.
    """
    match = _JSON_OBJECT.search(content or "")
    if not match:
        return None

    try:
        parsed: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None

    if not isinstance(parsed, dict):
        return None

    recs = parsed.get("recommendations")
    if isinstance(recs, list):
        recommendations: List[str] = [str(r) for r in recs if r][:MAX_RECOMMENDATIONS]
    else:
        recommendations = list(fallback.recommendations)

    return NarrativeSummary(
        summary=str(parsed.get("summary") or fallback.summary),
        next_action=str(parsed.get("nextAction") or parsed.get("next_action") or fallback.next_action),
        recommendations=recommendations,
        source="llm",
    )


class LLMSummaryProvider:
    """
    Summary provider backed by an LLM.

    Every failure path degrades to the rule-based narrative so callers
    always receive a complete NarrativeSummary.
    """

    name = "llm"

    def __init__(
        self,
        provider: Provider,
        timeout_seconds: float = 8.0,
        fallback: Optional[RuleBasedSummaryProvider] = None,
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.fallback = fallback or RuleBasedSummaryProvider()

    async def summarize(self, buyer: Buyer, result: LeadScoreResult) -> NarrativeSummary:
        rules = self.fallback.generate(buyer, result)
        prompt = build_prompt(buyer, result)

        try:
            content = await asyncio.wait_for(
                self.provider.agenerate(prompt, system=SYSTEM_PROMPT),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"LLM summary timed out after {self.timeout_seconds}s, using rule-based narrative")
            return rules
        except Exception as e:
            logger.warning(f"LLM summary failed ({e}), using rule-based narrative")
            return rules

        enhanced = parse_response(content, rules)
        if enhanced is None:
            logger.warning("Could not parse LLM summary response, using rule-based narrative")
            return rules

        return enhanced


def create_summary_provider(
    settings: Settings,
    provider: Optional[Provider] = None,
) -> SummaryProvider:
    """
    Pick the summary provider for the current configuration.

    Returns the rule-based provider unless summary enhancement is enabled
    and an LLM provider is available.
    """
    if not settings.enhance_summaries:
        return RuleBasedSummaryProvider()

    try:
        provider = provider or create_provider(settings)
    except Exception as e:
        logger.warning(f"LLM provider unavailable ({e}), summaries stay rule-based")
        return RuleBasedSummaryProvider()

    if provider is None:
        return RuleBasedSummaryProvider()

    logger.info(f"LLM summary enhancement enabled via {settings.llm_provider}")
    return LLMSummaryProvider(provider, timeout_seconds=settings.summary_timeout_seconds)
