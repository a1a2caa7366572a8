"""Tests for the rule-based narrative."""

import asyncio
from dataclasses import replace

import pytest

from lead_scoring.buyer import Buyer
from lead_scoring.narrative import (
    MAX_RECOMMENDATIONS,
    TERMINAL_RECOMMENDATIONS,
    RuleBasedSummaryProvider,
    SummaryProvider,
    build_narrative,
    next_action,
    recommendations,
    summary,
)
from lead_scoring.scoring_model import ComponentScore, score


class TestNextAction:
    def test_hot_with_funds(self, hot_buyer, as_of):
        result = score(hot_buyer, "legacy", as_of)
        assert next_action(hot_buyer, result) == "Call within 1 hour to book viewing"

    def test_hot_without_funds(self, hot_buyer_data, as_of):
        buyer = Buyer.from_dict({**hot_buyer_data, "proof_of_funds": False})
        result = score(buyer, "legacy", as_of)
        assert result.classification == "Hot"
        assert next_action(buyer, result) == "Request proof of funds to progress to viewing stage"

    def test_hot_viewing_booked(self, hot_buyer_data, as_of):
        buyer = Buyer.from_dict({**hot_buyer_data, "status": "Viewing Booked"})
        result = score(buyer, "legacy", as_of)
        assert next_action(buyer, result) == "Confirm viewing and prepare property presentation"

    def test_spam(self, fake_buyer, as_of):
        result = score(fake_buyer, "legacy", as_of)
        assert next_action(fake_buyer, result) == "Review and verify lead authenticity before proceeding"

    def test_nurture_premium_quality_led(self, nurture_buyer, as_of):
        result = score(nurture_buyer, "legacy", as_of)
        assert next_action(nurture_buyer, result) == "Re-engage with market update and new property listings"

    def test_alternate_result_uses_legacy_label(self, low_priority_buyer, as_of):
        result = score(low_priority_buyer, "alternate", as_of)
        assert result.classification == "Low Priority"
        assert next_action(low_priority_buyer, result) == "Low priority - add to long-term nurture campaign"

    def test_alternate_disqualified(self, studio_buyer, as_of):
        result = score(studio_buyer, "alternate", as_of)
        assert next_action(studio_buyer, result) == (
            "Archive lead - does not meet minimum qualification criteria"
        )


class TestRecommendations:
    def test_hot_buyer(self, hot_buyer, as_of):
        result = score(hot_buyer, "legacy", as_of)
        assert recommendations(hot_buyer, result) == [
            "Prepare 3-bed options in London",
            "Offer exclusive/off-market property access",
        ]

    def test_terminal(self, fake_buyer, as_of):
        result = score(fake_buyer, "legacy", as_of)
        assert recommendations(fake_buyer, result) == TERMINAL_RECOMMENDATIONS

    def test_nurture_buyer(self, nurture_buyer, as_of):
        result = score(nurture_buyer, "legacy", as_of)
        assert recommendations(nurture_buyer, result) == [
            "Request proof of funds or bank statement",
            "Connect with mortgage advisor for AIP",
            "Introduce to partner mortgage broker",
            "Recommend panel solicitor early in process",
        ]

    def test_international_buyer(self, international_buyer, as_of):
        result = score(international_buyer, "legacy", as_of)
        assert recommendations(international_buyer, result) == [
            "Prepare 4-bed options in Central London",
            "Discuss currency exchange and international payment options",
            "Clarify UK purchase process for overseas buyers",
            "Offer exclusive/off-market property access",
        ]

    def test_truncated_in_order(self, as_of):
        buyer = Buyer(
            full_name="Li Wei",
            email="li@gmail.com",
            phone="+8613912345678",
            country="China",
            budget="£1.2M",
            payment_method="Mortgage",
            location="London",
            bedrooms=2,
        )
        recs = recommendations(buyer, score(buyer, "legacy", as_of))
        assert len(recs) == MAX_RECOMMENDATIONS
        assert recs == [
            "Request proof of funds or bank statement",
            "Connect with mortgage advisor for AIP",
            "Introduce to partner mortgage broker",
            "Recommend panel solicitor early in process",
            "Prepare 2-bed options in London",
        ]


class TestSummary:
    def test_hot_buyer(self, hot_buyer, as_of):
        result = score(hot_buyer, "legacy", as_of)
        assert summary(hot_buyer, result) == (
            "Sarah Mitchell is a high-priority verified cash buyer looking in London. "
            "Budget: £1.5M. Timeline: ASAP/28 days. "
            'Currently at "Contact Pending" stage. Priority: P1 (<1 hour response time).'
        )

    def test_risk_flag_sentence(self, nurture_buyer, as_of):
        result = score(nurture_buyer, "legacy", as_of)
        assert summary(nurture_buyer, result) == (
            "Emily Rogers is a promising mortgage buyer (pending approval) looking in unspecified location. "
            "Budget: £250k-£500k. Timeline: 6-12 months. "
            "Note: Mortgage not yet approved."
        )

    def test_international_geography(self, international_buyer, as_of):
        result = score(international_buyer, "legacy", as_of)
        assert summary(international_buyer, result).startswith(
            "Ahmad Al-Rashid is a high-priority verified cash buyer based in UAE, interested in Central London."
        )

    def test_low_confidence_on_alternate_scale(self, low_priority_buyer, as_of):
        result = score(low_priority_buyer, "alternate", as_of)
        assert result.risk_flags == []
        assert summary(low_priority_buyer, result).endswith(
            "Limited data available - confidence: 4.0/10."
        )

    def test_low_confidence_rounds_half_up(self, low_priority_buyer, as_of):
        result = replace(score(low_priority_buyer, "alternate", as_of), confidence=ComponentScore(total=36.5))
        assert summary(low_priority_buyer, result).endswith(
            "Limited data available - confidence: 3.7/10."
        )

    def test_three_sentences_for_every_profile(self, qualified_buyer, as_of):
        for profile in ("legacy", "alternate"):
            text = summary(qualified_buyer, score(qualified_buyer, profile, as_of))
            assert text.startswith("James Thompson is a")
            assert "Budget: £500k-£750k. Timeline: 1-3 months." in text


class TestSummaryProvider:
    def test_build_narrative(self, hot_buyer, as_of):
        result = score(hot_buyer, "legacy", as_of)
        narrative = build_narrative(hot_buyer, result)
        assert narrative.source == "rules"
        assert narrative.next_action == "Call within 1 hour to book viewing"
        assert narrative.to_dict()["recommendations"] == narrative.recommendations

    def test_rule_provider_satisfies_protocol(self):
        assert isinstance(RuleBasedSummaryProvider(), SummaryProvider)

    def test_async_summarize(self, hot_buyer, as_of):
        result = score(hot_buyer, "legacy", as_of)
        narrative = asyncio.run(RuleBasedSummaryProvider().summarize(hot_buyer, result))
        assert narrative == build_narrative(hot_buyer, result)

    @pytest.mark.parametrize("profile", ["legacy", "alternate"])
    def test_deterministic(self, nurture_buyer, as_of, profile):
        result = score(nurture_buyer, profile, as_of)
        assert build_narrative(nurture_buyer, result) == build_narrative(nurture_buyer, result)
