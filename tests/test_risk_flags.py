"""Tests for risk flag generation."""

from datetime import timedelta

from lead_scoring.buyer import Buyer
from lead_scoring.risk_flags import RISK_CHECKS, RiskContext, generate_risk_flags
from lead_scoring.scoring_model import score
from lead_scoring.signal_extractor import extract_facts
from lead_scoring.spam_detector import SpamCheckResult


def _context(buyer, as_of, confidence=10.0, spam_flags=None, reason=None):
    return RiskContext(
        facts=extract_facts(buyer, as_of),
        spam_check=SpamCheckResult(is_spam=bool(spam_flags), flags=spam_flags or []),
        confidence=confidence,
        disqualification_reason=reason,
    )


class TestRiskChecks:
    def test_registry_names(self):
        assert {"no_contact", "timeline_missing", "low_confidence", "spam_flags"} <= set(RISK_CHECKS)

    def test_no_contact(self, as_of):
        ctx = _context(Buyer(full_name="Jane Smith"), as_of)
        assert RISK_CHECKS["no_contact"](ctx) == ["No contact details"]

    def test_ready_flag_alone_is_not_a_timeline(self, as_of):
        ctx = _context(Buyer(ready_in_28_days=True), as_of)
        assert RISK_CHECKS["timeline_missing"](ctx) == ["Timeline not specified"]
        assert RISK_CHECKS["timeline_and_readiness_missing"](ctx) == []

    def test_timeline_text_satisfies_both(self, as_of):
        ctx = _context(Buyer(timeline="1-3 months"), as_of)
        assert RISK_CHECKS["timeline_missing"](ctx) == []
        assert RISK_CHECKS["timeline_and_readiness_missing"](ctx) == []

    def test_low_confidence_boundary(self, as_of):
        assert RISK_CHECKS["low_confidence"](_context(Buyer(), as_of, confidence=3.9)) == ["Low data confidence"]
        assert RISK_CHECKS["low_confidence"](_context(Buyer(), as_of, confidence=4.0)) == []

    def test_spam_flags_take_two(self, as_of):
        ctx = _context(Buyer(), as_of, spam_flags=["a", "b", "c"])
        assert RISK_CHECKS["spam_flags"](ctx) == ["a", "b"]

    def test_stale_needs_sixty_days(self, as_of):
        fresh = Buyer(date_added=(as_of - timedelta(days=60)).isoformat())
        old = Buyer(date_added=(as_of - timedelta(days=61)).isoformat())
        assert RISK_CHECKS["stale"](_context(fresh, as_of)) == []
        assert RISK_CHECKS["stale"](_context(old, as_of)) == ["Lead is 61 days old"]

    def test_mortgage_checks(self, as_of):
        ctx = _context(Buyer(payment_method="Mortgage", mortgage_status="pending"), as_of)
        assert RISK_CHECKS["mortgage_unconfirmed"](ctx) == ["Mortgage not yet approved"]
        assert RISK_CHECKS["mortgage_without_broker"](ctx) == ["Mortgage buyer without broker"]

        funded = _context(Buyer(payment_method="Mortgage", proof_of_funds=True), as_of)
        assert RISK_CHECKS["mortgage_unapproved_without_funds"](funded) == []


class TestGenerateRiskFlags:
    def test_truncation_keeps_check_order(self, as_of):
        buyer = Buyer(
            full_name="Li Wei",
            country="China",
            payment_method="Cash",
            date_added=(as_of - timedelta(days=200)).isoformat(),
        )
        result = score(buyer, "legacy", as_of)
        assert result.risk_flags == [
            "No proof of funds received",
            "International buyer - may need extended timeline",
            "No contact details",
            "Timeline not specified",
        ]

    def test_alternate_cap_is_five(self, as_of):
        buyer = Buyer(
            full_name="Priya Shah",
            email="priya@gmail.com",
            country="India",
            payment_method="Mortgage",
            date_added=(as_of - timedelta(days=90)).isoformat(),
        )
        result = score(buyer, "alternate", as_of)
        assert result.risk_flags == [
            "Mortgage not yet approved",
            "Timeline not specified",
            "Mortgage buyer without broker",
            "International buyer - may need extended timeline",
            "Lead is 90 days old",
        ]

    def test_direct_call(self, as_of):
        ctx = _context(Buyer(), as_of, confidence=1.0, reason="Too good to be true")
        flags = generate_risk_flags(
            ("disqualification_reason", "no_contact", "low_confidence"), 2, ctx
        )
        assert flags == ["Too good to be true", "No contact details"]

    def test_ready_without_timeline_by_profile(self, as_of):
        buyer = Buyer(
            full_name="Jane Smith",
            email="jane.smith@gmail.com",
            payment_method="Cash",
            proof_of_funds=True,
            ready_in_28_days=True,
        )
        assert "Timeline not specified" in score(buyer, "legacy", as_of).risk_flags
        assert "Timeline not specified" not in score(buyer, "alternate", as_of).risk_flags
