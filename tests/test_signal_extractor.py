"""Tests for free-text signal extraction."""

from datetime import datetime, timedelta, timezone

import pytest

from lead_scoring.buyer import Buyer
from lead_scoring.signal_extractor import (
    MortgageStatus,
    PaymentMethod,
    PipelineStage,
    PurchasePurpose,
    SignalExtractor,
    SourceChannel,
    StatusFlag,
    TimelineBucket,
    extract_facts,
    parse_timestamp,
)


@pytest.fixture
def extractor():
    return SignalExtractor()


class TestTimeline:
    @pytest.mark.parametrize("text,bucket", [
        ("ASAP/28 days", TimelineBucket.IMMEDIATE),
        ("Within 28 days", TimelineBucket.IMMEDIATE),
        ("urgent", TimelineBucket.IMMEDIATE),
        ("1-3 months", TimelineBucket.SHORT),
        ("3 months", TimelineBucket.SHORT),
        ("3-6 months", TimelineBucket.MEDIUM),
        ("6-12 months", TimelineBucket.LONG),
        ("next year", TimelineBucket.LONG),
        ("no rush", TimelineBucket.FLEXIBLE),
        ("whenever the right place comes up", TimelineBucket.OTHER),
        ("", TimelineBucket.NONE),
    ])
    def test_buckets(self, extractor, text, bucket):
        facts = extractor.extract(Buyer(timeline=text or None))
        assert facts.timeline == bucket

    def test_ready_from_timeline_text(self, extractor):
        assert extractor.extract(Buyer(timeline="ASAP/28 days")).ready_in_28_days
        assert not extractor.extract(Buyer(timeline="3-6 months")).ready_in_28_days

    def test_ready_from_explicit_flag(self, extractor):
        facts = extractor.extract(Buyer(ready_in_28_days=True))
        assert facts.ready_in_28_days
        assert not facts.has_timeline

    def test_low_urgency(self, extractor):
        assert extractor.extract(Buyer(timeline="no rush")).low_urgency
        assert extractor.extract(Buyer(purpose="holiday home")).low_urgency
        assert not extractor.extract(Buyer(timeline="ASAP")).low_urgency


class TestStatus:
    @pytest.mark.parametrize("text,stage", [
        ("Contact Pending", PipelineStage.CONTACT_PENDING),
        ("new", PipelineStage.CONTACT_PENDING),
        ("Follow Up", PipelineStage.FOLLOW_UP),
        ("Viewing Booked", PipelineStage.VIEWING_BOOKED),
        ("second viewing arranged", PipelineStage.VIEWING_BOOKED),
        ("Negotiating", PipelineStage.NEGOTIATING),
        ("Reserved", PipelineStage.RESERVED),
        ("Not Proceeding", PipelineStage.NOT_PROCEEDING),
        ("lost", PipelineStage.NOT_PROCEEDING),
        ("Duplicate", PipelineStage.DUPLICATE),
        ("something else", PipelineStage.UNKNOWN),
        (None, PipelineStage.NONE),
    ])
    def test_stage(self, extractor, text, stage):
        assert extractor.extract(Buyer(status=text)).stage == stage

    def test_legacy_vocabulary_raises_not_proceeding_flag(self, extractor):
        facts = extractor.extract(Buyer(status="Dead"))
        assert facts.has_flag(StatusFlag.NOT_PROCEEDING)

    def test_fake_flags(self, extractor):
        facts = extractor.extract(Buyer(status="Fake - can't verify"))
        assert facts.has_flag(StatusFlag.FAKE)
        assert facts.has_flag(StatusFlag.UNVERIFIABLE)
        assert not facts.has_flag(StatusFlag.SPAM)

    def test_new_lead(self, extractor):
        assert extractor.extract(Buyer()).is_new_lead
        assert extractor.extract(Buyer(status="Contact Pending")).is_new_lead
        assert not extractor.extract(Buyer(status="Follow Up")).is_new_lead

    def test_advanced_stage(self, extractor):
        assert extractor.extract(Buyer(status="Negotiating")).is_advanced_stage
        assert not extractor.extract(Buyer(status="Completed")).is_advanced_stage


class TestFinance:
    def test_payment(self, extractor):
        assert extractor.extract(Buyer(payment_method="Cash")).payment == PaymentMethod.CASH
        assert extractor.extract(Buyer(payment_method="Mortgage")).payment == PaymentMethod.MORTGAGE
        assert extractor.extract(Buyer(payment_method="Crypto")).payment == PaymentMethod.OTHER
        assert extractor.extract(Buyer()).payment == PaymentMethod.UNKNOWN

    @pytest.mark.parametrize("text,status", [
        ("Approved", MortgageStatus.APPROVED),
        ("AIP", MortgageStatus.APPROVED),
        ("agreement in principle", MortgageStatus.APPROVED),
        ("Not approved", MortgageStatus.OTHER),
        ("declined", MortgageStatus.OTHER),
        ("In progress", MortgageStatus.IN_PROGRESS),
        ("applied", MortgageStatus.IN_PROGRESS),
        (None, MortgageStatus.UNKNOWN),
    ])
    def test_mortgage_status(self, extractor, text, status):
        assert extractor.extract(Buyer(mortgage_status=text)).mortgage == status

    def test_budget_resolved(self, extractor, qualified_buyer):
        facts = extractor.extract(qualified_buyer)
        assert facts.budget == 750_000
        assert facts.has_budget


class TestPurposeAndSource:
    @pytest.mark.parametrize("text,purpose", [
        ("Residence", PurchasePurpose.PRIMARY_RESIDENCE),
        ("holiday home", PurchasePurpose.HOLIDAY_HOME),
        ("Investment", PurchasePurpose.INVESTMENT),
        ("buy to let", PurchasePurpose.INVESTMENT),
        ("child studying in London", PurchasePurpose.DEPENDENT_STUDYING),
        ("other reasons", PurchasePurpose.OTHER),
        (None, PurchasePurpose.NONE),
    ])
    def test_purpose(self, extractor, text, purpose):
        assert extractor.extract(Buyer(purpose=text)).purpose == purpose

    def test_channel_prefers_platform(self, extractor, hot_buyer):
        facts = extractor.extract(hot_buyer)
        assert facts.channel == SourceChannel.FORM
        assert facts.source_text == "Rightmove"
        assert not facts.high_intent_source

    def test_high_intent_source(self, extractor):
        assert extractor.extract(Buyer(source="referral")).high_intent_source
        assert extractor.extract(Buyer(source="Website")).high_intent_source

    def test_whatsapp(self, extractor):
        assert extractor.extract(Buyer(source_platform="WhatsApp")).channel == SourceChannel.WHATSAPP


class TestContactAndGeography:
    def test_email_validation(self, extractor):
        assert extractor.extract(Buyer(email="a@b.co")).email_valid
        assert not extractor.extract(Buyer(email="not-an-email")).email_valid

    def test_phone_digits(self, extractor):
        assert extractor.extract(Buyer(phone="+44 (7700) 900-123")).phone_digits == "447700900123"

    @pytest.mark.parametrize("country,international", [
        ("UK", False),
        ("England", False),
        ("Northern Ireland", False),
        ("UAE", True),
        ("", False),
    ])
    def test_international(self, extractor, country, international):
        assert extractor.extract(Buyer(country=country or None)).is_international is international

    def test_wants_broker(self, extractor):
        assert extractor.extract(Buyer(uk_broker="no")).wants_broker
        assert extractor.extract(Buyer(connect_to_broker=True)).wants_broker
        assert not extractor.extract(Buyer(uk_broker="yes")).wants_broker


class TestLeadAge:
    def test_age_in_days(self, as_of):
        added = (as_of - timedelta(days=95)).isoformat()
        facts = extract_facts(Buyer(date_added=added), as_of)
        assert facts.lead_age_days == 95

    def test_created_at_fallback(self, as_of):
        facts = extract_facts(Buyer(created_at="2025-05-01T12:00:00Z"), as_of)
        assert facts.lead_age_days == 31

    def test_malformed_date(self, as_of):
        assert extract_facts(Buyer(date_added="yesterday-ish"), as_of).lead_age_days is None

    def test_parse_timestamp(self):
        assert parse_timestamp("2025-01-01T00:00:00Z") == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert parse_timestamp("2025-01-01T00:00:00").tzinfo == timezone.utc
        assert parse_timestamp("garbage") is None
        assert parse_timestamp(None) is None


class TestFacts:
    def test_hot_buyer_facts(self, hot_buyer, as_of):
        facts = extract_facts(hot_buyer, as_of)
        assert facts.name == "Sarah Mitchell"
        assert facts.is_cash
        assert facts.proof_of_funds
        assert facts.timeline == TimelineBucket.IMMEDIATE
        assert facts.ready_in_28_days
        assert facts.purpose == PurchasePurpose.PRIMARY_RESIDENCE
        assert facts.solicitor.is_connected
        assert not facts.broker.is_connected
        assert facts.budget == 1_500_000
