"""Shared fixtures for lead triage engine tests."""

import os
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

# Ensure we use test settings: no LLM, no auth, no retry delay
os.environ.setdefault("LLM_PROVIDER", "none")
os.environ.setdefault("ENHANCE_SUMMARIES", "false")
os.environ.setdefault("DEFAULT_PROFILE", "legacy")
os.environ.setdefault("RESCORE_ATTEMPTS", "2")
os.environ.setdefault("RESCORE_BACKOFF_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from lead_scoring.buyer import Buyer  # noqa: E402


@pytest.fixture
def client():
    """Create a FastAPI test client."""
    from api.main import app
    return TestClient(app)


@pytest.fixture
def as_of():
    """Fixed reference time so lead-age rules are deterministic."""
    return datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def hot_buyer_data():
    """Cash buyer, 28-day ready, £1.5M budget, 3-bed, primary residence."""
    return {
        "id": "test-hot-1",
        "full_name": "Sarah Mitchell",
        "first_name": "Sarah",
        "last_name": "Mitchell",
        "email": "sarah.mitchell@protonmail.com",
        "phone": "+447700900123",
        "country": "UK",
        "budget": "£1.5M",
        "budget_range": "£1M-£2M",
        "payment_method": "Cash",
        "bedrooms": 3,
        "location": "London",
        "timeline": "ASAP/28 days",
        "purpose": "Residence",
        "ready_within_28_days": True,
        "source": "Rightmove",
        "source_platform": "form",
        "status": "Contact Pending",
        "proof_of_funds": True,
        "uk_broker": "no",
        "uk_solicitor": "yes",
    }


@pytest.fixture
def qualified_buyer_data():
    """Mortgage buyer with AIP, 1-3 month timeline, £500k-£750k."""
    return {
        "full_name": "James Thompson",
        "email": "james.thompson@gmail.com",
        "phone": "+447700900456",
        "country": "UK",
        "budget_range": "£500k-£750k",
        "payment_method": "Mortgage",
        "mortgage_status": "aip",
        "bedrooms": 2,
        "location": "Manchester",
        "timeline": "1-3 months",
        "purchase_purpose": "Investment",
        "source": "website",
        "status": "Follow Up",
        "uk_broker": "yes",
        "uk_solicitor": "no",
    }


@pytest.fixture
def nurture_buyer_data():
    """Long timeline mortgage buyer with no phone."""
    return {
        "full_name": "Emily Rogers",
        "email": "emily.rogers@outlook.com",
        "country": "UK",
        "budget_range": "£250k-£500k",
        "payment_method": "Mortgage",
        "timeline": "6-12 months",
        "purchase_purpose": "Investment",
        "source": "email",
        "status": "Contact Pending",
    }


@pytest.fixture
def low_priority_buyer_data():
    """Holiday home, no rush, minimal info."""
    return {
        "full_name": "Michael Davies",
        "email": "michael.d@hotmail.com",
        "timeline": "no rush",
        "purchase_purpose": "holiday home",
        "status": "Contact Pending",
    }


@pytest.fixture
def fake_buyer_data():
    """Placeholder identity on every field."""
    return {
        "full_name": "Test User",
        "email": "test@example.com",
        "phone": "0000000000",
        "budget": "£500",
        "status": "Contact Pending",
    }


@pytest.fixture
def studio_buyer_data():
    """£3M budget with a 1-bed preference."""
    return {
        "full_name": "Robert Chen",
        "email": "robert.chen@china.com",
        "phone": "+8613800138000",
        "budget": "£3M",
        "bedrooms": 1,
        "payment_method": "Cash",
        "status": "Contact Pending",
    }


@pytest.fixture
def international_buyer_data():
    """Non-UK cash buyer with funds and introductions in place."""
    return {
        "full_name": "Ahmad Al-Rashid",
        "email": "ahmad@dubai-investments.ae",
        "phone": "+971501234567",
        "country": "UAE",
        "budget": "£2M",
        "bedrooms": 4,
        "payment_method": "Cash",
        "location": "Central London",
        "timeline": "1-3 months",
        "purchase_purpose": "Investment",
        "source": "referral",
        "proof_of_funds": True,
        "uk_broker": "introduced",
        "uk_solicitor": "introduced",
        "status": "Follow Up",
    }


@pytest.fixture
def hot_buyer(hot_buyer_data):
    return Buyer.from_dict(hot_buyer_data)


@pytest.fixture
def qualified_buyer(qualified_buyer_data):
    return Buyer.from_dict(qualified_buyer_data)


@pytest.fixture
def nurture_buyer(nurture_buyer_data):
    return Buyer.from_dict(nurture_buyer_data)


@pytest.fixture
def low_priority_buyer(low_priority_buyer_data):
    return Buyer.from_dict(low_priority_buyer_data)


@pytest.fixture
def fake_buyer(fake_buyer_data):
    return Buyer.from_dict(fake_buyer_data)


@pytest.fixture
def studio_buyer(studio_buyer_data):
    return Buyer.from_dict(studio_buyer_data)


@pytest.fixture
def international_buyer(international_buyer_data):
    return Buyer.from_dict(international_buyer_data)
