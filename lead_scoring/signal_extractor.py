"""
Signal extraction for lead scoring.

Maps the free-text parts of a buyer record (status, timeline, payment,
purpose, source) onto typed categories. This is the only place that scans
raw text; the scorers downstream read ``LeadFacts`` and nothing else.

Extraction is best-effort keyword matching. Anything unrecognized falls into
an OTHER/UNKNOWN bucket, which earns no points.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .budget_parser import resolve_budget
from .buyer import Buyer, ConnectionStatus, Timestamp

logger = logging.getLogger(__name__)


class PaymentMethod(Enum):
    """How the buyer intends to pay."""
    CASH = "cash"
    MORTGAGE = "mortgage"
    OTHER = "other"
    UNKNOWN = "unknown"


class MortgageStatus(Enum):
    """Mortgage application progress."""
    APPROVED = "approved"            # Approved or agreement in principle
    IN_PROGRESS = "in_progress"      # Applied, awaiting decision
    OTHER = "other"
    UNKNOWN = "unknown"


class TimelineBucket(Enum):
    """Purchase timeline urgency."""
    IMMEDIATE = "immediate"          # Within a month
    SHORT = "short"                  # 1-3 months
    MEDIUM = "medium"                # 3-6 months
    LONG = "long"                    # 6-12 months
    FLEXIBLE = "flexible"            # No rush, 18+ months
    OTHER = "other"                  # Stated but unrecognized
    NONE = "none"


class PipelineStage(Enum):
    """Canonical pipeline stages."""
    CONTACT_PENDING = "Contact Pending"
    FOLLOW_UP = "Follow Up"
    VIEWING_BOOKED = "Viewing Booked"
    NEGOTIATING = "Negotiating"
    RESERVED = "Reserved"
    EXCHANGED = "Exchanged"
    COMPLETED = "Completed"
    NOT_PROCEEDING = "Not Proceeding"
    DUPLICATE = "Duplicate"
    UNKNOWN = "unknown"
    NONE = "none"


class StatusFlag(Enum):
    """Keyword flags raised by the free-text status."""
    NOT_PROCEEDING = "not_proceeding"
    FAKE = "fake"
    UNVERIFIABLE = "unverifiable"
    SPAM = "spam"
    TEST_LEAD = "test_lead"
    DISQUALIFIED = "disqualified"
    DUPLICATE = "duplicate"
    COLD = "cold"
    LOST = "lost"


class PurchasePurpose(Enum):
    """Why the buyer is purchasing."""
    PRIMARY_RESIDENCE = "primary_residence"
    DEPENDENT_STUDYING = "dependent_studying"
    INVESTMENT = "investment"
    HOLIDAY_HOME = "holiday_home"
    OTHER = "other"
    NONE = "none"


class SourceChannel(Enum):
    """Channel the enquiry came through."""
    FORM = "form"
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    PHONE = "phone"
    REFERRAL = "referral"
    OTHER = "other"
    NONE = "none"


UK_ALIASES = frozenset({
    "uk", "united kingdom", "england", "scotland", "wales",
    "ni", "northern ireland", "gb", "great britain",
})

ADVANCED_STAGES = frozenset({
    PipelineStage.VIEWING_BOOKED,
    PipelineStage.NEGOTIATING,
    PipelineStage.RESERVED,
    PipelineStage.EXCHANGED,
})


@dataclass(frozen=True)
class LeadFacts:
    """Typed view of a buyer, consumed by every scorer."""
    # Identity / contact
    name: str = ""
    email: str = ""
    phone: str = ""
    phone_digits: str = ""
    email_valid: bool = False

    # Geography
    country: str = ""
    location: str = ""
    is_international: bool = False

    # Financial
    budget: float = 0.0
    budget_text: str = ""
    has_budget: bool = False
    payment: PaymentMethod = PaymentMethod.UNKNOWN
    payment_text: str = ""
    mortgage: MortgageStatus = MortgageStatus.UNKNOWN
    proof_of_funds: bool = False

    # Requirements
    bedrooms: Optional[int] = None

    # Intent
    timeline: TimelineBucket = TimelineBucket.NONE
    timeline_text: str = ""
    ready_in_28_days: bool = False
    low_urgency: bool = False
    purpose: PurchasePurpose = PurchasePurpose.NONE
    source_text: str = ""
    channel: SourceChannel = SourceChannel.NONE
    high_intent_source: bool = False

    # Pipeline
    status_text: str = ""
    stage: PipelineStage = PipelineStage.NONE
    status_flags: FrozenSet[StatusFlag] = field(default_factory=frozenset)
    has_last_contact: bool = False
    notes_length: int = 0
    lead_age_days: Optional[int] = None

    # Verification
    broker: ConnectionStatus = ConnectionStatus.ABSENT
    solicitor: ConnectionStatus = ConnectionStatus.ABSENT
    wants_broker: bool = False

    @property
    def has_name(self) -> bool:
        return bool(self.name)

    @property
    def has_email(self) -> bool:
        return bool(self.email)

    @property
    def has_phone(self) -> bool:
        return bool(self.phone)

    @property
    def has_contact(self) -> bool:
        return self.has_email or self.has_phone

    @property
    def has_location(self) -> bool:
        return bool(self.location)

    @property
    def has_bedrooms(self) -> bool:
        return self.bedrooms is not None

    @property
    def has_timeline(self) -> bool:
        return bool(self.timeline_text)

    @property
    def is_new_lead(self) -> bool:
        return self.stage in (PipelineStage.NONE, PipelineStage.CONTACT_PENDING)

    @property
    def is_advanced_stage(self) -> bool:
        return self.stage in ADVANCED_STAGES

    @property
    def is_cash(self) -> bool:
        return self.payment == PaymentMethod.CASH

    @property
    def is_mortgage(self) -> bool:
        return self.payment == PaymentMethod.MORTGAGE

    @property
    def mortgage_approved(self) -> bool:
        return self.mortgage == MortgageStatus.APPROVED

    def has_flag(self, *flags: StatusFlag) -> bool:
        return any(f in self.status_flags for f in flags)


class SignalExtractor:
    """
    Extracts typed lead facts from a buyer snapshot.

    Keyword tables are evaluated in declaration order; the first table
    with a matching pattern wins.
    """

    TIMELINE_PATTERNS: Dict[TimelineBucket, List[str]] = {
        TimelineBucket.IMMEDIATE: [
            r"immediate", r"asap", r"28\s*days?", r"\b1\s*month", r"urgent",
            r"within a month", r"next\s*week",
        ],
        TimelineBucket.SHORT: [
            r"\b1\s*[-–]\s*3\b", r"\b2\s*[-–]\s*3\b", r"\b3\s*months?", r"\bsoon\b",
            r"short",
        ],
        TimelineBucket.MEDIUM: [
            r"\b3\s*[-–]\s*6\b", r"\b6\s*months?", r"this year", r"half",
        ],
        TimelineBucket.LONG: [
            r"\b6\s*[-–]\s*12\b", r"\b12\s*months?", r"next year", r"\b1\s*year",
        ],
        TimelineBucket.FLEXIBLE: [
            r"no\s*rush", r"flexible", r"eventually", r"someday", r"long\s*term",
            r"\b18\s*months?", r"\b24\s*months?", r"\b2\s*years?",
        ],
    }

    READY_28_DAYS_PATTERN = re.compile(
        r"28\s*days?|immediate|asap|\bnow\b|urgent|ready\s*to\s*(buy|purchase)|next\s*week"
    )

    LOW_URGENCY_PATTERN = re.compile(
        r"no\s*rush|flexible|eventually|someday|long\s*term|18\s*month|24\s*month|2\s*year"
    )

    # Exact matches, including legacy CRM vocabularies
    STATUS_MAP: Dict[str, PipelineStage] = {
        "contact pending": PipelineStage.CONTACT_PENDING,
        "new": PipelineStage.CONTACT_PENDING,
        "new lead": PipelineStage.CONTACT_PENDING,
        "follow up": PipelineStage.FOLLOW_UP,
        "follow-up": PipelineStage.FOLLOW_UP,
        "contacted": PipelineStage.FOLLOW_UP,
        "qualified": PipelineStage.FOLLOW_UP,
        "callback": PipelineStage.FOLLOW_UP,
        "viewing booked": PipelineStage.VIEWING_BOOKED,
        "viewing scheduled": PipelineStage.VIEWING_BOOKED,
        "negotiating": PipelineStage.NEGOTIATING,
        "offer made": PipelineStage.NEGOTIATING,
        "reserved": PipelineStage.RESERVED,
        "under offer": PipelineStage.RESERVED,
        "exchanged": PipelineStage.EXCHANGED,
        "completed": PipelineStage.COMPLETED,
        "sold": PipelineStage.COMPLETED,
        "not proceeding": PipelineStage.NOT_PROCEEDING,
        "lost": PipelineStage.NOT_PROCEEDING,
        "dead": PipelineStage.NOT_PROCEEDING,
        "unqualified": PipelineStage.NOT_PROCEEDING,
        "duplicate": PipelineStage.DUPLICATE,
    }

    # Substring fallbacks when no exact match applies
    STATUS_KEYWORDS: List[Tuple[str, PipelineStage]] = [
        ("not proceeding", PipelineStage.NOT_PROCEEDING),
        ("contact pending", PipelineStage.CONTACT_PENDING),
        ("follow up", PipelineStage.FOLLOW_UP),
        ("follow-up", PipelineStage.FOLLOW_UP),
        ("viewing", PipelineStage.VIEWING_BOOKED),
        ("negotiat", PipelineStage.NEGOTIATING),
        ("reserved", PipelineStage.RESERVED),
        ("exchanged", PipelineStage.EXCHANGED),
        ("completed", PipelineStage.COMPLETED),
        ("duplicate", PipelineStage.DUPLICATE),
    ]

    STATUS_FLAG_KEYWORDS: Dict[StatusFlag, List[str]] = {
        StatusFlag.NOT_PROCEEDING: ["not proceeding"],
        StatusFlag.FAKE: ["fake"],
        StatusFlag.UNVERIFIABLE: ["cant verify", "can't verify", "cannot verify"],
        StatusFlag.SPAM: ["spam"],
        StatusFlag.TEST_LEAD: ["test lead"],
        StatusFlag.DISQUALIFIED: ["disqualified"],
        StatusFlag.DUPLICATE: ["duplicate"],
        StatusFlag.COLD: ["cold"],
        StatusFlag.LOST: ["lost"],
    }

    # Checked in order; holiday before primary so "holiday home" is not a home
    PURPOSE_KEYWORDS: List[Tuple[PurchasePurpose, List[str]]] = [
        (PurchasePurpose.HOLIDAY_HOME, ["holiday", "second home", "vacation"]),
        (PurchasePurpose.DEPENDENT_STUDYING, ["dependent", "studying", "student"]),
        (PurchasePurpose.INVESTMENT, ["investment", "btl", "buy to let", "buy-to-let"]),
        (PurchasePurpose.PRIMARY_RESIDENCE, ["primary", "residence", "home", "live in"]),
    ]

    CHANNEL_PATTERNS: List[Tuple[SourceChannel, str]] = [
        (SourceChannel.FORM, r"form|website|landing"),
        (SourceChannel.WHATSAPP, r"whatsapp|\bwa\b"),
        (SourceChannel.EMAIL, r"e-?mail"),
        (SourceChannel.PHONE, r"phone|call"),
        (SourceChannel.REFERRAL, r"referral"),
    ]

    HIGH_INTENT_SOURCE_PATTERN = re.compile(r"referral|direct|website|walk[\s-]?in")
    EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

    def extract(self, buyer: Buyer, as_of: Optional[datetime] = None) -> LeadFacts:
        """
        Extract typed facts from a buyer.

        Args:
            buyer: Buyer snapshot
            as_of: Reference time for lead age, defaults to now (UTC)

        Returns:
            LeadFacts
        """
        reference = _as_utc(as_of) if as_of else datetime.now(timezone.utc)

        email = (buyer.email or "").strip()
        phone = (buyer.phone or "").strip()
        country = (buyer.country or "").strip()
        timeline_text = (buyer.timeline or "").strip()
        timeline_lower = timeline_text.lower()
        status_text = (buyer.status or "").strip()
        status_lower = status_text.lower()
        purpose = self._extract_purpose((buyer.purpose or "").lower())
        stage = self._extract_stage(status_lower)
        flags = self._extract_status_flags(status_lower, stage)
        broker = ConnectionStatus.parse(buyer.uk_broker)

        ready = buyer.ready_in_28_days is True or bool(
            timeline_lower and self.READY_28_DAYS_PATTERN.search(timeline_lower)
        )

        facts = LeadFacts(
            name=buyer.display_name,
            email=email,
            phone=phone,
            phone_digits=re.sub(r"\D", "", phone),
            email_valid=bool(email and self.EMAIL_PATTERN.match(email)),
            country=country,
            location=(buyer.location or "").strip(),
            is_international=bool(country) and country.lower() not in UK_ALIASES,
            budget=resolve_budget(buyer),
            budget_text=buyer.budget_text,
            has_budget=buyer.has_budget,
            payment=self._extract_payment((buyer.payment_method or "").lower()),
            payment_text=(buyer.payment_method or "").strip(),
            mortgage=self._extract_mortgage((buyer.mortgage_status or "").strip().lower()),
            proof_of_funds=bool(buyer.proof_of_funds),
            bedrooms=buyer.bedrooms,
            timeline=self._extract_timeline(timeline_lower),
            timeline_text=timeline_text,
            ready_in_28_days=ready,
            low_urgency=self._is_low_urgency(timeline_lower, purpose, flags),
            purpose=purpose,
            source_text=(buyer.source or buyer.source_platform or "").strip(),
            channel=self._extract_channel((buyer.source_platform or buyer.source or "").lower()),
            high_intent_source=bool(
                self.HIGH_INTENT_SOURCE_PATTERN.search((buyer.source or buyer.source_platform or "").lower())
            ),
            status_text=status_text,
            stage=stage,
            status_flags=flags,
            has_last_contact=bool(buyer.last_contact),
            notes_length=len(buyer.notes or ""),
            lead_age_days=_age_in_days(buyer.date_added or buyer.created_at, reference),
            broker=broker,
            solicitor=ConnectionStatus.parse(buyer.uk_solicitor),
            wants_broker=broker == ConnectionStatus.NO or buyer.connect_to_broker is True,
        )
        return facts

    def _extract_timeline(self, timeline_lower: str) -> TimelineBucket:
        """Extract purchase timeline bucket."""
        if not timeline_lower:
            return TimelineBucket.NONE
        for bucket, patterns in self.TIMELINE_PATTERNS.items():
            for pattern in patterns:
                if re.search(pattern, timeline_lower):
                    return bucket
        return TimelineBucket.OTHER

    def _extract_stage(self, status_lower: str) -> PipelineStage:
        if not status_lower:
            return PipelineStage.NONE
        if status_lower in self.STATUS_MAP:
            return self.STATUS_MAP[status_lower]
        for keyword, stage in self.STATUS_KEYWORDS:
            if keyword in status_lower:
                return stage
        return PipelineStage.UNKNOWN

    def _extract_status_flags(self, status_lower: str, stage: PipelineStage) -> FrozenSet[StatusFlag]:
        flags = set()
        for flag, keywords in self.STATUS_FLAG_KEYWORDS.items():
            if any(k in status_lower for k in keywords):
                flags.add(flag)
        # lost / dead / unqualified normalize to Not Proceeding
        if stage == PipelineStage.NOT_PROCEEDING:
            flags.add(StatusFlag.NOT_PROCEEDING)
        return frozenset(flags)

    def _extract_payment(self, payment_lower: str) -> PaymentMethod:
        if not payment_lower.strip():
            return PaymentMethod.UNKNOWN
        if "cash" in payment_lower:
            return PaymentMethod.CASH
        if "mortgage" in payment_lower:
            return PaymentMethod.MORTGAGE
        return PaymentMethod.OTHER

    def _extract_mortgage(self, status_lower: str) -> MortgageStatus:
        if not status_lower:
            return MortgageStatus.UNKNOWN
        if re.search(r"not approved|declined|rejected|refused", status_lower):
            return MortgageStatus.OTHER
        if "approved" in status_lower or re.search(r"\baip\b|agreement in principle", status_lower):
            return MortgageStatus.APPROVED
        if re.search(r"in progress|applied|applying|pending", status_lower):
            return MortgageStatus.IN_PROGRESS
        return MortgageStatus.OTHER

    def _extract_purpose(self, purpose_lower: str) -> PurchasePurpose:
        if not purpose_lower.strip():
            return PurchasePurpose.NONE
        for purpose, keywords in self.PURPOSE_KEYWORDS:
            if any(k in purpose_lower for k in keywords):
                return purpose
        return PurchasePurpose.OTHER

    def _extract_channel(self, source_lower: str) -> SourceChannel:
        if not source_lower.strip():
            return SourceChannel.NONE
        for channel, pattern in self.CHANNEL_PATTERNS:
            if re.search(pattern, source_lower):
                return channel
        return SourceChannel.OTHER

    def _is_low_urgency(
        self,
        timeline_lower: str,
        purpose: PurchasePurpose,
        flags: FrozenSet[StatusFlag],
    ) -> bool:
        if timeline_lower and self.LOW_URGENCY_PATTERN.search(timeline_lower):
            return True
        if purpose == PurchasePurpose.HOLIDAY_HOME and not timeline_lower:
            return True
        return any(f in flags for f in (StatusFlag.NOT_PROCEEDING, StatusFlag.COLD, StatusFlag.LOST))


_extractor = SignalExtractor()


def extract_facts(buyer: Buyer, as_of: Optional[datetime] = None) -> LeadFacts:
    """Extract typed facts with the shared extractor."""
    return _extractor.extract(buyer, as_of)


def parse_timestamp(value: Optional[Timestamp]) -> Optional[datetime]:
    """Parse an ISO timestamp, returning None on anything malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        logger.debug(f"Ignoring malformed timestamp: {value!r}")
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _age_in_days(value: Optional[Timestamp], reference: datetime) -> Optional[int]:
    created = parse_timestamp(value)
    if created is None:
        return None
    return int((reference - created).total_seconds() // 86400)
