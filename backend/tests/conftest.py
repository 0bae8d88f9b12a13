# backend/tests/conftest.py
"""
Pytest configuration for the HourGym backend.

Every test gets a fresh in-memory SQLite database built from the models.
External providers (Stripe, Resend, Twilio) are never called: services take
mocks for them, and the settings below keep the real clients disabled.
"""

import os

# Set before any hourgym import so settings and the module engine pick them up.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RESEND_API_KEY"] = ""
os.environ["SMS_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hourgym.core.enums import BookingStatus, CancellationPolicy, UserRole
from hourgym.database import Base
from hourgym.models import Booking, Gym, Space, User
from hourgym.services.stripe_service import CheckoutSession, RefundResult, StripeService

# Monday 2030-06-17, 08:00 in Denver (MDT, UTC-6)
NOW = datetime(2030, 6, 17, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def engine() -> Iterator[Engine]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    Base.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def owner(db: Session) -> User:
    user = User(
        email="owner@ironworks.test",
        full_name="Olivia Owner",
        phone="303-555-0100",
        role=UserRole.GYM_OWNER.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def renter(db: Session) -> User:
    user = User(
        email="renter@example.test",
        full_name="Riley Renter",
        phone="(720) 555-0199",
        role=UserRole.RENTER.value,
        sms_opt_in=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_user(db: Session) -> User:
    user = User(email="stranger@example.test", full_name="Sam Stranger", role=UserRole.RENTER.value)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def gym(db: Session, owner: User) -> Gym:
    gym = Gym(
        owner_id=owner.id,
        name="Ironworks Gym",
        address="100 Main St, Denver, CO",
        city="Denver",
        state="CO",
        timezone="America/Denver",
        cancellation_policy=CancellationPolicy.MODERATE.value,
        contact_name="Front Desk",
        contact_phone="303-555-0123",
        stripe_account_id="acct_ironworks",
        stripe_onboarded=True,
    )
    db.add(gym)
    db.commit()
    return gym


@pytest.fixture
def space(db: Session, gym: Gym) -> Space:
    space = Space(
        gym_id=gym.id,
        name="Mat Room",
        space_type="mats",
        hourly_rate=5000,
        entry_instructions="Use the side door, code 4321",
    )
    db.add(space)
    db.commit()
    return space


BookingFactory = Callable[..., Booking]


@pytest.fixture
def make_booking(db: Session, space: Space, renter: User) -> BookingFactory:
    """Insert a booking directly, bypassing checkout."""

    def _make(
        start_at: datetime,
        hours: float = 1,
        status: BookingStatus = BookingStatus.CONFIRMED,
        payment_intent: Optional[str] = None,
        booking_space: Optional[Space] = None,
        booking_renter: Optional[User] = None,
    ) -> Booking:
        end_at = start_at + timedelta(hours=hours)
        total = int(5000 * hours)
        fee = round(total * 0.15)
        booking = Booking(
            space_id=(booking_space or space).id,
            renter_id=(booking_renter or renter).id,
            start_at=start_at,
            end_at=end_at,
            status=status.value,
            total_amount=total,
            platform_fee=fee,
            gym_payout=total - fee,
            currency="usd",
            stripe_payment_intent_id=payment_intent,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


# ============================================================================
# External collaborators
# ============================================================================


@pytest.fixture
def mock_stripe() -> Mock:
    stripe_service = Mock(spec=StripeService)
    stripe_service.create_checkout_session.return_value = CheckoutSession(
        id="cs_test_123",
        url="https://checkout.stripe.test/cs_test_123",
        expires_at=NOW + timedelta(minutes=30),
    )
    stripe_service.refund_payment.side_effect = lambda payment_intent_id, **kwargs: RefundResult(
        id="re_test_123",
        amount=kwargs.get("amount_cents") or 0,
    )
    return stripe_service
