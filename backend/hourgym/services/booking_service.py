# backend/hourgym/services/booking_service.py
"""
Booking Service for HourGym

Owns the booking lifecycle:
- checkout: validate a requested interval and open a payment session
- completion: turn a paid checkout into a confirmed booking
- cancellation: apply the refund policy, refund, then cancel

A booking row only exists once payment succeeded. Notification intents are
written to the outbox in the same transaction as the booking change.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.booking_rules import DEFAULT_BOOKING_RULES, BookingRules
from ..core.enums import BookingStatus, CancellationPolicy, CancelledBy
from ..core.exceptions import (
    BusinessRuleException,
    CheckoutRefundedException,
    ForbiddenException,
    NotFoundException,
    ServiceException,
    SlotUnavailableException,
    ValidationException,
)
from ..models.booking import NO_OVERLAP_CONSTRAINT, Booking
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingEntity
from .base import BaseService
from .cancellation_policy import decide_refund
from .conflict_checker import find_conflicting_booking, validate_booking_request
from .notification_service import NotificationService
from .pricing import calculate_price
from .stripe_service import CheckoutSession, StripeService

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.space_repository import SpaceRepository

logger = logging.getLogger(__name__)


def _is_deadlock_error(exc: BaseException) -> bool:
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode == "40P01":
        return True
    return "deadlock detected" in str(exc).lower()


def _is_overlap_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", "") or ""
    return constraint_name == NO_OVERLAP_CONSTRAINT or NO_OVERLAP_CONSTRAINT in str(orig)


def _parse_instant(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"Checkout metadata timestamp is not timezone-aware: {value}")
    return parsed.astimezone(timezone.utc)


class BookingService(BaseService):
    """Service layer for booking operations."""

    def __init__(
        self,
        db: Session,
        rules: BookingRules = DEFAULT_BOOKING_RULES,
        stripe_service: Optional[StripeService] = None,
        notification_service: Optional[NotificationService] = None,
        booking_repository: Optional["BookingRepository"] = None,
        space_repository: Optional["SpaceRepository"] = None,
    ):
        super().__init__(db)
        self.rules = rules
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.space_repository = space_repository or RepositoryFactory.create_space_repository(db)
        self.stripe_service = stripe_service or StripeService(db)
        self.notification_service = notification_service or NotificationService(db)

    # Queries

    def _existing_bookings(
        self, space_id: str, start_at: datetime, end_at: datetime
    ) -> List[BookingEntity]:
        rows = self.repository.get_confirmed_in_window(
            space_id, start_at - self.rules.buffer, end_at + self.rules.buffer
        )
        return [BookingEntity.model_validate(row) for row in rows]

    @staticmethod
    def derive_status(booking: Booking, now: Optional[datetime] = None) -> BookingStatus:
        """Confirmed bookings whose end has passed read as completed. Never stored."""
        now = now or datetime.now(timezone.utc)
        status = BookingStatus(booking.status)
        if status is BookingStatus.CONFIRMED and now >= booking.end_at:
            return BookingStatus.COMPLETED
        return status

    @BaseService.measure_operation("get_booking")
    def get_booking(self, user: User, booking_id: str) -> Booking:
        """Fetch a booking visible to its renter or the owner of the booked gym."""
        booking = self.repository.get_booking_with_details(booking_id)
        if booking is None or user.id not in (booking.renter_id, booking.space.gym.owner_id):
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    @BaseService.measure_operation("get_booking_by_checkout_session")
    def get_booking_by_checkout_session(self, user: User, session_id: str) -> Booking:
        """
        Find the booking a checkout produced, for the payment success page.

        The webhook may not have landed yet. When no booking carries the
        session id, Stripe is asked about the session: a paid session of this
        renter answers BOOKING_PENDING so the client can poll again.
        """
        booking = self.repository.get_by_checkout_session(session_id)
        if booking is None:
            session = self.stripe_service.retrieve_checkout_session(session_id)
            metadata = session.get("metadata") or {}
            if session.get("payment_status") == "paid" and metadata.get("renter_id") == user.id:
                raise NotFoundException(
                    "Payment received; your booking is being confirmed", code="BOOKING_PENDING"
                )
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        if user.id not in (booking.renter_id, booking.space.gym.owner_id):
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    @BaseService.measure_operation("list_renter_bookings")
    def list_renter_bookings(self, renter: User, limit: int = 50, offset: int = 0) -> List[Booking]:
        return self.repository.get_renter_bookings(renter.id, limit=limit, offset=offset)

    # Checkout

    @BaseService.measure_operation("create_checkout")
    def create_checkout(
        self,
        renter: User,
        space_id: str,
        start_at: datetime,
        end_at: datetime,
        waiver_accepted: bool,
        now: Optional[datetime] = None,
    ) -> CheckoutSession:
        """
        Validate the requested interval and open a hosted checkout session.

        No booking is written here. The interval and the pricing snapshot ride
        on the session metadata and the booking is created on payment.

        Raises:
            ValidationException: Waiver not accepted
            NotFoundException: Space missing or inactive
            BusinessRuleException: Own space, gym not onboarded, or the interval fails validation
            PaymentGatewayException: The gateway could not create the session
        """
        if not waiver_accepted:
            raise ValidationException(
                "You must accept the liability waiver to book", code="WAIVER_REQUIRED"
            )

        space = self.space_repository.get_space_with_gym(space_id)
        if space is None or not space.is_active:
            raise NotFoundException("Space not found", code="SPACE_NOT_FOUND")
        gym = space.gym
        if gym.owner_id == renter.id:
            raise BusinessRuleException(
                "You cannot book a space at your own gym", code="CANNOT_BOOK_OWN_SPACE"
            )
        if not gym.stripe_onboarded or not gym.stripe_account_id:
            raise BusinessRuleException(
                "This gym is not accepting bookings yet", code="GYM_NOT_ONBOARDED"
            )

        now = now or datetime.now(timezone.utc)
        validate_booking_request(
            start_at,
            end_at,
            self._existing_bookings(space.id, start_at, end_at),
            now=now,
            rules=self.rules,
        )

        pricing = calculate_price(space.hourly_rate, start_at, end_at, self.rules)
        session = self.stripe_service.create_checkout_session(
            space=space,
            renter=renter,
            start_at=start_at,
            end_at=end_at,
            pricing=pricing,
            waiver_accepted=waiver_accepted,
            now=now,
        )
        # ensure_customer may have stored a new customer id on the renter
        self.db.commit()
        self.logger.info(
            "Checkout %s opened for space %s (%s - %s) total=%s",
            session.id,
            space.id,
            start_at.isoformat(),
            end_at.isoformat(),
            pricing.total,
        )
        return session

    @BaseService.measure_operation("complete_checkout")
    def complete_checkout(self, checkout_session: Dict[str, Any]) -> Optional[Booking]:
        """
        Create the confirmed booking for a paid checkout session.

        Idempotent by payment intent: a redelivered webhook returns the
        existing booking. Overlap is re-checked under the space lock inside the
        write transaction. A booking that lost the race is refunded in full.

        Raises:
            SlotUnavailableException: Another confirmed booking now covers the interval
            CheckoutRefundedException: The space or renter no longer exists
        """
        if checkout_session.get("payment_status") != "paid":
            self.logger.info(
                "Checkout session %s not paid (%s); no booking created",
                checkout_session.get("id"),
                checkout_session.get("payment_status"),
            )
            return None

        payment_intent_id = checkout_session.get("payment_intent")
        if not payment_intent_id:
            raise ValidationException(
                "Checkout session has no payment intent", code="MISSING_PAYMENT_INTENT"
            )

        existing = self.repository.get_by_payment_intent(payment_intent_id)
        if existing is not None:
            self.logger.info(
                "Checkout for payment intent %s already produced booking %s",
                payment_intent_id,
                existing.id,
            )
            return existing

        metadata = checkout_session.get("metadata") or {}
        try:
            space_id = metadata["space_id"]
            renter_id = metadata["renter_id"]
            start_at = _parse_instant(metadata["start_at"])
            end_at = _parse_instant(metadata["end_at"])
            total_amount = int(metadata["total_amount"])
            platform_fee = int(metadata["platform_fee"])
            gym_payout = int(metadata["gym_payout"])
        except (KeyError, ValueError) as exc:
            raise ValidationException(
                "Checkout session metadata is incomplete", code="INVALID_CHECKOUT_METADATA"
            ) from exc
        waiver_accepted = metadata.get("waiver_accepted") == "true"

        try:
            with self.transaction():
                space = self.space_repository.lock_space(space_id)
                if space is None:
                    raise NotFoundException("Space not found", code="SPACE_NOT_FOUND")
                conflict = find_conflicting_booking(
                    start_at,
                    end_at,
                    self._existing_bookings(space_id, start_at, end_at),
                    self.rules,
                )
                if conflict is not None:
                    raise SlotUnavailableException(
                        details={"conflicting_booking_id": conflict.id}
                    )

                renter = self.db.get(User, renter_id)
                if renter is None:
                    raise NotFoundException("Renter not found", code="USER_NOT_FOUND")

                paid_at = datetime.now(timezone.utc)
                booking = Booking(
                    space_id=space_id,
                    renter_id=renter_id,
                    start_at=start_at,
                    end_at=end_at,
                    status=BookingStatus.CONFIRMED.value,
                    total_amount=total_amount,
                    platform_fee=platform_fee,
                    gym_payout=gym_payout,
                    currency=checkout_session.get("currency") or "usd",
                    stripe_payment_intent_id=payment_intent_id,
                    stripe_checkout_session_id=checkout_session.get("id"),
                    waiver_accepted_at=paid_at if waiver_accepted else None,
                )
                booking.space = space
                booking.renter = renter
                self.db.add(booking)
                self.db.flush()
                self.notification_service.booking_confirmed(booking)
        except SlotUnavailableException:
            self._refund_lost_race(payment_intent_id, space_id)
            raise
        except NotFoundException as exc:
            self._refund_checkout(
                payment_intent_id,
                space_id,
                reason="booking_target_missing",
                idempotency_key=f"checkout-unfulfillable-{payment_intent_id}",
            )
            raise CheckoutRefundedException(exc.message, details={"reason": exc.code}) from exc
        except IntegrityError as exc:
            if _is_overlap_violation(exc):
                self._refund_lost_race(payment_intent_id, space_id)
                raise SlotUnavailableException() from exc
            duplicate = self.repository.get_by_payment_intent(payment_intent_id)
            if duplicate is not None:
                return duplicate
            raise
        except ServiceException as exc:
            if isinstance(exc.__cause__, OperationalError) and _is_deadlock_error(exc.__cause__):
                self._refund_lost_race(payment_intent_id, space_id)
                raise SlotUnavailableException() from exc
            raise

        self.logger.info(
            "Booking %s confirmed for space %s (%s - %s)",
            booking.id,
            space_id,
            start_at.isoformat(),
            end_at.isoformat(),
        )
        return booking

    def _refund_lost_race(self, payment_intent_id: str, space_id: str) -> None:
        self._refund_checkout(
            payment_intent_id,
            space_id,
            reason="slot_unavailable",
            idempotency_key=f"slot-unavailable-{payment_intent_id}",
        )

    def _refund_checkout(
        self, payment_intent_id: str, space_id: str, *, reason: str, idempotency_key: str
    ) -> None:
        """Refund a paid checkout in full when no booking could be created for it."""
        self.logger.warning(
            "Checkout for space %s not fulfilled (%s); refunding payment %s",
            space_id,
            reason,
            payment_intent_id,
        )
        self.stripe_service.refund_payment(
            payment_intent_id,
            metadata={"reason": reason, "space_id": space_id},
            idempotency_key=idempotency_key,
        )

    # Cancellation

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self, user: User, booking_id: str, now: Optional[datetime] = None
    ) -> Booking:
        """
        Cancel a booking as its renter or as the gym owner.

        The refund is issued before the booking is touched, so a gateway
        failure leaves the booking confirmed.

        Raises:
            NotFoundException: Booking not found
            ForbiddenException: User is neither the renter nor the gym owner
            BusinessRuleException: Already cancelled or already started
            PaymentGatewayException: The refund failed
        """
        now = now or datetime.now(timezone.utc)

        # Phase 1: read and decide
        booking = self.repository.get_booking_with_details(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")

        gym = booking.space.gym
        if user.id == booking.renter_id:
            cancelled_by = CancelledBy.RENTER
        elif user.id == gym.owner_id:
            cancelled_by = CancelledBy.GYM_OWNER
        else:
            raise ForbiddenException(
                "You don't have permission to cancel this booking", code="NOT_BOOKING_PARTY"
            )

        self._ensure_cancellable(booking, now)

        decision = decide_refund(
            cancelled_by,
            booking.start_at,
            now,
            CancellationPolicy(gym.cancellation_policy),
            booking.total_amount,
            self.rules,
        )

        # Phase 2: gateway call, before any write
        refund_amount = 0
        refund_id: Optional[str] = None
        if decision.amount > 0:
            if booking.stripe_payment_intent_id:
                refund = self.stripe_service.refund_payment(
                    booking.stripe_payment_intent_id,
                    amount_cents=decision.amount,
                    metadata={"booking_id": booking.id, "reason": decision.reason},
                    idempotency_key=f"cancel-{booking.id}",
                )
                refund_amount, refund_id = refund.amount, refund.id
            else:
                self.logger.warning(
                    "Booking %s is refund-eligible but has no payment intent", booking.id
                )

        # Phase 3: write
        with self.transaction():
            booking = self.repository.get_booking_with_details(booking_id)
            if booking is None:
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
            self._ensure_cancellable(booking, now)
            booking.cancel(cancelled_by, refund_amount=refund_amount, refund_id=refund_id, now=now)
            self.db.flush()
            self.notification_service.booking_cancelled(booking, refund_amount, cancelled_by)

        self.logger.info(
            "Booking %s cancelled by %s refund=%s (%s)",
            booking.id,
            cancelled_by.value,
            refund_amount,
            decision.reason,
        )
        return booking

    @staticmethod
    def _ensure_cancellable(booking: Booking, now: datetime) -> None:
        if booking.status == BookingStatus.CANCELLED.value:
            raise BusinessRuleException("Booking is already cancelled", code="ALREADY_CANCELLED")
        if booking.start_at <= now:
            raise BusinessRuleException(
                "Cannot cancel a booking that has already started", code="BOOKING_STARTED"
            )

    # Webhook bookkeeping

    @BaseService.measure_operation("record_refund")
    def record_refund(self, payment_intent_id: str, amount_refunded: int) -> Optional[Booking]:
        """Mirror a refund reported by the gateway onto the booking."""
        with self.transaction():
            booking = self.repository.record_refund(payment_intent_id, amount_refunded)
        if booking is None:
            self.logger.info("Refund for unknown payment intent %s ignored", payment_intent_id)
        return booking

