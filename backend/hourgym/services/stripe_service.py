"""
Stripe Service for HourGym

Payment gateway for bookings. Checkout uses Stripe Connect destination
charges: the renter pays the platform, the platform fee is kept as an
application fee and the rest is transferred to the gym's connected account.

The gateway never creates or mutates bookings. BookingService decides what
to do with the results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
import stripe

from ..core.config import settings
from ..core.constants import ERROR_PAYMENT_FAILED, ERROR_REFUND_FAILED
from ..core.exceptions import (
    BusinessRuleException,
    NotFoundException,
    PaymentGatewayException,
    ServiceException,
    ValidationException,
)
from ..models.gym import Gym, Space
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .pricing import PricingResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str
    expires_at: datetime


@dataclass(frozen=True)
class RefundResult:
    id: str
    amount: int


class StripeService(BaseService):
    """Service for all Stripe API interactions."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.space_repository = RepositoryFactory.create_space_repository(db)
        self.stripe_configured = False
        secret = settings.stripe_secret_key.get_secret_value()
        if secret:
            stripe.api_key = secret
            stripe.max_network_retries = 1
            self.stripe_configured = True
        else:
            self.logger.warning("Stripe secret key not configured - payment calls will fail")

    def _check_stripe_configured(self) -> None:
        if not self.stripe_configured:
            raise ServiceException(
                "Stripe service not configured. Please check STRIPE_SECRET_KEY environment variable."
            )

    @BaseService.measure_operation("stripe_ensure_customer")
    def ensure_customer(self, user: User) -> str:
        """Return the renter's Stripe customer id, creating the customer on first checkout."""
        if user.stripe_customer_id:
            return str(user.stripe_customer_id)
        self._check_stripe_configured()
        try:
            customer = stripe.Customer.create(
                email=user.email,
                name=user.full_name,
                metadata={"user_id": user.id},
            )
        except stripe.StripeError as e:
            self.logger.error(f"Stripe customer creation failed for user {user.id}: {str(e)}")
            raise PaymentGatewayException(ERROR_PAYMENT_FAILED) from e
        user.stripe_customer_id = customer.id
        self.db.flush()
        return str(customer.id)

    @BaseService.measure_operation("stripe_create_checkout_session")
    def create_checkout_session(
        self,
        *,
        space: Space,
        renter: User,
        start_at: datetime,
        end_at: datetime,
        pricing: PricingResult,
        waiver_accepted: bool,
        now: Optional[datetime] = None,
    ) -> CheckoutSession:
        """
        Create a time-boxed hosted checkout session.

        The interval and the computed pricing ride along as metadata so the
        completion webhook can create the booking without recomputing.
        """
        self._check_stripe_configured()
        gym: Gym = space.gym
        now = now or datetime.now(timezone.utc)
        expires_at = now + timedelta(minutes=settings.checkout_session_minutes)
        hours_label = f"{pricing.hours:g} hour{'s' if pricing.hours != 1 else ''}"

        metadata = {
            "space_id": space.id,
            "renter_id": renter.id,
            "start_at": start_at.isoformat(),
            "end_at": end_at.isoformat(),
            "waiver_accepted": "true" if waiver_accepted else "false",
            "total_amount": str(pricing.total),
            "platform_fee": str(pricing.platform_fee),
            "gym_payout": str(pricing.gym_payout),
        }

        try:
            customer_id = self.ensure_customer(renter)
            session = stripe.checkout.Session.create(
                mode="payment",
                customer=customer_id,
                line_items=[
                    {
                        "price_data": {
                            "currency": settings.stripe_currency,
                            "unit_amount": pricing.total,
                            "product_data": {
                                "name": f"{space.name} at {gym.name}",
                                "description": f"{hours_label} on {start_at.date().isoformat()}",
                            },
                        },
                        "quantity": 1,
                    }
                ],
                payment_intent_data={
                    "application_fee_amount": pricing.platform_fee,
                    "transfer_data": {"destination": gym.stripe_account_id},
                    "metadata": {
                        "space_id": space.id,
                        "renter_id": renter.id,
                        "start_at": metadata["start_at"],
                        "end_at": metadata["end_at"],
                    },
                },
                success_url=f"{settings.frontend_url}/bookings/{{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{settings.frontend_url}/spaces/{space.id}",
                expires_at=int(expires_at.timestamp()),
                metadata=metadata,
            )
        except stripe.StripeError as e:
            self.logger.error(f"Stripe checkout creation failed for space {space.id}: {str(e)}")
            raise PaymentGatewayException(ERROR_PAYMENT_FAILED) from e

        self.logger.info(f"Checkout session {session.id} created for space {space.id}")
        return CheckoutSession(id=session.id, url=session.url, expires_at=expires_at)

    @BaseService.measure_operation("stripe_retrieve_checkout_session")
    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        """
        Fetch a checkout session from Stripe.

        Raises:
            NotFoundException: Stripe does not know the session
            PaymentGatewayException: Any other gateway failure
        """
        self._check_stripe_configured()
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.InvalidRequestError as e:
            raise NotFoundException(
                "Checkout session not found", code="CHECKOUT_SESSION_NOT_FOUND"
            ) from e
        except stripe.StripeError as e:
            self.logger.error(f"Stripe checkout lookup failed for {session_id}: {str(e)}")
            raise PaymentGatewayException(ERROR_PAYMENT_FAILED) from e
        return session.to_dict() if hasattr(session, "to_dict") else dict(session)

    @BaseService.measure_operation("stripe_refund_payment")
    def refund_payment(
        self,
        payment_intent_id: str,
        *,
        amount_cents: Optional[int] = None,
        metadata: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> RefundResult:
        """
        Refund a captured payment (in full when ``amount_cents`` is None).

        Raises:
            BusinessRuleException: The charge was already refunded
            PaymentGatewayException: Any other gateway failure
        """
        self._check_stripe_configured()
        params: Dict[str, Any] = {
            "payment_intent": payment_intent_id,
            "reason": "requested_by_customer",
            "reverse_transfer": True,
            "refund_application_fee": True,
            "metadata": metadata or {},
        }
        if amount_cents is not None:
            params["amount"] = amount_cents
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            refund = stripe.Refund.create(**params)
        except stripe.StripeError as e:
            if getattr(e, "code", None) == "charge_already_refunded":
                raise BusinessRuleException(
                    "This booking has already been refunded", code="ALREADY_REFUNDED"
                ) from e
            self.logger.error(f"Stripe refund failed for {payment_intent_id}: {str(e)}")
            raise PaymentGatewayException(ERROR_REFUND_FAILED) from e

        self.logger.info(f"Refund {refund.id} issued for {payment_intent_id} ({refund.amount})")
        return RefundResult(id=refund.id, amount=int(refund.amount))

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify a webhook signature and parse the event."""
        secret = settings.stripe_webhook_secret.get_secret_value()
        if not secret:
            raise ServiceException("Webhook secret not configured")
        if not signature:
            raise ValidationException("Missing Stripe signature", code="INVALID_SIGNATURE")
        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            self.logger.warning("Invalid webhook signature")
            raise ValidationException("Invalid signature", code="INVALID_SIGNATURE") from e
        except ValueError as e:
            raise ValidationException("Invalid payload", code="INVALID_PAYLOAD") from e
        return event.to_dict() if hasattr(event, "to_dict") else dict(event)

    @BaseService.measure_operation("stripe_handle_account_updated")
    def handle_account_updated(self, account: Dict[str, Any]) -> Optional[Gym]:
        """Mirror the connected account's ability to take charges onto the gym."""
        gym = self.space_repository.get_gym_by_stripe_account(account.get("id", ""))
        if gym is None:
            self.logger.info(f"account.updated for unknown account {account.get('id')}")
            return None
        onboarded = bool(account.get("charges_enabled"))
        with self.transaction():
            gym.stripe_onboarded = onboarded
        self.logger.info(f"Gym {gym.id} stripe_onboarded={onboarded}")
        return gym
