"""
Stripe Service for the booking platform

Payment gateway adapter: creates payment intents for checkout and verifies
webhook signatures. Without a secret key the service runs in mock mode and
hands out ``mock_pi_<booking_id>`` intents so local checkout still works.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session
import stripe

from ..core.config import settings
from ..core.exceptions import (
    ServiceException,
    UpstreamServiceException,
    WebhookAuthenticationException,
)
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntentResult:
    id: str
    client_secret: Optional[str]
    amount_cents: int
    currency: str
    mock: bool = False


class StripeService(BaseService):
    """Service for all Stripe API interactions."""

    def __init__(self, db: Session):
        super().__init__(db)

        self.stripe_configured = False
        secret_key = settings.stripe_secret_key.get_secret_value()
        if secret_key:
            stripe.api_key = secret_key
            # Bounded timeout and a single retry so a slow Stripe never pins a worker
            stripe.default_http_client = stripe.RequestsClient(
                timeout=settings.stripe_timeout_seconds
            )
            stripe.max_network_retries = settings.stripe_max_network_retries
            self.stripe_configured = True
            self.logger.info("Stripe service configured successfully")
        else:
            self.logger.warning(
                "Stripe secret key not configured - service will operate in mock mode"
            )

    @BaseService.measure_operation("stripe.create_payment_intent")
    def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: Mapping[str, str],
        *,
        booking_id: str,
    ) -> PaymentIntentResult:
        """
        Create a PaymentIntent for ``amount_cents``.

        Raises:
            UpstreamServiceException: Stripe could not be reached or refused the call
        """
        if not self.stripe_configured:
            self.logger.warning(f"Using mock payment intent for booking {booking_id}")
            mock_id = f"mock_pi_{booking_id}"
            return PaymentIntentResult(
                id=mock_id,
                client_secret=f"{mock_id}_secret_mock",
                amount_cents=amount_cents,
                currency=currency,
                mock=True,
            )

        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=currency,
                automatic_payment_methods={"enabled": True},
                metadata={"booking_id": booking_id, **dict(metadata)},
                idempotency_key=f"booking:{booking_id}",
            )
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error creating payment intent: {str(e)}")
            raise UpstreamServiceException(
                "Failed to create payment intent", details={"booking_id": booking_id}
            ) from e

        self.logger.info(f"Created payment intent {intent.id} for booking {booking_id}")
        return PaymentIntentResult(
            id=intent.id,
            client_secret=getattr(intent, "client_secret", None),
            amount_cents=amount_cents,
            currency=currency,
        )

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify a webhook delivery and return the event as a plain dict.

        Each configured webhook secret is tried in order.

        Raises:
            WebhookAuthenticationException: missing or invalid signature, or bad payload
            ServiceException: no webhook secret is configured
        """
        if not signature:
            self.logger.warning("Webhook received without signature")
            raise WebhookAuthenticationException("Missing stripe-signature header")

        webhook_secrets = settings.webhook_secrets
        if not webhook_secrets:
            self.logger.error("No webhook secrets configured")
            raise ServiceException("Webhook configuration error", code="WEBHOOK_NOT_CONFIGURED")

        for index, secret in enumerate(webhook_secrets):
            try:
                stripe.Webhook.construct_event(payload, signature, secret)
            except stripe.SignatureVerificationError:
                continue
            except ValueError as e:
                self.logger.warning(f"Invalid webhook payload: {str(e)}")
                raise WebhookAuthenticationException("Invalid webhook payload") from e
            self.logger.debug(f"Webhook verified with secret #{index + 1}")
            try:
                return dict(json.loads(payload))
            except (TypeError, ValueError) as e:
                raise WebhookAuthenticationException("Invalid webhook payload") from e

        self.logger.error(
            f"Webhook signature verification failed with all {len(webhook_secrets)} configured secrets"
        )
        raise WebhookAuthenticationException()
