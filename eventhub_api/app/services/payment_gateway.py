"""
Payment provider adapter.

``PaymentGateway`` is the narrow interface the payment service depends
on: create a payment intent, and turn a signed webhook delivery into a
verified event.  ``StripeGateway`` implements it with the ``stripe``
library.  Tests substitute their own gateway for intent creation so no
network call is made.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import stripe

from ..core.errors import InvalidSignatureError, UnclassifiedError


logger = logging.getLogger(__name__)


class PaymentGateway(ABC):
    """Interface for payment provider operations."""

    @abstractmethod
    def create_payment_intent(
        self, amount: int, currency: str, metadata: Dict[str, str]
    ) -> Tuple[str, str]:
        """Create an intent and return ``(intent_id, client_secret)``."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        """Verify a webhook delivery and return the parsed event.

        Raises ``InvalidSignatureError`` if the payload cannot be
        authenticated.
        """
        ...


class StripeGateway(PaymentGateway):
    """Stripe-backed gateway.

    The secret key is passed per request rather than assigned to the
    global ``stripe.api_key`` so several configurations can coexist in
    one process.
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def create_payment_intent(
        self, amount: int, currency: str, metadata: Dict[str, str]
    ) -> Tuple[str, str]:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error("Stripe rejected payment intent creation: %s", e.user_message or type(e).__name__)
            raise UnclassifiedError("Could not create the payment intent") from e
        return intent.id, intent.client_secret

    def construct_event(self, payload: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        """Check the ``Stripe-Signature`` header against the raw body.

        The payload must be the body exactly as received; re-serialised
        JSON would not match the signature.
        """
        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET is not configured; rejecting webhook")
            raise InvalidSignatureError("Webhook endpoint is not configured")
        if not signature_header:
            raise InvalidSignatureError("Missing Stripe-Signature header")
        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature_header, self.webhook_secret, self.tolerance
            )
        except UnicodeDecodeError as e:
            raise InvalidSignatureError("Webhook payload is not valid UTF-8") from e
        except stripe.SignatureVerificationError as e:
            raise InvalidSignatureError(f"Webhook signature verification failed: {e}") from e
        try:
            event = json.loads(body)
        except ValueError as e:
            raise InvalidSignatureError("Webhook payload is not valid JSON") from e
        if not isinstance(event, dict):
            raise InvalidSignatureError("Webhook payload is not an event object")
        return event
