"""
Business logic for payments.

Paid events are not registered for directly.  The client first asks for
a payment intent (``create_payment_intent``), completes the payment with
the provider using the returned client secret, and the provider then
calls the webhook.  ``handle_webhook`` verifies the delivery and records
the registration through ``RegistrationService``.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from ..core.db import Database
from ..core.errors import DomainError, NotFoundError, ValidationError
from ..schemas.payment import PaymentIntentRead
from .payment_gateway import PaymentGateway
from .registration_service import RegistrationService


logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


def to_minor_units(price: float) -> int:
    """Round ``price`` half-up to a whole amount of a zero-decimal currency.

    Raises ``ValidationError`` for a price that has no such amount
    (infinite, NaN, or too large to quantize).
    """
    try:
        return int(Decimal(str(price)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError, OverflowError) as e:
        raise ValidationError("Invalid amount for this paid event") from e


class PaymentService:
    """Service coordinating the payment provider and registrations."""

    def __init__(
        self,
        db: Database,
        gateway: PaymentGateway,
        registrations: RegistrationService,
        currency: str = "xof",
    ) -> None:
        self.db = db
        self.gateway = gateway
        self.registrations = registrations
        self.currency = currency

    async def create_payment_intent(self, event_id: Optional[int], user_id: int) -> PaymentIntentRead:
        """Create a payment intent for ``user_id`` attending ``event_id``.

        The event and account identifiers travel with the intent as
        metadata and come back in the webhook.  Only the intent id is
        logged; the client secret is returned to the caller and nowhere
        else.
        """
        if event_id is None:
            raise ValidationError("eventId is required")
        with self.db.cursor() as cursor:
            event = cursor.execute(
                "SELECT id, name, price FROM events WHERE id = ?", (event_id,)
            ).fetchone()
        if not event:
            raise NotFoundError("Event not found")
        if event["price"] is None or event["price"] <= 0:
            raise ValidationError("Invalid amount for this paid event")

        amount = to_minor_units(event["price"])
        if amount <= 0:
            raise ValidationError("Invalid amount for this paid event")
        metadata = {
            "eventId": str(event["id"]),
            "userId": str(user_id),
            "eventName": event["name"],
        }
        # The provider call is a blocking HTTP request; keep it off the event loop.
        intent_id, client_secret = await run_in_threadpool(
            self.gateway.create_payment_intent, amount, self.currency, metadata
        )
        logger.info(
            "Created payment intent %s for user %s, event %s (%s %s)",
            intent_id, user_id, event_id, amount, self.currency,
        )
        return PaymentIntentRead(client_secret=client_secret)

    async def handle_webhook(self, payload: bytes, signature_header: Optional[str]) -> Dict[str, bool]:
        """Process a webhook delivery from the payment provider.

        Signature failures raise ``InvalidSignatureError``.  Once the
        delivery is authenticated it is always acknowledged: anything
        that goes wrong afterwards is logged here, since a failure
        response would only make the provider retry the same delivery.
        """
        event = self.gateway.construct_event(payload, signature_header)
        event_type = event.get("type")
        if event_type != PAYMENT_SUCCEEDED:
            logger.debug("Ignoring webhook event %s of type %s", event.get("id"), event_type)
            return {"received": True}

        try:
            await self._register_from_intent(event)
        except Exception:
            logger.exception("Failed to record registration for webhook event %s", event.get("id"))
        return {"received": True}

    async def _register_from_intent(self, event: Dict[str, Any]) -> None:
        intent = (event.get("data") or {}).get("object") or {}
        metadata = intent.get("metadata") or {}
        try:
            event_id = int(metadata["eventId"])
            user_id = int(metadata["userId"])
        except (KeyError, TypeError, ValueError):
            logger.error("Payment intent %s has no usable eventId/userId metadata", intent.get("id"))
            return
        try:
            await self.registrations.confirm_paid_registration(event_id, user_id)
        except DomainError as e:
            logger.error(
                "Payment intent %s succeeded but registration failed: %s", intent.get("id"), e
            )
