"""
Payment endpoints.

``create-payment-intent`` starts a payment for a paid event.  The
webhook is called by Stripe, not by users: it carries no bearer token
and is authenticated by the ``Stripe-Signature`` header, which is
checked against the raw request body.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from eventhub_api.app.api.deps import get_current_user, get_payment_service
from eventhub_api.app.schemas.payment import PaymentIntentCreate, PaymentIntentRead, WebhookAck
from eventhub_api.app.services.payment_service import PaymentService


router = APIRouter()


@router.post("/create-payment-intent", response_model=PaymentIntentRead)
async def create_payment_intent(
    data: PaymentIntentCreate,
    current_user: dict = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentIntentRead:
    """Create a payment intent for a paid event and return its client secret."""
    return await service.create_payment_intent(data.event_id, current_user["user_id"])


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    service: PaymentService = Depends(get_payment_service),
) -> WebhookAck:
    """Receive a Stripe event.

    Answers 400 if the signature does not verify.  Any verified
    delivery is acknowledged, whatever its type or outcome.
    """
    payload = await request.body()
    result = await service.handle_webhook(payload, stripe_signature)
    return WebhookAck(**result)
