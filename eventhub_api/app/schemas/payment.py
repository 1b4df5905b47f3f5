"""
Pydantic models for payment requests and webhook acknowledgements.

The key names follow what the web client already sends and reads
(``eventId``, ``clientSecret``).
"""

from typing import Optional

from pydantic import BaseModel, Field


class PaymentIntentCreate(BaseModel):
    event_id: Optional[int] = Field(None, alias="eventId", examples=[1])

    model_config = {"populate_by_name": True}


class PaymentIntentRead(BaseModel):
    message: str = "Payment intent created"
    client_secret: str = Field(..., alias="clientSecret")

    model_config = {"populate_by_name": True}


class WebhookAck(BaseModel):
    received: bool = True
