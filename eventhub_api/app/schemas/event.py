"""
Pydantic models for event data.

``EventCreate`` and ``EventUpdate`` share ``EventBase`` where every
field is optional: required fields on creation are enforced by
``EventService`` so that a missing name, description or date yields a
400 with a readable message.  On update, a field left out (or sent as
``null``) keeps its stored value.

The image is not part of these models: it arrives as an uploaded file
and ``image_url`` is set by the server.

``EventSummary`` is the projection used by the listing endpoint;
``EventRead`` is the full record.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class EventBase(BaseModel):
    name: Optional[str] = Field(None, alias="nom", examples=["Concert au parc"])
    description: Optional[str] = Field(None, examples=["Open-air concert with local bands"])
    date: Optional[datetime] = Field(None, examples=["2026-06-21T18:00:00Z"])
    location: Optional[str] = Field(None, alias="lieu", examples=["Dakar"])
    is_free: Optional[bool] = Field(None, alias="est_gratuit", examples=[False])
    price: Optional[float] = Field(None, alias="prix", examples=[5000])

    model_config = {"populate_by_name": True}


class EventCreate(EventBase):
    """Schema for creating an event."""
    pass


class EventUpdate(EventBase):
    """Schema for a partial update; only supplied fields change."""
    pass


class EventSummary(BaseModel):
    """Listing projection of an event."""

    id: int
    name: str = Field(..., alias="nom")
    date: datetime
    location: Optional[str] = Field(None, alias="lieu")
    is_free: bool = Field(..., alias="est_gratuit")
    price: Optional[float] = Field(None, alias="prix")
    image_url: Optional[str] = None

    model_config = {"populate_by_name": True, "from_attributes": True}


class EventRead(EventSummary):
    """Full event record."""

    description: str
    owner_id: int = Field(..., alias="organisateur_id")
    created_at: Optional[datetime] = Field(None, alias="cree_le")
    updated_at: Optional[datetime] = Field(None, alias="mis_a_jour_le")


class MessageResponse(BaseModel):
    message: str
