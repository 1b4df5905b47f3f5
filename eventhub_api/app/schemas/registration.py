"""
Pydantic models for event registrations.

A registration links one account to one event.  It carries no state of
its own beyond its creation time: once it exists the account is
confirmed to attend.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RegistrationRead(BaseModel):
    user_id: int = Field(..., alias="utilisateur_id")
    event_id: int = Field(..., alias="evenement_id")
    created_at: Optional[datetime] = Field(None, alias="cree_le")

    model_config = {"populate_by_name": True, "from_attributes": True}


class RegistrationDetail(RegistrationRead):
    """Registration joined with the attendee's account, for organizers."""

    first_name: str = Field(..., alias="prenom")
    last_name: str = Field(..., alias="nom")
    email: str


class RegistrationCreated(BaseModel):
    message: str
    registration: RegistrationRead
