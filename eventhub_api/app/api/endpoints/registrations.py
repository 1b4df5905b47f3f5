"""
Registration endpoints.

``POST /events/{id}/inscriptions`` is the direct path and only works for
free events; paid events answer 402 and are registered through the
payment webhook instead.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status

from eventhub_api.app.api.deps import get_current_user, get_registration_service
from eventhub_api.app.schemas.registration import RegistrationCreated, RegistrationDetail
from eventhub_api.app.services.registration_service import RegistrationService


router = APIRouter()


@router.post(
    "/events/{event_id}/inscriptions",
    response_model=RegistrationCreated,
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationCreated:
    """Register the authenticated account for a free event.

    Returns 402 for a paid event and 409 if already registered.
    """
    registration = await service.register_direct(event_id, current_user["user_id"])
    return RegistrationCreated(message="Registration completed", registration=registration)


@router.get(
    "/events/{event_id}/inscriptions",
    response_model=List[RegistrationDetail],
)
async def list_event_registrations(
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
    service: RegistrationService = Depends(get_registration_service),
) -> List[RegistrationDetail]:
    """List the registered attendees of an event (organizer only)."""
    return await service.list_registrations(event_id, current_user["user_id"])
