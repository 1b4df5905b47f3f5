"""
Event endpoints.

Reading is public.  Creating requires a bearer token; updating and
deleting additionally require being the event's organizer.

Create and update take either a JSON body or ``multipart/form-data``.
Only the multipart form can carry an ``image`` file; the stored image's
reference becomes the event's ``image_url``, which clients cannot set
directly.
"""

from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from starlette.datastructures import UploadFile

from eventhub_api.app.api.deps import get_current_user, get_event_service, get_image_store
from eventhub_api.app.core.errors import ValidationError
from eventhub_api.app.schemas.event import (
    EventCreate,
    EventRead,
    EventSummary,
    EventUpdate,
    MessageResponse,
)
from eventhub_api.app.services.event_service import EventService
from eventhub_api.app.services.image_store import ImageStore


router = APIRouter()

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

# Request body shared by create and update, for the generated docs.
EVENT_BODY_DOC = {
    "requestBody": {
        "content": {
            "application/json": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "nom": {"type": "string"},
                        "description": {"type": "string"},
                        "date": {"type": "string", "format": "date-time"},
                        "lieu": {"type": "string"},
                        "est_gratuit": {"type": "boolean"},
                        "prix": {"type": "number"},
                    },
                }
            },
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "nom": {"type": "string"},
                        "description": {"type": "string"},
                        "date": {"type": "string", "format": "date-time"},
                        "lieu": {"type": "string"},
                        "est_gratuit": {"type": "boolean"},
                        "prix": {"type": "number"},
                        "image": {"type": "string", "format": "binary"},
                    },
                }
            },
        }
    }
}

SchemaT = TypeVar("SchemaT", bound=BaseModel)


async def read_event_body(request: Request) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """Return the submitted fields and the uploaded image, if any.

    Empty form fields are treated as not supplied, so a form can leave
    out a value the same way a JSON body does.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        image = form.get("image")
        fields = {
            key: value
            for key, value in form.items()
            if key != "image" and isinstance(value, str) and value.strip() != ""
        }
        if isinstance(image, UploadFile) and image.filename:
            return fields, image
        return fields, None

    raw = await request.body()
    if not raw.strip():
        return {}, None
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be JSON or form data") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be an object")
    return body, None


def parse_fields(schema: Type[SchemaT], fields: Dict[str, Any]) -> SchemaT:
    try:
        return schema.model_validate(fields)
    except SchemaValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid event fields: {problems}") from e


@router.get("", response_model=List[EventSummary])
async def list_events(service: EventService = Depends(get_event_service)) -> List[EventSummary]:
    """List all events, most recent date first."""
    return await service.list_events()


@router.get("/{event_id}", response_model=EventRead)
async def get_event(event_id: int, service: EventService = Depends(get_event_service)) -> EventRead:
    return await service.get_event(event_id)


@router.post(
    "",
    response_model=EventRead,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=EVENT_BODY_DOC,
)
async def create_event(
    request: Request,
    current_user: dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    images: ImageStore = Depends(get_image_store),
) -> EventRead:
    """Create an event organized by the authenticated account.

    ``nom``, ``description`` and ``date`` are required; a paid event
    (``est_gratuit`` false) needs a positive ``prix``.  An optional
    ``image`` file may be sent with a multipart form.
    """
    fields, image = await read_event_body(request)
    data = parse_fields(EventCreate, fields)
    image_ref = await images.save(image) if image is not None else None
    try:
        return await service.create_event(current_user["user_id"], data, image_ref=image_ref)
    except Exception:
        images.discard(image_ref)
        raise


@router.put("/{event_id}", response_model=EventRead, openapi_extra=EVENT_BODY_DOC)
async def update_event(
    event_id: int,
    request: Request,
    current_user: dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
    images: ImageStore = Depends(get_image_store),
) -> EventRead:
    """Update an event (organizer only).

    Partial updates are supported; any unspecified fields remain
    unchanged, the image included when no new file is sent.
    """
    fields, image = await read_event_body(request)
    updates = parse_fields(EventUpdate, fields)
    image_ref = await images.save(image) if image is not None else None
    try:
        return await service.update_event(
            event_id, current_user["user_id"], updates, image_ref=image_ref
        )
    except Exception:
        images.discard(image_ref)
        raise


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: int,
    current_user: dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> MessageResponse:
    """Delete an event (organizer only) with its registrations and comments."""
    await service.delete_event(event_id, current_user["user_id"])
    return MessageResponse(message="Event deleted")
