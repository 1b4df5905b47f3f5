"""
Comment endpoints.

Anyone may read the comments of an event; posting requires a bearer
token.  Posting on an event that does not exist answers 404.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status

from eventhub_api.app.api.deps import get_comment_service, get_current_user
from eventhub_api.app.schemas.comment import CommentCreate, CommentRead
from eventhub_api.app.services.comment_service import CommentService


router = APIRouter()


@router.get("/events/{event_id}/comments", response_model=List[CommentRead])
async def list_comments(
    event_id: int = Path(..., description="ID of the event"),
    service: CommentService = Depends(get_comment_service),
) -> List[CommentRead]:
    return await service.list_comments(event_id)


@router.post(
    "/events/{event_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    data: CommentCreate,
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
) -> CommentRead:
    """Post a comment on an event."""
    return await service.create_comment(event_id, current_user["user_id"], data.content)
