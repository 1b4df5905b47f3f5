"""
Pydantic schemas for event comments.

Comments are immutable once created and are listed newest first with
the author's first name.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    """Schema for posting a comment."""

    content: Optional[str] = Field(None, alias="contenu", description="Comment text")

    model_config = {"populate_by_name": True}


class CommentRead(BaseModel):
    """Schema for reading a comment from the API."""

    id: int
    content: str = Field(..., alias="contenu")
    created_at: Optional[datetime] = Field(None, alias="cree_le")
    author: Optional[str] = Field(None, alias="auteur")
    user_id: Optional[int] = Field(None, alias="utilisateur_id")
    event_id: Optional[int] = Field(None, alias="evenement_id")

    model_config = {"populate_by_name": True, "from_attributes": True}
