"""
Business logic for event comments.

Comments are append-only: they are created and listed, never edited or
deleted (other than by the cascade when their event is deleted).
"""

import logging
import sqlite3
from typing import List, Optional

from ..core.db import Database, is_foreign_key_violation
from ..core.errors import NotFoundError, ValidationError
from ..schemas.comment import CommentRead


logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


class CommentService:
    """Service for handling event comments."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def list_comments(self, event_id: int) -> List[CommentRead]:
        """Return the comments of an event with author names, newest first."""
        with self.db.cursor() as cursor:
            rows = cursor.execute(
                """
                SELECT c.id, c.content, c.created_at, c.user_id, c.event_id, u.first_name AS author
                FROM comments c
                JOIN users u ON c.user_id = u.id
                WHERE c.event_id = ?
                ORDER BY c.created_at DESC, c.id DESC
                """,
                (event_id,),
            ).fetchall()
        return [
            CommentRead(
                id=row["id"],
                content=row["content"],
                created_at=row["created_at"],
                author=row["author"],
                user_id=row["user_id"],
                event_id=row["event_id"],
            )
            for row in rows
        ]

    async def create_comment(self, event_id: int, user_id: int, content: Optional[str]) -> CommentRead:
        """Create a new comment on an event.

        The event's existence is not checked beforehand; the foreign key
        rejects a comment on a missing event, which is reported as
        ``NotFoundError``.
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment content cannot be empty")
        if len(content) > MAX_COMMENT_LENGTH:
            raise ValidationError(f"Comment must be {MAX_COMMENT_LENGTH} characters or fewer")
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    "INSERT INTO comments (content, user_id, event_id) VALUES (?, ?, ?)",
                    (content, user_id, event_id),
                )
                comment_id = cursor.lastrowid
                row = cursor.execute(
                    """
                    SELECT c.id, c.content, c.created_at, c.user_id, c.event_id, u.first_name AS author
                    FROM comments c
                    JOIN users u ON c.user_id = u.id
                    WHERE c.id = ?
                    """,
                    (comment_id,),
                ).fetchone()
        except sqlite3.IntegrityError as e:
            if is_foreign_key_violation(e):
                raise NotFoundError("The event you are trying to comment on does not exist") from e
            raise
        logger.info("User %s commented on event %s (comment %s)", user_id, event_id, comment_id)
        return CommentRead(
            id=row["id"],
            content=row["content"],
            created_at=row["created_at"],
            author=row["author"],
            user_id=row["user_id"],
            event_id=row["event_id"],
        )
