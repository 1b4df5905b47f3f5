"""
Business logic for events.

Events are owned by the account that created them.  Only the owner may
update or delete an event; the ownership check and the write run in the
same transaction so the record cannot change hands in between.
"""

import logging
import math
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.db import Database
from ..core.errors import AuthorizationError, NotFoundError, ValidationError
from ..schemas.event import EventCreate, EventRead, EventSummary, EventUpdate


logger = logging.getLogger(__name__)

EVENT_COLUMNS = (
    "id, name, description, date, location, is_free, price, owner_id, "
    "image_url, created_at, updated_at"
)
SUMMARY_COLUMNS = "id, name, date, location, is_free, price, image_url"

# Fields a client may change, in update order.
UPDATABLE_FIELDS = ("name", "description", "date", "location", "is_free", "price")

# Stripe rejects amounts above eight digits.
MAX_PRICE = 99_999_999


def _row_to_event(row: sqlite3.Row) -> EventRead:
    return EventRead(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        date=row["date"],
        location=row["location"],
        is_free=bool(row["is_free"]),
        price=row["price"],
        owner_id=row["owner_id"],
        image_url=row["image_url"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _check_pricing(is_free: bool, price: Optional[float]) -> None:
    if price is not None:
        if not math.isfinite(price):
            raise ValidationError("Price must be a finite number")
        if price < 0:
            raise ValidationError("Price cannot be negative")
        if price > MAX_PRICE:
            raise ValidationError(f"Price cannot exceed {MAX_PRICE}")
    if not is_free and (price is None or price <= 0):
        raise ValidationError("A paid event needs a positive price")


def _to_utc_text(value: datetime) -> str:
    """Store dates as UTC ISO-8601 so they sort as text; naive dates are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _to_column(field: str, value: Any) -> Any:
    if field == "is_free":
        return 1 if value else 0
    if field == "date":
        return _to_utc_text(value)
    if isinstance(value, str):
        return value.strip()
    return value


class EventService:
    """Service for managing events."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def list_events(self) -> List[EventSummary]:
        """Return every event, most recent date first."""
        with self.db.cursor() as cursor:
            rows = cursor.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM events ORDER BY date DESC, id DESC"
            ).fetchall()
        return [
            EventSummary(
                id=row["id"],
                name=row["name"],
                date=row["date"],
                location=row["location"],
                is_free=bool(row["is_free"]),
                price=row["price"],
                image_url=row["image_url"],
            )
            for row in rows
        ]

    async def get_event(self, event_id: int) -> EventRead:
        """Retrieve a single event by ID, or raise ``NotFoundError``."""
        with self.db.cursor() as cursor:
            row = cursor.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?",
                (event_id,),
            ).fetchone()
        if not row:
            raise NotFoundError("Event not found")
        return _row_to_event(row)

    async def create_event(
        self, owner_id: int, data: EventCreate, image_ref: Optional[str] = None
    ) -> EventRead:
        """Create a new event owned by ``owner_id``.

        ``name``, ``description`` and ``date`` are required.  When
        ``is_free`` is not given, the event is free unless a positive
        price is supplied.  ``image_ref`` is the reference of an image
        already stored by ``ImageStore``.
        """
        if not (data.name or "").strip() or not (data.description or "").strip() or data.date is None:
            raise ValidationError("Fields name, description and date are required")
        is_free = data.is_free if data.is_free is not None else not data.price
        _check_pricing(is_free, data.price)

        with self.db.transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO events (name, description, date, location, is_free, price, owner_id, image_url)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.name.strip(),
                    data.description.strip(),
                    _to_utc_text(data.date),
                    data.location,
                    1 if is_free else 0,
                    data.price,
                    owner_id,
                    image_ref,
                ),
            )
            event_id = cursor.lastrowid
            row = cursor.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)
            ).fetchone()
        logger.info("User %s created event %s '%s'", owner_id, event_id, data.name)
        return _row_to_event(row)

    async def update_event(
        self,
        event_id: int,
        owner_id: int,
        updates: EventUpdate,
        image_ref: Optional[str] = None,
    ) -> EventRead:
        """Apply a partial update to an event owned by ``owner_id``.

        Only fields that were supplied with a non-null value change; all
        others keep their stored value, the image included unless a new
        ``image_ref`` is given.  ``updated_at`` is refreshed.
        The merged record must still satisfy the pricing rule.
        """
        changes: Dict[str, Any] = {
            k: v for k, v in updates.model_dump(exclude_none=True).items() if k in UPDATABLE_FIELDS
        }
        for field in ("name", "description"):
            if field in changes and not changes[field].strip():
                raise ValidationError(f"Field {field} cannot be empty")
        if image_ref is not None:
            changes["image_url"] = image_ref

        with self.db.transaction() as cursor:
            row = cursor.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)
            ).fetchone()
            if not row:
                raise NotFoundError("Event not found")
            if row["owner_id"] != owner_id:
                logger.warning("User %s attempted to update event %s they do not own", owner_id, event_id)
                raise AuthorizationError("Only the organizer can modify this event")

            is_free = changes.get("is_free", bool(row["is_free"]))
            price = changes.get("price", row["price"])
            _check_pricing(is_free, price)

            fields = [f"{field} = ?" for field in changes]
            values = [_to_column(field, value) for field, value in changes.items()]
            fields.append("updated_at = CURRENT_TIMESTAMP")
            values.append(event_id)
            cursor.execute(f"UPDATE events SET {', '.join(fields)} WHERE id = ?", tuple(values))
            updated = cursor.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)
            ).fetchone()
        logger.info("User %s updated event %s (%s)", owner_id, event_id, ", ".join(changes) or "no fields")
        return _row_to_event(updated)

    async def delete_event(self, event_id: int, owner_id: int) -> None:
        """Delete an event owned by ``owner_id``.

        Registrations and comments for the event are removed by the
        ``ON DELETE CASCADE`` foreign keys.
        """
        with self.db.transaction() as cursor:
            row = cursor.execute(
                "SELECT owner_id FROM events WHERE id = ?", (event_id,)
            ).fetchone()
            if not row:
                raise NotFoundError("Event not found")
            if row["owner_id"] != owner_id:
                logger.warning("User %s attempted to delete event %s they do not own", owner_id, event_id)
                raise AuthorizationError("Only the organizer can delete this event")
            cursor.execute("DELETE FROM events WHERE id = ?", (event_id,))
        logger.info("User %s deleted event %s", owner_id, event_id)
