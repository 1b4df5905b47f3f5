"""
Business logic for event registrations.

A registration can come into existence two ways:

* directly, when an account registers for a free event
  (``register_direct``);
* asynchronously, when the payment provider reports a succeeded payment
  for a paid event (``confirm_paid_registration``, called from the
  webhook handler).

The two paths are not coordinated and may race for the same
(account, event) pair, and the provider retries webhook deliveries.
Neither path checks for an existing row before inserting: the
``registrations`` primary key is the only guard, and its violation is
translated into the outcome each path needs (``ConflictError`` for the
direct path, an idempotent no-op for the webhook path).
"""

import logging
import sqlite3
from typing import List

from ..core.db import Database, is_foreign_key_violation, is_unique_violation
from ..core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PaymentRequiredError,
)
from ..schemas.registration import RegistrationDetail, RegistrationRead


logger = logging.getLogger(__name__)


class RegistrationService:
    """Service for the registration state machine.

    Per (account, event) pair the only transition is
    ``unregistered -> registered``; there is no cancellation.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def _fetch(self, cursor: sqlite3.Cursor, event_id: int, user_id: int) -> RegistrationRead:
        row = cursor.execute(
            "SELECT user_id, event_id, created_at FROM registrations WHERE user_id = ? AND event_id = ?",
            (user_id, event_id),
        ).fetchone()
        return RegistrationRead(
            user_id=row["user_id"],
            event_id=row["event_id"],
            created_at=row["created_at"],
        )

    async def register_direct(self, event_id: int, user_id: int) -> RegistrationRead:
        """Register ``user_id`` for a free event.

        Raises ``NotFoundError`` if the event does not exist,
        ``PaymentRequiredError`` if it is a paid event and
        ``ConflictError`` if the account is already registered, whichever
        path created the existing registration.
        """
        with self.db.cursor() as cursor:
            event = cursor.execute(
                "SELECT id, is_free FROM events WHERE id = ?", (event_id,)
            ).fetchone()
        if not event:
            raise NotFoundError("Event not found")
        if not event["is_free"]:
            raise PaymentRequiredError("This event is paid. Please complete the payment first.")

        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    "INSERT INTO registrations (user_id, event_id) VALUES (?, ?)",
                    (user_id, event_id),
                )
                registration = self._fetch(cursor, event_id, user_id)
        except sqlite3.IntegrityError as e:
            if is_unique_violation(e):
                logger.info("User %s is already registered for event %s", user_id, event_id)
                raise ConflictError("You are already registered for this event") from e
            if is_foreign_key_violation(e):
                # The event was deleted after the lookup, or the account is gone.
                raise NotFoundError("Event not found") from e
            raise
        logger.info("User %s registered for free event %s", user_id, event_id)
        return registration

    async def confirm_paid_registration(self, event_id: int, user_id: int) -> bool:
        """Record the registration confirmed by a succeeded payment.

        Idempotent: returns True if a registration was created and False
        if the pair was already registered (a redelivered webhook, or a
        racing direct registration).  Raises ``NotFoundError`` if the
        event or account does not exist.
        """
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO registrations (user_id, event_id) VALUES (?, ?)
                    ON CONFLICT (user_id, event_id) DO NOTHING
                    """,
                    (user_id, event_id),
                )
                created = cursor.rowcount == 1
        except sqlite3.IntegrityError as e:
            if is_foreign_key_violation(e):
                raise NotFoundError(f"Event {event_id} or user {user_id} not found") from e
            raise
        if created:
            logger.info("User %s registered for event %s after payment", user_id, event_id)
        else:
            logger.info("User %s was already registered for event %s", user_id, event_id)
        return created

    async def is_registered(self, event_id: int, user_id: int) -> bool:
        with self.db.cursor() as cursor:
            row = cursor.execute(
                "SELECT 1 FROM registrations WHERE user_id = ? AND event_id = ?",
                (user_id, event_id),
            ).fetchone()
        return row is not None

    async def list_registrations(self, event_id: int, requester_id: int) -> List[RegistrationDetail]:
        """List the attendees of an event, oldest registration first.

        Only the event's organizer may see the list.
        """
        with self.db.cursor() as cursor:
            event = cursor.execute(
                "SELECT owner_id FROM events WHERE id = ?", (event_id,)
            ).fetchone()
            if not event:
                raise NotFoundError("Event not found")
            if event["owner_id"] != requester_id:
                raise AuthorizationError("Only the organizer can view registrations")
            rows = cursor.execute(
                """
                SELECT r.user_id, r.event_id, r.created_at, u.first_name, u.last_name, u.email
                FROM registrations r
                JOIN users u ON u.id = r.user_id
                WHERE r.event_id = ?
                ORDER BY r.created_at ASC, r.rowid ASC
                """,
                (event_id,),
            ).fetchall()
        return [
            RegistrationDetail(
                user_id=row["user_id"],
                event_id=row["event_id"],
                created_at=row["created_at"],
                first_name=row["first_name"],
                last_name=row["last_name"],
                email=row["email"],
            )
            for row in rows
        ]
