"""
Business logic for accounts: signup, login and lookup.

Passwords are stored as PBKDF2 hashes (see ``core.security``).  The
uniqueness of e-mail addresses is enforced by the database; a duplicate
surfaces as ``ConflictError`` rather than an internal error.
"""

import logging
import sqlite3

from ..core.config import Settings
from ..core.db import Database, is_unique_violation
from ..core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..core.security import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    hash_password,
    verify_password,
)
from ..schemas.user import LoginRequest, SignupRequest, TokenResponse, UserRead


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        created_at=row["created_at"],
    )


class UserService:
    """Service for account registration and authentication."""

    def __init__(self, db: Database, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def signup(self, data: SignupRequest) -> UserRead:
        """Create a new account and return it without the password hash.

        All four fields are required.  E-mail addresses are compared as
        stored after trimming and lower-casing.
        """
        if any(_is_blank(v) for v in (data.first_name, data.last_name, data.email, data.password)):
            raise ValidationError("All fields are required")
        email = data.email.strip().lower()
        hashed = hash_password(data.password)
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    "INSERT INTO users (first_name, last_name, email, password) VALUES (?, ?, ?, ?)",
                    (data.first_name.strip(), data.last_name.strip(), email, hashed),
                )
                user_id = cursor.lastrowid
                row = cursor.execute(
                    "SELECT id, first_name, last_name, email, created_at FROM users WHERE id = ?",
                    (user_id,),
                ).fetchone()
        except sqlite3.IntegrityError as e:
            if is_unique_violation(e):
                logger.info("Signup rejected, email already in use: %s", email)
                raise ConflictError("This email is already in use") from e
            raise
        logger.info("Registered user %s (id=%s)", email, user_id)
        return _row_to_user(row)

    async def login(self, data: LoginRequest) -> TokenResponse:
        """Check credentials and issue a bearer token.

        Unknown e-mail and wrong password produce the same error, and both
        paths run one PBKDF2 verification so they cannot be told apart by
        timing either.
        """
        if _is_blank(data.email) or _is_blank(data.password):
            raise ValidationError("Email and password are required")
        email = data.email.strip().lower()
        with self.db.cursor() as cursor:
            row = cursor.execute(
                "SELECT id, email, password FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        if row is None:
            verify_password(data.password, DUMMY_PASSWORD_HASH)
            logger.info("Failed login for %s", email)
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not verify_password(data.password, row["password"]):
            logger.info("Failed login for %s", email)
            raise AuthenticationError(INVALID_CREDENTIALS)

        token = create_access_token(
            {"user_id": row["id"], "email": row["email"]},
            secret_key=self.settings.secret_key,
            expires_delta=self.settings.access_token_expire_minutes * 60,
        )
        logger.info("User %s logged in", email)
        return TokenResponse(access_token=token)

    async def get_user(self, user_id: int) -> UserRead:
        """Retrieve an account by ID."""
        with self.db.cursor() as cursor:
            row = cursor.execute(
                "SELECT id, first_name, last_name, email, created_at FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        if not row:
            raise NotFoundError("User not found")
        return _row_to_user(row)
