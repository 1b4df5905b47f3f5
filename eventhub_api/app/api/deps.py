"""
FastAPI dependencies.

These functions adapt the framework-independent pieces (the storage
handle, the image store, the payment gateway, ``verify_token``) to
FastAPI's dependency injection.  Shared objects live on ``app.state``
and are set up by ``main.create_app``; services are cheap and built per
request.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.config import Settings
from ..core.db import Database
from ..core.security import verify_token
from ..services.comment_service import CommentService
from ..services.event_service import EventService
from ..services.image_store import ImageStore
from ..services.payment_gateway import PaymentGateway
from ..services.payment_service import PaymentService
from ..services.registration_service import RegistrationService
from ..services.user_service import UserService


security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Return the verified claims of the bearer token.

    A missing header, a non-Bearer scheme or an invalid token raises
    ``AuthenticationError``, which the application answers with 401.
    """
    token = credentials.credentials if credentials else None
    return verify_token(token, settings.secret_key)


def get_user_service(
    db: Database = Depends(get_db), settings: Settings = Depends(get_settings)
) -> UserService:
    return UserService(db, settings)


def get_event_service(db: Database = Depends(get_db)) -> EventService:
    return EventService(db)


def get_registration_service(db: Database = Depends(get_db)) -> RegistrationService:
    return RegistrationService(db)


def get_comment_service(db: Database = Depends(get_db)) -> CommentService:
    return CommentService(db)


def get_payment_service(
    db: Database = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings),
) -> PaymentService:
    return PaymentService(db, gateway, RegistrationService(db), currency=settings.payment_currency)
