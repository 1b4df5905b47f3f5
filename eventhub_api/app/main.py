"""
Main entrypoint for the Events Platform API.

This module assembles the FastAPI application: it sets up logging,
creates the storage handle and payment gateway, maps domain errors to
HTTP responses and includes the API router under ``/api``.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn eventhub_api.app.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.db import Database
from .core.errors import AuthenticationError, DomainError, InvalidSignatureError
from .core.logging_config import setup_logging
from .services.image_store import ImageStore
from .services.payment_gateway import PaymentGateway, StripeGateway


logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Translate errors into responses that never leak internals."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        headers = None
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}
        elif isinstance(exc, InvalidSignatureError):
            logger.warning("Rejected webhook on %s: %s", request.url.path, exc.message)
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc.__cause__)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code.value},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors()), "code": "VALIDATION_ERROR"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "code": "UNCLASSIFIED"},
        )


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to the environment-derived
        ``core.config.settings``.
    gateway : Optional[PaymentGateway]
        Payment provider adapter.  Defaults to a ``StripeGateway``
        built from the settings.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the setup below can
    # safely log messages.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.settings = settings
    app.state.db = Database.from_settings(settings)
    app.state.image_store = ImageStore.from_settings(settings)
    app.state.payment_gateway = gateway or StripeGateway(
        api_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["health"])
    async def root() -> dict:
        return {"message": "API is running"}

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies migrations.
        app.state.db.init()
        logger.info("Database ready at %s", app.state.db.path)

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
