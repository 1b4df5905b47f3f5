"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from environment
variables, with defaults provided for all fields.  Tests and embedding
code can build their own ``Settings`` instance and hand it to
``create_app``; everything else imports the module-level ``settings``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Events Platform API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Bearer tokens are signed with this key.  ``JWT_SECRET`` is accepted
    # for existing deployments that set only that variable.
    secret_key: str = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET", "change_me"))
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # Path to the SQLite database.  Relative paths are resolved against
    # the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "eventhub.db")
    # Seconds a connection waits on a locked database before giving up.
    database_timeout: float = float(os.getenv("DATABASE_TIMEOUT", "30"))

    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    stripe_webhook_secret: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    # XOF has no minor unit, so prices are sent to Stripe as whole numbers.
    payment_currency: str = os.getenv("PAYMENT_CURRENCY", "xof")

    # Event images are written here and referenced as ``/public/uploads/<file>``.
    # Relative paths are resolved against the project root.
    upload_dir: str = os.getenv("UPLOAD_DIR", "public/uploads")
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", str(5 * 1024 * 1024)))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
