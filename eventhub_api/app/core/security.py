"""
Security helpers for password hashing and bearer tokens.

Tokens are JSON Web Tokens signed with HMAC-SHA256 and base64url
encoded.  They embed the account claims and an expiration timestamp
(``exp``).  Passwords are hashed with PBKDF2-HMAC-SHA256 and a random
per-password salt.

Nothing here depends on the web framework: ``verify_token`` is a plain
function from a token string to verified claims, raising
``AuthenticationError`` on any failure.  The FastAPI dependency that
reads the ``Authorization`` header lives in ``api.deps``.
"""

import base64
import hashlib
import hmac
import json
import os
import time
from typing import Any, Dict, Optional

from .config import settings
from .errors import AuthenticationError


PBKDF2_ITERATIONS = 100_000

# Verified against when a login names an unknown email, so that the
# unknown-email path spends the same time hashing as a wrong password.
DUMMY_PASSWORD_HASH = f"{'00' * 16}${'00' * 32}"


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC-SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(
    data: Dict[str, Any],
    secret_key: Optional[str] = None,
    expires_delta: Optional[int] = None,
) -> str:
    """Create a signed JWT with the given claims.

    The payload is extended with an ``exp`` field holding the expiration
    time as a UNIX timestamp.  Clients send the token back in the
    ``Authorization`` header as ``Bearer <token>``.

    Parameters
    ----------
    data : dict
        Claims to embed in the token, e.g. ``{"user_id": 1, "email": ...}``.
    secret_key : Optional[str]
        Signing key.  Defaults to ``settings.secret_key``.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A signed token of the form ``header.payload.signature``.
    """
    secret = secret_key or settings.secret_key
    to_encode = data.copy()
    exp_seconds = expires_delta if expires_delta is not None else settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, secret_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT.

    Checks the structure, the HMAC signature (constant-time) and the
    ``exp`` claim.  Returns the payload dictionary, or ``None`` if any
    check fails.
    """
    secret = secret_key or settings.secret_key
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(_sign(signing_input, secret), actual_sig):
            return None
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        # binascii.Error and json.JSONDecodeError are both ValueErrors
        return None
    if not isinstance(header, dict) or header.get("alg") != "HS256":
        return None
    if not isinstance(data, dict):
        return None
    exp = data.get("exp")
    if not isinstance(exp, int) or exp < int(time.time()):
        return None
    return data


def verify_token(token: Optional[str], secret_key: Optional[str] = None) -> Dict[str, Any]:
    """Return the verified claims of ``token``.

    Raises ``AuthenticationError`` if the token is missing, malformed,
    expired, badly signed or does not carry the account claims.
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    payload = decode_access_token(token, secret_key)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")
    if not isinstance(payload.get("user_id"), int) or not payload.get("email"):
        raise AuthenticationError("Invalid or expired token")
    return payload


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    A 16-byte random salt is generated for each password.  The result
    is ``"<salt hex>$<hash hex>"``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored ``salt$hash`` string.

    Returns False for a malformed stored value rather than raising.
    """
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
