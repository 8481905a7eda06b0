"""Password hashing and signed session tokens."""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import hmac
import json
import logging
import secrets
import time
import uuid
from dataclasses import dataclass

from fastapi import Request

logger = logging.getLogger(__name__)

_ephemeral_secret: str | None = None


@dataclass(frozen=True)
class AuthUser:
    """Identity claims carried by a session token."""

    id: uuid.UUID
    email: str
    name: str
    seniority_level: int


def hash_password(password: str, iterations: int = 200_000) -> str:
    """Hash a password using PBKDF2-SHA256."""
    if not password:
        raise ValueError("Password is required")
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return (
        f"pbkdf2_sha256${iterations}$"
        f"{binascii.hexlify(salt).decode('ascii')}$"
        f"{binascii.hexlify(digest).decode('ascii')}"
    )


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a PBKDF2-SHA256 password hash."""
    if not password or not stored_hash:
        return False
    try:
        scheme, iterations_raw, salt_hex, digest_hex = stored_hash.split("$", 3)
        if scheme != "pbkdf2_sha256":
            return False
        iterations = int(iterations_raw)
        salt = binascii.unhexlify(salt_hex.encode("ascii"))
        expected = binascii.unhexlify(digest_hex.encode("ascii"))
    except (ValueError, binascii.Error):
        return False

    actual = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(actual, expected)


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, stored_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, stored_hash)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * ((4 - (len(data) % 4)) % 4)
    return base64.urlsafe_b64decode((data + padding).encode("utf-8"))


def _secret(settings_obj) -> str:
    global _ephemeral_secret

    secret = str(getattr(settings_obj, "auth_secret", "") or "").strip()
    if secret:
        return secret
    if settings_obj.is_production:
        raise RuntimeError("auth_secret is required in production")
    if _ephemeral_secret is None:
        logger.warning("XTASK_AUTH_SECRET is not set; tokens will not survive a restart")
        _ephemeral_secret = secrets.token_urlsafe(32)
    return _ephemeral_secret


def _ttl_seconds(settings_obj) -> int:
    ttl = int(getattr(settings_obj, "auth_session_ttl_seconds", 86400))
    return max(60, ttl)


def _sign(secret: str, body: str) -> str:
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_session_token(settings_obj, user: AuthUser, now: int | None = None) -> str:
    issued_at = int(time.time()) if now is None else now
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "seniority_level": int(user.seniority_level),
        "iat": issued_at,
        "exp": issued_at + _ttl_seconds(settings_obj),
    }
    body = _b64url_encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    return f"{body}.{_sign(_secret(settings_obj), body)}"


def decode_session_token(settings_obj, token: str) -> AuthUser | None:
    if not token:
        return None

    try:
        body, provided_sig = token.split(".", 1)
    except ValueError:
        return None

    # Headers arrive latin-1 decoded; compare bytes so non-ASCII input is just a mismatch.
    expected_sig = _sign(_secret(settings_obj), body).encode("ascii")
    if not hmac.compare_digest(provided_sig.encode("utf-8"), expected_sig):
        return None

    try:
        payload = json.loads(_b64url_decode(body))
    except (ValueError, binascii.Error):
        return None

    if not isinstance(payload, dict):
        return None

    exp = payload.get("exp")
    if not isinstance(exp, int) or exp <= int(time.time()):
        return None

    level = payload.get("seniority_level")
    email = payload.get("email")
    if not isinstance(level, int) or not isinstance(email, str) or not email.strip():
        return None
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        return None

    return AuthUser(
        id=user_id,
        email=email.strip().lower(),
        name=str(payload.get("name") or ""),
        seniority_level=level,
    )


def extract_bearer_token(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return ""
