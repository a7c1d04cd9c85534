from __future__ import annotations

import base64
import hashlib
import hmac
import json
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.schemas.auth import CurrentUser

_HTTP_BEARER = HTTPBearer(auto_error=False)


def create_access_token(
    *,
    user_id: str,
    secret_key: str,
    ttl_minutes: int,
    extra_claims: dict[str, Any] | None = None,
) -> tuple[str, int]:
    issued_at = datetime.now(UTC)
    expires_at = issued_at + timedelta(minutes=ttl_minutes)
    payload = {
        **(extra_claims or {}),
        "sub": user_id,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    payload_segment = _b64url_encode(
        json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"),
    )
    signature_segment = _b64url_encode(_sign(payload_segment, secret_key))
    expires_in_seconds = max(int((expires_at - issued_at).total_seconds()), 0)
    return f"{payload_segment}.{signature_segment}", expires_in_seconds


def decode_access_token(token: str, secret_key: str) -> dict[str, Any] | None:
    payload_segment, separator, signature_segment = token.partition(".")
    if not separator or not payload_segment or not signature_segment:
        return None

    try:
        provided_signature = _b64url_decode(signature_segment)
        payload_bytes = _b64url_decode(payload_segment)
    except (ValueError, TypeError):
        return None
    if not hmac.compare_digest(_sign(payload_segment, secret_key), provided_signature):
        return None

    try:
        payload = json.loads(payload_bytes.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None

    expiration = payload.get("exp")
    if not isinstance(expiration, int) or expiration < int(datetime.now(UTC).timestamp()):
        return None
    return payload


def require_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_HTTP_BEARER),
) -> CurrentUser:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated.",
        )

    payload = decode_access_token(credentials.credentials, get_settings().auth_secret_key)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token.",
        )

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token payload.",
        )

    email = payload.get("email")
    return CurrentUser(id=subject.strip(), email=email if isinstance(email, str) else None)


def _sign(payload_segment: str, secret_key: str) -> bytes:
    return hmac.new(
        secret_key.encode("utf-8"),
        payload_segment.encode("utf-8"),
        hashlib.sha256,
    ).digest()


def _b64url_encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padding_size = (-len(value)) % 4
    return base64.urlsafe_b64decode(f"{value}{'=' * padding_size}".encode("ascii"))
