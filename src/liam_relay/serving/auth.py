"""Request authentication: shared bearer tokens, basic auth and signed admin tokens.

Admin tokens are ``<base64url payload>.<hex HMAC-SHA256>`` where the payload
is ``{"sub": <username>, "exp": <unix seconds>}`` signed with
``settings.auth_secret``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasic, HTTPBasicCredentials, HTTPBearer

from liam_relay.config import settings

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)
_basic = HTTPBasic(auto_error=False)


def _matches(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def _unauthorized(detail: str, scheme: str = "Bearer") -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": scheme})


# ── Signed admin tokens ───────────────────────────────────────────────


def _sign(b64_payload: str) -> str:
    return hmac.new(
        settings.auth_secret.encode("utf-8"),
        b64_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def issue_admin_token(subject: str, *, now: datetime | None = None) -> tuple[str, datetime]:
    """Return a signed token for *subject* and its expiry time."""
    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=settings.admin_token_ttl_minutes)
    payload = {"sub": subject, "exp": int(expires_at.timestamp())}
    payload_bytes = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    b64_payload = base64.urlsafe_b64encode(payload_bytes).decode("utf-8").rstrip("=")
    return f"{b64_payload}.{_sign(b64_payload)}", expires_at


def decode_admin_token(token: str, *, now: datetime | None = None) -> dict[str, Any]:
    """Verify signature and expiry; raises a 401 ``HTTPException`` on failure."""
    try:
        b64_payload, signature = token.split(".", 1)
    except ValueError as exc:
        raise _unauthorized("Invalid admin token.") from exc
    if not _matches(signature, _sign(b64_payload)):
        raise _unauthorized("Invalid admin token.")

    padded = b64_payload + "=" * (-len(b64_payload) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded))
    except ValueError as exc:
        raise _unauthorized("Invalid admin token payload.") from exc
    if not isinstance(data, dict) or not isinstance(data.get("exp"), int):
        raise _unauthorized("Invalid admin token payload.")

    now = now or datetime.now(timezone.utc)
    if data["exp"] < now.timestamp():
        raise _unauthorized("Admin token expired.")
    return data


# ── FastAPI dependencies ──────────────────────────────────────────────


def require_api_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """Gate relay routes behind ``settings.api_token`` (no-op when unset)."""
    if not settings.api_token:
        return
    if credentials is None:
        raise _unauthorized("Missing bearer token.")
    if not _matches(credentials.credentials, settings.api_token):
        logger.warning("Rejected request with invalid API token")
        raise _unauthorized("Invalid bearer token.")


def verify_admin_credentials(
    credentials: HTTPBasicCredentials | None = Depends(_basic),
) -> str:
    """Check HTTP Basic credentials against the configured admin account."""
    if not settings.admin_password:
        raise HTTPException(status_code=403, detail="Admin login is disabled.")
    if credentials is None:
        raise _unauthorized("Missing admin credentials.", scheme="Basic")
    user_ok = _matches(credentials.username, settings.admin_username)
    pass_ok = _matches(credentials.password, settings.admin_password)
    if not (user_ok and pass_ok):
        logger.warning("Failed admin login for %r", credentials.username)
        raise _unauthorized("Invalid admin credentials.", scheme="Basic")
    return credentials.username


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Accept the static admin token or a valid signed admin token."""
    if credentials is None:
        raise _unauthorized("Missing admin token.")
    token = credentials.credentials
    if settings.admin_token and _matches(token, settings.admin_token):
        return "admin"
    return str(decode_admin_token(token).get("sub", ""))
