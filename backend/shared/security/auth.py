"""
Authentication and authorization utilities.

Staff (vendor owners, captains, admins) authenticate with HS256 JWT bearer
tokens issued by the account service. The claims this service relies on:

    sub        user id (integer string)
    vendor_id  restaurant the user operates on
    roles      list of role names (see shared.config.constants.Roles)
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header, Query

from shared.config.settings import JWT_SECRET, JWT_ISSUER, JWT_AUDIENCE, settings
from shared.config.logging import get_logger
from shared.utils.exceptions import InsufficientRoleError, UnauthorizedError

logger = get_logger(__name__)


# =============================================================================
# JWT Functions
# =============================================================================


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign an access token with the given claims.

    Args:
        payload: Claims to include (sub, vendor_id, roles, ...)
        ttl_seconds: Token lifetime in seconds. Defaults to settings value.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": "access",
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        UnauthorizedError: invalid, expired, or missing required claims.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError as e:
        # Log the real reason, return a generic message
        logger.warning("JWT validation failed", error=str(e))
        raise UnauthorizedError("Invalid token")

    if "sub" not in payload:
        raise UnauthorizedError("Invalid token: missing subject claim")
    try:
        int(payload["sub"])
    except (ValueError, TypeError):
        raise UnauthorizedError("Invalid token: malformed subject claim")

    vendor_id = payload.get("vendor_id")
    if not isinstance(vendor_id, int) or isinstance(vendor_id, bool) or vendor_id <= 0:
        raise UnauthorizedError("Invalid token: missing vendor_id claim")

    if not isinstance(payload.get("roles", []), list):
        raise UnauthorizedError("Invalid token: malformed roles claim")

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """Extract bearer token from Authorization header."""
    if not authorization:
        raise UnauthorizedError("Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/orders")
        def list_orders(ctx: dict = Depends(current_user_context)):
            vendor_id = ctx["vendor_id"]
    """
    return verify_jwt(get_bearer_token(authorization))


def stream_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
    token: str | None = Query(default=None),
) -> dict[str, Any]:
    """
    Like current_user_context, but also accepts ?token=... since browser
    EventSource cannot set headers.
    """
    if authorization:
        return verify_jwt(get_bearer_token(authorization))
    if token:
        return verify_jwt(token)
    raise UnauthorizedError("Missing token")


def require_roles(ctx: dict[str, Any], allowed: list[str]) -> None:
    """
    Verify that the user has at least one of the allowed roles.

    Raises:
        InsufficientRoleError: user lacks every allowed role.
    """
    user_roles = set(ctx.get("roles", []))
    if not user_roles.intersection(set(allowed)):
        raise InsufficientRoleError(allowed, user_id=ctx.get("sub"), roles=sorted(user_roles))
