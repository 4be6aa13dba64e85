"""
Bearer-token identity for RideShare.

Tokens are issued by the external identity provider and signed with the
shared secret. The `sub` claim is the opaque user id that every service call
receives explicitly.
"""

from datetime import datetime, timedelta, timezone
import hmac
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings

logger = logging.getLogger(__name__)

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT access token."""
    payload_raw = jwt.decode(
        token,
        _secret_value(settings.secret_key),
        algorithms=[settings.jwt_algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Used by tests and local tooling; production tokens come from the
    identity provider.

    Args:
        data: The data to encode in the token
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return cast(
        str,
        jwt.encode(to_encode, _secret_value(settings.secret_key), algorithm=settings.jwt_algorithm),
    )


def _token_payload(token: Optional[str]) -> Dict[str, Any]:
    """Verified claims for a bearer token, or 401."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    invalid_credentials = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise invalid_credentials

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("Token payload missing 'sub' field")
        raise invalid_credentials
    return payload


async def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme_optional)) -> str:
    """
    Dependency returning the authenticated user id from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    return cast(str, _token_payload(token)["sub"])


def is_admin_claims(payload: Dict[str, Any]) -> bool:
    return payload.get("role") == "admin" or payload.get("is_admin") is True


async def require_admin(token: Optional[str] = Depends(oauth2_scheme_optional)) -> str:
    """
    Require an admin token and return the admin's user id.

    The identity provider marks admins with role = "admin" or is_admin = true.
    """
    payload = _token_payload(token)
    if not is_admin_claims(payload):
        logger.warning(f"Admin access denied for user {payload['sub']}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return cast(str, payload["sub"])


async def verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(default=None, alias="X-Webhook-Secret")
) -> None:
    """Authenticate the payment collaborator's webhook by shared secret."""
    expected = _secret_value(settings.payment_webhook_secret)
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, expected):
        logger.warning("Rejected payment webhook with invalid secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret"
        )
