from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
import structlog
from fastapi import Request
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import AuthenticationError
from app.models.user_model import UserModel
from app.services import user_service

logger = structlog.get_logger()

# Password hashing, kept at module level to avoid recreating the context per call
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: int) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User ID to encode in the token

    Returns:
        Encoded JWT token string
    """
    expire = datetime.now(timezone.utc) + timedelta(
        days=settings.ACCESS_TOKEN_EXPIRE_DAYS
    )
    to_encode = {"sub": str(user_id), "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        AuthenticationError: TOKEN_EXPIRED or INVALID_TOKEN
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired", error_code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token", error_code="INVALID_TOKEN")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError("Invalid token payload", error_code="INVALID_TOKEN")
    return payload


def extract_token(request: Request) -> Optional[str]:
    """Read the token from ``Authorization: Bearer`` or ``x-auth-token``."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer ") :].strip()
        if token:
            return token
    return request.headers.get("x-auth-token") or None


async def get_current_user(db: AsyncSession, token: Optional[str]) -> UserModel:
    """
    Resolve the user a token belongs to.

    Raises:
        AuthenticationError: with NO_TOKEN, TOKEN_EXPIRED, INVALID_TOKEN or
            USER_NOT_FOUND as error code
    """
    if not token:
        raise AuthenticationError(
            "No token, authorization denied", error_code="NO_TOKEN"
        )

    payload = decode_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload", error_code="INVALID_TOKEN")

    user = await user_service.get_user(db, user_id)
    if user is None:
        logger.warning("Token for unknown user", user_id=user_id)
        raise AuthenticationError("User not found", error_code="USER_NOT_FOUND")
    return user
