"""
Dependency utilities for FastAPI endpoints.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import AuthorizationError
from app.models.user_model import UserModel
from app.services.auth import extract_token, get_current_user


async def get_current_user_dependency(
    request: Request, db: AsyncSession = Depends(get_db)
) -> UserModel:
    """
    Get the current authenticated user from the request token.

    Args:
        request: Incoming request carrying ``Authorization`` or ``x-auth-token``
        db: Database session from dependency

    Returns:
        The authenticated user
    """
    return await get_current_user(db, extract_token(request))


CurrentUser = Annotated[UserModel, Depends(get_current_user_dependency)]


async def get_admin_user_dependency(current_user: CurrentUser) -> UserModel:
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user


AdminUser = Annotated[UserModel, Depends(get_admin_user_dependency)]
