import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import ConflictError, ValidationError
from app.schemas.auth import (
    DELETE_CONFIRMATION_TEXT,
    AuthResponse,
    DeleteAccountRequest,
    LoginRequest,
    SignupRequest,
    UserRead,
)
from app.schemas.base import MessageResponse
from app.services import subscription_service, user_service
from app.services.auth import create_access_token, hash_password, verify_password
from app.utils.deps import CurrentUser

logger = structlog.get_logger()

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(data: SignupRequest, db: AsyncSession = Depends(get_db)):
    """Register a user and start their trial subscription."""
    if await user_service.get_user_by_email(db, data.email):
        raise ConflictError("User already exists")

    user = await user_service.create_user(
        db,
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        country=data.country,
        interest=data.interest,
    )
    subscription = await subscription_service.create_trial_subscription(db, user.id)
    logger.info("User signed up", user_id=user.id)

    return {
        "token": create_access_token(user.id),
        "user": user,
        "subscription": subscription,
    }


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_by_email(db, data.email)
    if user is None or not verify_password(data.password, user.password_hash):
        raise ValidationError("Invalid credentials")

    subscription = await subscription_service.get_active_subscription(db, user.id)
    if subscription is not None and subscription.is_expired:
        subscription = None

    return {
        "token": create_access_token(user.id),
        "user": user,
        "subscription": subscription,
    }


@router.get("/verify-token", response_model=UserRead)
async def verify_token(current_user: CurrentUser):
    return current_user


@router.delete("/delete-account", response_model=MessageResponse)
async def delete_account(
    data: DeleteAccountRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete the caller's account after re-checking the password."""
    if data.confirmation_text.strip().lower() != DELETE_CONFIRMATION_TEXT:
        raise ValidationError(
            f'Type "{DELETE_CONFIRMATION_TEXT}" to confirm', field="confirmationText"
        )
    if not verify_password(data.password, current_user.password_hash):
        raise ValidationError("Incorrect password", field="password")

    user_id = current_user.id
    removed = await user_service.delete_user(db, current_user)
    logger.info("Account deleted", user_id=user_id, subscriptions_removed=removed)
    return {"message": "Account deleted successfully"}
