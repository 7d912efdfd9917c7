from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.subscription_model import SubscriptionModel
from app.models.user_model import UserModel, UserRole


async def get_user(db: AsyncSession, user_id: int) -> UserModel | None:
    """Get user by ID.

    Args:
        db: Database session
        user_id: User's ID

    Returns:
        User object if found, None otherwise
    """
    result = await db.execute(select(UserModel).filter(UserModel.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> UserModel | None:
    """Get user by email. Emails are stored lowercased."""
    result = await db.execute(
        select(UserModel).filter(UserModel.email == email.lower())
    )
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password_hash: str,
    country: str | None = None,
    interest: str | None = None,
    role: UserRole = UserRole.USER,
) -> UserModel:
    """Create a new user. The caller hashes the password."""
    db_user = UserModel(
        name=name,
        email=email.lower(),
        password_hash=password_hash,
        country=country,
        interest=interest,
        role=role.value,
    )
    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)
    return db_user


async def delete_user(db: AsyncSession, user: UserModel) -> int:
    """Permanently delete a user together with their subscriptions.

    Returns:
        Number of subscriptions removed
    """
    result = await db.execute(
        delete(SubscriptionModel).where(SubscriptionModel.user_id == user.id)
    )
    await db.delete(user)
    await db.commit()
    return result.rowcount or 0
