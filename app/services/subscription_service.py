import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.exceptions import ConflictError, GoneError, NotFoundError
from app.models.activation_code_model import ActivationCodeModel
from app.models.subscription_model import (
    PLAN_DAYS,
    PLAN_PRIORITY,
    ActivationMethod,
    SubscriptionModel,
    SubscriptionPlan,
)
from app.utils.error_handling import handle_database_errors

logger = structlog.get_logger()

# No 0/O or 1/I so codes survive being read out loud
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 10


async def get_active_subscription(
    db: AsyncSession, user_id: int
) -> Optional[SubscriptionModel]:
    """Latest subscription still flagged active, expired or not."""
    result = await db.execute(
        select(SubscriptionModel)
        .filter(SubscriptionModel.user_id == user_id)
        .filter(SubscriptionModel.active.is_(True))
        .order_by(SubscriptionModel.expires_at.desc(), SubscriptionModel.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_trial_subscription(
    db: AsyncSession, user_id: int
) -> SubscriptionModel:
    now = datetime.now()
    subscription = SubscriptionModel(
        user_id=user_id,
        plan=SubscriptionPlan.THREE_DAYS.value,
        total_days=settings.TRIAL_DAYS,
        active=True,
        activated_at=now,
        expires_at=now + timedelta(days=settings.TRIAL_DAYS),
        activation_method=ActivationMethod.SIGNUP.value,
    )
    db.add(subscription)
    await db.commit()
    await db.refresh(subscription)
    logger.info("Trial subscription created", user_id=user_id)
    return subscription


async def get_subscription_status(db: AsyncSession, user_id: int) -> SubscriptionModel:
    """Return the user's live subscription.

    An expired subscription found here is deactivated on the spot, so callers
    never see one the sweeps have not caught up with yet.
    """
    subscription = await get_active_subscription(db, user_id)
    if subscription is None:
        raise NotFoundError("No active subscription found", resource_type="subscription")

    if subscription.is_expired:
        subscription.active = False
        await db.commit()
        logger.info(
            "Expired subscription deactivated on read",
            user_id=user_id,
            subscription_id=subscription.id,
        )
        raise NotFoundError("Subscription has expired", resource_type="subscription")

    return subscription


@handle_database_errors("activate subscription")
async def activate_subscription(
    db: AsyncSession,
    user_id: int,
    plan: SubscriptionPlan,
    method: ActivationMethod,
    payment_reference: Optional[str] = None,
) -> SubscriptionModel:
    """Activate or extend a subscription.

    A live subscription is extended from its current expiry and only takes the
    new plan when that plan ranks higher. An expired one is closed and a new
    subscription starts from now.
    """
    days = PLAN_DAYS[plan]
    now = datetime.now()
    current = await get_active_subscription(db, user_id)

    if current is not None and not current.is_expired:
        current.expires_at = current.expires_at + timedelta(days=days)
        current.total_days = current.total_days + days
        if PLAN_PRIORITY[plan] > PLAN_PRIORITY[SubscriptionPlan(current.plan)]:
            current.plan = plan.value
        current.activation_method = method.value
        if payment_reference:
            current.payment_reference = payment_reference
        await db.commit()
        await db.refresh(current)
        logger.info(
            "Subscription extended", user_id=user_id, plan=plan.value, days=days
        )
        return current

    if current is not None:
        current.active = False

    subscription = SubscriptionModel(
        user_id=user_id,
        plan=plan.value,
        total_days=days,
        active=True,
        activated_at=now,
        expires_at=now + timedelta(days=days),
        activation_method=method.value,
        payment_reference=payment_reference,
    )
    db.add(subscription)
    await db.commit()
    await db.refresh(subscription)
    logger.info("Subscription activated", user_id=user_id, plan=plan.value, days=days)
    return subscription


async def activate_with_code(
    db: AsyncSession, user_id: int, code: str
) -> SubscriptionModel:
    result = await db.execute(
        select(ActivationCodeModel).filter(ActivationCodeModel.code == code)
    )
    activation_code = result.scalar_one_or_none()
    if activation_code is None:
        raise NotFoundError("Invalid activation code", resource_type="activation_code")
    if activation_code.is_used:
        raise ConflictError("Activation code has already been used")
    if activation_code.expires_at and activation_code.expires_at <= datetime.now():
        raise GoneError("Activation code has expired")

    activation_code.is_used = True
    activation_code.used_by = user_id
    activation_code.used_at = datetime.now()

    return await activate_subscription(
        db, user_id, SubscriptionPlan(activation_code.plan), ActivationMethod.CODE
    )


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


@handle_database_errors("generate activation codes")
async def generate_activation_codes(
    db: AsyncSession,
    plan: SubscriptionPlan,
    count: int,
    batch_name: Optional[str] = None,
    expires_in_days: Optional[int] = None,
) -> List[ActivationCodeModel]:
    existing = set((await db.execute(select(ActivationCodeModel.code))).scalars().all())
    expires_at = (
        datetime.now() + timedelta(days=expires_in_days) if expires_in_days else None
    )

    codes = []
    while len(codes) < count:
        code = generate_code()
        if code in existing:
            continue
        existing.add(code)
        codes.append(
            ActivationCodeModel(
                code=code, plan=plan.value, batch_name=batch_name, expires_at=expires_at
            )
        )

    db.add_all(codes)
    await db.commit()
    logger.info(
        "Activation codes generated", count=count, plan=plan.value, batch=batch_name
    )
    return codes


async def list_activation_codes(
    db: AsyncSession,
    batch_name: Optional[str] = None,
    is_used: Optional[bool] = None,
) -> List[ActivationCodeModel]:
    query = select(ActivationCodeModel)
    if batch_name is not None:
        query = query.filter(ActivationCodeModel.batch_name == batch_name)
    if is_used is not None:
        query = query.filter(ActivationCodeModel.is_used.is_(is_used))
    result = await db.execute(query.order_by(ActivationCodeModel.id))
    return list(result.scalars().all())


async def deactivate_expired_subscriptions(
    session_factory: async_sessionmaker[AsyncSession],
) -> int:
    """Flip every active subscription past its expiry to inactive.

    Runs as a single UPDATE, so a second run right after the first modifies
    nothing.

    Returns:
        Number of subscriptions modified
    """
    now = datetime.now()
    async with session_factory() as session:
        result = await session.execute(
            update(SubscriptionModel)
            .where(SubscriptionModel.active.is_(True))
            .where(SubscriptionModel.expires_at < now)
            .values(active=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await session.commit()

    modified = result.rowcount or 0
    logger.info("Expired subscriptions deactivated", modified=modified)
    return modified


async def subscription_stats(
    session_factory: async_sessionmaker[AsyncSession],
) -> Dict[str, Any]:
    now = datetime.now()
    async with session_factory() as session:
        total = await session.scalar(select(func.count(SubscriptionModel.id)))
        active = await session.scalar(
            select(func.count(SubscriptionModel.id)).where(
                SubscriptionModel.active.is_(True)
            )
        )
        expiring_soon = await session.scalar(
            select(func.count(SubscriptionModel.id))
            .where(SubscriptionModel.active.is_(True))
            .where(SubscriptionModel.expires_at < now + timedelta(days=3))
        )
    return {
        "total": total or 0,
        "active": active or 0,
        "inactive": (total or 0) - (active or 0),
        "expiring_within_3_days": expiring_soon or 0,
    }
