from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import get_db, get_session_factory
from app.models.subscription_model import ActivationMethod
from app.schemas.subscription import (
    ActivationCodeRead,
    ActivationResult,
    CodeActivationRequest,
    CodeGenerateRequest,
    GeneratedCodes,
    PaymentActivationRequest,
    SubscriptionRead,
    SweepResult,
)
from app.services import subscription_service
from app.utils.deps import AdminUser, CurrentUser

router = APIRouter()


@router.get("/status", response_model=SubscriptionRead)
async def subscription_status(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await subscription_service.get_subscription_status(db, current_user.id)


@router.post("/activate/payment", response_model=ActivationResult)
async def activate_with_payment(
    data: PaymentActivationRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    subscription = await subscription_service.activate_subscription(
        db,
        current_user.id,
        data.plan,
        ActivationMethod.PAYMENT,
        payment_reference=data.payment_reference,
    )
    return {"message": "Subscription activated", "subscription": subscription}


@router.post("/activate/code", response_model=ActivationResult)
async def activate_with_code(
    data: CodeActivationRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    subscription = await subscription_service.activate_with_code(
        db, current_user.id, data.code
    )
    return {"message": "Subscription activated with code", "subscription": subscription}


@router.post("/codes/generate", response_model=GeneratedCodes)
async def generate_codes(
    data: CodeGenerateRequest, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    codes = await subscription_service.generate_activation_codes(
        db,
        data.plan,
        data.count,
        batch_name=data.batch_name,
        expires_in_days=data.expires_in_days,
    )
    return {"batch_name": data.batch_name, "codes": codes}


@router.get("/codes", response_model=List[ActivationCodeRead])
async def list_codes(
    admin: AdminUser,
    batch_name: Optional[str] = Query(None, alias="batchName"),
    is_used: Optional[bool] = Query(None, alias="isUsed"),
    db: AsyncSession = Depends(get_db),
):
    return await subscription_service.list_activation_codes(
        db, batch_name=batch_name, is_used=is_used
    )


@router.post("/sweep", response_model=SweepResult)
async def run_sweep(
    admin: AdminUser,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """Deactivate expired subscriptions now instead of waiting for the next sweep."""
    modified = await subscription_service.deactivate_expired_subscriptions(session_factory)
    return {"modified": modified}
