from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.models.subscription_model import SubscriptionPlan
from app.schemas.base import CamelModel


class SubscriptionRead(CamelModel):
    id: int
    user_id: int
    plan: str
    total_days: int
    active: bool
    activated_at: datetime
    expires_at: datetime
    activation_method: str
    days_remaining: int


class PaymentActivationRequest(CamelModel):
    plan: SubscriptionPlan
    payment_reference: str = Field(..., min_length=1)


class CodeActivationRequest(CamelModel):
    code: str = Field(..., min_length=1)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.replace("-", "").replace(" ", "").upper()


class CodeGenerateRequest(CamelModel):
    plan: SubscriptionPlan
    count: int = Field(..., ge=1, le=500)
    batch_name: Optional[str] = None
    expires_in_days: Optional[int] = Field(None, ge=1)


class ActivationCodeRead(CamelModel):
    id: int
    code: str
    plan: str
    is_used: bool
    used_by: Optional[int] = None
    used_at: Optional[datetime] = None
    batch_name: Optional[str] = None
    expires_at: Optional[datetime] = None


class ActivationResult(CamelModel):
    message: str
    subscription: SubscriptionRead


class SweepResult(CamelModel):
    modified: int


class GeneratedCodes(CamelModel):
    batch_name: Optional[str] = None
    codes: List[ActivationCodeRead]
