import math
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.database import Base


class SubscriptionPlan(str, Enum):
    ONE_YEAR = "1year"
    SIX_MONTHS = "6months"
    THREE_MONTHS = "3months"
    THREE_DAYS = "3days"


PLAN_DAYS = {
    SubscriptionPlan.ONE_YEAR: 365,
    SubscriptionPlan.SIX_MONTHS: 182,
    SubscriptionPlan.THREE_MONTHS: 91,
    SubscriptionPlan.THREE_DAYS: 3,
}

# Higher wins when an active subscription is extended with another plan
PLAN_PRIORITY = {
    SubscriptionPlan.THREE_DAYS: 0,
    SubscriptionPlan.THREE_MONTHS: 1,
    SubscriptionPlan.SIX_MONTHS: 2,
    SubscriptionPlan.ONE_YEAR: 3,
}


class ActivationMethod(str, Enum):
    SIGNUP = "signup"
    PAYMENT = "payment"
    CODE = "code"
    ADMIN = "admin"


class SubscriptionModel(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    plan = Column(String(20), nullable=False)
    total_days = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True, index=True)
    activated_at = Column(DateTime, nullable=False, default=datetime.now)
    expires_at = Column(DateTime, nullable=False, index=True)
    activation_method = Column(String(20), nullable=False)
    payment_reference = Column(String(200), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)

    @property
    def days_remaining(self) -> int:
        remaining = (self.expires_at - datetime.now()).total_seconds()
        return max(0, math.ceil(remaining / 86400))

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= datetime.now()
