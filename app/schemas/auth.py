from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.schemas.base import CamelModel
from app.schemas.subscription import SubscriptionRead

DELETE_CONFIRMATION_TEXT = "delete my account"


class SignupRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6)
    country: str = Field(..., min_length=1)
    interest: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class DeleteAccountRequest(CamelModel):
    password: str = Field(..., min_length=1)
    confirmation_text: str


class UserRead(CamelModel):
    id: int
    email: str
    name: str
    role: str
    country: Optional[str] = None
    interest: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    token: str
    user: UserRead
    subscription: Optional[SubscriptionRead] = None
