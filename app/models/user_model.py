from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String

from app.database import Base


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserModel(Base):
    """User model for storing user related details"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    password_hash = Column(String(255), nullable=False)
    country = Column(String(100), nullable=True)
    interest = Column(String(200), nullable=True)
    role = Column(String(10), nullable=False, default=UserRole.USER.value)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
