from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.database import Base


class ActivationCodeModel(Base):
    """Prepaid code that activates a subscription plan once."""

    __tablename__ = "activation_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(10), unique=True, nullable=False)
    plan = Column(String(20), nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)
    used_by = Column(Integer, nullable=True)
    used_at = Column(DateTime, nullable=True)
    batch_name = Column(String(100), nullable=True, index=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
