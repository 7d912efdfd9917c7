from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from app.database import Base


class ContentType(str, Enum):
    JSON = "json"
    MEDIA = "media"


class SubCategoryModel(Base):
    """A content channel under an exam, e.g. past questions or notes."""

    __tablename__ = "sub_categories"
    __table_args__ = (
        UniqueConstraint("exam_id", "name", name="uq_sub_categories_exam_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    display_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    route_path = Column(String(200), nullable=False)
    content_type = Column(String(20), nullable=False, default=ContentType.JSON.value)
    icon = Column(String(255), nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)
