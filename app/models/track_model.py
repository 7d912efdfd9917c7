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


class TrackType(str, Enum):
    WEEKS = "weeks"
    DAYS = "days"
    MONTHS = "months"
    SEMESTER = "semester"
    YEARS = "years"


class TrackModel(Base):
    """Time- or year-partitioned unit scoped to one exam and subcategory."""

    __tablename__ = "tracks"
    __table_args__ = (
        UniqueConstraint(
            "exam_id", "sub_category_id", "name", name="uq_tracks_exam_subcategory_name"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, nullable=False, index=True)
    sub_category_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    display_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    track_type = Column(String(20), nullable=False)
    duration = Column(Integer, nullable=True)
    year = Column(Integer, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)
