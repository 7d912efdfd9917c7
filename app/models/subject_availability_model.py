from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, UniqueConstraint

from app.database import Base


class SubjectAvailabilityModel(Base):
    """Join record making a subject navigable under a subcategory."""

    __tablename__ = "subject_availability"
    __table_args__ = (
        UniqueConstraint(
            "exam_id",
            "subject_id",
            "sub_category_id",
            name="uq_subject_availability_scope",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, nullable=False, index=True)
    subject_id = Column(Integer, nullable=False)
    sub_category_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
