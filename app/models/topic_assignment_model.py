from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint

from app.database import Base


class TopicAssignmentModel(Base):
    """Topics planned for one week, day or semester of a track."""

    __tablename__ = "topic_assignments"
    __table_args__ = (
        UniqueConstraint(
            "exam_id",
            "subject_id",
            "track_id",
            "sub_category_id",
            "period_type",
            "period_number",
            name="uq_topic_assignments_period",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, nullable=False, index=True)
    subject_id = Column(Integer, nullable=False)
    track_id = Column(Integer, nullable=False)
    sub_category_id = Column(Integer, nullable=False)
    period_type = Column(String(20), nullable=False)
    period_number = Column(Integer, nullable=False)
    topic_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)
