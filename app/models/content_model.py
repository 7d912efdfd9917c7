from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from app.database import Base


class ContentModel(Base):
    """Uploaded study material (notes, videos) for a track period and topic.

    Names are unique among active rows of the same exam, subject, track and
    subcategory. Soft-deleted rows keep their names, so this is checked by the
    ingestion service rather than by a table constraint.
    """

    __tablename__ = "content"

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, nullable=False, index=True)
    subject_id = Column(Integer, nullable=False, index=True)
    track_id = Column(Integer, nullable=False, index=True)
    sub_category_id = Column(Integer, nullable=False, index=True)
    topic_id = Column(Integer, nullable=True, index=True)
    name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)
    file_path = Column(String(500), nullable=True)
    file_type = Column(String(50), nullable=True)
    file_size = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)
