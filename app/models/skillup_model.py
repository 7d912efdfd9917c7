from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, UniqueConstraint

from app.database import Base


class SkillUpModel(Base):
    """Skill-up course: a subject split into batches of topics and contents.

    ``batches`` is stored as one JSON document, mirroring how the course is
    edited and served as a whole tree.
    """

    __tablename__ = "skillups"
    __table_args__ = (
        UniqueConstraint(
            "category", "year", "subject", name="uq_skillups_category_year_subject"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(100), nullable=False, index=True)
    year = Column(String(20), nullable=False)
    subject = Column(String(200), nullable=False)
    subject_description = Column(Text, nullable=True)
    thumbnail = Column(String(500), nullable=True)
    author = Column(String(200), nullable=True)
    batches = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)
