from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from app.database import Base


class TutorialModel(Base):
    """A catalogue entry in the Tutorial mode, e.g. a night-class recording.

    ``id`` is chosen by the client. ``cat_name`` is derived from ``category``.
    """

    __tablename__ = "tutorials"

    id = Column(String(100), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    thumbnail = Column(String(500), nullable=True)
    category = Column(String(100), nullable=False, index=True)
    cat_name = Column(String(100), nullable=False)
    duration = Column(String(50), nullable=False, default="weekly")
    level = Column(String(50), nullable=False, default="Beginner")
    author = Column(String(200), nullable=False, default="Admin")
    time = Column(String(50), nullable=False, default="N/A")
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)


class TutorialCategoryModel(Base):
    """A Tutorial category that is currently enabled."""

    __tablename__ = "tutorial_categories"

    name = Column(String(100), primary_key=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
