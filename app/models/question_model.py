from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from app.database import Base

DEFAULT_QUESTION_DIAGRAM = "assets/images/noDiagram.png"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionModel(Base):
    """Past question bound to an exam, subject, year track and topic."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, nullable=False, index=True)
    subject_id = Column(Integer, nullable=False, index=True)
    track_id = Column(Integer, nullable=False, index=True)
    topic_id = Column(Integer, nullable=True, index=True)
    year = Column(Integer, nullable=True, index=True)
    question = Column(Text, nullable=False)
    question_diagram = Column(
        String(500), nullable=False, default=DEFAULT_QUESTION_DIAGRAM
    )
    correct_answer = Column(Text, nullable=False)
    incorrect_answers = Column(JSON, nullable=False, default=list)
    explanation = Column(Text, nullable=True)
    difficulty = Column(String(10), nullable=False, default=Difficulty.MEDIUM.value)
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.now)
