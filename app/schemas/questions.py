from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from app.models.question_model import DEFAULT_QUESTION_DIAGRAM, Difficulty
from app.schemas.base import CamelModel
from app.schemas.taxonomy import TopicRead, TopicWithQuestionCount


class QuestionRead(CamelModel):
    id: int
    exam_id: int
    subject_id: int
    track_id: int
    topic_id: Optional[int] = None
    year: Optional[int] = None
    question: str
    question_diagram: str
    correct_answer: str
    incorrect_answers: List[str]
    explanation: Optional[str] = None
    difficulty: str
    order_index: int
    is_active: bool
    created_at: Optional[datetime] = None


class QuestionFilters(CamelModel):
    exam_id: Optional[int] = None
    subject_id: Optional[int] = None
    track_id: Optional[int] = None
    topic_id: Optional[int] = None
    topic_ids: Optional[List[int]] = None
    year: Optional[int] = None
    difficulty: Optional[Difficulty] = None


class QuestionItemIn(CamelModel):
    """A question uploaded into an already resolved year track."""

    question: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)
    correct_answer: str = Field(..., min_length=1)
    incorrect_answers: List[str] = Field(..., min_length=1)
    explanation: Optional[str] = None
    question_diagram: str = DEFAULT_QUESTION_DIAGRAM
    difficulty: Difficulty = Difficulty.MEDIUM
    order_index: int = 0


class QuestionBulkRow(QuestionItemIn):
    """Row of the exam-wide bulk upload format."""

    subject: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2100)


class QuestionBulkUpload(CamelModel):
    exam_name: str = Field(..., min_length=1)
    sub_category_name: str = "pastquestions"
    questions: List[dict[str, Any]] = Field(..., min_length=1)


class YearUploadRequest(CamelModel):
    questions: List[QuestionItemIn] = Field(..., min_length=1)


class YearUploadResult(CamelModel):
    message: str
    year: int
    created: int
    replaced: bool = False
    replaced_count: int = 0
    questions: List[QuestionRead]


class QuestionUpdate(CamelModel):
    question: Optional[str] = None
    topic_name: Optional[str] = None
    correct_answer: Optional[str] = None
    incorrect_answers: Optional[List[str]] = None
    explanation: Optional[str] = None
    question_diagram: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    order_index: Optional[int] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)


class TopicCheckRequest(CamelModel):
    questions: List[dict[str, Any]] = Field(..., min_length=1)


class TopicCheckSummary(CamelModel):
    total: int
    valid: int
    invalid: int
    available_topics: List[str]


class InvalidQuestion(CamelModel):
    index: int
    topic: Optional[str] = None
    error: str


class TopicCheckResult(CamelModel):
    valid_questions: List[dict[str, Any]]
    invalid_questions: List[InvalidQuestion]
    summary: TopicCheckSummary


class MultiSelectionRequest(CamelModel):
    track_ids: List[int] = Field(default_factory=list)
    topic_ids: Optional[List[int]] = None


class TopicQuestionGroup(CamelModel):
    topic_id: Optional[int] = None
    topic: Optional[TopicRead] = None
    count: int
    questions: List[QuestionRead]


class QuestionsGroupedByTopics(CamelModel):
    total_questions: int
    topics_with_questions: List[TopicWithQuestionCount]
    questions_by_topics: List[TopicQuestionGroup]


class QuestionGroup(CamelModel):
    key: str
    label: str
    count: int
    questions: List[QuestionRead]


class QuestionGroups(CamelModel):
    group_by: str
    total_questions: int
    groups: List[QuestionGroup]


class PracticeRequest(CamelModel):
    exam_id: int
    subject_id: int
    track_ids: Optional[List[int]] = None
    topic_ids: Optional[List[int]] = None
    difficulty: Optional[Difficulty] = None
    question_count: int = Field(20, ge=1, le=200)


class PracticeQuestion(CamelModel):
    id: int
    question: str
    question_diagram: str
    options: List[str]
    correct_answer: str
    explanation: Optional[str] = None
    difficulty: str
    topic_id: Optional[int] = None
    year: Optional[int] = None


class PracticeSession(CamelModel):
    total_available: int
    question_count: int
    questions: List[PracticeQuestion]


# Topic assignments
class TopicAssignmentIn(CamelModel):
    topic_names: List[str] = Field(..., min_length=1)


class TopicAssignmentRead(CamelModel):
    id: int
    period_type: str
    period_number: int
    topic_ids: List[int]
    topics: List[TopicRead] = Field(default_factory=list)


# Export keeps the snake_case file format used by the upload tooling
class ExportQuestion(BaseModel):
    subject: str
    year: Optional[int] = None
    topic: Optional[str] = None
    question: str
    question_diagram: str
    correct_answer: str
    incorrect_answers: List[str]
    explanation: Optional[str] = None
    difficulty: str


class ExportInfo(BaseModel):
    exam: str
    subject: Optional[str] = None
    total_questions: int
    exported_at: datetime
    filters: dict[str, Any]


class QuestionExport(BaseModel):
    exportInfo: ExportInfo
    questions: List[ExportQuestion]


class QuestionPage(CamelModel):
    total: int
    limit: int
    offset: int
    questions: List[QuestionRead]
