from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from app.models.sub_category_model import ContentType
from app.models.track_model import TrackType
from app.schemas.base import BulkResult, CamelModel


# Exams
class ExamCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    icon: Optional[str] = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return value.strip().upper()


class ExamRead(CamelModel):
    id: int
    name: str
    display_name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


# SubCategories
class SubCategoryCreate(CamelModel):
    exam_id: int
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    route_path: Optional[str] = None
    content_type: ContentType = ContentType.JSON
    icon: Optional[str] = None
    order_index: int = 0

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return value.strip().lower()


class SubCategoryBulkItem(SubCategoryCreate):
    """Bulk rows must carry their display name and route explicitly."""

    exam_id: Optional[int] = None
    display_name: str = Field(..., min_length=1, max_length=200)
    route_path: str = Field(..., min_length=1)


class SubCategoryUpdate(CamelModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    route_path: Optional[str] = None
    content_type: Optional[ContentType] = None
    icon: Optional[str] = None
    order_index: Optional[int] = None
    is_active: Optional[bool] = None


class SubCategoryRead(CamelModel):
    id: int
    exam_id: int
    name: str
    display_name: str
    description: Optional[str] = None
    route_path: str
    content_type: str
    icon: Optional[str] = None
    order_index: int
    is_active: bool


class SubCategoryReorderItem(CamelModel):
    id: int
    order_index: int


class SubCategoryReorder(CamelModel):
    items: List[SubCategoryReorderItem] = Field(..., min_length=1)


# Subjects
class SubjectCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    icon: Optional[str] = None
    order_index: int = 0


class SubjectRead(CamelModel):
    id: int
    exam_id: int
    name: str
    display_name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    order_index: int
    is_active: bool


# Topics
class TopicCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    display_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    order_index: int = 0


class TopicRead(CamelModel):
    id: int
    exam_id: int
    subject_id: int
    name: str
    display_name: str
    description: Optional[str] = None
    order_index: int
    is_active: bool


class TopicWithContentCount(TopicRead):
    content_count: int


class TopicWithQuestionCount(TopicRead):
    question_count: int


class TopicValidationResult(CamelModel):
    is_valid: bool
    topic_id: Optional[int] = None
    topic: Optional[TopicRead] = None
    message: str


# Tracks
class TrackCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=200)
    track_type: TrackType
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    year: Optional[int] = None
    order_index: int = 0


class TrackRead(CamelModel):
    id: int
    exam_id: int
    sub_category_id: int
    name: str
    display_name: str
    description: Optional[str] = None
    track_type: str
    duration: Optional[int] = None
    year: Optional[int] = None
    order_index: int
    is_active: bool


# Availability
class SubjectAvailabilityItem(CamelModel):
    """Subject and subcategory may be referenced by id or by name."""

    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    sub_category_id: Optional[int] = None
    sub_category_name: Optional[str] = None

    @model_validator(mode="after")
    def check_references(self):
        if self.subject_id is None and not self.subject_name:
            raise ValueError("subjectId or subjectName is required")
        if self.sub_category_id is None and not self.sub_category_name:
            raise ValueError("subCategoryId or subCategoryName is required")
        return self


# Flow / structure
class TopicWithCounts(TopicRead):
    content_count: Optional[int] = None
    question_count: Optional[int] = None


class UserFlowTrack(CamelModel):
    track: TrackRead
    topics: List[TopicWithCounts]
    total_items: int


class UserFlowSubject(CamelModel):
    subject: SubjectRead
    tracks: List[UserFlowTrack]


class UserFlowSubCategory(CamelModel):
    sub_category: SubCategoryRead
    content_type: str
    subjects: List[UserFlowSubject]
    tracks: List[TrackRead]


class UserFlow(CamelModel):
    exam: ExamRead
    sub_categories: List[UserFlowSubCategory]


class StructureValidation(CamelModel):
    is_valid: bool
    checks: dict[str, bool]
    errors: List[str]


# Seeding
class SeedCompleteExam(CamelModel):
    exam: ExamCreate
    sub_categories: List[dict[str, Any]] = Field(default_factory=list)
    subjects: List[dict[str, Any]] = Field(default_factory=list)
    topics: List[dict[str, Any]] = Field(default_factory=list)
    tracks: List[dict[str, Any]] = Field(default_factory=list)
    availability: List[dict[str, Any]] = Field(default_factory=list)


class SeedResult(CamelModel):
    exam: ExamRead
    exam_created: bool
    sub_categories: BulkResult
    subjects: BulkResult
    topics: BulkResult
    tracks: BulkResult
    availability: BulkResult


class TrackDeleteResult(CamelModel):
    message: str
    has_orphaned_items: bool
    orphaned_content: int = 0
    orphaned_questions: int = 0
