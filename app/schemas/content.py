from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, Field

from app.schemas.base import BulkResult, CamelModel
from app.schemas.taxonomy import TopicRead, TopicWithContentCount


class ContentItemIn(CamelModel):
    """One content item as uploaded. The topic is given by id or by name."""

    name: str = Field(..., min_length=1, max_length=255)
    display_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    topic: Optional[str] = None
    topic_id: Optional[int] = None
    order_index: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    file_path: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)


class ContentUpdate(CamelModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    topic_id: Optional[int] = None
    order_index: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None
    file_path: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    is_active: Optional[bool] = None


class ContentRead(CamelModel):
    id: int
    exam_id: int
    subject_id: int
    track_id: int
    sub_category_id: int
    topic_id: Optional[int] = None
    name: str
    display_name: str
    description: Optional[str] = None
    order_index: int
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("meta", "metadata")
    )
    file_path: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None


class ContentFilters(CamelModel):
    exam_id: Optional[int] = None
    subject_id: Optional[int] = None
    track_id: Optional[int] = None
    sub_category_id: Optional[int] = None
    topic_id: Optional[int] = None
    topic_ids: Optional[List[int]] = None


class ContentBulkRequest(CamelModel):
    exam_id: int
    subject_id: int
    track_id: int
    sub_category_id: int
    contents: List[ContentItemIn] = Field(..., min_length=1)


class PeriodUploadRequest(CamelModel):
    contents: List[ContentItemIn] = Field(..., min_length=1)


class PeriodUpdateRequest(CamelModel):
    contents: List[ContentItemIn] = Field(..., min_length=1)
    replace_all: bool = False


class TopicValidationBlock(CamelModel):
    missing_topics: List[str]
    unique_topics: List[str]
    valid_count: int
    invalid_count: int


class ValidatedBulkResult(BulkResult):
    success: bool
    validation: TopicValidationBlock


class PeriodUploadResult(CamelModel):
    message: str
    period_type: str
    period: str
    replaced: bool = False
    replaced_count: int = 0
    result: ValidatedBulkResult


class PeriodUpdateResult(CamelModel):
    message: str
    updated: int = 0
    not_found: List[str] = Field(default_factory=list)
    replaced_count: int = 0
    result: Optional[ValidatedBulkResult] = None


class TopicContentGroup(CamelModel):
    topic_id: Optional[int] = None
    topic: Optional[TopicRead] = None
    count: int
    content: List[ContentRead]


class ContentGroupedByTopics(CamelModel):
    total_content: int
    topics_with_content: List[TopicWithContentCount]
    content_by_topics: List[TopicContentGroup]


class PeriodGroup(CamelModel):
    key: str
    label: str
    value: Optional[int] = None
    count: int
    items: List[ContentRead]


class ContentGroups(CamelModel):
    group_by: str
    total_content: int
    groups: List[PeriodGroup]


class TrackPeriod(CamelModel):
    number: int
    label: str
    content_count: int


class TrackPeriods(CamelModel):
    track_type: str
    duration: Optional[int] = None
    periods: List[TrackPeriod]


class ContentPage(CamelModel):
    total: int
    limit: int
    offset: int
    content: List[ContentRead]
