"""Shared query-string parameters: filters, id lists and pagination."""

from typing import List, Optional

from fastapi import Query

from app.exceptions import ValidationError
from app.models.question_model import Difficulty
from app.schemas.content import ContentFilters
from app.schemas.questions import QuestionFilters

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


def parse_id_list(raw: Optional[str], field: str) -> Optional[List[int]]:
    """Parse a comma-separated list of ids such as ``topicIds=1,2,3``."""
    if raw is None or not raw.strip():
        return None
    try:
        return [int(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError(
            f"Invalid {field} format. Please provide comma-separated integers.",
            field=field,
        )


class Pagination:
    def __init__(
        self,
        limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
        offset: int = Query(0, ge=0),
    ):
        self.limit = limit
        self.offset = offset


def question_filters(
    exam_id: Optional[int] = Query(None, alias="examId"),
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    track_id: Optional[int] = Query(None, alias="trackId"),
    topic_id: Optional[int] = Query(None, alias="topicId"),
    topic_ids: Optional[str] = Query(
        None, alias="topicIds", description="Comma-separated list of topic IDs"
    ),
    year: Optional[int] = Query(None, ge=1900, le=2100),
    difficulty: Optional[Difficulty] = None,
) -> QuestionFilters:
    return QuestionFilters(
        exam_id=exam_id,
        subject_id=subject_id,
        track_id=track_id,
        topic_id=topic_id,
        topic_ids=parse_id_list(topic_ids, "topicIds"),
        year=year,
        difficulty=difficulty,
    )


def content_filters(
    exam_id: Optional[int] = Query(None, alias="examId"),
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    track_id: Optional[int] = Query(None, alias="trackId"),
    sub_category_id: Optional[int] = Query(None, alias="subCategoryId"),
    topic_id: Optional[int] = Query(None, alias="topicId"),
    topic_ids: Optional[str] = Query(
        None, alias="topicIds", description="Comma-separated list of topic IDs"
    ),
) -> ContentFilters:
    return ContentFilters(
        exam_id=exam_id,
        subject_id=subject_id,
        track_id=track_id,
        sub_category_id=sub_category_id,
        topic_id=topic_id,
        topic_ids=parse_id_list(topic_ids, "topicIds"),
    )
