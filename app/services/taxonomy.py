"""Resolution and validation of the exam -> subcategory -> subject -> track -> topic tree."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.content_model import ContentModel
from app.models.exam_model import ExamModel
from app.models.question_model import QuestionModel
from app.models.sub_category_model import ContentType, SubCategoryModel
from app.models.subject_availability_model import SubjectAvailabilityModel
from app.models.subject_model import SubjectModel
from app.models.topic_model import TopicModel
from app.models.track_model import TrackModel
from app.utils.db import model_to_dict
from app.utils.error_handling import handle_database_errors

logger = structlog.get_logger()

PAST_QUESTIONS = "pastquestions"


@dataclass
class ResolvedContext:
    exam: ExamModel
    subject: SubjectModel
    sub_category: SubCategoryModel
    track: TrackModel


@dataclass
class UnresolvedContext:
    missing_segment: str
    value: str

    @property
    def message(self) -> str:
        label = self.missing_segment.replace("_", " ").capitalize()
        return f"{label} '{self.value}' not found"


ContextResult = Union[ResolvedContext, UnresolvedContext]


async def get_exam_by_name(db: AsyncSession, exam_name: str) -> Optional[ExamModel]:
    result = await db.execute(
        select(ExamModel)
        .filter(ExamModel.name == exam_name.strip().upper())
        .filter(ExamModel.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def get_sub_category_by_name(
    db: AsyncSession, exam_id: int, name: str
) -> Optional[SubCategoryModel]:
    result = await db.execute(
        select(SubCategoryModel)
        .filter(SubCategoryModel.exam_id == exam_id)
        .filter(SubCategoryModel.name == name.strip().lower())
        .filter(SubCategoryModel.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def get_subject_by_name(
    db: AsyncSession, exam_id: int, name: str
) -> Optional[SubjectModel]:
    result = await db.execute(
        select(SubjectModel)
        .filter(SubjectModel.exam_id == exam_id)
        .filter(func.lower(SubjectModel.name) == name.strip().lower())
        .filter(SubjectModel.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def get_track_by_name(
    db: AsyncSession, exam_id: int, sub_category_id: int, name: str
) -> Optional[TrackModel]:
    result = await db.execute(
        select(TrackModel)
        .filter(TrackModel.exam_id == exam_id)
        .filter(TrackModel.sub_category_id == sub_category_id)
        .filter(func.lower(TrackModel.name) == name.strip().lower())
        .filter(TrackModel.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def find_topic_by_name(
    db: AsyncSession, exam_id: int, subject_id: int, topic_name: str
) -> Optional[TopicModel]:
    """Active topic whose name or display name matches, ignoring case."""
    lowered = topic_name.strip().lower()
    result = await db.execute(
        select(TopicModel)
        .filter(TopicModel.exam_id == exam_id)
        .filter(TopicModel.subject_id == subject_id)
        .filter(TopicModel.is_active.is_(True))
        .filter(
            or_(
                func.lower(TopicModel.name) == lowered,
                func.lower(TopicModel.display_name) == lowered,
            )
        )
        .order_by(TopicModel.id)
    )
    return result.scalars().first()


async def resolve_context(
    db: AsyncSession,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
) -> ContextResult:
    """Resolve URL path segments into entities.

    Lookups run exam, subcategory, subject, track and stop at the first miss,
    whose segment is reported in the ``UnresolvedContext``.
    """
    exam = await get_exam_by_name(db, exam_name)
    if exam is None:
        return UnresolvedContext("exam", exam_name)

    sub_category = await get_sub_category_by_name(db, exam.id, sub_category_name)
    if sub_category is None:
        return UnresolvedContext("sub_category", sub_category_name)

    subject = await get_subject_by_name(db, exam.id, subject_name)
    if subject is None:
        return UnresolvedContext("subject", subject_name)

    track = await get_track_by_name(db, exam.id, sub_category.id, track_name)
    if track is None:
        return UnresolvedContext("track", track_name)

    return ResolvedContext(
        exam=exam, subject=subject, sub_category=sub_category, track=track
    )


async def require_context(
    db: AsyncSession,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
) -> ResolvedContext:
    """``resolve_context`` that raises a 404 naming the segment that failed."""
    context = await resolve_context(
        db, exam_name, subject_name, track_name, sub_category_name
    )
    if isinstance(context, UnresolvedContext):
        logger.info(
            "Taxonomy path not resolved",
            exam=exam_name,
            subject=subject_name,
            track=track_name,
            sub_category=sub_category_name,
            missing_segment=context.missing_segment,
        )
        raise NotFoundError(context.message, resource_type=context.missing_segment)
    return context


def _annotate(topic: TopicModel, **counts: int) -> Dict[str, Any]:
    return {**model_to_dict(topic), **counts}


async def _topics_for_counts(
    db: AsyncSession, counts: Dict[int, int], count_key: str
) -> List[Dict[str, Any]]:
    if not counts:
        return []
    result = await db.execute(
        select(TopicModel)
        .filter(TopicModel.id.in_(list(counts)))
        .filter(TopicModel.is_active.is_(True))
        .order_by(TopicModel.order_index, TopicModel.id)
    )
    return [
        _annotate(topic, **{count_key: counts[topic.id]})
        for topic in result.scalars().all()
    ]


@handle_database_errors("load topics with content")
async def get_topics_with_content_for_track(
    db: AsyncSession,
    exam_id: int,
    subject_id: int,
    track_id: int,
    sub_category_id: int,
) -> List[Dict[str, Any]]:
    """Topics that have at least one active content item in the track, with counts."""
    result = await db.execute(
        select(ContentModel.topic_id, func.count(ContentModel.id))
        .filter(ContentModel.exam_id == exam_id)
        .filter(ContentModel.subject_id == subject_id)
        .filter(ContentModel.track_id == track_id)
        .filter(ContentModel.sub_category_id == sub_category_id)
        .filter(ContentModel.is_active.is_(True))
        .filter(ContentModel.topic_id.is_not(None))
        .group_by(ContentModel.topic_id)
    )
    counts = {topic_id: count for topic_id, count in result.all()}
    return await _topics_for_counts(db, counts, "content_count")


@handle_database_errors("load topics with questions")
async def get_topics_with_questions_for_track(
    db: AsyncSession, exam_id: int, subject_id: int, track_id: int
) -> List[Dict[str, Any]]:
    """Topics that have at least one active question in the track, with counts."""
    result = await db.execute(
        select(QuestionModel.topic_id, func.count(QuestionModel.id))
        .filter(QuestionModel.exam_id == exam_id)
        .filter(QuestionModel.subject_id == subject_id)
        .filter(QuestionModel.track_id == track_id)
        .filter(QuestionModel.is_active.is_(True))
        .filter(QuestionModel.topic_id.is_not(None))
        .group_by(QuestionModel.topic_id)
    )
    counts = {topic_id: count for topic_id, count in result.all()}
    return await _topics_for_counts(db, counts, "question_count")


async def validate_topic_for_content(
    db: AsyncSession, exam_id: int, subject_id: int, topic_name: Optional[str]
) -> Dict[str, Any]:
    if not topic_name or not topic_name.strip():
        return {"is_valid": False, "message": "Topic name is required"}

    topic = await find_topic_by_name(db, exam_id, subject_id, topic_name)
    if topic is None:
        return {
            "is_valid": False,
            "message": f"Topic '{topic_name}' is not an approved topic for this subject",
        }

    return {
        "is_valid": True,
        "topic_id": topic.id,
        "topic": topic,
        "message": "Topic is valid",
    }


async def get_available_subjects(
    db: AsyncSession, exam_id: int, sub_category_id: int
) -> List[SubjectModel]:
    """Subjects navigable under a subcategory through an availability record."""
    result = await db.execute(
        select(SubjectModel)
        .join(
            SubjectAvailabilityModel,
            SubjectAvailabilityModel.subject_id == SubjectModel.id,
        )
        .filter(SubjectAvailabilityModel.exam_id == exam_id)
        .filter(SubjectAvailabilityModel.sub_category_id == sub_category_id)
        .filter(SubjectModel.is_active.is_(True))
        .order_by(SubjectModel.order_index, SubjectModel.name)
    )
    return list(result.scalars().all())


async def is_subject_available(
    db: AsyncSession, exam_id: int, subject_id: int, sub_category_id: int
) -> bool:
    result = await db.execute(
        select(SubjectAvailabilityModel.id)
        .filter(SubjectAvailabilityModel.exam_id == exam_id)
        .filter(SubjectAvailabilityModel.subject_id == subject_id)
        .filter(SubjectAvailabilityModel.sub_category_id == sub_category_id)
    )
    return result.first() is not None


async def get_tracks_for_sub_category(
    db: AsyncSession, exam_id: int, sub_category_id: int
) -> List[TrackModel]:
    result = await db.execute(
        select(TrackModel)
        .filter(TrackModel.exam_id == exam_id)
        .filter(TrackModel.sub_category_id == sub_category_id)
        .filter(TrackModel.is_active.is_(True))
        .order_by(TrackModel.order_index, TrackModel.name)
    )
    return list(result.scalars().all())


def uses_questions(sub_category: SubCategoryModel) -> bool:
    """Past-question channels hold questions. Every other channel holds content."""
    return sub_category.name == PAST_QUESTIONS


@handle_database_errors("build user flow")
async def get_complete_user_flow(db: AsyncSession, exam_id: int) -> Dict[str, Any]:
    """Denormalised navigation tree for an exam.

    Assembled by sequential queries, one level at a time, so it is not a
    consistent snapshot under concurrent writes.
    """
    exam = await db.get(ExamModel, exam_id)
    if exam is None or not exam.is_active:
        raise NotFoundError("Exam not found", resource_type="exam")

    result = await db.execute(
        select(SubCategoryModel)
        .filter(SubCategoryModel.exam_id == exam_id)
        .filter(SubCategoryModel.is_active.is_(True))
        .order_by(SubCategoryModel.order_index, SubCategoryModel.id)
    )
    sub_categories = result.scalars().all()

    flow = []
    for sub_category in sub_categories:
        subjects = await get_available_subjects(db, exam_id, sub_category.id)
        tracks = await get_tracks_for_sub_category(db, exam_id, sub_category.id)

        subject_nodes = []
        for subject in subjects:
            track_nodes = []
            for track in tracks:
                if uses_questions(sub_category):
                    topics = await get_topics_with_questions_for_track(
                        db, exam_id, subject.id, track.id
                    )
                    total = sum(topic["question_count"] for topic in topics)
                else:
                    topics = await get_topics_with_content_for_track(
                        db, exam_id, subject.id, track.id, sub_category.id
                    )
                    total = sum(topic["content_count"] for topic in topics)
                track_nodes.append(
                    {"track": track, "topics": topics, "total_items": total}
                )
            subject_nodes.append({"subject": subject, "tracks": track_nodes})

        flow.append(
            {
                "sub_category": sub_category,
                "subjects": subject_nodes,
                "tracks": tracks,
                "content_type": sub_category.content_type or ContentType.JSON.value,
            }
        )

    return {"exam": exam, "sub_categories": flow}


async def validate_structure(
    db: AsyncSession,
    exam_id: int,
    subject_id: Optional[int] = None,
    topic_id: Optional[int] = None,
    track_id: Optional[int] = None,
    sub_category_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Check that the given ids form a consistent path through the taxonomy."""
    checks: Dict[str, bool] = {}
    errors: List[str] = []

    exam = await db.get(ExamModel, exam_id)
    checks["exam"] = exam is not None and exam.is_active
    if not checks["exam"]:
        errors.append(f"Exam {exam_id} not found")

    if subject_id is not None:
        subject = await db.get(SubjectModel, subject_id)
        checks["subject"] = subject is not None and subject.exam_id == exam_id
        if not checks["subject"]:
            errors.append(f"Subject {subject_id} does not belong to exam {exam_id}")

    if topic_id is not None:
        topic = await db.get(TopicModel, topic_id)
        checks["topic"] = (
            topic is not None
            and topic.exam_id == exam_id
            and (subject_id is None or topic.subject_id == subject_id)
        )
        if not checks["topic"]:
            errors.append(f"Topic {topic_id} does not belong to the given subject")

    if sub_category_id is not None:
        sub_category = await db.get(SubCategoryModel, sub_category_id)
        checks["sub_category"] = (
            sub_category is not None and sub_category.exam_id == exam_id
        )
        if not checks["sub_category"]:
            errors.append(
                f"Subcategory {sub_category_id} does not belong to exam {exam_id}"
            )

    if track_id is not None:
        track = await db.get(TrackModel, track_id)
        checks["track"] = (
            track is not None
            and track.exam_id == exam_id
            and (sub_category_id is None or track.sub_category_id == sub_category_id)
        )
        if not checks["track"]:
            errors.append(
                f"Track {track_id} does not belong to the given exam and subcategory"
            )

    if subject_id is not None and sub_category_id is not None:
        checks["availability"] = await is_subject_available(
            db, exam_id, subject_id, sub_category_id
        )
        if not checks["availability"]:
            errors.append(
                f"Subject {subject_id} is not available under subcategory {sub_category_id}"
            )

    return {"is_valid": not errors, "checks": checks, "errors": errors}
