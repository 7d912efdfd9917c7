"""Read-only filtered, grouped and sampled views over questions and content."""

import random
import re
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.content_model import ContentModel
from app.models.exam_model import ExamModel
from app.models.question_model import QuestionModel
from app.models.subject_model import SubjectModel
from app.models.topic_model import TopicModel
from app.schemas.content import ContentFilters
from app.schemas.questions import PracticeRequest, QuestionFilters
from app.utils.db import model_to_dict
from app.utils.error_handling import handle_database_errors

logger = structlog.get_logger()

PERIOD_KEYS = ("day", "week", "month", "semester", "year")
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
UNASSIGNED = "unassigned"


def _question_conditions(filters: QuestionFilters) -> list:
    conditions = [QuestionModel.is_active.is_(True)]
    if filters.exam_id is not None:
        conditions.append(QuestionModel.exam_id == filters.exam_id)
    if filters.subject_id is not None:
        conditions.append(QuestionModel.subject_id == filters.subject_id)
    if filters.track_id is not None:
        conditions.append(QuestionModel.track_id == filters.track_id)
    if filters.topic_id is not None:
        conditions.append(QuestionModel.topic_id == filters.topic_id)
    if filters.topic_ids:
        conditions.append(QuestionModel.topic_id.in_(filters.topic_ids))
    if filters.year is not None:
        conditions.append(QuestionModel.year == filters.year)
    if filters.difficulty is not None:
        conditions.append(QuestionModel.difficulty == filters.difficulty.value)
    return conditions


def _content_conditions(filters: ContentFilters) -> list:
    conditions = [ContentModel.is_active.is_(True)]
    if filters.exam_id is not None:
        conditions.append(ContentModel.exam_id == filters.exam_id)
    if filters.subject_id is not None:
        conditions.append(ContentModel.subject_id == filters.subject_id)
    if filters.track_id is not None:
        conditions.append(ContentModel.track_id == filters.track_id)
    if filters.sub_category_id is not None:
        conditions.append(ContentModel.sub_category_id == filters.sub_category_id)
    if filters.topic_id is not None:
        conditions.append(ContentModel.topic_id == filters.topic_id)
    if filters.topic_ids:
        conditions.append(ContentModel.topic_id.in_(filters.topic_ids))
    return conditions


@handle_database_errors("load questions")
async def get_questions_by_filters(
    db: AsyncSession,
    filters: QuestionFilters,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[QuestionModel]:
    """All provided filters are ANDed. No filters means every active question."""
    query = (
        select(QuestionModel)
        .where(*_question_conditions(filters))
        .order_by(QuestionModel.order_index, QuestionModel.id)
    )
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_questions_by_filters(db: AsyncSession, filters: QuestionFilters) -> int:
    result = await db.execute(
        select(func.count(QuestionModel.id)).where(*_question_conditions(filters))
    )
    return result.scalar_one()


@handle_database_errors("load multi-selection questions")
async def get_questions_multi_selection(
    db: AsyncSession,
    exam_id: int,
    subject_id: int,
    track_ids: Sequence[int],
    topic_ids: Optional[Sequence[int]] = None,
) -> List[QuestionModel]:
    """Questions from any of ``track_ids``, optionally narrowed to ``topic_ids``."""
    if not track_ids:
        raise ValidationError("At least one track must be selected", field="trackIds")

    query = (
        select(QuestionModel)
        .filter(QuestionModel.exam_id == exam_id)
        .filter(QuestionModel.subject_id == subject_id)
        .filter(QuestionModel.track_id.in_(list(track_ids)))
        .filter(QuestionModel.is_active.is_(True))
    )
    if topic_ids:
        query = query.filter(QuestionModel.topic_id.in_(list(topic_ids)))
    query = query.order_by(
        QuestionModel.year.desc(), QuestionModel.order_index, QuestionModel.id
    )
    result = await db.execute(query)
    return list(result.scalars().all())


@handle_database_errors("load content")
async def get_content_by_filters(
    db: AsyncSession,
    filters: ContentFilters,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[ContentModel]:
    query = (
        select(ContentModel)
        .where(*_content_conditions(filters))
        .order_by(ContentModel.order_index, ContentModel.id)
    )
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_content_by_filters(db: AsyncSession, filters: ContentFilters) -> int:
    result = await db.execute(
        select(func.count(ContentModel.id)).where(*_content_conditions(filters))
    )
    return result.scalar_one()


async def search_content(db: AsyncSession, term: str, limit: int = 50) -> List[ContentModel]:
    """Case-insensitive match on name, display name or description."""
    pattern = f"%{term.strip().lower()}%"
    result = await db.execute(
        select(ContentModel)
        .filter(ContentModel.is_active.is_(True))
        .filter(
            or_(
                func.lower(ContentModel.name).like(pattern),
                func.lower(ContentModel.display_name).like(pattern),
                func.lower(ContentModel.description).like(pattern),
            )
        )
        .order_by(ContentModel.order_index, ContentModel.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def _load_topics(db: AsyncSession, topic_ids: Iterable[int]) -> Dict[int, TopicModel]:
    ids = [topic_id for topic_id in set(topic_ids) if topic_id is not None]
    if not ids:
        return {}
    result = await db.execute(select(TopicModel).filter(TopicModel.id.in_(ids)))
    return {topic.id: topic for topic in result.scalars().all()}


async def _group_by_topic(
    db: AsyncSession, items: Sequence[Any], count_key: str, items_key: str
) -> tuple[list, list]:
    """Partition ``items`` by topic id, in topic order, skipping empty topics.

    Items without a topic end up in a trailing group with ``topic_id`` None so
    the group sizes always add up to ``len(items)``.
    """
    buckets: "OrderedDict[Optional[int], list]" = OrderedDict()
    for item in items:
        buckets.setdefault(item.topic_id, []).append(item)

    topics = await _load_topics(db, buckets)

    def sort_key(topic_id):
        topic = topics.get(topic_id)
        if topic is None:
            return (1, 0, topic_id or 0)
        return (0, topic.order_index, topic.id)

    annotated, groups = [], []
    for topic_id in sorted(buckets, key=sort_key):
        members = buckets[topic_id]
        topic = topics.get(topic_id)
        if topic is not None:
            annotated.append({**model_to_dict(topic), count_key: len(members)})
        groups.append(
            {
                "topic_id": topic_id,
                "topic": topic,
                "count": len(members),
                items_key: members,
            }
        )
    return annotated, groups


async def get_questions_grouped_by_topics(
    db: AsyncSession, filters: QuestionFilters
) -> Dict[str, Any]:
    questions = await get_questions_by_filters(db, filters)
    topics, groups = await _group_by_topic(
        db, questions, "question_count", "questions"
    )
    return {
        "total_questions": len(questions),
        "topics_with_questions": topics,
        "questions_by_topics": groups,
    }


async def get_content_grouped_by_topics(
    db: AsyncSession, filters: ContentFilters
) -> Dict[str, Any]:
    content = await get_content_by_filters(db, filters)
    topics, groups = await _group_by_topic(
        db, content, "content_count", "content"
    )
    return {
        "total_content": len(content),
        "topics_with_content": topics,
        "content_by_topics": groups,
    }


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def period_value(item: ContentModel, period: str) -> Optional[int]:
    """Numeric period of an item: ``metadata.<period>`` first, then the name."""
    meta = item.meta or {}
    value = _as_int(meta.get(period))
    if value is not None:
        return value
    match = re.search(rf"{period}(\d+)", item.name or "", re.IGNORECASE)
    return int(match.group(1)) if match else None


def period_label(period: str, value: int) -> str:
    if period == "month" and 1 <= value <= 12:
        return MONTH_NAMES[value - 1]
    if period == "year":
        return str(value)
    return f"{period.capitalize()} {value}"


def group_content_by_period(
    items: Sequence[ContentModel], period: str
) -> List[Dict[str, Any]]:
    """Partition content by day, week, month, semester or year.

    Semester groups are keyed by the uploaded ``semesterName`` text, so "1" and
    "First Semester" stay apart even though both are semester 1. They sort by
    numeric value first and label second. Year groups sort newest first.
    Items with no recognisable period go to a trailing "unassigned" group.
    """
    if period not in PERIOD_KEYS:
        raise ValidationError(
            f"groupBy must be one of: topic, {', '.join(PERIOD_KEYS)}", field="groupBy"
        )

    groups: Dict[str, Dict[str, Any]] = {}
    for item in items:
        meta = item.meta or {}
        value = period_value(item, period)

        if period == "semester":
            label = meta.get("semesterName")
            if label is None and value is not None:
                label = str(value)
            key = str(label) if label is not None else UNASSIGNED
        else:
            key = str(value) if value is not None else UNASSIGNED
            label = meta.get(f"{period}Label")
            if label is None and value is not None:
                label = period_label(period, value)

        group = groups.setdefault(
            key,
            {
                "key": key,
                "label": str(label) if label is not None else "Unassigned",
                "value": value,
                "items": [],
            },
        )
        group["items"].append(item)

    def sort_key(group):
        unassigned = group["key"] == UNASSIGNED or group["value"] is None
        value = group["value"] or 0
        if period == "year":
            value = -value
        return (unassigned, value, group["label"])

    ordered = sorted(groups.values(), key=sort_key)
    for group in ordered:
        group["count"] = len(group["items"])
    return ordered


def group_questions(
    questions: Sequence[QuestionModel], group_by: str, topics: Dict[int, TopicModel]
) -> List[Dict[str, Any]]:
    """Partition questions by year (newest first), difficulty or topic."""
    groups: Dict[str, Dict[str, Any]] = {}
    for question in questions:
        if group_by == "year":
            key = str(question.year) if question.year is not None else UNASSIGNED
            label = key
        elif group_by == "difficulty":
            key = label = question.difficulty
        elif group_by == "topic":
            topic = topics.get(question.topic_id)
            key = str(question.topic_id) if topic else UNASSIGNED
            label = topic.display_name if topic else "Unassigned"
        else:
            raise ValidationError(
                "groupBy must be one of: topic, year, difficulty", field="groupBy"
            )
        group = groups.setdefault(key, {"key": key, "label": label, "questions": []})
        group["questions"].append(question)

    difficulty_rank = {"easy": 0, "medium": 1, "hard": 2}

    def sort_key(group):
        if group["key"] == UNASSIGNED:
            return (1, 0, "")
        if group_by == "year":
            return (0, -int(group["key"]), "")
        if group_by == "difficulty":
            return (0, difficulty_rank.get(group["key"], 3), group["key"])
        topic = topics.get(int(group["key"]))
        return (0, topic.order_index, group["label"])

    ordered = sorted(groups.values(), key=sort_key)
    for group in ordered:
        group["count"] = len(group["questions"])
    return ordered


def shuffled_options(question: QuestionModel, rng: random.Random) -> List[str]:
    options = [question.correct_answer, *(question.incorrect_answers or [])]
    rng.shuffle(options)
    return options


@handle_database_errors("generate practice session")
async def generate_practice_session(
    db: AsyncSession,
    request: PracticeRequest,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Shuffle the candidate pool, keep ``question_count`` and shuffle each option list.

    The correct answer is returned alongside the options instead of being
    implied by position.
    """
    rng = rng or random.Random()

    query = (
        select(QuestionModel)
        .filter(QuestionModel.exam_id == request.exam_id)
        .filter(QuestionModel.subject_id == request.subject_id)
        .filter(QuestionModel.is_active.is_(True))
    )
    if request.track_ids:
        query = query.filter(QuestionModel.track_id.in_(request.track_ids))
    if request.topic_ids:
        query = query.filter(QuestionModel.topic_id.in_(request.topic_ids))
    if request.difficulty is not None:
        query = query.filter(QuestionModel.difficulty == request.difficulty.value)

    candidates = list((await db.execute(query.order_by(QuestionModel.id))).scalars().all())
    rng.shuffle(candidates)
    selected = candidates[: request.question_count]
    logger.info(
        "Practice session generated",
        exam_id=request.exam_id,
        subject_id=request.subject_id,
        available=len(candidates),
        selected=len(selected),
    )

    return {
        "total_available": len(candidates),
        "question_count": len(selected),
        "questions": [practice_item(question, rng) for question in selected],
    }


def practice_item(question: QuestionModel, rng: random.Random) -> Dict[str, Any]:
    return {
        "id": question.id,
        "question": question.question,
        "question_diagram": question.question_diagram,
        "options": shuffled_options(question, rng),
        "correct_answer": question.correct_answer,
        "explanation": question.explanation,
        "difficulty": question.difficulty,
        "topic_id": question.topic_id,
        "year": question.year,
    }


async def generate_quick_practice(
    db: AsyncSession,
    filters: QuestionFilters,
    size: int,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Database-sampled practice set for callers that only know a scope."""
    rng = rng or random.Random()
    questions = await sample_questions(db, filters, size)
    return {
        "total_available": await count_questions_by_filters(db, filters),
        "question_count": len(questions),
        "questions": [practice_item(question, rng) for question in questions],
    }


@handle_database_errors("sample questions")
async def sample_questions(
    db: AsyncSession, filters: QuestionFilters, size: int
) -> List[QuestionModel]:
    """Random sample drawn by the database rather than by shuffling in memory."""
    result = await db.execute(
        select(QuestionModel)
        .where(*_question_conditions(filters))
        .order_by(func.random())
        .limit(size)
    )
    return list(result.scalars().all())


async def export_questions(db: AsyncSession, filters: QuestionFilters) -> Dict[str, Any]:
    """Questions in the upload file format, with subject and topic names resolved."""
    if filters.exam_id is None:
        raise ValidationError("examId is required for export", field="examId")
    exam = await db.get(ExamModel, filters.exam_id)
    if exam is None:
        raise NotFoundError("Exam not found", resource_type="exam")

    questions = await get_questions_by_filters(db, filters)

    subject_ids = {question.subject_id for question in questions}
    subjects = {}
    if subject_ids:
        result = await db.execute(
            select(SubjectModel).filter(SubjectModel.id.in_(subject_ids))
        )
        subjects = {subject.id: subject for subject in result.scalars().all()}
    topics = await _load_topics(db, (question.topic_id for question in questions))

    subject_name = None
    if filters.subject_id is not None and filters.subject_id in subjects:
        subject_name = subjects[filters.subject_id].name

    return {
        "exportInfo": {
            "exam": exam.name,
            "subject": subject_name,
            "total_questions": len(questions),
            "exported_at": datetime.now(),
            "filters": filters.model_dump(exclude_none=True, mode="json"),
        },
        "questions": [
            {
                "subject": subjects[question.subject_id].name
                if question.subject_id in subjects
                else "",
                "year": question.year,
                "topic": topics[question.topic_id].name
                if question.topic_id in topics
                else None,
                "question": question.question,
                "question_diagram": question.question_diagram,
                "correct_answer": question.correct_answer,
                "incorrect_answers": list(question.incorrect_answers or []),
                "explanation": question.explanation,
                "difficulty": question.difficulty,
            }
            for question in questions
        ],
    }


async def get_content_groups(
    db: AsyncSession, filters: ContentFilters, group_by: str
) -> Dict[str, Any]:
    """Content of a scope partitioned by topic or by period."""
    items = await get_content_by_filters(db, filters)
    if group_by == "topic":
        _, topic_groups = await _group_by_topic(db, items, "content_count", "items")
        groups = [
            {
                "key": str(group["topic_id"]) if group["topic"] else UNASSIGNED,
                "label": group["topic"].display_name if group["topic"] else "Unassigned",
                "value": group["topic_id"] if group["topic"] else None,
                "count": group["count"],
                "items": group["items"],
            }
            for group in topic_groups
        ]
    else:
        groups = group_content_by_period(items, group_by)
    return {"group_by": group_by, "total_content": len(items), "groups": groups}


async def get_question_groups(
    db: AsyncSession, filters: QuestionFilters, group_by: str
) -> Dict[str, Any]:
    questions = await get_questions_by_filters(db, filters)
    topics = await _load_topics(db, (question.topic_id for question in questions))
    return {
        "group_by": group_by,
        "total_questions": len(questions),
        "groups": group_questions(questions, group_by, topics),
    }
