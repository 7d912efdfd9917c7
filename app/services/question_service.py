"""Past-question uploads by year, topic assignments and single-question edits."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.question_model import QuestionModel
from app.models.topic_assignment_model import TopicAssignmentModel
from app.models.topic_model import TopicModel
from app.schemas.questions import QuestionItemIn, QuestionUpdate
from app.services.period_content import check_track_period, get_spec, parse_period
from app.services.taxonomy import (
    ResolvedContext,
    find_topic_by_name,
    get_exam_by_name,
    get_subject_by_name,
)
from app.utils.db import apply_updates, model_to_dict
from app.utils.error_handling import handle_database_errors

logger = structlog.get_logger()

ASSIGNMENT_PERIOD_TYPES = ("weeks", "days", "semesters")


async def _active_topics(db: AsyncSession, exam_id: int, subject_id: int) -> List[TopicModel]:
    result = await db.execute(
        select(TopicModel)
        .filter(TopicModel.exam_id == exam_id)
        .filter(TopicModel.subject_id == subject_id)
        .filter(TopicModel.is_active.is_(True))
        .order_by(TopicModel.order_index, TopicModel.id)
    )
    return list(result.scalars().all())


def _topic_index(topics: Sequence[TopicModel]) -> Dict[str, TopicModel]:
    index: Dict[str, TopicModel] = {}
    for topic in topics:
        index.setdefault(topic.name.strip().lower(), topic)
        index.setdefault(topic.display_name.strip().lower(), topic)
    return index


def _resolve_topic_names(
    topics: Sequence[TopicModel], names: Sequence[str]
) -> Tuple[List[Optional[TopicModel]], List[str]]:
    """Match names case-insensitively. Returns per-name topics and the missing names."""
    index = _topic_index(topics)
    resolved = [index.get((name or "").strip().lower()) for name in names]
    missing: List[str] = []
    for name, topic in zip(names, resolved):
        if topic is None and name not in missing:
            missing.append(name)
    return resolved, missing


async def validate_question_topics(
    db: AsyncSession, exam_name: str, subject_name: str, questions: Sequence[Dict[str, Any]]
) -> Dict[str, Any]:
    """Split candidate questions by whether their topic is approved for the subject.

    Valid questions come back with the canonical topic name and its id.
    """
    exam = await get_exam_by_name(db, exam_name)
    if exam is None:
        raise NotFoundError(f"Exam '{exam_name}' not found", resource_type="exam")
    subject = await get_subject_by_name(db, exam.id, subject_name)
    if subject is None:
        raise NotFoundError(f"Subject '{subject_name}' not found", resource_type="subject")

    topics = await _active_topics(db, exam.id, subject.id)
    index = _topic_index(topics)

    valid, invalid = [], []
    for position, question in enumerate(questions):
        topic_name = question.get("topic")
        if not isinstance(topic_name, str) or not topic_name.strip():
            invalid.append({"index": position, "topic": None, "error": "Topic is required"})
            continue
        topic = index.get(topic_name.strip().lower())
        if topic is None:
            invalid.append(
                {
                    "index": position,
                    "topic": topic_name,
                    "error": f"Topic '{topic_name}' is not approved for {subject.name}",
                }
            )
            continue
        valid.append({**question, "topic": topic.name, "topicId": topic.id})

    return {
        "valid_questions": valid,
        "invalid_questions": invalid,
        "summary": {
            "total": len(questions),
            "valid": len(valid),
            "invalid": len(invalid),
            "available_topics": [topic.name for topic in topics],
        },
    }


async def _year_questions(
    db: AsyncSession, context: ResolvedContext, year: int
) -> List[QuestionModel]:
    result = await db.execute(
        select(QuestionModel)
        .filter(QuestionModel.exam_id == context.exam.id)
        .filter(QuestionModel.subject_id == context.subject.id)
        .filter(QuestionModel.track_id == context.track.id)
        .filter(QuestionModel.year == year)
        .filter(QuestionModel.is_active.is_(True))
        .order_by(QuestionModel.order_index, QuestionModel.id)
    )
    return list(result.scalars().all())


def _check_year(year: int) -> None:
    if not 1900 <= year <= 2100:
        raise ValidationError("Year must be between 1900 and 2100", field="year")


@handle_database_errors("upload year questions")
async def upload_year_questions(
    db: AsyncSession,
    context: ResolvedContext,
    year: int,
    questions: Sequence[QuestionItemIn],
    force: bool = False,
) -> Dict[str, Any]:
    """Insert a year's questions in one transaction.

    Every topic must be approved for the subject or nothing is written. An
    already uploaded year is a conflict unless ``force`` replaces it.
    """
    _check_year(year)

    existing = await _year_questions(db, context, year)
    if existing and not force:
        raise ConflictError(
            f"Questions for {year} already exist. Use force=true to replace them.",
            details={"existingCount": len(existing)},
        )

    topics = await _active_topics(db, context.exam.id, context.subject.id)
    resolved, missing = _resolve_topic_names(topics, [item.topic for item in questions])
    if missing:
        raise ValidationError(
            "Some questions reference topics that are not approved for this subject",
            field="topic",
            details={
                "missingTopics": missing,
                "availableTopics": [topic.name for topic in topics],
            },
        )

    for question in existing:
        question.is_active = False

    created = [
        QuestionModel(
            exam_id=context.exam.id,
            subject_id=context.subject.id,
            track_id=context.track.id,
            topic_id=topic.id,
            year=year,
            question=item.question,
            question_diagram=item.question_diagram,
            correct_answer=item.correct_answer,
            incorrect_answers=list(item.incorrect_answers),
            explanation=item.explanation,
            difficulty=item.difficulty.value,
            order_index=item.order_index or position + 1,
        )
        for position, (item, topic) in enumerate(zip(questions, resolved))
    ]
    db.add_all(created)
    await db.commit()

    logger.info(
        "Year questions uploaded",
        track_id=context.track.id,
        year=year,
        created=len(created),
        replaced=len(existing),
    )
    return {
        "message": f"Uploaded {len(created)} question(s) for {year}",
        "year": year,
        "created": len(created),
        "replaced": bool(existing),
        "replaced_count": len(existing),
        "questions": created,
    }


async def delete_year_questions(
    db: AsyncSession, context: ResolvedContext, year: int
) -> Dict[str, Any]:
    _check_year(year)
    existing = await _year_questions(db, context, year)
    if not existing:
        raise NotFoundError(f"No questions found for {year}", resource_type="question")
    for question in existing:
        question.is_active = False
    await db.commit()
    logger.info("Year questions deleted", track_id=context.track.id, year=year)
    return {"message": f"Deleted {len(existing)} question(s) for {year}", "deleted": len(existing)}


async def get_question(db: AsyncSession, question_id: int) -> QuestionModel:
    question = await db.get(QuestionModel, question_id)
    if question is None or not question.is_active:
        raise NotFoundError("Question not found", resource_type="question")
    return question


async def update_question(
    db: AsyncSession, question_id: int, updates: QuestionUpdate
) -> QuestionModel:
    """Apply a partial update. A new ``topic_name`` must be approved for the subject."""
    question = await get_question(db, question_id)
    data = updates.model_dump(exclude_unset=True, exclude_none=True)

    topic_name = data.pop("topic_name", None)
    if topic_name is not None:
        topic = await find_topic_by_name(
            db, question.exam_id, question.subject_id, topic_name
        )
        if topic is None:
            raise ValidationError(
                f"Topic '{topic_name}' is not approved for this subject", field="topicName"
            )
        data["topic_id"] = topic.id
    if "difficulty" in data:
        data["difficulty"] = updates.difficulty.value
    if "incorrect_answers" in data and not data["incorrect_answers"]:
        raise ValidationError(
            "At least one incorrect answer is required", field="incorrectAnswers"
        )

    apply_updates(question, data)
    await db.commit()
    await db.refresh(question)
    return question


async def delete_question(db: AsyncSession, question_id: int) -> None:
    question = await get_question(db, question_id)
    question.is_active = False
    await db.commit()


# Topic assignments


def _assignment_period(context: ResolvedContext, period_type: str, raw_period: str):
    if period_type not in ASSIGNMENT_PERIOD_TYPES:
        raise ValidationError(
            f"Period type must be one of: {', '.join(ASSIGNMENT_PERIOD_TYPES)}",
            field="periodType",
        )
    period = parse_period(get_spec(period_type), raw_period)
    check_track_period(context.track, period)
    return period


async def _find_assignment(
    db: AsyncSession, context: ResolvedContext, period_type: str, number: int
) -> Optional[TopicAssignmentModel]:
    result = await db.execute(
        select(TopicAssignmentModel)
        .filter(TopicAssignmentModel.exam_id == context.exam.id)
        .filter(TopicAssignmentModel.subject_id == context.subject.id)
        .filter(TopicAssignmentModel.track_id == context.track.id)
        .filter(TopicAssignmentModel.sub_category_id == context.sub_category.id)
        .filter(TopicAssignmentModel.period_type == period_type)
        .filter(TopicAssignmentModel.period_number == number)
    )
    return result.scalar_one_or_none()


async def _topic_ids_for_names(
    db: AsyncSession, context: ResolvedContext, topic_names: Sequence[str]
) -> List[int]:
    topics = await _active_topics(db, context.exam.id, context.subject.id)
    resolved, missing = _resolve_topic_names(topics, topic_names)
    if missing:
        raise ValidationError(
            "Some topics are not approved for this subject",
            field="topicNames",
            details={"missingTopics": missing},
        )
    ids: List[int] = []
    for topic in resolved:
        if topic.id not in ids:
            ids.append(topic.id)
    return ids


async def _assignment_view(
    db: AsyncSession, assignment: TopicAssignmentModel
) -> Dict[str, Any]:
    topic_ids = list(assignment.topic_ids or [])
    topics: List[TopicModel] = []
    if topic_ids:
        result = await db.execute(select(TopicModel).filter(TopicModel.id.in_(topic_ids)))
        by_id = {topic.id: topic for topic in result.scalars().all()}
        topics = [by_id[topic_id] for topic_id in topic_ids if topic_id in by_id]
    return {**model_to_dict(assignment), "topics": topics}


async def create_topic_assignment(
    db: AsyncSession,
    context: ResolvedContext,
    period_type: str,
    raw_period: str,
    topic_names: Sequence[str],
) -> Dict[str, Any]:
    period = _assignment_period(context, period_type, raw_period)
    if await _find_assignment(db, context, period_type, period.number):
        raise ConflictError(f"Topics are already assigned to {period.label}")

    assignment = TopicAssignmentModel(
        exam_id=context.exam.id,
        subject_id=context.subject.id,
        track_id=context.track.id,
        sub_category_id=context.sub_category.id,
        period_type=period_type,
        period_number=period.number,
        topic_ids=await _topic_ids_for_names(db, context, topic_names),
    )
    db.add(assignment)
    await db.commit()
    logger.info("Topic assignment created", track_id=context.track.id, period=period.label)
    return await _assignment_view(db, assignment)


async def get_topic_assignment(
    db: AsyncSession, context: ResolvedContext, period_type: str, raw_period: str
) -> Dict[str, Any]:
    period = _assignment_period(context, period_type, raw_period)
    assignment = await _find_assignment(db, context, period_type, period.number)
    if assignment is None:
        raise NotFoundError(
            f"No topics assigned to {period.label}", resource_type="topic_assignment"
        )
    return await _assignment_view(db, assignment)


async def update_topic_assignment(
    db: AsyncSession,
    context: ResolvedContext,
    period_type: str,
    raw_period: str,
    topic_names: Sequence[str],
) -> Dict[str, Any]:
    period = _assignment_period(context, period_type, raw_period)
    assignment = await _find_assignment(db, context, period_type, period.number)
    if assignment is None:
        raise NotFoundError(
            f"No topics assigned to {period.label}", resource_type="topic_assignment"
        )
    assignment.topic_ids = await _topic_ids_for_names(db, context, topic_names)
    await db.commit()
    return await _assignment_view(db, assignment)


async def delete_topic_assignment(
    db: AsyncSession, context: ResolvedContext, period_type: str, raw_period: str
) -> None:
    period = _assignment_period(context, period_type, raw_period)
    assignment = await _find_assignment(db, context, period_type, period.number)
    if assignment is None:
        raise NotFoundError(
            f"No topics assigned to {period.label}", resource_type="topic_assignment"
        )
    await db.delete(assignment)
    await db.commit()


async def get_assignment_topic_questions(
    db: AsyncSession,
    context: ResolvedContext,
    period_type: str,
    raw_period: str,
    topic_name: str,
) -> List[QuestionModel]:
    """Questions of an assigned topic from every year of the subject, newest first."""
    view = await get_topic_assignment(db, context, period_type, raw_period)
    lowered = topic_name.strip().lower()
    topic = next(
        (
            topic
            for topic in view["topics"]
            if lowered in (topic.name.lower(), topic.display_name.lower())
        ),
        None,
    )
    if topic is None:
        raise NotFoundError(
            f"Topic '{topic_name}' is not assigned to this period", resource_type="topic"
        )

    result = await db.execute(
        select(QuestionModel)
        .filter(QuestionModel.exam_id == context.exam.id)
        .filter(QuestionModel.subject_id == context.subject.id)
        .filter(QuestionModel.topic_id == topic.id)
        .filter(QuestionModel.is_active.is_(True))
        .order_by(QuestionModel.year.desc(), QuestionModel.order_index, QuestionModel.id)
    )
    return list(result.scalars().all())
