"""Bulk ingestion with per-row created / duplicate / error classification.

Every candidate is validated, checked against its natural key and then
inserted in its own transaction, so one bad row never aborts the rest of the
batch and a batch as a whole is not atomic. The topic-validated content entry
point is the exception: it inserts nothing unless every row names an approved
topic.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Type

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base
from app.exceptions import NotFoundError, extract_db_error_message
from app.models.content_model import ContentModel
from app.models.question_model import QuestionModel
from app.models.sub_category_model import SubCategoryModel
from app.models.subject_availability_model import SubjectAvailabilityModel
from app.models.subject_model import SubjectModel
from app.models.topic_model import TopicModel
from app.models.track_model import TrackModel
from app.schemas.content import ContentItemIn
from app.schemas.questions import QuestionBulkRow
from app.schemas.taxonomy import (
    ExamRead,
    SubCategoryBulkItem,
    SubjectAvailabilityItem,
    SubjectCreate,
    TopicCreate,
    TrackCreate,
)
from app.services import exam_service
from app.services.taxonomy import (
    find_topic_by_name,
    get_exam_by_name,
    get_sub_category_by_name,
    get_subject_by_name,
    get_track_by_name,
)

logger = structlog.get_logger()


@dataclass
class BulkOutcome:
    created: List[Dict[str, Any]] = field(default_factory=list)
    duplicates: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.duplicates) + len(self.errors)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "created": self.created,
            "duplicates": self.duplicates,
            "errors": self.errors,
        }


def _row_name(raw: Any) -> Optional[str]:
    if isinstance(raw, dict):
        name = raw.get("name") or raw.get("question") or raw.get("subjectName")
        return str(name)[:100] if name is not None else None
    return getattr(raw, "name", None)


def _validation_message(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


async def _insert_one(db: AsyncSession, obj: Base) -> Optional[str]:
    """Commit a single row. Returns "duplicate", an error message, or None."""
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return "duplicate"
    except SQLAlchemyError as e:
        await db.rollback()
        user_message, technical_details = extract_db_error_message(e)
        logger.error("Bulk row insert failed", error=technical_details)
        return user_message
    return None


async def ingest(
    db: AsyncSession,
    candidates: Sequence[Any],
    schema: Type[BaseModel],
    find_existing: Callable[[Any], Awaitable[bool]],
    build: Callable[[Any], Awaitable[Base]],
    label: Callable[[Any], str],
    entity: str,
) -> BulkOutcome:
    """Run the per-row contract over ``candidates``.

    Args:
        schema: validates one raw row; failures become error entries
        find_existing: natural-key lookup; a hit becomes a duplicate entry
        build: turns a validated row into an unsaved model, may raise
            ``NotFoundError`` for unresolvable references
        label: name reported for a created row
        entity: name used in log events
    """
    outcome = BulkOutcome()

    for index, raw in enumerate(candidates):
        name = _row_name(raw)
        try:
            item = raw if isinstance(raw, schema) else schema.model_validate(raw)
        except PydanticValidationError as e:
            outcome.errors.append(
                {"index": index, "name": name, "error": _validation_message(e)}
            )
            continue

        name = label(item)
        try:
            if await find_existing(item):
                outcome.duplicates.append({"index": index, "name": name})
                continue
            obj = await build(item)
        except NotFoundError as e:
            outcome.errors.append({"index": index, "name": name, "error": e.message})
            continue

        failure = await _insert_one(db, obj)
        if failure == "duplicate":
            outcome.duplicates.append({"index": index, "name": name})
        elif failure:
            outcome.errors.append({"index": index, "name": name, "error": failure})
        else:
            outcome.created.append({"id": obj.id, "name": name})

    logger.info(
        "Bulk insert finished",
        entity=entity,
        total=outcome.total,
        created=len(outcome.created),
        duplicates=len(outcome.duplicates),
        errors=len(outcome.errors),
    )
    return outcome


async def _exists(db: AsyncSession, query) -> bool:
    return (await db.execute(query.limit(1))).first() is not None


async def bulk_create_subjects(
    db: AsyncSession, exam_id: int, subjects: Sequence[Any]
) -> BulkOutcome:
    async def find_existing(item: SubjectCreate) -> bool:
        return await _exists(
            db,
            select(SubjectModel.id)
            .filter(SubjectModel.exam_id == exam_id)
            .filter(func.lower(SubjectModel.name) == item.name.lower()),
        )

    async def build(item: SubjectCreate) -> SubjectModel:
        return SubjectModel(exam_id=exam_id, **item.model_dump())

    return await ingest(
        db, subjects, SubjectCreate, find_existing, build, lambda i: i.name, "subject"
    )


async def bulk_create_topics(
    db: AsyncSession, exam_id: int, subject_id: int, topics: Sequence[Any]
) -> BulkOutcome:
    async def find_existing(item: TopicCreate) -> bool:
        return await _exists(
            db,
            select(TopicModel.id)
            .filter(TopicModel.exam_id == exam_id)
            .filter(TopicModel.subject_id == subject_id)
            .filter(func.lower(TopicModel.name) == item.name.lower()),
        )

    async def build(item: TopicCreate) -> TopicModel:
        return TopicModel(exam_id=exam_id, subject_id=subject_id, **item.model_dump())

    return await ingest(
        db, topics, TopicCreate, find_existing, build, lambda i: i.name, "topic"
    )


async def bulk_create_tracks(
    db: AsyncSession, exam_id: int, sub_category_id: int, tracks: Sequence[Any]
) -> BulkOutcome:
    async def find_existing(item: TrackCreate) -> bool:
        return await _exists(
            db,
            select(TrackModel.id)
            .filter(TrackModel.exam_id == exam_id)
            .filter(TrackModel.sub_category_id == sub_category_id)
            .filter(func.lower(TrackModel.name) == item.name.lower()),
        )

    async def build(item: TrackCreate) -> TrackModel:
        data = item.model_dump()
        data["track_type"] = item.track_type.value
        return TrackModel(exam_id=exam_id, sub_category_id=sub_category_id, **data)

    return await ingest(
        db, tracks, TrackCreate, find_existing, build, lambda i: i.name, "track"
    )


async def bulk_create_sub_categories(
    db: AsyncSession, exam_id: int, items: Sequence[Any]
) -> BulkOutcome:
    async def find_existing(item: SubCategoryBulkItem) -> bool:
        return await _exists(
            db,
            select(SubCategoryModel.id)
            .filter(SubCategoryModel.exam_id == exam_id)
            .filter(SubCategoryModel.name == item.name),
        )

    async def build(item: SubCategoryBulkItem) -> SubCategoryModel:
        data = item.model_dump(exclude={"exam_id"})
        data["content_type"] = item.content_type.value
        return SubCategoryModel(exam_id=exam_id, **data)

    return await ingest(
        db,
        items,
        SubCategoryBulkItem,
        find_existing,
        build,
        lambda i: i.name,
        "sub_category",
    )


async def bulk_set_subject_availability(
    db: AsyncSession, exam_id: int, items: Sequence[Any]
) -> BulkOutcome:
    """Link subjects to subcategories. Either side may be given by id or by name."""
    resolved: Dict[tuple, tuple[int, int]] = {}

    async def resolve(item: SubjectAvailabilityItem) -> tuple[int, int]:
        key = (
            item.subject_id,
            item.subject_name,
            item.sub_category_id,
            item.sub_category_name,
        )
        if key in resolved:
            return resolved[key]

        subject_id = item.subject_id
        if subject_id is None:
            subject = await get_subject_by_name(db, exam_id, item.subject_name)
            if subject is None:
                raise NotFoundError(f"Subject '{item.subject_name}' not found")
            subject_id = subject.id

        sub_category_id = item.sub_category_id
        if sub_category_id is None:
            sub_category = await get_sub_category_by_name(
                db, exam_id, item.sub_category_name
            )
            if sub_category is None:
                raise NotFoundError(
                    f"Subcategory '{item.sub_category_name}' not found"
                )
            sub_category_id = sub_category.id

        resolved[key] = (subject_id, sub_category_id)
        return resolved[key]

    async def find_existing(item: SubjectAvailabilityItem) -> bool:
        subject_id, sub_category_id = await resolve(item)
        return await _exists(
            db,
            select(SubjectAvailabilityModel.id)
            .filter(SubjectAvailabilityModel.exam_id == exam_id)
            .filter(SubjectAvailabilityModel.subject_id == subject_id)
            .filter(SubjectAvailabilityModel.sub_category_id == sub_category_id),
        )

    async def build(item: SubjectAvailabilityItem) -> SubjectAvailabilityModel:
        subject_id, sub_category_id = await resolve(item)
        return SubjectAvailabilityModel(
            exam_id=exam_id, subject_id=subject_id, sub_category_id=sub_category_id
        )

    def label(item: SubjectAvailabilityItem) -> str:
        subject = item.subject_name or str(item.subject_id)
        sub_category = item.sub_category_name or str(item.sub_category_id)
        return f"{subject}:{sub_category}"

    return await ingest(
        db,
        items,
        SubjectAvailabilityItem,
        find_existing,
        build,
        label,
        "subject_availability",
    )


async def bulk_create_questions(
    db: AsyncSession,
    exam_name: str,
    questions: Sequence[Any],
    sub_category_name: str = "pastquestions",
) -> BulkOutcome:
    """Questions in the upload file format, resolved by exam, subject, year and topic name.

    The year selects the track of the same name under ``sub_category_name``.
    """
    exam = await get_exam_by_name(db, exam_name)
    if exam is None:
        raise NotFoundError(f"Exam '{exam_name}' not found", resource_type="exam")
    sub_category = await get_sub_category_by_name(db, exam.id, sub_category_name)
    if sub_category is None:
        raise NotFoundError(
            f"Subcategory '{sub_category_name}' not found", resource_type="sub_category"
        )
    exam_id, sub_category_id = exam.id, sub_category.id
    references: Dict[tuple, Dict[str, int]] = {}

    async def resolve(item: QuestionBulkRow) -> Dict[str, int]:
        key = (item.subject.strip().lower(), item.year, item.topic.strip().lower())
        if key in references:
            return references[key]
        subject = await get_subject_by_name(db, exam_id, item.subject)
        if subject is None:
            raise NotFoundError(f"Subject '{item.subject}' not found")
        track = await get_track_by_name(db, exam_id, sub_category_id, str(item.year))
        if track is None:
            raise NotFoundError(f"Track for year {item.year} not found")
        topic = await find_topic_by_name(db, exam_id, subject.id, item.topic)
        if topic is None:
            raise NotFoundError(
                f"Topic '{item.topic}' is not an approved topic for {item.subject}"
            )
        references[key] = {
            "subject_id": subject.id,
            "track_id": track.id,
            "topic_id": topic.id,
        }
        return references[key]

    async def find_existing(item: QuestionBulkRow) -> bool:
        refs = await resolve(item)
        return await _exists(
            db,
            select(QuestionModel.id)
            .filter(QuestionModel.exam_id == exam_id)
            .filter(QuestionModel.subject_id == refs["subject_id"])
            .filter(QuestionModel.track_id == refs["track_id"])
            .filter(QuestionModel.question == item.question)
            .filter(QuestionModel.is_active.is_(True)),
        )

    async def build(item: QuestionBulkRow) -> QuestionModel:
        refs = await resolve(item)
        return QuestionModel(
            exam_id=exam_id,
            year=item.year,
            question=item.question,
            question_diagram=item.question_diagram,
            correct_answer=item.correct_answer,
            incorrect_answers=list(item.incorrect_answers),
            explanation=item.explanation,
            difficulty=item.difficulty.value,
            order_index=item.order_index,
            **refs,
        )

    return await ingest(
        db,
        questions,
        QuestionBulkRow,
        find_existing,
        build,
        lambda i: i.question[:100],
        "question",
    )


async def validate_content_topics(
    db: AsyncSession, exam_id: int, subject_id: int, contents: Sequence[ContentItemIn]
) -> tuple[Dict[str, Any], List[Optional[int]]]:
    """Resolve each item's topic. Returns the validation block and per-item topic ids."""
    topic_ids: List[Optional[int]] = []
    missing: List[str] = []
    unique: List[str] = []

    for item in contents:
        reference = str(item.topic_id) if item.topic_id is not None else item.topic
        if reference is not None and reference not in unique:
            unique.append(reference)

        topic = None
        if item.topic_id is not None:
            topic = await db.get(TopicModel, item.topic_id)
            if topic is not None and (
                topic.subject_id != subject_id
                or topic.exam_id != exam_id
                or not topic.is_active
            ):
                topic = None
        elif item.topic:
            topic = await find_topic_by_name(db, exam_id, subject_id, item.topic)

        if topic is None:
            label = reference or f"<no topic for '{item.name}'>"
            if label not in missing:
                missing.append(label)
            topic_ids.append(None)
        else:
            topic_ids.append(topic.id)

    invalid_count = sum(1 for topic_id in topic_ids if topic_id is None)
    validation = {
        "missing_topics": missing,
        "unique_topics": unique,
        "valid_count": len(topic_ids) - invalid_count,
        "invalid_count": invalid_count,
    }
    return validation, topic_ids


async def create_bulk_content_with_validation(
    db: AsyncSession,
    exam_id: int,
    subject_id: int,
    track_id: int,
    sub_category_id: int,
    contents: Sequence[ContentItemIn],
) -> Dict[str, Any]:
    """Insert content only when every item resolves to an approved topic.

    Topic validation is all-or-nothing: one unknown topic means nothing is
    inserted and ``success`` is False. Once validation passes, rows follow the
    usual per-row duplicate / error handling.
    """
    validation, topic_ids = await validate_content_topics(
        db, exam_id, subject_id, contents
    )
    if validation["invalid_count"]:
        logger.warning(
            "Content batch rejected by topic validation",
            exam_id=exam_id,
            subject_id=subject_id,
            missing_topics=validation["missing_topics"],
        )
        return {**BulkOutcome().as_dict(), "success": False, "validation": validation}

    topic_for_item = {id(item): topic_ids[index] for index, item in enumerate(contents)}

    async def find_existing(item: ContentItemIn) -> bool:
        return await _exists(
            db,
            select(ContentModel.id)
            .filter(ContentModel.exam_id == exam_id)
            .filter(ContentModel.subject_id == subject_id)
            .filter(ContentModel.track_id == track_id)
            .filter(ContentModel.sub_category_id == sub_category_id)
            .filter(ContentModel.name == item.name)
            .filter(ContentModel.is_active.is_(True)),
        )

    async def build(item: ContentItemIn) -> ContentModel:
        return ContentModel(
            exam_id=exam_id,
            subject_id=subject_id,
            track_id=track_id,
            sub_category_id=sub_category_id,
            topic_id=topic_for_item[id(item)],
            name=item.name,
            display_name=item.display_name or item.name,
            description=item.description,
            order_index=item.order_index,
            meta=dict(item.metadata),
            file_path=item.file_path,
            file_type=item.file_type,
            file_size=item.file_size,
        )

    outcome = await ingest(
        db, contents, ContentItemIn, find_existing, build, lambda i: i.name, "content"
    )
    return {**outcome.as_dict(), "success": True, "validation": validation}


async def seed_complete_exam(db: AsyncSession, payload) -> Dict[str, Any]:
    """Create or reuse an exam, then bulk-load its whole taxonomy.

    Topics are grouped by ``subjectName`` and tracks by ``subCategoryName``;
    rows naming an unknown parent are reported as errors.
    """
    exam, exam_created = await exam_service.get_or_create_exam(db, payload.exam)
    exam_read = ExamRead.model_validate(exam)
    exam_id = exam_read.id

    sub_categories = await bulk_create_sub_categories(db, exam_id, payload.sub_categories)
    subjects = await bulk_create_subjects(db, exam_id, payload.subjects)

    topics = BulkOutcome()
    await _bulk_by_parent(
        db,
        payload.topics,
        ("subjectName", "subject_name"),
        lambda name: get_subject_by_name(db, exam_id, name),
        lambda parent_id, rows: bulk_create_topics(db, exam_id, parent_id, rows),
        topics,
        "Subject",
    )

    tracks = BulkOutcome()
    await _bulk_by_parent(
        db,
        payload.tracks,
        ("subCategoryName", "sub_category_name"),
        lambda name: get_sub_category_by_name(db, exam_id, name),
        lambda parent_id, rows: bulk_create_tracks(db, exam_id, parent_id, rows),
        tracks,
        "Subcategory",
    )

    availability = await bulk_set_subject_availability(db, exam_id, payload.availability)

    logger.info("Exam seeded", exam=exam_read.name, exam_created=exam_created)
    return {
        "exam": exam_read,
        "exam_created": exam_created,
        "sub_categories": sub_categories.as_dict(),
        "subjects": subjects.as_dict(),
        "topics": topics.as_dict(),
        "tracks": tracks.as_dict(),
        "availability": availability.as_dict(),
    }


async def _bulk_by_parent(
    db: AsyncSession,
    rows: Sequence[Dict[str, Any]],
    parent_keys: tuple[str, str],
    find_parent: Callable[[str], Awaitable[Any]],
    run_bulk: Callable[[int, List[Dict[str, Any]]], Awaitable[BulkOutcome]],
    into: BulkOutcome,
    parent_label: str,
) -> None:
    """Group ``rows`` by parent name, run ``run_bulk`` per group, merge into ``into``.

    Indexes in the merged outcome refer to positions in ``rows``.
    """
    grouped: Dict[str, List[int]] = {}
    for index, row in enumerate(rows):
        parent = next((row.get(key) for key in parent_keys if row.get(key)), None)
        if not parent:
            into.errors.append(
                {
                    "index": index,
                    "name": _row_name(row),
                    "error": f"{parent_keys[0]} is required",
                }
            )
            continue
        grouped.setdefault(str(parent), []).append(index)

    for parent_name, indexes in grouped.items():
        parent = await find_parent(parent_name)
        if parent is None:
            for index in indexes:
                into.errors.append(
                    {
                        "index": index,
                        "name": _row_name(rows[index]),
                        "error": f"{parent_label} '{parent_name}' not found",
                    }
                )
            continue

        parent_id = parent.id
        outcome = await run_bulk(parent_id, [rows[index] for index in indexes])
        for entry in outcome.created:
            into.created.append(entry)
        for entry in outcome.duplicates:
            into.duplicates.append({**entry, "index": indexes[entry["index"]]})
        for entry in outcome.errors:
            into.errors.append({**entry, "index": indexes[entry["index"]]})
