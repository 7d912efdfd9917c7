from typing import List, Optional, Tuple

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models.content_model import ContentModel
from app.models.exam_model import ExamModel
from app.models.question_model import QuestionModel
from app.models.sub_category_model import SubCategoryModel
from app.models.subject_model import SubjectModel
from app.models.topic_model import TopicModel
from app.models.track_model import TrackModel
from app.schemas.taxonomy import ExamCreate
from app.services.taxonomy import get_exam_by_name

logger = structlog.get_logger()


def default_icon(name: str) -> str:
    return f"assets/images/{name.lower()}.png"


async def list_exams(db: AsyncSession) -> List[ExamModel]:
    result = await db.execute(
        select(ExamModel).filter(ExamModel.is_active.is_(True)).order_by(ExamModel.name)
    )
    return list(result.scalars().all())


async def get_exam(db: AsyncSession, exam_id: int) -> ExamModel:
    exam = await db.get(ExamModel, exam_id)
    if exam is None or not exam.is_active:
        raise NotFoundError("Exam not found", resource_type="exam")
    return exam


async def create_exam(db: AsyncSession, data: ExamCreate) -> ExamModel:
    """Create an exam. Names are unique after uppercasing."""
    existing = await db.execute(select(ExamModel.id).filter(ExamModel.name == data.name))
    if existing.first() is not None:
        raise ConflictError(f"Exam '{data.name}' already exists")

    exam = ExamModel(
        name=data.name,
        display_name=data.display_name or data.name,
        description=data.description,
        icon=data.icon or default_icon(data.name),
    )
    db.add(exam)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Exam '{data.name}' already exists")
    await db.refresh(exam)
    logger.info("Exam created", exam_id=exam.id, name=exam.name)
    return exam


async def get_or_create_exam(
    db: AsyncSession, data: ExamCreate
) -> Tuple[ExamModel, bool]:
    exam = await get_exam_by_name(db, data.name)
    if exam is not None:
        return exam, False
    return await create_exam(db, data), True


async def list_subjects(db: AsyncSession, exam_id: int) -> List[SubjectModel]:
    result = await db.execute(
        select(SubjectModel)
        .filter(SubjectModel.exam_id == exam_id)
        .filter(SubjectModel.is_active.is_(True))
        .order_by(SubjectModel.order_index, SubjectModel.name)
    )
    return list(result.scalars().all())


async def get_subject(db: AsyncSession, exam_id: int, subject_id: int) -> SubjectModel:
    subject = await db.get(SubjectModel, subject_id)
    if subject is None or subject.exam_id != exam_id or not subject.is_active:
        raise NotFoundError("Subject not found", resource_type="subject")
    return subject


async def list_topics(
    db: AsyncSession, exam_id: int, subject_id: int
) -> List[TopicModel]:
    result = await db.execute(
        select(TopicModel)
        .filter(TopicModel.exam_id == exam_id)
        .filter(TopicModel.subject_id == subject_id)
        .filter(TopicModel.is_active.is_(True))
        .order_by(TopicModel.order_index, TopicModel.name)
    )
    return list(result.scalars().all())


async def get_sub_category(
    db: AsyncSession, exam_id: int, sub_category_id: int
) -> SubCategoryModel:
    sub_category = await db.get(SubCategoryModel, sub_category_id)
    if sub_category is None or sub_category.exam_id != exam_id:
        raise NotFoundError("Subcategory not found", resource_type="sub_category")
    return sub_category


async def get_track(
    db: AsyncSession, exam_id: int, track_id: int, sub_category_id: Optional[int] = None
) -> TrackModel:
    track = await db.get(TrackModel, track_id)
    if (
        track is None
        or track.exam_id != exam_id
        or (sub_category_id is not None and track.sub_category_id != sub_category_id)
    ):
        raise NotFoundError("Track not found", resource_type="track")
    return track


async def hard_delete_track(
    db: AsyncSession, exam_id: int, sub_category_id: int, track_id: int
) -> dict:
    """Physically remove a track.

    Content and questions that point at the track are left in place; callers
    that want them gone must delete them first.
    """
    track = await get_track(db, exam_id, track_id, sub_category_id)
    orphaned_content = await db.scalar(
        select(func.count(ContentModel.id)).filter(ContentModel.track_id == track_id)
    )
    orphaned_questions = await db.scalar(
        select(func.count(QuestionModel.id)).filter(QuestionModel.track_id == track_id)
    )
    name = track.name
    await db.execute(delete(TrackModel).where(TrackModel.id == track_id))
    await db.commit()
    logger.info("Track hard-deleted", track_id=track_id, name=name)
    return {
        "message": f"Track '{name}' permanently deleted",
        "has_orphaned_items": bool(orphaned_content or orphaned_questions),
        "orphaned_content": orphaned_content or 0,
        "orphaned_questions": orphaned_questions or 0,
    }
