from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.params import Pagination, parse_id_list
from app.database import get_db
from app.models.question_model import Difficulty
from app.schemas.base import BulkRequest, BulkResult
from app.schemas.content import ContentFilters, ContentGroupedByTopics, ContentRead
from app.schemas.questions import MultiSelectionRequest, QuestionFilters, QuestionPage, QuestionRead
from app.schemas.taxonomy import (
    ExamCreate,
    ExamRead,
    SeedCompleteExam,
    SeedResult,
    StructureValidation,
    SubjectRead,
    TopicRead,
    TopicValidationResult,
    TopicWithContentCount,
    TopicWithQuestionCount,
    TrackDeleteResult,
    TrackRead,
    UserFlow,
)
from app.services import exam_service, ingestion, query_service, taxonomy
from app.utils.deps import AdminUser

router = APIRouter()


@router.get("", response_model=List[ExamRead])
async def list_exams(db: AsyncSession = Depends(get_db)):
    return await exam_service.list_exams(db)


@router.post("", response_model=ExamRead, status_code=status.HTTP_201_CREATED)
async def create_exam(data: ExamCreate, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return await exam_service.create_exam(db, data)


@router.post("/seed/complete", response_model=SeedResult)
async def seed_complete_exam(
    data: SeedCompleteExam, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    """Create (or reuse) an exam and load its whole taxonomy in one call."""
    return await ingestion.seed_complete_exam(db, data)


@router.get("/{exam_id}", response_model=ExamRead)
async def get_exam(exam_id: int, db: AsyncSession = Depends(get_db)):
    return await exam_service.get_exam(db, exam_id)


# Subjects and topics


@router.get("/{exam_id}/subjects", response_model=List[SubjectRead])
async def list_subjects(exam_id: int, db: AsyncSession = Depends(get_db)):
    await exam_service.get_exam(db, exam_id)
    return await exam_service.list_subjects(db, exam_id)


@router.post("/{exam_id}/subjects/bulk", response_model=BulkResult)
async def bulk_create_subjects(
    exam_id: int, data: BulkRequest, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    await exam_service.get_exam(db, exam_id)
    outcome = await ingestion.bulk_create_subjects(db, exam_id, data.items)
    return outcome.as_dict()


@router.get("/{exam_id}/subjects/{subject_id}/topics", response_model=List[TopicRead])
async def list_topics(exam_id: int, subject_id: int, db: AsyncSession = Depends(get_db)):
    await exam_service.get_subject(db, exam_id, subject_id)
    return await exam_service.list_topics(db, exam_id, subject_id)


@router.post("/{exam_id}/subjects/{subject_id}/topics/bulk", response_model=BulkResult)
async def bulk_create_topics(
    exam_id: int,
    subject_id: int,
    data: BulkRequest,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    await exam_service.get_subject(db, exam_id, subject_id)
    outcome = await ingestion.bulk_create_topics(db, exam_id, subject_id, data.items)
    return outcome.as_dict()


@router.get(
    "/{exam_id}/subjects/{subject_id}/topics/validate",
    response_model=TopicValidationResult,
)
async def validate_topic(
    exam_id: int,
    subject_id: int,
    topic_name: Optional[str] = Query(None, alias="topicName"),
    db: AsyncSession = Depends(get_db),
):
    return await taxonomy.validate_topic_for_content(db, exam_id, subject_id, topic_name)


# Tracks


@router.get(
    "/{exam_id}/subcategories/{sub_category_id}/tracks", response_model=List[TrackRead]
)
async def list_tracks(exam_id: int, sub_category_id: int, db: AsyncSession = Depends(get_db)):
    await exam_service.get_sub_category(db, exam_id, sub_category_id)
    return await taxonomy.get_tracks_for_sub_category(db, exam_id, sub_category_id)


@router.post(
    "/{exam_id}/subcategories/{sub_category_id}/tracks/bulk", response_model=BulkResult
)
async def bulk_create_tracks(
    exam_id: int,
    sub_category_id: int,
    data: BulkRequest,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    await exam_service.get_sub_category(db, exam_id, sub_category_id)
    outcome = await ingestion.bulk_create_tracks(db, exam_id, sub_category_id, data.items)
    return outcome.as_dict()


@router.delete(
    "/{exam_id}/subcategories/{sub_category_id}/tracks/{track_id}/hard-delete",
    response_model=TrackDeleteResult,
)
async def hard_delete_track(
    exam_id: int,
    sub_category_id: int,
    track_id: int,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Permanently remove a track. Its content and questions are not removed."""
    return await exam_service.hard_delete_track(db, exam_id, sub_category_id, track_id)


# Navigation


@router.get(
    "/{exam_id}/subcategories/{sub_category_id}/subjects", response_model=List[SubjectRead]
)
async def list_available_subjects(
    exam_id: int, sub_category_id: int, db: AsyncSession = Depends(get_db)
):
    await exam_service.get_sub_category(db, exam_id, sub_category_id)
    return await taxonomy.get_available_subjects(db, exam_id, sub_category_id)


@router.get(
    "/{exam_id}/subcategories/{sub_category_id}/subjects/{subject_id}/tracks",
    response_model=List[TrackRead],
)
async def list_subject_tracks(
    exam_id: int, sub_category_id: int, subject_id: int, db: AsyncSession = Depends(get_db)
):
    """Tracks of the subcategory, or nothing when the subject is not offered there."""
    if not await taxonomy.is_subject_available(db, exam_id, subject_id, sub_category_id):
        return []
    return await taxonomy.get_tracks_for_sub_category(db, exam_id, sub_category_id)


@router.get(
    "/{exam_id}/subcategories/{sub_category_id}/subjects/{subject_id}/tracks/{track_id}/content",
    response_model=Union[ContentGroupedByTopics, List[ContentRead]],
)
async def list_track_content(
    exam_id: int,
    sub_category_id: int,
    subject_id: int,
    track_id: int,
    topic_id: Optional[int] = Query(None, alias="topicId"),
    grouped: bool = False,
    db: AsyncSession = Depends(get_db),
):
    filters = ContentFilters(
        exam_id=exam_id,
        subject_id=subject_id,
        track_id=track_id,
        sub_category_id=sub_category_id,
        topic_id=topic_id,
    )
    if grouped:
        return await query_service.get_content_grouped_by_topics(db, filters)
    return await query_service.get_content_by_filters(db, filters)


@router.get(
    "/{exam_id}/subcategories/{sub_category_id}/subjects/{subject_id}/tracks/{track_id}/topics",
    response_model=List[TopicWithContentCount],
)
async def list_track_topics(
    exam_id: int,
    sub_category_id: int,
    subject_id: int,
    track_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await taxonomy.get_topics_with_content_for_track(
        db, exam_id, subject_id, track_id, sub_category_id
    )


# Past questions


@router.get(
    "/{exam_id}/pastquestions/{subject_id}/tracks/{track_id}/topics",
    response_model=List[TopicWithQuestionCount],
)
async def list_question_topics(
    exam_id: int, subject_id: int, track_id: int, db: AsyncSession = Depends(get_db)
):
    return await taxonomy.get_topics_with_questions_for_track(
        db, exam_id, subject_id, track_id
    )


@router.get(
    "/{exam_id}/pastquestions/{subject_id}/tracks/{track_id}/questions",
    response_model=QuestionPage,
)
async def list_track_questions(
    exam_id: int,
    subject_id: int,
    track_id: int,
    topic_ids: Optional[str] = Query(
        None, alias="topicIds", description="Comma-separated list of topic IDs"
    ),
    difficulty: Optional[Difficulty] = None,
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
):
    filters = QuestionFilters(
        exam_id=exam_id,
        subject_id=subject_id,
        track_id=track_id,
        topic_ids=parse_id_list(topic_ids, "topicIds"),
        difficulty=difficulty,
    )
    return {
        "total": await query_service.count_questions_by_filters(db, filters),
        "limit": page.limit,
        "offset": page.offset,
        "questions": await query_service.get_questions_by_filters(
            db, filters, limit=page.limit, offset=page.offset
        ),
    }


@router.post(
    "/{exam_id}/pastquestions/{subject_id}/questions/multi-selection",
    response_model=List[QuestionRead],
)
async def multi_selection_questions(
    exam_id: int,
    subject_id: int,
    data: MultiSelectionRequest,
    db: AsyncSession = Depends(get_db),
):
    return await query_service.get_questions_multi_selection(
        db, exam_id, subject_id, data.track_ids, data.topic_ids
    )


# Availability, flow and structure


@router.post("/{exam_id}/subject-availability/bulk", response_model=BulkResult)
async def bulk_set_subject_availability(
    exam_id: int, data: BulkRequest, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    await exam_service.get_exam(db, exam_id)
    outcome = await ingestion.bulk_set_subject_availability(db, exam_id, data.items)
    return outcome.as_dict()


@router.get("/{exam_id}/user-flow", response_model=UserFlow)
async def get_user_flow(exam_id: int, db: AsyncSession = Depends(get_db)):
    return await taxonomy.get_complete_user_flow(db, exam_id)


@router.get("/{exam_id}/validate-structure", response_model=StructureValidation)
async def validate_structure(
    exam_id: int,
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    topic_id: Optional[int] = Query(None, alias="topicId"),
    track_id: Optional[int] = Query(None, alias="trackId"),
    sub_category_id: Optional[int] = Query(None, alias="subCategoryId"),
    db: AsyncSession = Depends(get_db),
):
    return await taxonomy.validate_structure(
        db,
        exam_id,
        subject_id=subject_id,
        topic_id=topic_id,
        track_id=track_id,
        sub_category_id=sub_category_id,
    )
