from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.params import Pagination, question_filters
from app.database import get_db
from app.schemas.base import BulkResult, DeleteResult, MessageResponse
from app.schemas.questions import (
    PracticeRequest,
    PracticeSession,
    QuestionBulkUpload,
    QuestionExport,
    QuestionFilters,
    QuestionGroups,
    QuestionPage,
    QuestionRead,
    QuestionsGroupedByTopics,
    QuestionUpdate,
    TopicAssignmentIn,
    TopicAssignmentRead,
    TopicCheckRequest,
    TopicCheckResult,
    YearUploadRequest,
    YearUploadResult,
)
from app.services import ingestion, query_service, question_service
from app.services.taxonomy import require_context
from app.utils.deps import AdminUser

router = APIRouter()

SCOPE_PATH = "/{exam_name}/{subject_name}/{track_name}/{sub_category_name}"
YEAR_PATH = "/years" + SCOPE_PATH + "/{year}"
ASSIGNMENT_PATH = "/assignments/{period_type}" + SCOPE_PATH + "/{period}"


@router.post("/validate-topics/{exam_name}/{subject_name}", response_model=TopicCheckResult)
async def validate_topics(
    exam_name: str,
    subject_name: str,
    data: TopicCheckRequest,
    db: AsyncSession = Depends(get_db),
):
    """Check candidate questions against the subject's approved topics before upload."""
    return await question_service.validate_question_topics(
        db, exam_name, subject_name, data.questions
    )


# Year uploads


@router.post(YEAR_PATH, response_model=YearUploadResult, status_code=status.HTTP_201_CREATED)
async def upload_year_questions(
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    year: int,
    data: YearUploadRequest,
    admin: AdminUser,
    force: bool = False,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await question_service.upload_year_questions(
        db, context, year, data.questions, force=force
    )


@router.delete(YEAR_PATH, response_model=DeleteResult)
async def delete_year_questions(
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    year: int,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await question_service.delete_year_questions(db, context, year)


# Topic assignments


@router.post(
    ASSIGNMENT_PATH, response_model=TopicAssignmentRead, status_code=status.HTTP_201_CREATED
)
async def create_topic_assignment(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    data: TopicAssignmentIn,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await question_service.create_topic_assignment(
        db, context, period_type, period, data.topic_names
    )


@router.get(ASSIGNMENT_PATH, response_model=TopicAssignmentRead)
async def get_topic_assignment(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await question_service.get_topic_assignment(db, context, period_type, period)


@router.put(ASSIGNMENT_PATH, response_model=TopicAssignmentRead)
async def update_topic_assignment(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    data: TopicAssignmentIn,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await question_service.update_topic_assignment(
        db, context, period_type, period, data.topic_names
    )


@router.delete(ASSIGNMENT_PATH, response_model=MessageResponse)
async def delete_topic_assignment(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    await question_service.delete_topic_assignment(db, context, period_type, period)
    return {"message": "Topic assignment deleted"}


@router.get(
    ASSIGNMENT_PATH + "/topics/{topic_name}/questions", response_model=List[QuestionRead]
)
async def assignment_topic_questions(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    topic_name: str,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await question_service.get_assignment_topic_questions(
        db, context, period_type, period, topic_name
    )


# Views


@router.get("/groups" + SCOPE_PATH, response_model=QuestionGroups)
async def question_groups(
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    group_by: str = Query("topic", alias="groupBy", pattern="^(topic|year|difficulty)$"),
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    filters = QuestionFilters(
        exam_id=context.exam.id,
        subject_id=context.subject.id,
        track_id=context.track.id,
    )
    return await query_service.get_question_groups(db, filters, group_by)


@router.get("/filter", response_model=QuestionPage)
async def filter_questions(
    filters: QuestionFilters = Depends(question_filters),
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return {
        "total": await query_service.count_questions_by_filters(db, filters),
        "limit": page.limit,
        "offset": page.offset,
        "questions": await query_service.get_questions_by_filters(
            db, filters, limit=page.limit, offset=page.offset
        ),
    }


@router.get("/grouped-by-topics", response_model=QuestionsGroupedByTopics)
async def questions_grouped_by_topics(
    filters: QuestionFilters = Depends(question_filters), db: AsyncSession = Depends(get_db)
):
    return await query_service.get_questions_grouped_by_topics(db, filters)


@router.post("/practice", response_model=PracticeSession)
async def practice_session(data: PracticeRequest, db: AsyncSession = Depends(get_db)):
    return await query_service.generate_practice_session(db, data)


@router.get("/quick-practice", response_model=PracticeSession)
async def quick_practice(
    filters: QuestionFilters = Depends(question_filters),
    count: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await query_service.generate_quick_practice(db, filters, count)


@router.get("/export", response_model=QuestionExport)
async def export_questions(
    filters: QuestionFilters = Depends(question_filters), db: AsyncSession = Depends(get_db)
):
    """Download questions in the bulk upload file format."""
    export = await query_service.export_questions(db, filters)
    filename = f"{export['exportInfo']['exam'].lower()}_questions.json"
    return JSONResponse(
        content=jsonable_encoder(QuestionExport.model_validate(export)),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/bulk", response_model=BulkResult)
async def bulk_upload_questions(
    data: QuestionBulkUpload, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    outcome = await ingestion.bulk_create_questions(
        db, data.exam_name, data.questions, sub_category_name=data.sub_category_name
    )
    return outcome.as_dict()


@router.put("/{question_id}", response_model=QuestionRead)
async def update_question(
    question_id: int,
    data: QuestionUpdate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    return await question_service.update_question(db, question_id, data)


@router.delete("/{question_id}", response_model=MessageResponse)
async def delete_question(
    question_id: int, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    await question_service.delete_question(db, question_id)
    return {"message": "Question deleted successfully"}
