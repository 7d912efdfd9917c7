from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.params import Pagination, content_filters
from app.database import get_db
from app.schemas.base import DeleteResult, MessageResponse
from app.schemas.content import (
    ContentBulkRequest,
    ContentFilters,
    ContentGroupedByTopics,
    ContentGroups,
    ContentPage,
    ContentRead,
    ContentUpdate,
    PeriodUpdateRequest,
    PeriodUploadRequest,
    PeriodUploadResult,
    PeriodUpdateResult,
    TrackPeriods,
    ValidatedBulkResult,
)
from app.services import (
    content_service,
    exam_service,
    ingestion,
    period_content,
    query_service,
)
from app.services.taxonomy import require_context
from app.utils.deps import AdminUser

router = APIRouter()

PERIOD_PATH = "/{period_type}/{exam_name}/{subject_name}/{track_name}/{sub_category_name}/{period}"
SCOPE_PATH = "/{exam_name}/{subject_name}/{track_name}/{sub_category_name}"


def _scope_filters(context) -> ContentFilters:
    return ContentFilters(
        exam_id=context.exam.id,
        subject_id=context.subject.id,
        track_id=context.track.id,
        sub_category_id=context.sub_category.id,
    )


# Id-scoped views


@router.get("/filter", response_model=ContentPage)
async def filter_content(
    filters: ContentFilters = Depends(content_filters),
    page: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return {
        "total": await query_service.count_content_by_filters(db, filters),
        "limit": page.limit,
        "offset": page.offset,
        "content": await query_service.get_content_by_filters(
            db, filters, limit=page.limit, offset=page.offset
        ),
    }


@router.get("/grouped-by-topics", response_model=ContentGroupedByTopics)
async def content_grouped_by_topics(
    filters: ContentFilters = Depends(content_filters), db: AsyncSession = Depends(get_db)
):
    return await query_service.get_content_grouped_by_topics(db, filters)


@router.get("/search", response_model=List[ContentRead])
async def search_content(q: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db)):
    return await query_service.search_content(db, q)


@router.post("/bulk", response_model=ValidatedBulkResult)
async def bulk_create_content(
    data: ContentBulkRequest, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    """Insert content for an id-scoped batch. Every topic must be approved.

    Subject, subcategory and track must all belong to the exam, and the track to
    the subcategory.
    """
    await exam_service.get_exam(db, data.exam_id)
    await exam_service.get_subject(db, data.exam_id, data.subject_id)
    await exam_service.get_sub_category(db, data.exam_id, data.sub_category_id)
    await exam_service.get_track(db, data.exam_id, data.track_id, data.sub_category_id)
    return await ingestion.create_bulk_content_with_validation(
        db,
        data.exam_id,
        data.subject_id,
        data.track_id,
        data.sub_category_id,
        data.contents,
    )


@router.get("/item/{content_id}", response_model=ContentRead)
async def get_content_item(content_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.get_content_item(db, content_id)


@router.put("/item/{content_id}", response_model=ContentRead)
async def update_content_item(
    content_id: int,
    data: ContentUpdate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    return await content_service.update_content_item(db, content_id, data)


@router.delete("/item/{content_id}", response_model=MessageResponse)
async def delete_content_item(
    content_id: int, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    await content_service.delete_content_item(db, content_id)
    return {"message": "Content deleted successfully"}


# Name-scoped views


@router.get("/groups" + SCOPE_PATH, response_model=ContentGroups)
async def content_groups(
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    group_by: str = Query(
        "topic", alias="groupBy", pattern="^(topic|day|week|month|semester|year)$"
    ),
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await query_service.get_content_groups(db, _scope_filters(context), group_by)


@router.get("/periods" + SCOPE_PATH, response_model=TrackPeriods)
async def track_periods(
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await period_content.list_track_periods(db, context)


@router.get("/period" + SCOPE_PATH + "/{period}", response_model=List[ContentRead])
async def period_items(
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    db: AsyncSession = Depends(get_db),
):
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await period_content.get_period_content(db, context, period)


# Period uploads


@router.post(PERIOD_PATH, response_model=PeriodUploadResult, status_code=status.HTTP_201_CREATED)
async def upload_period_content(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    data: PeriodUploadRequest,
    admin: AdminUser,
    force: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """Upload one week, day, month, semester or year of content.

    An already populated period answers 409 unless ``force=true``.
    """
    period_content.get_spec(period_type)
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await period_content.upload_period_content(
        db, context, period_type, period, data.contents, force=force
    )


@router.put(PERIOD_PATH, response_model=PeriodUpdateResult)
async def update_period_content(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    data: PeriodUpdateRequest,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    period_content.get_spec(period_type)
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await period_content.update_period_content(
        db, context, period_type, period, data.contents, replace_all=data.replace_all
    )


@router.delete(PERIOD_PATH, response_model=DeleteResult)
async def delete_period_content(
    period_type: str,
    exam_name: str,
    subject_name: str,
    track_name: str,
    sub_category_name: str,
    period: str,
    admin: AdminUser,
    confirm: bool = False,
    db: AsyncSession = Depends(get_db),
):
    period_content.get_spec(period_type)
    context = await require_context(db, exam_name, subject_name, track_name, sub_category_name)
    return await period_content.delete_period_content(
        db, context, period_type, period, confirm=confirm
    )
