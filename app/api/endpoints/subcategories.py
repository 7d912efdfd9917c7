from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.base import BulkRequest, BulkResult
from app.schemas.taxonomy import (
    SubCategoryCreate,
    SubCategoryRead,
    SubCategoryReorder,
    SubCategoryUpdate,
)
from app.services import exam_service, ingestion, sub_category_service
from app.utils.deps import AdminUser

router = APIRouter()


@router.get("", response_model=List[SubCategoryRead])
async def list_sub_categories(
    exam_id: Optional[int] = Query(None, alias="examId"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
):
    return await sub_category_service.list_sub_categories(db, exam_id, include_inactive)


@router.get("/count")
async def count_sub_categories(
    exam_id: Optional[int] = Query(None, alias="examId"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return {"count": await sub_category_service.count_sub_categories(db, exam_id)}


@router.get("/search", response_model=List[SubCategoryRead])
async def search_sub_categories(
    q: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db)
):
    return await sub_category_service.search_sub_categories(db, q)


@router.get("/route/{route_path}", response_model=List[SubCategoryRead])
async def get_by_route(route_path: str, db: AsyncSession = Depends(get_db)):
    return await sub_category_service.get_by_route(db, route_path)


@router.get("/name/{name}", response_model=List[SubCategoryRead])
async def get_by_name(name: str, db: AsyncSession = Depends(get_db)):
    return await sub_category_service.get_by_name(db, name)


@router.post("", response_model=SubCategoryRead, status_code=status.HTTP_201_CREATED)
async def create_sub_category(
    data: SubCategoryCreate, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    return await sub_category_service.create_sub_category(db, data)


@router.post("/bulk", response_model=BulkResult)
async def bulk_create_sub_categories(
    data: BulkRequest,
    admin: AdminUser,
    exam_id: int = Query(..., alias="examId"),
    db: AsyncSession = Depends(get_db),
):
    await exam_service.get_exam(db, exam_id)
    outcome = await ingestion.bulk_create_sub_categories(db, exam_id, data.items)
    return outcome.as_dict()


@router.post("/exam/{exam_id}/seed-defaults", response_model=BulkResult)
async def seed_default_sub_categories(
    exam_id: int, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    """Create the pastquestions, notes and videos channels, skipping existing ones."""
    await exam_service.get_exam(db, exam_id)
    outcome = await ingestion.bulk_create_sub_categories(
        db, exam_id, sub_category_service.DEFAULT_SUB_CATEGORIES
    )
    return outcome.as_dict()


@router.put("/reorder", response_model=List[SubCategoryRead])
async def reorder_sub_categories(
    data: SubCategoryReorder, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    return await sub_category_service.reorder(db, data)


@router.get("/{sub_category_id}", response_model=SubCategoryRead)
async def get_sub_category(sub_category_id: int, db: AsyncSession = Depends(get_db)):
    return await sub_category_service.get_sub_category(db, sub_category_id)


@router.put("/{sub_category_id}", response_model=SubCategoryRead)
async def update_sub_category(
    sub_category_id: int,
    data: SubCategoryUpdate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    return await sub_category_service.update_sub_category(db, sub_category_id, data)


@router.put("/{sub_category_id}/toggle-status", response_model=SubCategoryRead)
async def toggle_sub_category_status(
    sub_category_id: int, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    return await sub_category_service.toggle_status(db, sub_category_id)


@router.delete("/{sub_category_id}", response_model=SubCategoryRead)
async def delete_sub_category(
    sub_category_id: int, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    return await sub_category_service.soft_delete(db, sub_category_id)
