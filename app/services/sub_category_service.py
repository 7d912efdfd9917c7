from typing import List, Optional

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models.exam_model import ExamModel
from app.models.sub_category_model import ContentType, SubCategoryModel
from app.schemas.taxonomy import SubCategoryCreate, SubCategoryReorder, SubCategoryUpdate
from app.utils.db import apply_updates

logger = structlog.get_logger()

DEFAULT_SUB_CATEGORIES = [
    {
        "name": "pastquestions",
        "displayName": "Past Questions",
        "routePath": "pastquestions",
        "contentType": ContentType.JSON.value,
        "orderIndex": 1,
    },
    {
        "name": "notes",
        "displayName": "Notes",
        "routePath": "notes",
        "contentType": ContentType.JSON.value,
        "orderIndex": 2,
    },
    {
        "name": "videos",
        "displayName": "Videos",
        "routePath": "videos",
        "contentType": ContentType.MEDIA.value,
        "orderIndex": 3,
    },
]


def _base_query(include_inactive: bool = False):
    query = select(SubCategoryModel)
    if not include_inactive:
        query = query.filter(SubCategoryModel.is_active.is_(True))
    return query


async def list_sub_categories(
    db: AsyncSession, exam_id: Optional[int] = None, include_inactive: bool = False
) -> List[SubCategoryModel]:
    query = _base_query(include_inactive)
    if exam_id is not None:
        query = query.filter(SubCategoryModel.exam_id == exam_id)
    result = await db.execute(
        query.order_by(SubCategoryModel.order_index, SubCategoryModel.id)
    )
    return list(result.scalars().all())


async def count_sub_categories(db: AsyncSession, exam_id: Optional[int] = None) -> int:
    query = select(func.count(SubCategoryModel.id)).filter(
        SubCategoryModel.is_active.is_(True)
    )
    if exam_id is not None:
        query = query.filter(SubCategoryModel.exam_id == exam_id)
    return (await db.execute(query)).scalar_one()


async def search_sub_categories(db: AsyncSession, term: str) -> List[SubCategoryModel]:
    pattern = f"%{term.lower()}%"
    result = await db.execute(
        _base_query()
        .filter(
            or_(
                func.lower(SubCategoryModel.name).like(pattern),
                func.lower(SubCategoryModel.display_name).like(pattern),
                func.lower(SubCategoryModel.description).like(pattern),
            )
        )
        .order_by(SubCategoryModel.order_index)
    )
    return list(result.scalars().all())


async def get_by_route(db: AsyncSession, route_path: str) -> List[SubCategoryModel]:
    result = await db.execute(
        _base_query()
        .filter(SubCategoryModel.route_path == route_path)
        .order_by(SubCategoryModel.exam_id)
    )
    return list(result.scalars().all())


async def get_by_name(db: AsyncSession, name: str) -> List[SubCategoryModel]:
    result = await db.execute(
        _base_query()
        .filter(SubCategoryModel.name == name.lower())
        .order_by(SubCategoryModel.exam_id)
    )
    return list(result.scalars().all())


async def get_sub_category(db: AsyncSession, sub_category_id: int) -> SubCategoryModel:
    sub_category = await db.get(SubCategoryModel, sub_category_id)
    if sub_category is None:
        raise NotFoundError("Subcategory not found", resource_type="sub_category")
    return sub_category


async def create_sub_category(
    db: AsyncSession, data: SubCategoryCreate
) -> SubCategoryModel:
    exam = await db.get(ExamModel, data.exam_id)
    if exam is None:
        raise NotFoundError("Exam not found", resource_type="exam")

    existing = await db.execute(
        select(SubCategoryModel.id)
        .filter(SubCategoryModel.exam_id == data.exam_id)
        .filter(SubCategoryModel.name == data.name)
    )
    if existing.first() is not None:
        raise ConflictError(f"Subcategory '{data.name}' already exists for this exam")

    sub_category = SubCategoryModel(
        exam_id=data.exam_id,
        name=data.name,
        display_name=data.display_name or data.name.capitalize(),
        description=data.description,
        route_path=data.route_path or data.name,
        content_type=data.content_type.value,
        icon=data.icon,
        order_index=data.order_index,
    )
    db.add(sub_category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Subcategory '{data.name}' already exists for this exam")
    await db.refresh(sub_category)
    return sub_category


async def update_sub_category(
    db: AsyncSession, sub_category_id: int, data: SubCategoryUpdate
) -> SubCategoryModel:
    sub_category = await get_sub_category(db, sub_category_id)
    updates = data.model_dump(exclude_unset=True)
    if updates.get("content_type") is not None:
        updates["content_type"] = ContentType(updates["content_type"]).value
    apply_updates(sub_category, updates)
    await db.commit()
    await db.refresh(sub_category)
    return sub_category


async def toggle_status(db: AsyncSession, sub_category_id: int) -> SubCategoryModel:
    sub_category = await get_sub_category(db, sub_category_id)
    sub_category.is_active = not sub_category.is_active
    await db.commit()
    await db.refresh(sub_category)
    return sub_category


async def soft_delete(db: AsyncSession, sub_category_id: int) -> SubCategoryModel:
    sub_category = await get_sub_category(db, sub_category_id)
    sub_category.is_active = False
    await db.commit()
    await db.refresh(sub_category)
    logger.info("Subcategory deactivated", sub_category_id=sub_category_id)
    return sub_category


async def reorder(db: AsyncSession, data: SubCategoryReorder) -> List[SubCategoryModel]:
    ids = [item.id for item in data.items]
    result = await db.execute(
        select(SubCategoryModel).filter(SubCategoryModel.id.in_(ids))
    )
    found = {sub_category.id: sub_category for sub_category in result.scalars().all()}
    missing = [sub_category_id for sub_category_id in ids if sub_category_id not in found]
    if missing:
        raise NotFoundError(
            f"Subcategories not found: {', '.join(map(str, missing))}",
            resource_type="sub_category",
        )
    for item in data.items:
        found[item.id].order_index = item.order_index
    await db.commit()
    return sorted(found.values(), key=lambda sub_category: sub_category.order_index)
