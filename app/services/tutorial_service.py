"""Tutorial catalogue entries and the categories they may be filed under."""

from typing import Dict, List, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.tutorial_model import TutorialCategoryModel, TutorialModel
from app.schemas.skillup import TutorialCreate, TutorialUpdate

logger = structlog.get_logger()

NIGHT_CLASS = "Jupeb Night Class"
PAST_QUESTION_VIDEOS = "Jupeb Past Question Videos"
TUTORIAL_CATEGORIES = (NIGHT_CLASS, PAST_QUESTION_VIDEOS)

_CAT_NAMES: Dict[str, str] = {
    NIGHT_CLASS: "nightclass",
    PAST_QUESTION_VIDEOS: "pastquestionvideo",
}


def cat_name_for(category: str) -> str:
    """Short routing name the app uses for a category."""
    return _CAT_NAMES.get(category, "".join(category.lower().split()))


def default_thumbnail(category: str) -> str:
    return f"assets/images/{category.lower()}.png"


async def list_categories(db: AsyncSession) -> List[str]:
    """Enabled categories in their fixed order."""
    result = await db.execute(select(TutorialCategoryModel.name))
    enabled = set(result.scalars().all())
    return [name for name in TUTORIAL_CATEGORIES if name in enabled]


async def _check_category(db: AsyncSession, category: str) -> None:
    if category not in await list_categories(db):
        raise ValidationError(
            f"Invalid Tutorial category. Must be one of: {', '.join(TUTORIAL_CATEGORIES)}",
            field="category",
        )


async def add_category(db: AsyncSession, name: str) -> TutorialCategoryModel:
    if name not in TUTORIAL_CATEGORIES:
        raise ValidationError(
            f"Tutorial categories are fixed. Must be one of: {', '.join(TUTORIAL_CATEGORIES)}",
            field="categoryName",
        )
    if await db.get(TutorialCategoryModel, name) is not None:
        raise ConflictError(f"Tutorial category {name} already exists")

    category = TutorialCategoryModel(name=name)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    logger.info("Tutorial category enabled", category=name)
    return category


async def delete_category(db: AsyncSession, name: str) -> None:
    category = await db.get(TutorialCategoryModel, name)
    if category is None:
        raise NotFoundError(f"Tutorial category {name} not found", resource_type="category")

    in_use = await db.scalar(
        select(func.count(TutorialModel.id)).filter(TutorialModel.category == name)
    )
    if in_use:
        raise ValidationError(
            f"Cannot delete category {name} while {in_use} tutorial(s) use it",
            field="name",
        )

    await db.delete(category)
    await db.commit()
    logger.info("Tutorial category disabled", category=name)


async def list_tutorials(
    db: AsyncSession, category: Optional[str] = None
) -> List[TutorialModel]:
    """All entries, or those filed under ``category``. "All" means no filter."""
    query = select(TutorialModel)
    if category and category != "All":
        query = query.filter(TutorialModel.category == category)
    result = await db.execute(query.order_by(TutorialModel.created_at, TutorialModel.id))
    tutorials = list(result.scalars().all())
    if category and not tutorials:
        logger.warning("No tutorials for category", category=category)
    return tutorials


async def get_tutorial(db: AsyncSession, tutorial_id: str) -> TutorialModel:
    tutorial = await db.get(TutorialModel, tutorial_id)
    if tutorial is None:
        raise NotFoundError(
            f"Tutorial content with ID {tutorial_id} not found", resource_type="tutorial"
        )
    return tutorial


async def create_tutorial(db: AsyncSession, payload: TutorialCreate) -> TutorialModel:
    await _check_category(db, payload.category)
    if await db.get(TutorialModel, payload.id) is not None:
        raise ConflictError(f"Tutorial content with ID {payload.id} already exists")

    data = payload.model_dump()
    data["thumbnail"] = data["thumbnail"] or default_thumbnail(payload.category)
    tutorial = TutorialModel(**data, cat_name=cat_name_for(payload.category))
    db.add(tutorial)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(f"Tutorial content with ID {payload.id} already exists") from e
    await db.refresh(tutorial)
    logger.info("Tutorial created", tutorial_id=tutorial.id, category=tutorial.category)
    return tutorial


async def update_tutorial(
    db: AsyncSession, tutorial_id: str, updates: TutorialUpdate
) -> TutorialModel:
    data = updates.model_dump(exclude_unset=True, exclude_none=True)
    if "category" in data:
        await _check_category(db, data["category"])
    tutorial = await get_tutorial(db, tutorial_id)

    for field, value in data.items():
        setattr(tutorial, field, value)
    if "category" in data:
        tutorial.cat_name = cat_name_for(data["category"])
    await db.commit()
    await db.refresh(tutorial)
    return tutorial


async def delete_tutorial(db: AsyncSession, tutorial_id: str) -> None:
    tutorial = await get_tutorial(db, tutorial_id)
    await db.delete(tutorial)
    await db.commit()
    logger.info("Tutorial deleted", tutorial_id=tutorial_id)
