"""Skill-up course trees and the catalogue that lists them beside Tutorial entries."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.skillup_model import SkillUpModel
from app.models.tutorial_model import TutorialModel
from app.schemas.skillup import (
    SkillUpBatchIn,
    SkillUpBatchUpdate,
    SkillUpContentIn,
    SkillUpCreate,
    SkillUpUpdate,
)
from app.services import tutorial_service

logger = structlog.get_logger()

MODES = ("Tutorial", "SkillUp")
ALL_CATEGORIES = "All"
MINUTES_PER_LESSON = 15
DEFAULT_AUTHOR = "CentraTutor Team"
DEFAULT_DESCRIPTION = "Enhance your skills with this comprehensive course"
DEFAULT_THUMBNAIL = "assets/images/skillup_placeholder.png"


def _new_id() -> str:
    return uuid.uuid4().hex


def _content_doc(content: SkillUpContentIn) -> Dict[str, Any]:
    return {"id": _new_id(), **content.model_dump()}


def _batch_doc(batch: SkillUpBatchIn) -> Dict[str, Any]:
    return {
        "id": _new_id(),
        "batch_number": batch.batch_number,
        "batch_description": batch.batch_description,
        "topics": list(batch.topics),
        "contents": [_content_doc(content) for content in batch.contents],
    }


def _set_batches(skillup: SkillUpModel, batches: List[Dict[str, Any]]) -> None:
    skillup.batches = batches
    flag_modified(skillup, "batches")


def _find_batch(skillup: SkillUpModel, batch_id: str) -> Dict[str, Any]:
    for batch in skillup.batches or []:
        if batch["id"] == batch_id:
            return batch
    raise NotFoundError("Batch not found", resource_type="batch")


async def _find_by_key(
    db: AsyncSession, category: str, year: str, subject: str
) -> Optional[SkillUpModel]:
    result = await db.execute(
        select(SkillUpModel)
        .filter(SkillUpModel.category == category)
        .filter(SkillUpModel.year == year)
        .filter(SkillUpModel.subject == subject)
    )
    return result.scalar_one_or_none()


async def get_skillup(db: AsyncSession, skillup_id: int) -> SkillUpModel:
    skillup = await db.get(SkillUpModel, skillup_id)
    if skillup is None:
        raise NotFoundError("SkillUp not found", resource_type="skillup")
    return skillup


async def create_skillup(db: AsyncSession, payload: SkillUpCreate) -> SkillUpModel:
    if await _find_by_key(db, payload.category, payload.year, payload.subject):
        raise ConflictError(
            f"SkillUp for {payload.subject} ({payload.category}, {payload.year}) already exists"
        )

    skillup = SkillUpModel(
        category=payload.category,
        year=payload.year,
        subject=payload.subject,
        subject_description=payload.subject_description,
        thumbnail=payload.thumbnail,
        author=payload.author,
        batches=[_batch_doc(batch) for batch in payload.batches],
    )
    db.add(skillup)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("SkillUp already exists") from e
    await db.refresh(skillup)
    logger.info("SkillUp created", skillup_id=skillup.id, subject=skillup.subject)
    return skillup


async def get_skillup_by_key(
    db: AsyncSession, category: str, year: str, subject: str
) -> SkillUpModel:
    skillup = await _find_by_key(db, category, year, subject)
    if skillup is None:
        raise NotFoundError("SkillUp not found", resource_type="skillup")
    return skillup


async def list_skillups(
    db: AsyncSession, category: Optional[str] = None, year: Optional[str] = None
) -> List[SkillUpModel]:
    query = select(SkillUpModel)
    if category and category != ALL_CATEGORIES:
        query = query.filter(SkillUpModel.category == category)
    if year:
        query = query.filter(SkillUpModel.year == year)
    result = await db.execute(query.order_by(SkillUpModel.subject, SkillUpModel.id))
    return list(result.scalars().all())


async def update_skillup(
    db: AsyncSession, skillup_id: int, updates: SkillUpUpdate
) -> SkillUpModel:
    skillup = await get_skillup(db, skillup_id)
    data = updates.model_dump(exclude_unset=True, exclude_none=True)

    key = (
        data.get("category", skillup.category),
        data.get("year", skillup.year),
        data.get("subject", skillup.subject),
    )
    if key != (skillup.category, skillup.year, skillup.subject):
        other = await _find_by_key(db, *key)
        if other is not None and other.id != skillup.id:
            raise ConflictError("Another SkillUp already uses this category, year and subject")

    for field, value in data.items():
        setattr(skillup, field, value)
    await db.commit()
    await db.refresh(skillup)
    return skillup


async def add_batch(db: AsyncSession, skillup_id: int, batch: SkillUpBatchIn) -> SkillUpModel:
    skillup = await get_skillup(db, skillup_id)
    batches = list(skillup.batches or [])
    if any(existing["batch_number"] == batch.batch_number for existing in batches):
        raise ConflictError(f"Batch {batch.batch_number} already exists")
    batches.append(_batch_doc(batch))
    batches.sort(key=lambda item: item["batch_number"])
    _set_batches(skillup, batches)
    await db.commit()
    await db.refresh(skillup)
    return skillup


async def update_batch(
    db: AsyncSession, skillup_id: int, batch_id: str, updates: SkillUpBatchUpdate
) -> SkillUpModel:
    skillup = await get_skillup(db, skillup_id)
    batches = [dict(batch) for batch in skillup.batches or []]
    target = next((batch for batch in batches if batch["id"] == batch_id), None)
    if target is None:
        raise NotFoundError("Batch not found", resource_type="batch")

    data = updates.model_dump(exclude_unset=True, exclude_none=True)
    if "topics" in data and not data["topics"]:
        raise ValidationError("A batch needs at least one topic", field="topics")
    target.update(data)
    _set_batches(skillup, batches)
    await db.commit()
    await db.refresh(skillup)
    return skillup


async def add_batch_content(
    db: AsyncSession, skillup_id: int, batch_id: str, content: SkillUpContentIn
) -> SkillUpModel:
    skillup = await get_skillup(db, skillup_id)
    batches = [dict(batch) for batch in skillup.batches or []]
    target = next((batch for batch in batches if batch["id"] == batch_id), None)
    if target is None:
        raise NotFoundError("Batch not found", resource_type="batch")

    target["contents"] = [*target.get("contents", []), _content_doc(content)]
    _set_batches(skillup, batches)
    await db.commit()
    await db.refresh(skillup)
    return skillup


async def set_read_status(
    db: AsyncSession, skillup_id: int, batch_id: str, content_id: str, is_read: bool
) -> Dict[str, Any]:
    """Flag one content item as read or unread. Returns the updated item."""
    skillup = await get_skillup(db, skillup_id)
    _find_batch(skillup, batch_id)

    batches = []
    updated = None
    for batch in skillup.batches or []:
        batch = dict(batch)
        if batch["id"] == batch_id:
            contents = []
            for content in batch.get("contents", []):
                if content["id"] == content_id:
                    content = {**content, "is_read": is_read}
                    updated = content
                contents.append(content)
            batch["contents"] = contents
        batches.append(batch)

    if updated is None:
        raise NotFoundError("Content not found", resource_type="content")

    _set_batches(skillup, batches)
    await db.commit()
    return updated


async def delete_skillup(db: AsyncSession, skillup_id: int) -> None:
    skillup = await get_skillup(db, skillup_id)
    await db.delete(skillup)
    await db.commit()
    logger.info("SkillUp deleted", skillup_id=skillup_id)


# Tutorial catalogue


def check_mode(mode: str) -> str:
    if mode not in MODES:
        raise ValidationError('Mode must be either "Tutorial" or "SkillUp"', field="mode")
    return mode


def require_tutorial_mode(mode: str, hint: str) -> None:
    """Catalogue writes only apply to Tutorial entries; skill-up trees have their own routes."""
    if check_mode(mode) == "SkillUp":
        raise ValidationError(hint, field="mode")


def tutorial_summary(skillup: SkillUpModel) -> Dict[str, Any]:
    lessons = sum(len(batch.get("contents", [])) for batch in skillup.batches or [])
    return {
        "id": skillup.id,
        "title": skillup.subject,
        "description": skillup.subject_description or DEFAULT_DESCRIPTION,
        "category": skillup.category,
        "cat_name": "skillup",
        "level": skillup.category.lower(),
        "year": skillup.year or str(datetime.now().year),
        "author": DEFAULT_AUTHOR,
        "duration": f"{lessons * MINUTES_PER_LESSON} min",
        "lessons": lessons,
        "thumbnail": skillup.thumbnail or DEFAULT_THUMBNAIL,
    }


def tutorial_entry_summary(tutorial: TutorialModel) -> Dict[str, Any]:
    return {
        "id": tutorial.id,
        "title": tutorial.title,
        "description": tutorial.description,
        "category": tutorial.category,
        "cat_name": tutorial.cat_name,
        "level": tutorial.level,
        "author": tutorial.author,
        "duration": tutorial.duration,
        "thumbnail": tutorial.thumbnail,
        "time": tutorial.time,
    }


async def tutorial_categories(db: AsyncSession, mode: str) -> List[str]:
    """Categories for the mode, always led by "All"."""
    if check_mode(mode) == "Tutorial":
        return [ALL_CATEGORIES, *await tutorial_service.list_categories(db)]
    result = await db.execute(
        select(SkillUpModel.category).distinct().order_by(SkillUpModel.category)
    )
    return [ALL_CATEGORIES, *result.scalars().all()]


async def tutorial_content(
    db: AsyncSession, mode: str, category: Optional[str] = None
) -> List[Dict[str, Any]]:
    if check_mode(mode) == "Tutorial":
        tutorials = await tutorial_service.list_tutorials(db, category)
        return [tutorial_entry_summary(tutorial) for tutorial in tutorials]
    return [tutorial_summary(skillup) for skillup in await list_skillups(db, category)]


async def catalogue_item(
    db: AsyncSession, mode: str, item_id: str
) -> Union[TutorialModel, SkillUpModel]:
    """One entry of the mode: a Tutorial record or a whole skill-up tree."""
    if check_mode(mode) == "Tutorial":
        return await tutorial_service.get_tutorial(db, item_id)
    if not item_id.isdigit():
        raise NotFoundError("SkillUp content not found", resource_type="skillup")
    return await get_skillup(db, int(item_id))


async def tutorial_data(db: AsyncSession, mode: str) -> Dict[str, Any]:
    items = await tutorial_content(db, mode)
    return {
        "mode": mode,
        "total": len(items),
        "categories": await tutorial_categories(db, mode),
        "items": items,
    }
