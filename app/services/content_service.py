from typing import Any, Dict

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.content_model import ContentModel
from app.models.topic_model import TopicModel
from app.schemas.content import ContentUpdate
from app.utils.db import apply_updates

logger = structlog.get_logger()


async def get_content_item(db: AsyncSession, content_id: int) -> ContentModel:
    item = await db.get(ContentModel, content_id)
    if item is None or not item.is_active:
        raise NotFoundError("Content not found", resource_type="content")
    return item


async def update_content_item(
    db: AsyncSession, content_id: int, updates: ContentUpdate
) -> ContentModel:
    """Partial update. A new topic must be an active topic of the item's subject."""
    item = await get_content_item(db, content_id)
    data: Dict[str, Any] = updates.model_dump(exclude_unset=True)

    if data.get("topic_id") is not None:
        topic = await db.get(TopicModel, data["topic_id"])
        if (
            topic is None
            or not topic.is_active
            or topic.exam_id != item.exam_id
            or topic.subject_id != item.subject_id
        ):
            raise ValidationError(
                "Topic is not approved for this subject", field="topicId"
            )
    if "metadata" in data:
        data["meta"] = {**(item.meta or {}), **(data.pop("metadata") or {})}

    apply_updates(item, data)
    await db.commit()
    await db.refresh(item)
    return item


async def delete_content_item(db: AsyncSession, content_id: int) -> None:
    item = await get_content_item(db, content_id)
    item.is_active = False
    await db.commit()
    logger.info("Content deactivated", content_id=content_id)
