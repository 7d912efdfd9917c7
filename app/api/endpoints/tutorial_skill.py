from typing import List, Optional, Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.base import MessageResponse
from app.schemas.skillup import (
    ReadStatusUpdate,
    SkillUpBatchIn,
    SkillUpBatchUpdate,
    SkillUpContentIn,
    SkillUpContentRead,
    SkillUpCreate,
    SkillUpRead,
    SkillUpUpdate,
    TutorialCategoryCreate,
    TutorialCategoryRead,
    TutorialCreate,
    TutorialData,
    TutorialRead,
    TutorialSummary,
    TutorialUpdate,
)
from app.services import skillup_service, tutorial_service
from app.utils.deps import AdminUser, CurrentUser

router = APIRouter()


# Skill-up course trees


@router.post("/skillup", response_model=SkillUpRead, status_code=status.HTTP_201_CREATED)
async def create_skillup(
    data: SkillUpCreate, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    return await skillup_service.create_skillup(db, data)


@router.get("/skillup/{category}/{year}/{subject}", response_model=SkillUpRead)
async def get_skillup(
    category: str, year: str, subject: str, db: AsyncSession = Depends(get_db)
):
    return await skillup_service.get_skillup_by_key(db, category, year, subject)


@router.get("/skillup/{category}/{year}", response_model=List[SkillUpRead])
async def list_skillups(category: str, year: str, db: AsyncSession = Depends(get_db)):
    return await skillup_service.list_skillups(db, category=category, year=year)


@router.put("/skillup/{skillup_id}", response_model=SkillUpRead)
async def update_skillup(
    skillup_id: int,
    data: SkillUpUpdate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    return await skillup_service.update_skillup(db, skillup_id, data)


@router.post(
    "/skillup/{skillup_id}/batch",
    response_model=SkillUpRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_batch(
    skillup_id: int,
    data: SkillUpBatchIn,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    return await skillup_service.add_batch(db, skillup_id, data)


@router.put("/skillup/{skillup_id}/batch/{batch_id}", response_model=SkillUpRead)
async def update_batch(
    skillup_id: int,
    batch_id: str,
    data: SkillUpBatchUpdate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    return await skillup_service.update_batch(db, skillup_id, batch_id, data)


@router.post(
    "/skillup/{skillup_id}/batch/{batch_id}/content",
    response_model=SkillUpRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_batch_content(
    skillup_id: int,
    batch_id: str,
    data: SkillUpContentIn,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    return await skillup_service.add_batch_content(db, skillup_id, batch_id, data)


@router.put(
    "/skillup/{skillup_id}/batch/{batch_id}/content/{content_id}/read-status",
    response_model=SkillUpContentRead,
)
async def set_read_status(
    skillup_id: int,
    batch_id: str,
    content_id: str,
    data: ReadStatusUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    return await skillup_service.set_read_status(
        db, skillup_id, batch_id, content_id, data.is_read
    )


@router.delete("/skillup/{skillup_id}", response_model=MessageResponse)
async def delete_skillup(
    skillup_id: int, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    await skillup_service.delete_skillup(db, skillup_id)
    return {"message": "SkillUp deleted successfully"}


# Tutorial catalogue


@router.get("/{mode}/data", response_model=TutorialData)
async def tutorial_data(mode: str, db: AsyncSession = Depends(get_db)):
    return await skillup_service.tutorial_data(db, mode)


@router.get("/{mode}/categories", response_model=List[str])
async def tutorial_categories(mode: str, db: AsyncSession = Depends(get_db)):
    return await skillup_service.tutorial_categories(db, mode)


@router.get("/{mode}/content", response_model=List[TutorialSummary])
async def tutorial_content(
    mode: str, category: Optional[str] = None, db: AsyncSession = Depends(get_db)
):
    return await skillup_service.tutorial_content(db, mode, category)


@router.get("/{mode}/content/{item_id}", response_model=Union[TutorialRead, SkillUpRead])
async def tutorial_item(mode: str, item_id: str, db: AsyncSession = Depends(get_db)):
    return await skillup_service.catalogue_item(db, mode, item_id)


@router.post(
    "/{mode}/content", response_model=TutorialRead, status_code=status.HTTP_201_CREATED
)
async def create_tutorial(
    mode: str, data: TutorialCreate, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    skillup_service.require_tutorial_mode(
        mode, "Please use /api/tutorial-skill/skillup for creating SkillUp content"
    )
    return await tutorial_service.create_tutorial(db, data)


@router.put("/{mode}/content/{item_id}", response_model=TutorialRead)
async def update_tutorial(
    mode: str,
    item_id: str,
    data: TutorialUpdate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    skillup_service.require_tutorial_mode(
        mode, "Please use /api/tutorial-skill/skillup/{id} for updating SkillUp content"
    )
    return await tutorial_service.update_tutorial(db, item_id, data)


@router.delete("/{mode}/content/{item_id}", response_model=MessageResponse)
async def delete_tutorial(
    mode: str, item_id: str, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    skillup_service.require_tutorial_mode(
        mode, "Please use /api/tutorial-skill/skillup/{id} for deleting SkillUp content"
    )
    await tutorial_service.delete_tutorial(db, item_id)
    return {"message": f"{mode} content with ID {item_id} successfully deleted"}


@router.post(
    "/{mode}/categories",
    response_model=TutorialCategoryRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_tutorial_category(
    mode: str,
    data: TutorialCategoryCreate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    skillup_service.require_tutorial_mode(
        mode, "SkillUp categories are predefined. Please use existing categories."
    )
    return await tutorial_service.add_category(db, data.category_name)


@router.delete("/{mode}/categories/{name}", response_model=MessageResponse)
async def delete_tutorial_category(
    mode: str, name: str, admin: AdminUser, db: AsyncSession = Depends(get_db)
):
    skillup_service.require_tutorial_mode(
        mode, "SkillUp categories are predefined and cannot be deleted."
    )
    await tutorial_service.delete_category(db, name)
    return {"message": f"{mode} category {name} successfully deleted"}
