from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import Field

from app.schemas.base import CamelModel

ContentUrlType = Literal["video", "pdf", "question"]


class SkillUpContentIn(CamelModel):
    leading_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    content_url: str = Field(..., min_length=1)
    content_url_type: ContentUrlType
    is_read: bool = False


class SkillUpContentRead(SkillUpContentIn):
    id: str


class SkillUpBatchIn(CamelModel):
    batch_number: int = Field(..., ge=1)
    batch_description: Optional[str] = None
    topics: List[str] = Field(..., min_length=1)
    contents: List[SkillUpContentIn] = Field(default_factory=list)


class SkillUpBatchUpdate(CamelModel):
    batch_number: Optional[int] = Field(None, ge=1)
    batch_description: Optional[str] = None
    topics: Optional[List[str]] = Field(None, min_length=1)


class SkillUpBatchRead(CamelModel):
    id: str
    batch_number: int
    batch_description: Optional[str] = None
    topics: List[str]
    contents: List[SkillUpContentRead]


class SkillUpCreate(CamelModel):
    category: str = Field(..., min_length=1)
    year: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    subject_description: Optional[str] = None
    thumbnail: Optional[str] = None
    author: Optional[str] = None
    batches: List[SkillUpBatchIn] = Field(..., min_length=1)


class SkillUpUpdate(CamelModel):
    category: Optional[str] = None
    year: Optional[str] = None
    subject: Optional[str] = None
    subject_description: Optional[str] = None
    thumbnail: Optional[str] = None
    author: Optional[str] = None


class SkillUpRead(CamelModel):
    id: int
    category: str
    year: str
    subject: str
    subject_description: Optional[str] = None
    thumbnail: Optional[str] = None
    author: Optional[str] = None
    batches: List[SkillUpBatchRead]
    created_at: Optional[datetime] = None


class ReadStatusUpdate(CamelModel):
    is_read: bool


class TutorialSummary(CamelModel):
    id: Union[int, str]
    title: str
    description: Optional[str] = None
    category: str
    cat_name: str
    level: str
    year: Optional[str] = None
    author: str
    duration: str
    lessons: Optional[int] = None
    thumbnail: Optional[str] = None
    time: Optional[str] = None


class TutorialData(CamelModel):
    mode: str
    total: int
    categories: List[str]
    items: List[TutorialSummary]


class TutorialCreate(CamelModel):
    id: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    thumbnail: Optional[str] = None
    duration: str = "weekly"
    level: str = "Beginner"
    author: str = "Admin"
    time: str = "N/A"


class TutorialUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[str] = None
    level: Optional[str] = None
    author: Optional[str] = None
    time: Optional[str] = None


class TutorialRead(CamelModel):
    id: str
    title: str
    description: str
    thumbnail: Optional[str] = None
    category: str
    cat_name: str
    duration: str
    level: str
    author: str
    time: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TutorialCategoryCreate(CamelModel):
    category_name: str = Field(..., min_length=1)


class TutorialCategoryRead(CamelModel):
    name: str
