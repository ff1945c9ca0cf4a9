from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class ChapterCreate(BaseModel):
    title: str = Field("Untitled", max_length=200)
    content: str = ""
    # 不传时取该小说现有最大章节号 + 1
    chapter_number: Optional[int] = Field(None, ge=1)
    is_published: bool = False


class ChapterUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = None
    is_published: Optional[bool] = None


class ChapterResponse(BaseModel):
    id: int
    novel_id: int
    title: str
    content: str = ""
    chapter_number: int
    is_published: bool = False
    views: int = 0
    likes: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
