from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from jread.models.novel import NovelStatus
from jread.schemas.chapter import ChapterResponse

# 前端可选的类型列表，"All" 表示不过滤
GENRES = [
    "Fantasy", "Sci-Fi", "Romance", "Mystery", "Thriller",
    "Horror", "Adventure", "Historical", "Slice of Life", "Comedy",
]


class NovelCreate(BaseModel):
    title: str = Field("Untitled", max_length=200)
    synopsis: str = ""
    genre: str = "Fantasy"
    tags: List[str] = []
    status: NovelStatus = NovelStatus.DRAFT
    language: str = "English"
    cover_image: Optional[str] = None


# 更新小说请求模式，未提供的字段不修改
class NovelUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    synopsis: Optional[str] = None
    genre: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[NovelStatus] = None
    language: Optional[str] = None
    cover_image: Optional[str] = None


class NovelStatusUpdate(BaseModel):
    status: NovelStatus


# 小说响应模式（列表用，不含章节）
class NovelResponse(BaseModel):
    id: int
    title: str
    author_id: int
    author_name: str
    cover_image: str = ""
    synopsis: str = ""
    genre: str
    tags: List[str] = []
    status: NovelStatus
    rating: float = 0.0
    views: int = 0
    likes: int = 0
    language: str = "English"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# 小说详情响应模式，章节按 chapter_number 升序
class NovelDetail(NovelResponse):
    chapters: List[ChapterResponse] = []
