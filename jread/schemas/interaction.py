from typing import Optional
from pydantic import BaseModel, Field


class InteractionStatus(BaseModel):
    """当前用户对某本小说的交互状态"""
    has_liked: bool = False
    user_rating: Optional[int] = None
    is_bookmarked: bool = False


class SuccessResponse(BaseModel):
    success: bool = True


class LikeResult(BaseModel):
    liked: bool
    likes: int


class RatingRequest(BaseModel):
    rating: int = Field(ge=1, le=5)


class RatingResult(BaseModel):
    rating: int
    average: float


class ViewResult(BaseModel):
    counted: bool
    views: int


class ReadingProgressUpdate(BaseModel):
    chapter_id: int
    scroll_position_percent: float = Field(0.0, ge=0, le=100)


class ReadingProgressResponse(BaseModel):
    chapter_id: int
    chapter_number: int
    scroll_position_percent: float = 0.0
