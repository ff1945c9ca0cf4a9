from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    parent_id: Optional[int] = None


class CommentResponse(BaseModel):
    id: int
    user_id: int
    username: str
    user_avatar: str = ""
    chapter_id: int
    parent_id: Optional[int] = None
    content: str
    created_at: Optional[datetime] = None
    replies: List["CommentResponse"] = []


CommentResponse.model_rebuild()
