from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from jread.core.permissions import UserRole
from jread.schemas.novel import NovelResponse


# 公开的用户资料
class UserResponse(BaseModel):
    id: int
    username: str
    role: UserRole
    profile_picture: str = ""
    pen_name: Optional[str] = None
    bio: Optional[str] = None
    bookmarks_are_public: bool = False
    activity_is_public: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# 当前登录用户的完整资料
class UserPrivateResponse(UserResponse):
    email: str
    last_viewed_novel_id: Optional[int] = None


# 资料/设置更新，未提供的字段不修改
class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    profile_picture: Optional[str] = None
    pen_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    bookmarks_are_public: Optional[bool] = None
    activity_is_public: Optional[bool] = None


class RoleUpdateRequest(BaseModel):
    role: UserRole


class LastViewedRequest(BaseModel):
    novel_id: int


# 用户最近阅读（受 activity_is_public 控制）
class ActivityResponse(BaseModel):
    last_viewed_novel: Optional[NovelResponse] = None
