"""远程过程调用（/rpc/{name}）的参数与返回模型"""
from typing import Optional
from pydantic import BaseModel, Field


class AdminDeleteNovelParams(BaseModel):
    novel_id_to_delete: int


class AdminDeleteUserParams(BaseModel):
    user_id_to_delete: int


class ToggleLikeParams(BaseModel):
    novel_id: int


class SubmitRatingParams(BaseModel):
    novel_id: int
    rating: int = Field(ge=1, le=5)


class IncrementViewParams(BaseModel):
    novel_id: int
    chapter_id: Optional[int] = None


class AdminCapabilities(BaseModel):
    can_delete_users: bool = False
    can_delete_novels: bool = False
