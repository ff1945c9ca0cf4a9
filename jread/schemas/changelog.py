import datetime as dt
from typing import List, Optional
from pydantic import BaseModel, Field

from jread.models.changelog import ChangeType


class ChangelogChange(BaseModel):
    type: ChangeType
    text: str = Field(min_length=1)


class ChangelogCreate(BaseModel):
    version: str = Field(min_length=1, max_length=50)
    date: dt.date
    changes: List[ChangelogChange] = Field(min_length=1)


class ChangelogResponse(BaseModel):
    id: int
    version: str
    date: dt.date
    changes: List[ChangelogChange]
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
