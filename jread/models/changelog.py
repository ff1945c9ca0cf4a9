from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, Date, JSON
from sqlalchemy.sql import func

from jread.db.base import Base


class ChangeType(str, PyEnum):
    NEW = "NEW"
    IMPROVED = "IMPROVED"
    FIXED = "FIXED"


class ChangelogEntry(Base):
    __tablename__ = "changelogs"

    id = Column(Integer, primary_key=True, index=True)
    version = Column(String(50), nullable=False)
    date = Column(Date, nullable=False)
    changes = Column(JSON, nullable=False, default=list)  # [{"type": "NEW", "text": "..."}]，保持顺序
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ChangelogEntry(id={self.id}, version='{self.version}')>"
