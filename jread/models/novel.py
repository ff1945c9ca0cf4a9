from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Float, JSON, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from jread.db.base import Base


class NovelStatus(str, PyEnum):
    """小说发布状态"""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class Novel(Base):
    __tablename__ = "novels"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    author_name = Column(String(100), nullable=False)  # 冗余存储，创建时取笔名或用户名
    title = Column(String(200), nullable=False, index=True)
    cover_image = Column(String(500), nullable=False, default="")
    synopsis = Column(Text, nullable=False, default="")
    genre = Column(String(50), nullable=False, default="Fantasy", index=True)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(
        Enum(NovelStatus, name="novel_status"),
        nullable=False,
        default=NovelStatus.DRAFT,
        server_default=NovelStatus.DRAFT.value
    )
    rating = Column(Float, nullable=False, default=0.0, server_default="0")  # 评分均值，提交评分时重算
    views = Column(Integer, nullable=False, default=0, server_default="0")
    likes = Column(Integer, nullable=False, default=0, server_default="0")
    language = Column(String(50), nullable=False, default="English")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # 关系
    chapters = relationship(
        "Chapter",
        back_populates="novel",
        order_by="Chapter.chapter_number",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Novel(id={self.id}, title='{self.title}', status={self.status})>"
