from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, ForeignKey, false
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from jread.db.base import Base


class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, index=True)
    novel_id = Column(Integer, ForeignKey("novels.id", ondelete="CASCADE"), nullable=False, index=True)
    chapter_number = Column(Integer, nullable=False)  # 章节序号，新建时取 max+1
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False, default="")  # 正文，允许 <strong>/<em>/<u> 行内标记
    is_published = Column(Boolean, nullable=False, default=False, server_default=false())
    views = Column(Integer, nullable=False, default=0, server_default="0")
    likes = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # 关系
    novel = relationship("Novel", back_populates="chapters")

    def __repr__(self):
        return f"<Chapter(id={self.id}, novel_id={self.novel_id}, chapter_number={self.chapter_number}, title='{self.title}')>"
