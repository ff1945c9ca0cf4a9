import logging
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jread.models.chapter import Chapter
from jread.models.comment import Comment
from jread.models.interaction import ReadingProgress
from jread.schemas.chapter import ChapterCreate, ChapterUpdate

logger = logging.getLogger(__name__)


class ChapterService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, chapter_id: int) -> Optional[Chapter]:
        """根据ID获取章节"""
        result = await self.db.execute(
            select(Chapter).where(Chapter.id == chapter_id)
        )
        return result.scalar_one_or_none()

    async def get_latest_chapter_number(self, novel_id: int) -> int:
        """获取小说的最新章节号，没有章节时为0"""
        result = await self.db.execute(
            select(Chapter.chapter_number)
            .where(Chapter.novel_id == novel_id)
            .order_by(Chapter.chapter_number.desc())
            .limit(1)
        )
        latest = result.scalar_one_or_none()
        return latest if latest is not None else 0

    async def create(self, novel_id: int, chapter_data: ChapterCreate) -> Chapter:
        """
        创建章节

        未指定章节号时取 max(现有章节号) + 1。章节号唯一性不在数据库层约束，
        同一作者在两个页面同时新建章节可能得到相同章节号。
        """
        chapter_number = chapter_data.chapter_number
        if chapter_number is None:
            chapter_number = await self.get_latest_chapter_number(novel_id) + 1

        chapter = Chapter(
            novel_id=novel_id,
            chapter_number=chapter_number,
            title=chapter_data.title or "Untitled",
            content=chapter_data.content,
            is_published=chapter_data.is_published,
        )
        self.db.add(chapter)
        await self.db.commit()
        await self.db.refresh(chapter)

        logger.info(f"✅ 创建章节记录: {chapter.id} (小说 {novel_id}, 第{chapter_number}章)")
        return chapter

    async def update(self, chapter: Chapter, chapter_data: ChapterUpdate) -> Chapter:
        """更新标题、正文或发布状态，未提供的字段不修改"""
        update_data = chapter_data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(chapter, field, value)

        await self.db.commit()
        await self.db.refresh(chapter)
        return chapter

    async def increment_views(self, chapter_id: int) -> None:
        await self.db.execute(
            update(Chapter)
            .where(Chapter.id == chapter_id)
            .values(views=Chapter.views + 1)
        )

    async def delete(self, chapter_id: int) -> bool:
        chapter = await self.get_by_id(chapter_id)
        if not chapter:
            return False

        await self.db.execute(delete(Comment).where(Comment.chapter_id == chapter_id))
        await self.db.execute(delete(ReadingProgress).where(ReadingProgress.chapter_id == chapter_id))
        await self.db.execute(delete(Chapter).where(Chapter.id == chapter_id))
        await self.db.commit()

        logger.info(f"章节 {chapter_id} 已删除")
        return True
