import logging
import time
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jread.core.permissions import Capability, has_capability
from jread.models.chapter import Chapter
from jread.models.comment import Comment
from jread.models.interaction import Bookmark, Like, Rating, ReadingProgress
from jread.models.novel import Novel, NovelStatus
from jread.models.user import User
from jread.schemas.novel import NovelCreate, NovelUpdate

logger = logging.getLogger(__name__)


def default_cover_image() -> str:
    return f"https://picsum.photos/seed/newNovel{int(time.time() * 1000)}/800/500"


def can_view_drafts(novel: Novel, viewer: Optional[User]) -> bool:
    """作者本人和管理员可以看到草稿"""
    if viewer is None:
        return False
    return novel.author_id == viewer.id or has_capability(viewer.role, Capability.VIEW_ANY_DRAFT)


def can_edit(novel: Novel, viewer: Optional[User]) -> bool:
    """只有作者本人可以编辑小说和章节"""
    return viewer is not None and novel.author_id == viewer.id


class NovelService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, author: User, novel_data: NovelCreate) -> Novel:
        novel = Novel(
            title=novel_data.title or "Untitled",
            author_id=author.id,
            author_name=author.display_name,
            cover_image=novel_data.cover_image or default_cover_image(),
            synopsis=novel_data.synopsis,
            genre=novel_data.genre or "Fantasy",
            tags=list(novel_data.tags),
            status=novel_data.status,
            language=novel_data.language or "English",
        )
        self.db.add(novel)
        await self.db.commit()
        await self.db.refresh(novel)
        logger.info(f"✅ 作者 {author.id} 创建小说 {novel.id}")
        return novel

    async def get_by_id(self, novel_id: int) -> Optional[Novel]:
        result = await self.db.execute(
            select(Novel).where(Novel.id == novel_id)
        )
        return result.scalar_one_or_none()

    async def get_with_chapters(self, novel_id: int, viewer: Optional[User] = None) -> Optional[Novel]:
        """
        获取小说详情（含章节，按章节号升序）

        读者看不到草稿小说；未发布章节只对作者本人和管理员可见。
        """
        result = await self.db.execute(
            select(Novel)
            .options(selectinload(Novel.chapters))
            .where(Novel.id == novel_id)
        )
        novel = result.scalar_one_or_none()
        if not novel:
            return None

        if novel.status != NovelStatus.PUBLISHED and not can_view_drafts(novel, viewer):
            return None
        return novel

    @staticmethod
    def visible_chapters(novel: Novel, viewer: Optional[User] = None) -> List[Chapter]:
        """按章节号升序返回该读者可见的章节"""
        chapters = sorted(novel.chapters, key=lambda c: c.chapter_number)
        if can_view_drafts(novel, viewer):
            return chapters
        return [c for c in chapters if c.is_published]

    async def get_published(self) -> List[Novel]:
        """首页列表：所有已发布小说，最新在前"""
        result = await self.db.execute(
            select(Novel)
            .where(Novel.status == NovelStatus.PUBLISHED)
            .order_by(Novel.created_at.desc(), Novel.id.desc())
        )
        return list(result.scalars().all())

    async def get_by_author(self, author_id: int, include_drafts: bool = False) -> List[Novel]:
        query = select(Novel).where(Novel.author_id == author_id)
        if not include_drafts:
            query = query.where(Novel.status == NovelStatus.PUBLISHED)
        result = await self.db.execute(
            query.order_by(Novel.created_at.desc(), Novel.id.desc())
        )
        return list(result.scalars().all())

    async def update(self, novel: Novel, novel_data: NovelUpdate) -> Novel:
        update_data = novel_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field in ("title", "genre", "status", "language", "cover_image"):
                continue
            setattr(novel, field, value)

        await self.db.commit()
        await self.db.refresh(novel)
        return novel

    async def update_status(self, novel: Novel, status: NovelStatus) -> Novel:
        novel.status = status
        await self.db.commit()
        await self.db.refresh(novel)
        logger.info(f"小说 {novel.id} 状态变更为 {status.value}")
        return novel

    async def delete(self, novel_id: int) -> bool:
        """删除小说（级联删除章节、评论和全部关联记录）"""
        novel = await self.get_by_id(novel_id)
        if not novel:
            return False

        chapter_ids = select(Chapter.id).where(Chapter.novel_id == novel_id)
        await self.db.execute(delete(Comment).where(Comment.chapter_id.in_(chapter_ids)))
        for model in (Bookmark, Like, Rating, ReadingProgress):
            await self.db.execute(delete(model).where(model.novel_id == novel_id))
        await self.db.execute(
            update(User)
            .where(User.last_viewed_novel_id == novel_id)
            .values(last_viewed_novel_id=None)
        )
        await self.db.execute(delete(Chapter).where(Chapter.novel_id == novel_id))
        await self.db.execute(delete(Novel).where(Novel.id == novel_id))
        await self.db.commit()

        logger.info(f"✅ 小说 {novel_id} 已删除")
        return True
