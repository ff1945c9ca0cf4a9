"""书签、点赞、评分、阅读进度和阅读量"""
import logging
from typing import List, Optional

import redis.asyncio as redis
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jread.models.chapter import Chapter
from jread.models.interaction import Bookmark, Like, Rating, ReadingProgress
from jread.models.novel import Novel, NovelStatus
from jread.services.cache import ViewCacheService
from jread.services.chapter import ChapterService

logger = logging.getLogger(__name__)


class InteractionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _exists(self, model, user_id: int, novel_id: int) -> bool:
        result = await self.db.execute(
            select(model.id).where(model.user_id == user_id, model.novel_id == novel_id)
        )
        return result.scalar_one_or_none() is not None

    # ========== 书签 ==========

    async def is_bookmarked(self, user_id: int, novel_id: int) -> bool:
        return await self._exists(Bookmark, user_id, novel_id)

    async def add_bookmark(self, user_id: int, novel_id: int) -> bool:
        """已收藏时视为成功"""
        if await self.is_bookmarked(user_id, novel_id):
            return True
        self.db.add(Bookmark(user_id=user_id, novel_id=novel_id))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
        return True

    async def remove_bookmark(self, user_id: int, novel_id: int) -> bool:
        await self.db.execute(
            delete(Bookmark).where(Bookmark.user_id == user_id, Bookmark.novel_id == novel_id)
        )
        await self.db.commit()
        return True

    async def get_bookmarked_novels(self, user_id: int, include_drafts: bool = False) -> List[Novel]:
        """按收藏时间倒序"""
        query = (
            select(Novel)
            .join(Bookmark, Bookmark.novel_id == Novel.id)
            .where(Bookmark.user_id == user_id)
        )
        if not include_drafts:
            query = query.where(Novel.status == NovelStatus.PUBLISHED)
        result = await self.db.execute(
            query.order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        )
        return list(result.scalars().all())

    # ========== 点赞 ==========

    async def has_liked(self, user_id: int, novel_id: int) -> bool:
        return await self._exists(Like, user_id, novel_id)

    async def _current_likes(self, novel_id: int) -> int:
        result = await self.db.execute(select(Novel.likes).where(Novel.id == novel_id))
        return result.scalar_one_or_none() or 0

    async def set_like(self, user_id: int, novel_id: int, liked: bool) -> int:
        """
        设置点赞状态并维护小说的点赞计数，重复设置同一状态不改变计数

        Returns:
            int: 最新点赞数
        """
        currently = await self.has_liked(user_id, novel_id)
        if liked and not currently:
            self.db.add(Like(user_id=user_id, novel_id=novel_id))
            await self.db.execute(
                update(Novel).where(Novel.id == novel_id).values(likes=Novel.likes + 1)
            )
        elif not liked and currently:
            await self.db.execute(
                delete(Like).where(Like.user_id == user_id, Like.novel_id == novel_id)
            )
            await self.db.execute(
                update(Novel)
                .where(Novel.id == novel_id, Novel.likes > 0)
                .values(likes=Novel.likes - 1)
            )
        await self.db.commit()
        return await self._current_likes(novel_id)

    async def toggle_like(self, user_id: int, novel_id: int) -> tuple:
        """RPC toggle_like：返回 (是否已点赞, 最新点赞数)"""
        liked = not await self.has_liked(user_id, novel_id)
        likes = await self.set_like(user_id, novel_id, liked)
        return liked, likes

    # ========== 评分 ==========

    async def get_user_rating(self, user_id: int, novel_id: int) -> Optional[int]:
        result = await self.db.execute(
            select(Rating.rating).where(Rating.user_id == user_id, Rating.novel_id == novel_id)
        )
        return result.scalar_one_or_none()

    async def submit_rating(self, user_id: int, novel_id: int, rating: int) -> float:
        """
        写入（或覆盖）评分并重算小说评分均值

        Returns:
            float: 新的评分均值（保留一位小数）
        """
        if not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5")

        result = await self.db.execute(
            select(Rating).where(Rating.user_id == user_id, Rating.novel_id == novel_id)
        )
        existing = result.scalar_one_or_none()
        if existing:
            existing.rating = rating
        else:
            self.db.add(Rating(user_id=user_id, novel_id=novel_id, rating=rating))
        await self.db.flush()

        average = await self.recompute_rating(novel_id)
        await self.db.commit()

        logger.info(f"小说 {novel_id} 新评分 {rating}，均值 {average}")
        return average

    async def recompute_rating(self, novel_id: int) -> float:
        """按现有评分重算均值写回小说（不提交）；没有评分时为 0"""
        result = await self.db.execute(
            select(func.avg(Rating.rating)).where(Rating.novel_id == novel_id)
        )
        average = round(float(result.scalar() or 0), 1)
        await self.db.execute(
            update(Novel).where(Novel.id == novel_id).values(rating=average)
        )
        return average

    # ========== 阅读进度 ==========

    async def get_reading_progress(self, user_id: int, novel_id: int) -> Optional[dict]:
        result = await self.db.execute(
            select(ReadingProgress, Chapter.chapter_number)
            .join(Chapter, Chapter.id == ReadingProgress.chapter_id)
            .where(ReadingProgress.user_id == user_id, ReadingProgress.novel_id == novel_id)
        )
        row = result.first()
        if row is None:
            return None
        progress, chapter_number = row
        return {
            "chapter_id": progress.chapter_id,
            "chapter_number": chapter_number,
            "scroll_position_percent": progress.scroll_position_percent,
        }

    async def save_reading_progress(
        self,
        user_id: int,
        novel_id: int,
        chapter_id: int,
        scroll_position_percent: float = 0.0
    ) -> dict:
        """
        按 (user, novel) 覆盖写入阅读进度

        Raises:
            LookupError: 章节不属于该小说
        """
        chapter = await ChapterService(self.db).get_by_id(chapter_id)
        if not chapter or chapter.novel_id != novel_id:
            raise LookupError("Chapter not found in this novel")

        result = await self.db.execute(
            select(ReadingProgress)
            .where(ReadingProgress.user_id == user_id, ReadingProgress.novel_id == novel_id)
        )
        progress = result.scalar_one_or_none()
        if progress:
            progress.chapter_id = chapter_id
            progress.scroll_position_percent = scroll_position_percent
        else:
            self.db.add(ReadingProgress(
                user_id=user_id,
                novel_id=novel_id,
                chapter_id=chapter_id,
                scroll_position_percent=scroll_position_percent,
            ))
        await self.db.commit()

        return {
            "chapter_id": chapter_id,
            "chapter_number": chapter.chapter_number,
            "scroll_position_percent": scroll_position_percent,
        }

    # ========== 阅读量 ==========

    async def increment_novel_view(
        self,
        redis_client: redis.Redis,
        novel_id: int,
        viewer: str,
        chapter_id: Optional[int] = None
    ) -> tuple:
        """
        RPC increment_novel_view：去重窗口内首次访问才计数

        Returns:
            tuple: (是否计数, 最新阅读量)
        """
        counted = await ViewCacheService.claim_view(redis_client, novel_id, viewer)
        if counted:
            await self.db.execute(
                update(Novel).where(Novel.id == novel_id).values(views=Novel.views + 1)
            )
            if chapter_id is not None:
                await ChapterService(self.db).increment_views(chapter_id)
            await self.db.commit()

        result = await self.db.execute(select(Novel.views).where(Novel.id == novel_id))
        return counted, result.scalar_one_or_none() or 0
