"""
小说详情页的交互：点赞、收藏、评分

都按乐观更新处理，失败回滚到操作前的状态。
"""
import logging
from typing import Optional

from jread.client.errors import ApiError
from jread.client.novel_list import NovelListCache
from jread.client.optimistic import apply_optimistic
from jread.client.session import Session
from jread.schemas.interaction import InteractionStatus, ReadingProgressResponse
from jread.schemas.novel import NovelDetail

logger = logging.getLogger(__name__)


class NovelPage:
    def __init__(self, session: Session, cache: Optional[NovelListCache] = None):
        self.session = session
        self.api = session.api
        self.cache = cache
        self.novel: Optional[NovelDetail] = None
        self.interaction = InteractionStatus()
        self.progress: Optional[ReadingProgressResponse] = None

    async def load(self, novel_id: int) -> bool:
        """小说不存在或不可见时返回 False（页面显示“未找到”）"""
        try:
            self.novel = await self.api.get_novel(novel_id)
        except ApiError as e:
            logger.error(f"加载小说详情失败: {e}")
            self.novel = None
        if self.novel is None:
            return False

        if self.session.is_authenticated:
            self.interaction = await self.api.get_interaction_status(novel_id)
            self.progress = await self.api.get_reading_progress(novel_id)
        else:
            self.interaction = InteractionStatus()
            self.progress = None
        return True

    @property
    def read_target_chapter_number(self) -> Optional[int]:
        """有阅读进度时继续阅读，否则从第一章开始"""
        if self.progress is not None:
            return self.progress.chapter_number
        if self.novel and self.novel.chapters:
            return self.novel.chapters[0].chapter_number
        return None

    def _set_likes(self, liked: bool, likes: int) -> None:
        self.interaction = self.interaction.model_copy(update={"has_liked": liked})
        self.novel = self.novel.model_copy(update={"likes": likes})
        if self.cache is not None:
            self.cache.update(self.novel.id, likes=likes)

    async def toggle_like(self) -> bool:
        self.session.require_user()
        novel_id = self.novel.id
        liked = not self.interaction.has_liked
        likes = max(self.novel.likes + (1 if liked else -1), 0)

        async def remote():
            if liked:
                return await self.api.like_novel(novel_id)
            return await self.api.unlike_novel(novel_id)

        return await apply_optimistic(
            snapshot=lambda: (self.interaction.has_liked, self.novel.likes),
            apply=lambda: self._set_likes(liked, likes),
            restore=lambda saved: self._set_likes(*saved),
            remote=remote,
        )

    def _set_bookmarked(self, bookmarked: bool) -> None:
        self.interaction = self.interaction.model_copy(update={"is_bookmarked": bookmarked})

    async def toggle_bookmark(self) -> bool:
        self.session.require_user()
        novel_id = self.novel.id
        bookmarked = not self.interaction.is_bookmarked

        async def remote():
            if bookmarked:
                await self.api.add_bookmark(novel_id)
            else:
                await self.api.remove_bookmark(novel_id)

        return await apply_optimistic(
            snapshot=lambda: self.interaction.is_bookmarked,
            apply=lambda: self._set_bookmarked(bookmarked),
            restore=self._set_bookmarked,
            remote=remote,
        )

    def _set_user_rating(self, rating: Optional[int]) -> None:
        self.interaction = self.interaction.model_copy(update={"user_rating": rating})

    async def submit_rating(self, rating: int) -> bool:
        """成功后重新拉取小说以拿到服务端重算的平均分"""
        self.session.require_user()
        novel_id = self.novel.id

        success = await apply_optimistic(
            snapshot=lambda: self.interaction.user_rating,
            apply=lambda: self._set_user_rating(rating),
            restore=self._set_user_rating,
            remote=lambda: self.api.submit_rating(novel_id, rating),
        )
        if success:
            try:
                updated = await self.api.get_novel(novel_id)
            except ApiError as e:
                # 评分已写入，只是拿不到新均值，保留旧值
                logger.warning(f"评分后刷新小说失败: {e}")
                return success
            if updated is not None:
                self.novel = updated
                if self.cache is not None:
                    self.cache.update(novel_id, rating=updated.rating)
        return success
