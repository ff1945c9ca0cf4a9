"""阅读页：按章节号打开章节、评论、字号、阅读进度书签"""
import logging
from typing import List, Optional

from jread.client.errors import ApiError
from jread.client.optimistic import apply_optimistic
from jread.client.session import Session
from jread.schemas.chapter import ChapterResponse
from jread.schemas.comment import CommentResponse
from jread.schemas.novel import NovelDetail

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 12
MAX_FONT_SIZE = 28
DEFAULT_FONT_SIZE = 16


class ReaderPage:
    def __init__(self, session: Session):
        self.session = session
        self.api = session.api
        self.novel: Optional[NovelDetail] = None
        self.chapter: Optional[ChapterResponse] = None
        self.comments: List[CommentResponse] = []
        self.bookmarked_chapter: Optional[int] = None
        self.font_size = DEFAULT_FONT_SIZE

    async def load(self, novel_id: int, chapter_number: int) -> bool:
        """章节不存在（或不可见）时返回 False"""
        self.novel = await self.api.get_novel(novel_id)
        if self.novel is None:
            self.chapter = None
            return False

        self.chapter = next(
            (c for c in self.novel.chapters if c.chapter_number == chapter_number), None
        )
        if self.chapter is None:
            return False

        self.comments = await self.api.get_comments(self.chapter.id)
        self.bookmarked_chapter = None
        if self.session.is_authenticated:
            progress = await self.api.get_reading_progress(novel_id)
            self.bookmarked_chapter = progress.chapter_number if progress else None
            await self._remember_last_viewed(novel_id)

        await self._count_view()
        return True

    async def _remember_last_viewed(self, novel_id: int) -> None:
        try:
            await self.api.set_last_viewed_novel(novel_id)
        except ApiError as e:
            logger.warning(f"记录最近阅读失败: {e}")

    async def _count_view(self) -> None:
        try:
            await self.api.increment_novel_view(self.novel.id, self.chapter.id)
        except ApiError as e:
            logger.warning(f"记录阅读量失败: {e}")

    @property
    def is_current_chapter_bookmarked(self) -> bool:
        return self.chapter is not None and self.bookmarked_chapter == self.chapter.chapter_number

    def change_font_size(self, delta: int) -> int:
        self.font_size = max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, self.font_size + delta))
        return self.font_size

    def chapter_path(self, chapter_number: int) -> Optional[str]:
        """上一章/下一章的跳转路径，超出范围返回 None"""
        if self.novel is None or not 0 < chapter_number <= len(self.novel.chapters):
            return None
        return f"/read/{self.novel.id}/{chapter_number}"

    def _set_bookmarked_chapter(self, chapter_number: Optional[int]) -> None:
        self.bookmarked_chapter = chapter_number

    async def bookmark_chapter(self) -> bool:
        """把当前章节设为阅读进度"""
        self.session.require_user()
        novel_id = self.novel.id
        chapter = self.chapter
        return await apply_optimistic(
            snapshot=lambda: self.bookmarked_chapter,
            apply=lambda: self._set_bookmarked_chapter(chapter.chapter_number),
            restore=self._set_bookmarked_chapter,
            remote=lambda: self.api.save_reading_progress(novel_id, chapter.id),
        )

    async def add_comment(self, content: str, parent_id: Optional[int] = None) -> Optional[CommentResponse]:
        self.session.require_user()
        try:
            comment = await self.api.add_comment(self.chapter.id, content, parent_id)
        except ApiError as e:
            logger.error(f"发表评论失败: {e}")
            return None
        if parent_id is None:
            self.comments = self.comments + [comment]
        return comment
