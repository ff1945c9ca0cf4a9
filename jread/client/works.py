"""作者工作台：我的作品、章节管理"""
import logging
from typing import List, Optional

from jread.client.errors import ApiError
from jread.client.novel_list import NovelListCache
from jread.client.session import Session
from jread.core.permissions import Capability
from jread.schemas.novel import NovelDetail, NovelResponse

logger = logging.getLogger(__name__)


class MyWorksPage:
    """当前作者的全部作品（含草稿）"""

    def __init__(self, session: Session, cache: Optional[NovelListCache] = None):
        self.session = session
        self.api = session.api
        self.cache = cache
        self.novels: List[NovelResponse] = []
        self.error: Optional[str] = None

    @property
    def is_allowed(self) -> bool:
        return self.session.can(Capability.WRITE_NOVELS)

    async def load(self) -> bool:
        """不是作者返回 False（页面跳回首页）"""
        if not self.is_allowed:
            return False
        me = self.session.require_user()
        try:
            self.novels = await self.api.get_novels_by_author(me.id)
        except ApiError as e:
            logger.error(f"获取作品列表失败: {e}")
            self.error = "Failed to load your works."
            self.novels = []
        return True

    async def delete_novel(self, novel_id: int) -> bool:
        try:
            await self.api.delete_novel(novel_id)
        except ApiError as e:
            logger.error(f"删除小说 {novel_id} 失败: {e}")
            self.error = "Failed to delete the novel."
            return False
        self.novels = [n for n in self.novels if n.id != novel_id]
        if self.cache is not None:
            self.cache.remove(novel_id)
        return True


class ManageChaptersPage:
    def __init__(self, session: Session):
        self.session = session
        self.api = session.api
        self.novel: Optional[NovelDetail] = None
        self.error: Optional[str] = None

    async def load(self, novel_id: int) -> bool:
        """
        小说不存在或不属于当前用户时返回 False（页面跳回我的作品）
        """
        me = self.session.require_user()
        try:
            novel = await self.api.get_novel(novel_id)
        except ApiError as e:
            logger.error(f"加载小说 {novel_id} 失败: {e}")
            novel = None
        if novel is None or novel.author_id != me.id:
            self.novel = None
            return False
        self.novel = novel
        return True

    async def delete_chapter(self, chapter_id: int) -> bool:
        """删除后重新拉取章节列表"""
        try:
            await self.api.delete_chapter(chapter_id)
        except ApiError as e:
            logger.error(f"删除章节 {chapter_id} 失败: {e}")
            self.error = "Failed to delete chapter."
            return False
        await self.load(self.novel.id)
        return True
