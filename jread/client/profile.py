"""
个人主页和书架

别人的书架和最近阅读受隐私设置控制，服务端返回 403 时页面显示为不公开
"""
import logging
from typing import List, Optional

from jread.client.errors import ApiError
from jread.client.session import Session
from jread.core.permissions import Capability, has_capability
from jread.schemas.novel import NovelResponse
from jread.schemas.user import UserResponse

logger = logging.getLogger(__name__)


class ProfilePage:
    def __init__(self, session: Session):
        self.session = session
        self.api = session.api
        self.user: Optional[UserResponse] = None
        self.works: List[NovelResponse] = []
        self.last_viewed: Optional[NovelResponse] = None
        self.activity_private = False
        self.bookmarks: Optional[List[NovelResponse]] = None
        self.bookmarks_private = False
        self.error: Optional[str] = None

    @property
    def is_own_profile(self) -> bool:
        me = self.session.user
        return me is not None and self.user is not None and me.id == self.user.id

    async def load(self, user_id: int) -> bool:
        self.error = None
        self.user = await self.api.get_user(user_id)
        if self.user is None:
            self.error = "User not found."
            return False

        if has_capability(self.user.role, Capability.WRITE_NOVELS):
            self.works = await self.api.get_novels_by_author(user_id)
        else:
            self.works = []

        await self._load_activity(user_id)
        await self._load_bookmarks(user_id)
        return True

    async def _load_activity(self, user_id: int) -> None:
        self.last_viewed = None
        self.activity_private = False
        try:
            activity = await self.api.get_user_activity(user_id)
        except ApiError as e:
            if not e.is_forbidden:
                raise
            self.activity_private = True
            return
        if activity is not None:
            self.last_viewed = activity.last_viewed_novel

    async def _load_bookmarks(self, user_id: int) -> None:
        self.bookmarks = None
        self.bookmarks_private = False
        try:
            self.bookmarks = await self.api.get_user_bookmarks(user_id)
        except ApiError as e:
            if not e.is_forbidden:
                raise
            self.bookmarks_private = True


class BookmarksPage:
    """当前用户的书架"""

    def __init__(self, session: Session):
        self.session = session
        self.api = session.api
        self.novels: List[NovelResponse] = []
        self.error: Optional[str] = None

    async def load(self) -> bool:
        self.session.require_user()
        try:
            self.novels = await self.api.get_bookmarked_novels()
        except ApiError as e:
            logger.error(f"获取书架失败: {e}")
            self.error = "Failed to load bookmarks."
            self.novels = []
            return False
        return True

    async def remove(self, novel_id: int) -> bool:
        try:
            await self.api.remove_bookmark(novel_id)
        except ApiError as e:
            logger.error(f"移除书签失败: {e}")
            self.error = "Failed to remove bookmark."
            return False
        self.novels = [n for n in self.novels if n.id != novel_id]
        return True
