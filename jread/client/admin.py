"""管理后台：用户列表、角色修改、删除用户和小说"""
import logging
from typing import List, Optional

from jread.client.errors import ApiError
from jread.client.novel_list import NovelListCache
from jread.client.optimistic import apply_optimistic
from jread.client.session import Session
from jread.core.permissions import Capability, UserRole, can_change_role, can_manage_user
from jread.schemas.rpc import AdminCapabilities
from jread.schemas.user import UserResponse

logger = logging.getLogger(__name__)


class AdminPanel:
    def __init__(self, session: Session, cache: Optional[NovelListCache] = None):
        self.session = session
        self.api = session.api
        self.cache = cache
        self.users: List[UserResponse] = []
        self.capabilities = AdminCapabilities()
        self.error: Optional[str] = None

    @property
    def is_allowed(self) -> bool:
        return self.session.can(Capability.ACCESS_ADMIN_PANEL)

    async def load(self) -> bool:
        """没有管理权限返回 False（页面跳回首页）"""
        if not self.is_allowed:
            return False
        try:
            self.users = await self.api.get_users()
        except ApiError as e:
            logger.error(f"获取用户列表失败: {e}")
            self.error = "Failed to fetch users."
            self.users = []
        self.capabilities = await self.api.check_admin_capabilities()
        return True

    def can_change_role(self, target: UserResponse) -> bool:
        me = self.session.user
        if me is None:
            return False
        return can_change_role(me.id, me.role, target.id, target.role)

    def can_delete_user(self, target: UserResponse) -> bool:
        me = self.session.user
        if me is None or not self.capabilities.can_delete_users:
            return False
        return can_manage_user(me.id, me.role, target.id, target.role)

    def _replace_users(self, users: List[UserResponse]) -> None:
        self.users = users

    async def change_role(self, target_id: int, new_role: UserRole) -> bool:
        """乐观更新，失败时整体恢复用户列表"""
        new_role = UserRole(new_role)
        updated = [
            u.model_copy(update={"role": new_role}) if u.id == target_id else u
            for u in self.users
        ]

        success = await apply_optimistic(
            snapshot=lambda: list(self.users),
            apply=lambda: self._replace_users(updated),
            restore=self._replace_users,
            remote=lambda: self.api.update_user_role(target_id, new_role),
        )
        if not success:
            self.error = "Failed to update user role."
        return success

    async def delete_user(self, target_id: int) -> bool:
        try:
            await self.api.admin_delete_user(target_id)
        except ApiError as e:
            logger.error(f"删除用户失败: {e}")
            self.error = "Failed to delete user."
            return False
        self.users = [u for u in self.users if u.id != target_id]
        return True

    async def delete_novel(self, novel_id: int) -> bool:
        try:
            await self.api.admin_delete_novel(novel_id)
        except ApiError as e:
            logger.error(f"删除小说失败: {e}")
            self.error = "Failed to delete novel."
            return False
        if self.cache is not None:
            self.cache.remove(novel_id)
        return True
