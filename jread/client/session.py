"""
会话上下文

进程内唯一的登录状态：当前用户、访问令牌，以及登录/注册/退出/资料更新/注销账号。
在应用启动时创建，退出登录时清理，通过引用传给各个页面控制器。
"""
import logging
from typing import Optional, Tuple

import httpx

from jread.client.api import ApiClient
from jread.client.config import ClientSettings
from jread.client.errors import ApiError, AuthRequiredError, ConfigurationRequiredError
from jread.core.permissions import Capability, UserRole, has_capability
from jread.schemas.user import UserPrivateResponse

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, settings: Optional[ClientSettings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or ClientSettings()
        if not self.settings.is_configured:
            raise ConfigurationRequiredError()

        self.api = ApiClient(self.settings, transport=transport)
        self.user: Optional[UserPrivateResponse] = None

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.api.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def role(self) -> Optional[UserRole]:
        return self.user.role if self.user else None

    def can(self, capability: Capability) -> bool:
        return self.user is not None and has_capability(self.user.role, capability)

    def require_user(self) -> UserPrivateResponse:
        if self.user is None:
            raise AuthRequiredError("Please log in to continue")
        return self.user

    async def _load_current_user(self) -> None:
        self.user = await self.api.get_me()

    async def login(self, email: str, password: str) -> bool:
        """凭据错误返回 False，不抛异常"""
        try:
            tokens = await self.api.login(email, password)
        except ApiError as e:
            logger.info(f"登录失败: {e.detail}")
            return False

        self.api.set_tokens(tokens.access_token, tokens.refresh_token)
        await self._load_current_user()
        logger.info(f"✅ 已登录: {email}")
        return self.user is not None

    async def signup(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        pen_name: Optional[str] = None,
        bio: Optional[str] = None
    ) -> Tuple[bool, str]:
        """
        注册并自动登录

        Returns:
            (是否成功, 提示信息)
        """
        try:
            tokens = await self.api.signup(username, email, password, role, pen_name, bio)
        except ApiError as e:
            return False, str(e.detail)

        self.api.set_tokens(tokens.access_token, tokens.refresh_token)
        await self._load_current_user()
        return True, "Signup successful!"

    async def logout(self) -> None:
        if self.user is not None:
            try:
                await self.api.logout()
            except ApiError as e:
                logger.warning(f"服务端注销失败，仍清理本地会话: {e}")
        self.api.set_tokens(None, None)
        self.user = None

    async def update_profile(self, **fields) -> bool:
        self.require_user()
        try:
            self.user = await self.api.update_me(**fields)
        except ApiError as e:
            logger.error(f"更新资料失败: {e}")
            return False
        return True

    async def upload_profile_picture(self, filename: str, data: bytes, content_type: str) -> bool:
        self.require_user()
        try:
            url = await self.api.upload_profile_picture(filename, data, content_type)
        except ApiError as e:
            logger.error(f"上传头像失败: {e}")
            return False
        return await self.update_profile(profile_picture=url)

    async def delete_account(self) -> bool:
        """删除账号成功后清理本地会话"""
        self.require_user()
        try:
            await self.api.delete_self()
        except ApiError as e:
            logger.error(f"删除账号失败: {e}")
            return False
        self.api.set_tokens(None, None)
        self.user = None
        return True
