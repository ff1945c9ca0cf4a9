import logging
import time
from typing import Optional

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from jread.models.user import User
from jread.services.cache import SessionCacheService
from jread.services.user import UserService
from jread.core.permissions import SIGNUP_ROLES, UserRole
from jread.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    token_ttl_seconds,
    verify_token
)
from jread.schemas.auth import SignupRequest, LoginRequest

logger = logging.getLogger(__name__)


def default_profile_picture() -> str:
    return f"https://picsum.photos/seed/newUser{int(time.time() * 1000)}/100/100"


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)

    async def register_user(self, user_data: SignupRequest) -> User:
        """用户注册"""
        if user_data.role not in SIGNUP_ROLES:
            raise ValueError("Role must be USER or AUTHOR")

        pen_name = (user_data.pen_name or "").strip()
        if user_data.role == UserRole.AUTHOR and not pen_name:
            raise ValueError("Pen name is required for authors")

        # 检查邮箱是否已存在
        existing_user = await self.user_service.get_by_email(user_data.email)
        if existing_user:
            raise ValueError("Email already registered")

        user = User(
            username=user_data.username,
            email=user_data.email.lower(),
            password=get_password_hash(user_data.password),
            role=user_data.role,
            pen_name=pen_name or None,
            bio=user_data.bio or "",
            profile_picture=default_profile_picture(),
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"✅ 新用户注册: {user.id} ({user.role.value})")
        return user

    async def authenticate_user(self, login_data: LoginRequest) -> Optional[User]:
        """用户认证"""
        user = await self.user_service.get_by_email(login_data.email)
        if not user:
            return None

        if not verify_password(login_data.password, user.password):
            return None

        return user

    def create_user_tokens(self, user: User) -> dict:
        """为用户创建令牌"""
        access_token = create_access_token(data={"sub": str(user.id)})
        refresh_token = create_refresh_token(data={"sub": str(user.id)})

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer"
        }

    async def refresh_access_token(self, refresh_token: str) -> Optional[dict]:
        """刷新访问令牌"""
        payload = verify_token(refresh_token)
        if not payload or payload.get("type") != "refresh":
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None

        user = await self.user_service.get_by_id(int(user_id))
        if not user:
            return None

        access_token = create_access_token(data={"sub": str(user.id)})

        return {
            "access_token": access_token,
            "token_type": "bearer"
        }

    @staticmethod
    async def logout(redis_client: redis.Redis, payload: dict) -> None:
        """吊销当前访问令牌"""
        jti = payload.get("jti")
        if jti:
            await SessionCacheService.revoke(redis_client, jti, token_ttl_seconds(payload))
