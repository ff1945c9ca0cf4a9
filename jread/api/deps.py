"""通用依赖：当前用户与角色能力检查"""
from typing import Optional

import redis.asyncio as redis
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from jread.core.permissions import Capability, has_capability
from jread.core.security import get_optional_token_payload, get_token_payload
from jread.db.database import get_db
from jread.db.redis import get_redis
from jread.models.user import User
from jread.services.cache import SessionCacheService
from jread.services.user import UserService


async def _load_user(payload: dict, db: AsyncSession, redis_client: redis.Redis) -> User:
    jti = payload.get("jti")
    if jti and await SessionCacheService.is_revoked(redis_client, jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has been signed out",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await UserService(db).get_by_id(payload["user_id"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer exists",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
) -> User:
    """依赖：要求用户已登录"""
    return await _load_user(payload, db, redis_client)


async def get_optional_user(
    payload: Optional[dict] = Depends(get_optional_token_payload),
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
) -> Optional[User]:
    """依赖：未登录时为None"""
    if payload is None:
        return None
    return await _load_user(payload, db, redis_client)


def require_capability(capability: Capability):
    """依赖工厂：要求当前用户角色具备某项能力"""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if not has_capability(user.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return user

    return dependency
