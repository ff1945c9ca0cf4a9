"""
Redis缓存服务

- 阅读量去重：同一读者在 VIEW_DEDUP_SECONDS 内重复访问同一本小说只计一次
  Key格式: novel:{novel_id}:viewer:{viewer}
- 登出吊销：登出时记录令牌 jti，TTL 为令牌剩余有效期
  Key格式: session:{jti}:revoked
"""
import logging

import redis.asyncio as redis

from jread.core.config import settings

logger = logging.getLogger(__name__)


class ViewCacheService:
    """阅读量去重"""

    @staticmethod
    async def claim_view(redis_client: redis.Redis, novel_id: int, viewer: str) -> bool:
        """
        登记一次访问

        Returns:
            bool: 本次访问是否应计入阅读量（窗口内首次访问）

        Raises:
            redis.RedisError: Redis操作失败
        """
        key = f"novel:{novel_id}:viewer:{viewer}"
        claimed = await redis_client.set(key, "1", ex=settings.VIEW_DEDUP_SECONDS, nx=True)
        if not claimed:
            logger.debug(f"Redis: 小说 {novel_id} 的访问者 {viewer} 在去重窗口内，不计阅读量")
        return bool(claimed)


class SessionCacheService:
    """令牌吊销"""

    @staticmethod
    async def revoke(redis_client: redis.Redis, jti: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        await redis_client.set(f"session:{jti}:revoked", "1", ex=ttl_seconds)
        logger.info(f"✅ Redis: 令牌 {jti} 已吊销, TTL: {ttl_seconds}s")

    @staticmethod
    async def is_revoked(redis_client: redis.Redis, jti: str) -> bool:
        return await redis_client.get(f"session:{jti}:revoked") is not None
