"""
Redis连接

只保存短期状态：阅读量去重标记和已吊销的令牌，丢失后不影响业务数据。
"""
import logging
from typing import Optional

import redis.asyncio as redis

from jread.core.config import settings

logger = logging.getLogger(__name__)


def _redis_url() -> str:
    return f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"


class RedisClient:
    """进程内共享一个连接池"""

    _instance: Optional[redis.Redis] = None

    @classmethod
    async def get_client(cls) -> redis.Redis:
        if cls._instance is None:
            cls._instance = redis.from_url(
                _redis_url(),
                password=settings.REDIS_PASSWORD,
                decode_responses=True,
                max_connections=20,
            )
            logger.info(f"✅ Redis连接池已创建: {settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}")
        return cls._instance

    @classmethod
    async def check_connection(cls) -> None:
        """启动时确认 Redis 可用，失败抛出 redis.RedisError"""
        client = await cls.get_client()
        await client.ping()

    @classmethod
    async def close(cls) -> None:
        if cls._instance is None:
            return
        try:
            await cls._instance.aclose()
            logger.info("✅ Redis连接池已关闭")
        except redis.RedisError as e:
            logger.warning(f"⚠️  关闭Redis连接池出错: {e}")
        finally:
            cls._instance = None


async def get_redis() -> redis.Redis:
    """依赖注入：当前进程的 Redis 客户端"""
    return await RedisClient.get_client()
