"""
乐观更新

先在本地翻转，再发起远程写；远程抛错或返回失败时恢复到翻转前的快照。
失败不会自动重试，由用户再次触发。
"""
import logging
from typing import Any, Awaitable, Callable

import httpx

from jread.client.errors import ApiError

logger = logging.getLogger(__name__)


async def apply_optimistic(
    snapshot: Callable[[], Any],
    apply: Callable[[], None],
    restore: Callable[[Any], None],
    remote: Callable[[], Awaitable[Any]]
) -> bool:
    """
    Args:
        snapshot: 返回翻转前的本地状态
        apply: 本地立即生效的修改
        restore: 用快照恢复本地状态
        remote: 远程写；返回 False 视为失败

    Returns:
        bool: 远程写是否成功
    """
    saved = snapshot()
    apply()
    try:
        result = await remote()
    except (ApiError, httpx.HTTPError) as e:
        logger.warning(f"远程写失败，回滚本地状态: {e}")
        restore(saved)
        return False

    if result is False:
        logger.warning("远程写返回失败，回滚本地状态")
        restore(saved)
        return False
    return True
