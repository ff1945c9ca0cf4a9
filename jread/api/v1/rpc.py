"""
远程过程调用

特权或聚合操作，单独成组便于客户端按名字调用：POST /rpc/{name}
"""
import logging
from typing import Optional

import redis.asyncio as redis
from fastapi import APIRouter, HTTPException, Request, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import get_current_user, get_optional_user, require_capability
from jread.api.v1.interactions import get_readable_novel
from jread.core.permissions import Capability, has_capability
from jread.db.database import get_db
from jread.db.redis import get_redis
from jread.models.user import User
from jread.services.interaction import InteractionService
from jread.services.novel import NovelService
from jread.services.user import UserService
from jread.schemas.interaction import LikeResult, RatingResult, SuccessResponse, ViewResult
from jread.schemas.rpc import (
    AdminCapabilities,
    AdminDeleteNovelParams,
    AdminDeleteUserParams,
    IncrementViewParams,
    SubmitRatingParams,
    ToggleLikeParams
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/delete_user_account", response_model=SuccessResponse, summary="删除自己的账号")
async def delete_user_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await UserService(db).delete_account(current_user.id)
    return SuccessResponse()


@router.post("/admin_delete_novel", response_model=SuccessResponse, summary="管理员删除任意小说")
async def admin_delete_novel(
    params: AdminDeleteNovelParams,
    admin_user: User = Depends(require_capability(Capability.DELETE_ANY_NOVEL)),
    db: AsyncSession = Depends(get_db)
):
    success = await NovelService(db).delete(params.novel_id_to_delete)
    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Novel not found")
    logger.info(f"管理员 {admin_user.id} 删除了小说 {params.novel_id_to_delete}")
    return SuccessResponse()


@router.post("/admin_delete_user", response_model=SuccessResponse, summary="管理员删除用户")
async def admin_delete_user(
    params: AdminDeleteUserParams,
    admin_user: User = Depends(require_capability(Capability.DELETE_ANY_USER)),
    db: AsyncSession = Depends(get_db)
):
    try:
        success = await UserService(db).admin_delete(admin_user, params.user_id_to_delete)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info(f"管理员 {admin_user.id} 删除了用户 {params.user_id_to_delete}")
    return SuccessResponse()


@router.post("/check_admin_capabilities", response_model=AdminCapabilities, summary="检查管理能力")
async def check_admin_capabilities(current_user: User = Depends(get_current_user)):
    return AdminCapabilities(
        can_delete_users=has_capability(current_user.role, Capability.DELETE_ANY_USER),
        can_delete_novels=has_capability(current_user.role, Capability.DELETE_ANY_NOVEL),
    )


@router.post("/toggle_like", response_model=LikeResult, summary="切换点赞")
async def toggle_like(
    params: ToggleLikeParams,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_readable_novel(params.novel_id, current_user, db)
    liked, likes = await InteractionService(db).toggle_like(current_user.id, params.novel_id)
    return LikeResult(liked=liked, likes=likes)


@router.post("/submit_rating", response_model=RatingResult, summary="提交评分")
async def submit_rating(
    params: SubmitRatingParams,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_readable_novel(params.novel_id, current_user, db)
    average = await InteractionService(db).submit_rating(current_user.id, params.novel_id, params.rating)
    return RatingResult(rating=params.rating, average=average)


@router.post("/increment_novel_view", response_model=ViewResult, summary="记录阅读量")
async def increment_novel_view(
    params: IncrementViewParams,
    request: Request,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
):
    """同一读者（登录用户按ID，匿名按IP）在去重窗口内只计一次"""
    novel = await NovelService(db).get_with_chapters(params.novel_id, viewer)
    if not novel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Novel not found")
    if params.chapter_id is not None and params.chapter_id not in {c.id for c in novel.chapters}:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chapter not found")

    if viewer is not None:
        viewer_key = f"user:{viewer.id}"
    else:
        viewer_key = f"anon:{request.client.host if request.client else 'unknown'}"

    counted, views = await InteractionService(db).increment_novel_view(
        redis_client, params.novel_id, viewer_key, params.chapter_id
    )
    return ViewResult(counted=counted, views=views)
