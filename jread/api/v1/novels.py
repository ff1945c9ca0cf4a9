import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import get_current_user, get_optional_user, require_capability
from jread.core.permissions import Capability
from jread.db.database import get_db
from jread.models.novel import Novel
from jread.models.user import User
from jread.services.novel import NovelService, can_edit
from jread.schemas.chapter import ChapterResponse
from jread.schemas.interaction import SuccessResponse
from jread.schemas.novel import (
    NovelCreate,
    NovelUpdate,
    NovelStatusUpdate,
    NovelResponse,
    NovelDetail
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_owned_novel(novel_id: int, user: User, db: AsyncSession) -> Novel:
    """取出当前用户自己的小说，不存在404，不是作者403"""
    novel = await NovelService(db).get_by_id(novel_id)
    if not novel:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Novel not found"
        )
    if not can_edit(novel, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not the author of this novel"
        )
    return novel


@router.get("", response_model=List[NovelResponse], summary="已发布小说列表")
async def list_novels(db: AsyncSession = Depends(get_db)):
    """
    首页数据源：全部已发布小说，最新在前

    RESTful: GET /novels
    """
    return await NovelService(db).get_published()


@router.post("", response_model=NovelResponse, status_code=status.HTTP_201_CREATED, summary="创建小说")
async def create_novel(
    request: NovelCreate,
    author: User = Depends(require_capability(Capability.WRITE_NOVELS)),
    db: AsyncSession = Depends(get_db)
):
    """RESTful: POST /novels"""
    return await NovelService(db).create(author, request)


@router.get("/{novel_id}", response_model=NovelDetail, summary="获取小说详情")
async def get_novel(
    novel_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    获取小说详情，章节按章节号升序

    草稿小说对读者返回404。

    RESTful: GET /novels/{id}
    """
    novel_service = NovelService(db)
    novel = await novel_service.get_with_chapters(novel_id, viewer)
    if not novel:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Novel not found"
        )

    detail = NovelDetail.model_validate(novel)
    detail.chapters = [
        ChapterResponse.model_validate(chapter)
        for chapter in novel_service.visible_chapters(novel, viewer)
    ]
    return detail


@router.patch("/{novel_id}", response_model=NovelResponse, summary="更新小说信息")
async def update_novel(
    novel_id: int,
    request: NovelUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    novel = await get_owned_novel(novel_id, current_user, db)
    return await NovelService(db).update(novel, request)


@router.patch("/{novel_id}/status", response_model=NovelResponse, summary="发布/撤回小说")
async def update_novel_status(
    novel_id: int,
    request: NovelStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    novel = await get_owned_novel(novel_id, current_user, db)
    return await NovelService(db).update_status(novel, request.status)


@router.delete("/{novel_id}", response_model=SuccessResponse, summary="删除小说（级联删除）")
async def delete_novel(
    novel_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    作者删除自己的小说及其所有章节、评论和关联记录

    管理员删除任意小说走 RPC admin_delete_novel。

    RESTful: DELETE /novels/{id}
    """
    await get_owned_novel(novel_id, current_user, db)

    success = await NovelService(db).delete(novel_id)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete novel"
        )

    logger.info(f"作者 {current_user.id} 删除了小说 {novel_id}")
    return SuccessResponse()
