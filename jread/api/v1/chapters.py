import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import get_current_user, get_optional_user
from jread.api.v1.novels import get_owned_novel
from jread.db.database import get_db
from jread.models.chapter import Chapter
from jread.models.novel import NovelStatus
from jread.models.user import User
from jread.services.chapter import ChapterService
from jread.services.novel import NovelService, can_view_drafts
from jread.schemas.chapter import ChapterCreate, ChapterUpdate, ChapterResponse
from jread.schemas.interaction import SuccessResponse

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_owned_chapter(chapter_id: int, user: User, db: AsyncSession) -> Chapter:
    chapter = await ChapterService(db).get_by_id(chapter_id)
    if not chapter:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chapter not found"
        )
    await get_owned_novel(chapter.novel_id, user, db)
    return chapter


@router.post(
    "/novels/{novel_id}/chapters",
    response_model=ChapterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="新建章节"
)
async def create_chapter(
    novel_id: int,
    request: ChapterCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    新建章节（草稿或直接发布）

    未指定 chapter_number 时取现有最大章节号 + 1。
    """
    await get_owned_novel(novel_id, current_user, db)
    return await ChapterService(db).create(novel_id, request)


@router.get("/chapters/{chapter_id}", response_model=ChapterResponse, summary="阅读章节")
async def get_chapter(
    chapter_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """未发布章节或草稿小说中的章节只对作者本人和管理员可见"""
    chapter = await ChapterService(db).get_by_id(chapter_id)
    novel = await NovelService(db).get_by_id(chapter.novel_id) if chapter else None
    if not chapter or not novel:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chapter not found"
        )

    visible = chapter.is_published and novel.status == NovelStatus.PUBLISHED
    if not visible and not can_view_drafts(novel, viewer):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chapter not found"
        )
    return chapter


@router.patch("/chapters/{chapter_id}", response_model=ChapterResponse, summary="保存章节")
async def update_chapter(
    chapter_id: int,
    request: ChapterUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """编辑器自动保存与手动保存/发布都走这个接口"""
    chapter = await get_owned_chapter(chapter_id, current_user, db)
    return await ChapterService(db).update(chapter, request)


@router.delete("/chapters/{chapter_id}", response_model=SuccessResponse, summary="删除章节")
async def delete_chapter(
    chapter_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_owned_chapter(chapter_id, current_user, db)
    await ChapterService(db).delete(chapter_id)
    logger.info(f"作者 {current_user.id} 删除了章节 {chapter_id}")
    return SuccessResponse()
