from typing import List

from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import get_current_user
from jread.db.database import get_db
from jread.models.novel import Novel
from jread.models.user import User
from jread.services.interaction import InteractionService
from jread.services.novel import NovelService
from jread.services.user import UserService
from jread.schemas.interaction import (
    InteractionStatus,
    LikeResult,
    ReadingProgressResponse,
    ReadingProgressUpdate,
    SuccessResponse
)
from jread.schemas.novel import NovelResponse
from jread.schemas.user import LastViewedRequest

router = APIRouter()


async def get_readable_novel(novel_id: int, user: User, db: AsyncSession) -> Novel:
    novel = await NovelService(db).get_with_chapters(novel_id, user)
    if not novel:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Novel not found"
        )
    return novel


@router.get("/novels/{novel_id}/interaction", response_model=InteractionStatus, summary="当前用户的交互状态")
async def get_interaction_status(
    novel_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = InteractionService(db)
    return InteractionStatus(
        has_liked=await service.has_liked(current_user.id, novel_id),
        user_rating=await service.get_user_rating(current_user.id, novel_id),
        is_bookmarked=await service.is_bookmarked(current_user.id, novel_id),
    )


# ========== 书签 ==========

@router.get("/bookmarks", response_model=List[NovelResponse], summary="我的书架")
async def get_my_bookmarks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await InteractionService(db).get_bookmarked_novels(current_user.id)


@router.post("/novels/{novel_id}/bookmark", response_model=SuccessResponse, summary="加入书架")
async def add_bookmark(
    novel_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_readable_novel(novel_id, current_user, db)
    await InteractionService(db).add_bookmark(current_user.id, novel_id)
    return SuccessResponse()


@router.delete("/novels/{novel_id}/bookmark", response_model=SuccessResponse, summary="移出书架")
async def remove_bookmark(
    novel_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await InteractionService(db).remove_bookmark(current_user.id, novel_id)
    return SuccessResponse()


# ========== 点赞 ==========

@router.post("/novels/{novel_id}/like", response_model=LikeResult, summary="点赞")
async def like_novel(
    novel_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_readable_novel(novel_id, current_user, db)
    likes = await InteractionService(db).set_like(current_user.id, novel_id, True)
    return LikeResult(liked=True, likes=likes)


@router.delete("/novels/{novel_id}/like", response_model=LikeResult, summary="取消点赞")
async def unlike_novel(
    novel_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_readable_novel(novel_id, current_user, db)
    likes = await InteractionService(db).set_like(current_user.id, novel_id, False)
    return LikeResult(liked=False, likes=likes)


# ========== 阅读进度 ==========

@router.get("/novels/{novel_id}/progress", response_model=ReadingProgressResponse, summary="阅读进度")
async def get_reading_progress(
    novel_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    progress = await InteractionService(db).get_reading_progress(current_user.id, novel_id)
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No reading progress"
        )
    return progress


@router.put("/novels/{novel_id}/progress", response_model=ReadingProgressResponse, summary="保存阅读进度")
async def save_reading_progress(
    novel_id: int,
    request: ReadingProgressUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_readable_novel(novel_id, current_user, db)
    try:
        return await InteractionService(db).save_reading_progress(
            current_user.id, novel_id, request.chapter_id, request.scroll_position_percent
        )
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/profile/last-viewed", response_model=SuccessResponse, summary="记录最近阅读的小说")
async def set_last_viewed_novel(
    request: LastViewedRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_readable_novel(request.novel_id, current_user, db)
    await UserService(db).set_last_viewed_novel(current_user, request.novel_id)
    return SuccessResponse()
