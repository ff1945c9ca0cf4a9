from typing import List, Optional

from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import get_current_user, get_optional_user
from jread.api.v1.chapters import get_chapter
from jread.db.database import get_db
from jread.models.user import User
from jread.services.comment import CommentService
from jread.schemas.comment import CommentCreate, CommentResponse

router = APIRouter()


@router.get("/chapters/{chapter_id}/comments", response_model=List[CommentResponse], summary="章节评论")
async def list_comments(
    chapter_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """只返回顶层评论"""
    await get_chapter(chapter_id, viewer, db)
    return await CommentService(db).get_top_level(chapter_id)


@router.post(
    "/chapters/{chapter_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="发表评论"
)
async def create_comment(
    chapter_id: int,
    request: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await get_chapter(chapter_id, current_user, db)
    try:
        return await CommentService(db).create(current_user, chapter_id, request)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
