from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import get_optional_user, require_capability
from jread.core.permissions import Capability, has_capability
from jread.db.database import get_db
from jread.models.user import User
from jread.schemas.novel import NovelResponse
from jread.schemas.user import ActivityResponse, RoleUpdateRequest, UserResponse
from jread.services.interaction import InteractionService
from jread.services.novel import NovelService
from jread.services.user import UserService

router = APIRouter()


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await UserService(db).get_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def _is_self_or_admin(viewer: Optional[User], user: User) -> bool:
    if viewer is None:
        return False
    return viewer.id == user.id or has_capability(viewer.role, Capability.ACCESS_ADMIN_PANEL)


@router.get("", response_model=List[UserResponse], summary="用户列表（管理员）")
async def list_users(
    admin_user: User = Depends(require_capability(Capability.ACCESS_ADMIN_PANEL)),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).get_all()


@router.get("/{user_id}", response_model=UserResponse, summary="用户公开资料")
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_user_or_404(db, user_id)


@router.get("/{user_id}/novels", response_model=List[NovelResponse], summary="作者的作品")
async def get_user_novels(
    user_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """读者只能看到已发布作品；作者本人和管理员可以看到草稿"""
    user = await _get_user_or_404(db, user_id)
    return await NovelService(db).get_by_author(
        user.id,
        include_drafts=_is_self_or_admin(viewer, user)
    )


@router.get("/{user_id}/bookmarks", response_model=List[NovelResponse], summary="用户的书架")
async def get_user_bookmarks(
    user_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    user = await _get_user_or_404(db, user_id)
    is_self = viewer is not None and viewer.id == user.id
    if not is_self and not user.bookmarks_are_public:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This user's bookmarks are private"
        )
    return await InteractionService(db).get_bookmarked_novels(user.id)


@router.get("/{user_id}/activity", response_model=ActivityResponse, summary="用户最近阅读")
async def get_user_activity(
    user_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    user = await _get_user_or_404(db, user_id)
    is_self = viewer is not None and viewer.id == user.id
    if not is_self and not user.activity_is_public:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This user's activity is private"
        )

    if user.last_viewed_novel_id is None:
        return ActivityResponse()
    novel = await NovelService(db).get_with_chapters(user.last_viewed_novel_id, viewer)
    if novel is None:
        return ActivityResponse()
    return ActivityResponse(last_viewed_novel=NovelResponse.model_validate(novel))


@router.patch("/{user_id}/role", response_model=UserResponse, summary="修改用户角色")
async def change_user_role(
    user_id: int,
    request: RoleUpdateRequest,
    admin_user: User = Depends(require_capability(Capability.ACCESS_ADMIN_PANEL)),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await UserService(db).change_role(admin_user, user_id, request.role)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
