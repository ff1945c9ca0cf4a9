from typing import List

from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import require_capability
from jread.core.permissions import Capability
from jread.db.database import get_db
from jread.models.user import User
from jread.services.changelog import ChangelogService
from jread.schemas.changelog import ChangelogCreate, ChangelogResponse
from jread.schemas.interaction import SuccessResponse

router = APIRouter()

manage_changelog = require_capability(Capability.MANAGE_CHANGELOG)


@router.get("", response_model=List[ChangelogResponse], summary="更新日志")
async def list_changelogs(db: AsyncSession = Depends(get_db)):
    return await ChangelogService(db).get_all()


@router.post("", response_model=ChangelogResponse, status_code=status.HTTP_201_CREATED, summary="新增更新日志")
async def create_changelog(
    request: ChangelogCreate,
    admin_user: User = Depends(manage_changelog),
    db: AsyncSession = Depends(get_db)
):
    return await ChangelogService(db).create(request)


@router.put("/{entry_id}", response_model=ChangelogResponse, summary="修改更新日志")
async def update_changelog(
    entry_id: int,
    request: ChangelogCreate,
    admin_user: User = Depends(manage_changelog),
    db: AsyncSession = Depends(get_db)
):
    service = ChangelogService(db)
    entry = await service.get_by_id(entry_id)
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Changelog entry not found")
    return await service.update(entry, request)


@router.delete("/{entry_id}", response_model=SuccessResponse, summary="删除更新日志")
async def delete_changelog(
    entry_id: int,
    admin_user: User = Depends(manage_changelog),
    db: AsyncSession = Depends(get_db)
):
    service = ChangelogService(db)
    entry = await service.get_by_id(entry_id)
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Changelog entry not found")
    await service.delete(entry)
    return SuccessResponse()
