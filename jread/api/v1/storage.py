from fastapi import APIRouter, File, HTTPException, UploadFile, status, Depends
from pydantic import BaseModel

from jread.api.deps import get_current_user
from jread.models.user import User
from jread.services.storage import StorageService

router = APIRouter()


class UploadResponse(BaseModel):
    public_url: str


@router.post("/{bucket}", response_model=UploadResponse, status_code=status.HTTP_201_CREATED, summary="上传图片")
async def upload_file(
    bucket: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user)
):
    """bucket: cover_images | profile_pictures"""
    data = await file.read()
    try:
        url = StorageService().save(bucket, file.filename, data, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return UploadResponse(public_url=url)
