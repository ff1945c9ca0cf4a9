from fastapi import APIRouter, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jread.db.database import get_db
from jread.services.contact import ContactService
from jread.schemas.contact import ContactRequest, ContactResponse

router = APIRouter()


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED, summary="联系我们")
async def submit_contact(
    request: ContactRequest,
    db: AsyncSession = Depends(get_db)
):
    message = await ContactService(db).submit(request)
    return ContactResponse(id=message.id)
