import logging

from sqlalchemy.ext.asyncio import AsyncSession

from jread.models.contact import ContactMessage
from jread.schemas.contact import ContactRequest

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(self, contact_data: ContactRequest) -> ContactMessage:
        message = ContactMessage(**contact_data.model_dump())
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        logger.info(f"收到联系消息 {message.id}: {message.subject}")
        return message
