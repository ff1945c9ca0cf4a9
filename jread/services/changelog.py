from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jread.models.changelog import ChangelogEntry
from jread.schemas.changelog import ChangelogCreate


class ChangelogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self) -> List[ChangelogEntry]:
        """最新版本在前"""
        result = await self.db.execute(
            select(ChangelogEntry).order_by(ChangelogEntry.date.desc(), ChangelogEntry.id.desc())
        )
        return list(result.scalars().all())

    async def get_by_id(self, entry_id: int) -> Optional[ChangelogEntry]:
        return await self.db.get(ChangelogEntry, entry_id)

    async def create(self, entry_data: ChangelogCreate) -> ChangelogEntry:
        entry = ChangelogEntry(
            version=entry_data.version,
            date=entry_data.date,
            changes=[change.model_dump(mode="json") for change in entry_data.changes],
        )
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def update(self, entry: ChangelogEntry, entry_data: ChangelogCreate) -> ChangelogEntry:
        entry.version = entry_data.version
        entry.date = entry_data.date
        entry.changes = [change.model_dump(mode="json") for change in entry_data.changes]
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def delete(self, entry: ChangelogEntry) -> None:
        await self.db.delete(entry)
        await self.db.commit()
