from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.repositories.base import SoftDeleteRepository
from yuthub.models.resident import Resident


class ResidentRepository(SoftDeleteRepository[Resident]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=Resident)

    async def list_by_property(self, property_id: UUID) -> list[Resident]:
        await self._apply_rls()
        result = await self.session.execute(
            self._scoped_select().where(Resident.property_id == property_id)
        )
        return list(result.scalars().all())
