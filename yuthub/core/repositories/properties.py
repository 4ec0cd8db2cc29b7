from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.repositories.base import SoftDeleteRepository
from yuthub.models.property import Property


class PropertyRepository(SoftDeleteRepository[Property]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=Property)
