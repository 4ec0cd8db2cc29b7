from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.repositories.base import OrganizationRepository
from yuthub.models.activity_log import ActivityLog


class ActivityLogRepository(OrganizationRepository[ActivityLog]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=ActivityLog)

    async def recent(self, *, limit: int = 50) -> list[ActivityLog]:
        await self._apply_rls()
        result = await self.session.execute(
            self._scoped_select().order_by(ActivityLog.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
