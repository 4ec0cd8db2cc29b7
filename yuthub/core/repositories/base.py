from __future__ import annotations

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from yuthub.core.context import get_current_organization_id
from yuthub.core.db import apply_rls_organization_context
from yuthub.models.base import OrganizationScopedBase

ModelT = TypeVar("ModelT", bound=OrganizationScopedBase)


class OrganizationContextMissingError(RuntimeError):
    pass


class OrganizationRepository(Generic[ModelT]):
    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    @property
    def organization_id(self) -> UUID:
        organization_id = get_current_organization_id()
        if organization_id is None:
            raise OrganizationContextMissingError("Organization context is missing from the current request")
        return organization_id

    async def _apply_rls(self) -> None:
        await apply_rls_organization_context(self.session, self.organization_id)

    def _scoped_select(self) -> Select[tuple[ModelT]]:
        return select(self.model).where(self.model.organization_id == self.organization_id)

    async def create(self, **values: object) -> ModelT:
        await self._apply_rls()
        payload = dict(values)
        payload.setdefault("organization_id", self.organization_id)
        instance = self.model(**payload)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get(self, entity_id: UUID) -> ModelT | None:
        await self._apply_rls()
        result = await self.session.execute(
            self._scoped_select().where(self.model.id == entity_id)
        )
        return result.scalar_one_or_none()

    async def list(self, *, limit: int = 100, offset: int = 0) -> list[ModelT]:
        await self._apply_rls()
        result = await self.session.execute(
            self._scoped_select().order_by(self.model.created_at).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        await self._apply_rls()
        stmt = select(func.count()).select_from(self._scoped_select().subquery())
        return int(await self.session.scalar(stmt) or 0)

    async def update(self, entity_id: UUID, **values: object) -> ModelT | None:
        instance = await self.get(entity_id)
        if instance is None:
            return None

        for field, value in values.items():
            if field in {"id", "organization_id"}:
                continue
            setattr(instance, field, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, entity_id: UUID) -> bool:
        await self._apply_rls()
        result = await self.session.execute(
            delete(self.model)
            .where(self.model.id == entity_id)
            .where(self.model.organization_id == self.organization_id)
        )
        return (result.rowcount or 0) > 0


class SoftDeleteRepository(OrganizationRepository[ModelT]):
    """Repository for models carrying an ``is_deleted`` flag; deleted rows are invisible."""

    def _scoped_select(self) -> Select[tuple[ModelT]]:
        return super()._scoped_select().where(self.model.is_deleted.is_(False))

    async def delete(self, entity_id: UUID) -> bool:
        instance = await self.update(entity_id, is_deleted=True)
        return instance is not None
