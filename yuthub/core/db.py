from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Final
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from yuthub.core.config import settings

# Read by the organization_isolation row level security policies.
RLS_ORGANIZATION_SETTING: Final = "app.current_organization_id"

_SET_ORGANIZATION_SQL = text(f"SELECT set_config('{RLS_ORGANIZATION_SETTING}', :organization_id, true)")

engine = create_async_engine(settings.database_url, future=True, pool_pre_ping=True)
AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def apply_rls_organization_context(session: AsyncSession, organization_id: UUID) -> None:
    """Scope the current transaction to one organization; the setting clears at commit."""
    await session.execute(_SET_ORGANIZATION_SQL, {"organization_id": str(organization_id)})
