from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from yuthub.core.context import (
    get_current_organization_id,
    organization_scope,
    parse_organization_id,
    reset_current_organization_id,
    set_current_organization_id,
)
from yuthub.core.db import apply_rls_organization_context, get_db_session
from yuthub.core.repositories import (
    ActivityLogRepository,
    OrganizationContextMissingError,
    OrganizationRepository,
    PropertyRepository,
    ResidentRepository,
    SoftDeleteRepository,
)
from yuthub.models.activity_log import ActivityLog
from yuthub.models.resident import Resident


def _compiled(stmt) -> str:  # noqa: ANN001
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.mark.asyncio
async def test_apply_rls_organization_context_executes_sql() -> None:
    session = Mock()
    session.execute = AsyncMock()
    organization_id = uuid4()

    await apply_rls_organization_context(session, organization_id)

    session.execute.assert_awaited_once()
    stmt, params = session.execute.await_args.args
    assert "app.current_organization_id" in str(stmt)
    assert params == {"organization_id": str(organization_id)}


@pytest.mark.asyncio
async def test_get_db_session_yields_session(monkeypatch: pytest.MonkeyPatch) -> None:
    sentinel = object()

    class _Ctx:
        async def __aenter__(self):
            return sentinel

        async def __aexit__(self, exc_type, exc, tb):  # noqa: ANN001
            return None

    from yuthub.core import db

    monkeypatch.setattr(db, "AsyncSessionLocal", lambda: _Ctx())

    agen = get_db_session()
    value = await agen.__anext__()
    assert value is sentinel

    with pytest.raises(StopAsyncIteration):
        await agen.__anext__()


@pytest.mark.asyncio
async def test_get_db_session_rolls_back_on_error(monkeypatch: pytest.MonkeyPatch) -> None:
    session = Mock()
    session.rollback = AsyncMock()

    class _Ctx:
        async def __aenter__(self):
            return session

        async def __aexit__(self, exc_type, exc, tb):  # noqa: ANN001
            return None

    from yuthub.core import db

    monkeypatch.setattr(db, "AsyncSessionLocal", lambda: _Ctx())

    agen = get_db_session()
    await agen.__anext__()
    with pytest.raises(RuntimeError):
        await agen.athrow(RuntimeError("handler failed"))
    session.rollback.assert_awaited_once()


def test_parse_organization_id() -> None:
    organization_id = uuid4()
    assert parse_organization_id(None) is None
    assert parse_organization_id("   ") is None
    assert parse_organization_id(f" {organization_id} ") == organization_id
    with pytest.raises(ValueError):
        parse_organization_id("not-a-uuid")


def test_organization_scope_restores_previous_binding() -> None:
    before = get_current_organization_id()
    outer = uuid4()
    inner = uuid4()
    with organization_scope(outer):
        with organization_scope(inner) as bound:
            assert bound == inner
            assert get_current_organization_id() == inner
        assert get_current_organization_id() == outer

        with pytest.raises(RuntimeError):
            with organization_scope(None):
                raise RuntimeError("request failed")
        assert get_current_organization_id() == outer
    assert get_current_organization_id() == before


def test_organization_id_missing_raises() -> None:
    repo = ActivityLogRepository(Mock())
    with pytest.raises(OrganizationContextMissingError):
        _ = repo.organization_id


def test_scoped_select_filters_by_organization() -> None:
    organization_id = uuid4()
    token = set_current_organization_id(organization_id)
    try:
        sql = _compiled(ActivityLogRepository(Mock())._scoped_select())
        assert "team_activity_log.organization_id = " in sql
    finally:
        reset_current_organization_id(token)


def test_soft_delete_repositories_hide_deleted_rows() -> None:
    token = set_current_organization_id(uuid4())
    try:
        assert isinstance(ResidentRepository(Mock()), SoftDeleteRepository)
        assert isinstance(PropertyRepository(Mock()), SoftDeleteRepository)
        assert "residents.is_deleted IS false" in _compiled(ResidentRepository(Mock())._scoped_select())
        assert "properties.is_deleted IS false" in _compiled(PropertyRepository(Mock())._scoped_select())
    finally:
        reset_current_organization_id(token)


@pytest.mark.asyncio
async def test_repository_create_sets_organization_and_rls() -> None:
    organization_id = uuid4()
    token = set_current_organization_id(organization_id)
    try:
        session = Mock()
        session.execute = AsyncMock()
        session.flush = AsyncMock()
        session.refresh = AsyncMock()

        created = await ActivityLogRepository(session).create(
            user_id=uuid4(),
            action="resident_created",
            entity_type="resident",
            description="Resident added",
        )

        assert isinstance(created, ActivityLog)
        assert created.organization_id == organization_id
        session.add.assert_called_once_with(created)
        session.execute.assert_awaited_once()
        session.flush.assert_awaited_once()
    finally:
        reset_current_organization_id(token)


@pytest.mark.asyncio
async def test_repository_get_list_update_delete() -> None:
    organization_id = uuid4()
    token = set_current_organization_id(organization_id)
    try:
        entity = ActivityLog(
            id=uuid4(),
            organization_id=organization_id,
            user_id=uuid4(),
            action="payment_received",
            entity_type="billing",
            description="Payment received",
        )

        execute_values = [
            SimpleNamespace(scalar_one_or_none=lambda: entity),
            SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: [entity])),
            SimpleNamespace(scalar_one_or_none=lambda: entity),
            SimpleNamespace(rowcount=1),
        ]

        async def _execute(_stmt):  # noqa: ANN001
            return execute_values.pop(0)

        session = Mock()
        session.execute = AsyncMock(side_effect=_execute)
        session.flush = AsyncMock()
        session.refresh = AsyncMock()

        repo = OrganizationRepository(session=session, model=ActivityLog)
        repo._apply_rls = AsyncMock()

        got = await repo.get(entity.id)
        listed = await repo.list(limit=10, offset=0)
        updated = await repo.update(entity.id, description="Edited", id=uuid4(), organization_id=uuid4())
        deleted = await repo.delete(entity.id)

        assert got is entity
        assert listed == [entity]
        assert updated is entity
        assert entity.description == "Edited"
        assert entity.organization_id == organization_id
        assert deleted is True
    finally:
        reset_current_organization_id(token)


@pytest.mark.asyncio
async def test_repository_update_missing_returns_none() -> None:
    token = set_current_organization_id(uuid4())
    try:
        session = Mock()
        session.execute = AsyncMock(return_value=SimpleNamespace(scalar_one_or_none=lambda: None))
        repo = ActivityLogRepository(session)
        repo._apply_rls = AsyncMock()

        assert await repo.update(uuid4(), description="x") is None
    finally:
        reset_current_organization_id(token)


@pytest.mark.asyncio
async def test_repository_count() -> None:
    token = set_current_organization_id(uuid4())
    try:
        session = Mock()
        session.scalar = AsyncMock(return_value=7)
        repo = ResidentRepository(session)
        repo._apply_rls = AsyncMock()

        assert await repo.count() == 7
        session.scalar.return_value = None
        assert await repo.count() == 0
    finally:
        reset_current_organization_id(token)


@pytest.mark.asyncio
async def test_soft_delete_flags_row_instead_of_deleting() -> None:
    organization_id = uuid4()
    token = set_current_organization_id(organization_id)
    try:
        resident = Resident(
            id=uuid4(),
            organization_id=organization_id,
            first_name="Jordan",
            last_name="Reid",
            is_deleted=False,
        )
        session = Mock()
        session.execute = AsyncMock(return_value=SimpleNamespace(scalar_one_or_none=lambda: resident))
        session.flush = AsyncMock()
        session.refresh = AsyncMock()
        repo = ResidentRepository(session)
        repo._apply_rls = AsyncMock()

        assert await repo.delete(resident.id) is True
        assert resident.is_deleted is True

        session.execute.return_value = SimpleNamespace(scalar_one_or_none=lambda: None)
        assert await repo.delete(uuid4()) is False
    finally:
        reset_current_organization_id(token)


@pytest.mark.asyncio
async def test_list_by_property_and_recent_activity() -> None:
    token = set_current_organization_id(uuid4())
    try:
        rows = [object(), object()]
        session = Mock()
        session.execute = AsyncMock(
            return_value=SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: rows))
        )

        residents = ResidentRepository(session)
        residents._apply_rls = AsyncMock()
        assert await residents.list_by_property(uuid4()) == rows

        activity = ActivityLogRepository(session)
        activity._apply_rls = AsyncMock()
        assert await activity.recent(limit=2) == rows
    finally:
        reset_current_organization_id(token)
