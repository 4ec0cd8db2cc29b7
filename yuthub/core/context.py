from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Final
from uuid import UUID

ORGANIZATION_HEADER: Final = "X-Organization-Id"

_CURRENT_ORGANIZATION_ID: Final[ContextVar[UUID | None]] = ContextVar(
    "current_organization_id",
    default=None,
)


def set_current_organization_id(organization_id: UUID | None) -> object:
    return _CURRENT_ORGANIZATION_ID.set(organization_id)


def get_current_organization_id() -> UUID | None:
    return _CURRENT_ORGANIZATION_ID.get()


def reset_current_organization_id(token: object) -> None:
    _CURRENT_ORGANIZATION_ID.reset(token)


def parse_organization_id(raw: str | None) -> UUID | None:
    """Parse an organization id hint; blank means no hint, anything else must be a UUID."""
    if raw is None or not raw.strip():
        return None
    return UUID(raw.strip())


@contextmanager
def organization_scope(organization_id: UUID | None) -> Iterator[UUID | None]:
    """Bind the organization for the duration of the block and restore the previous one after."""
    token = _CURRENT_ORGANIZATION_ID.set(organization_id)
    try:
        yield organization_id
    finally:
        _CURRENT_ORGANIZATION_ID.reset(token)
