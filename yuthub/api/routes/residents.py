from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.auth import AuthContext
from yuthub.core.billing import TierEntitlements, enforce_resident_limit, require_module
from yuthub.core.db import get_db_session
from yuthub.core.errors import NotFoundError
from yuthub.core.permissions import require_permission
from yuthub.core.repositories.activity_log import ActivityLogRepository
from yuthub.core.repositories.properties import PropertyRepository
from yuthub.core.repositories.residents import ResidentRepository
from yuthub.schemas.resident import ResidentCreateRequest, ResidentResponse, ResidentUpdateRequest

router = APIRouter(
    prefix="/residents",
    tags=["residents"],
    dependencies=[Depends(require_module("support"))],
)


async def _ensure_property_in_organization(session: AsyncSession, property_id: UUID | None) -> None:
    if property_id is None:
        return
    # Repository reads are organization scoped, so another tenant's property is not found.
    if await PropertyRepository(session).get(property_id) is None:
        raise NotFoundError("Property not found")


@router.get("", response_model=list[ResidentResponse])
async def list_residents(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    _: AuthContext = Depends(require_permission("read:residents")),
    session: AsyncSession = Depends(get_db_session),
) -> list[ResidentResponse]:
    residents = await ResidentRepository(session).list(limit=limit, offset=offset)
    return [ResidentResponse.model_validate(resident) for resident in residents]


@router.post("", response_model=ResidentResponse, status_code=status.HTTP_201_CREATED)
async def create_resident(
    payload: ResidentCreateRequest,
    auth: AuthContext = Depends(require_permission("create:residents")),
    _: TierEntitlements = Depends(enforce_resident_limit),
    session: AsyncSession = Depends(get_db_session),
) -> ResidentResponse:
    await _ensure_property_in_organization(session, payload.property_id)
    resident = await ResidentRepository(session).create(**payload.model_dump())
    await ActivityLogRepository(session).create(
        user_id=auth.user_id,
        action="resident_created",
        entity_type="resident",
        description=f"Resident {resident.first_name} {resident.last_name} added",
    )
    await session.commit()
    return ResidentResponse.model_validate(resident)


@router.get("/{resident_id}", response_model=ResidentResponse)
async def get_resident(
    resident_id: UUID,
    _: AuthContext = Depends(require_permission("read:residents")),
    session: AsyncSession = Depends(get_db_session),
) -> ResidentResponse:
    resident = await ResidentRepository(session).get(resident_id)
    if resident is None:
        raise NotFoundError("Resident not found")
    return ResidentResponse.model_validate(resident)


@router.patch("/{resident_id}", response_model=ResidentResponse)
async def update_resident(
    resident_id: UUID,
    payload: ResidentUpdateRequest,
    _: AuthContext = Depends(require_permission("update:residents")),
    session: AsyncSession = Depends(get_db_session),
) -> ResidentResponse:
    updates = payload.model_dump(exclude_unset=True)
    await _ensure_property_in_organization(session, updates.get("property_id"))
    resident = await ResidentRepository(session).update(resident_id, **updates)
    if resident is None:
        raise NotFoundError("Resident not found")
    await session.commit()
    return ResidentResponse.model_validate(resident)


@router.delete("/{resident_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resident(
    resident_id: UUID,
    auth: AuthContext = Depends(require_permission("delete:residents")),
    session: AsyncSession = Depends(get_db_session),
) -> None:
    deleted = await ResidentRepository(session).delete(resident_id)
    if not deleted:
        raise NotFoundError("Resident not found")
    await ActivityLogRepository(session).create(
        user_id=auth.user_id,
        action="resident_deleted",
        entity_type="resident",
        description=f"Resident {resident_id} archived",
    )
    await session.commit()
