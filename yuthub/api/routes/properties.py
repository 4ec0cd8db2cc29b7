from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.auth import AuthContext
from yuthub.core.billing import TierEntitlements, enforce_property_limit, require_module
from yuthub.core.db import get_db_session
from yuthub.core.errors import NotFoundError, ValidationError
from yuthub.core.permissions import require_permission
from yuthub.core.repositories.activity_log import ActivityLogRepository
from yuthub.core.repositories.properties import PropertyRepository
from yuthub.core.repositories.residents import ResidentRepository
from yuthub.schemas.property import PropertyCreateRequest, PropertyResponse, PropertyUpdateRequest
from yuthub.schemas.resident import ResidentResponse

router = APIRouter(
    prefix="/properties",
    tags=["properties"],
    dependencies=[Depends(require_module("housing"))],
)


@router.get("", response_model=list[PropertyResponse])
async def list_properties(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    _: AuthContext = Depends(require_permission("read:properties")),
    session: AsyncSession = Depends(get_db_session),
) -> list[PropertyResponse]:
    properties = await PropertyRepository(session).list(limit=limit, offset=offset)
    return [PropertyResponse.model_validate(item) for item in properties]


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    payload: PropertyCreateRequest,
    _: AuthContext = Depends(require_permission("create:properties")),
    __: TierEntitlements = Depends(enforce_property_limit),
    session: AsyncSession = Depends(get_db_session),
) -> PropertyResponse:
    created = await PropertyRepository(session).create(**payload.model_dump())
    await session.commit()
    return PropertyResponse.model_validate(created)


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: UUID,
    _: AuthContext = Depends(require_permission("read:properties")),
    session: AsyncSession = Depends(get_db_session),
) -> PropertyResponse:
    found = await PropertyRepository(session).get(property_id)
    if found is None:
        raise NotFoundError("Property not found")
    return PropertyResponse.model_validate(found)


@router.get("/{property_id}/residents", response_model=list[ResidentResponse])
async def list_property_residents(
    property_id: UUID,
    _: AuthContext = Depends(require_permission("read:residents")),
    session: AsyncSession = Depends(get_db_session),
) -> list[ResidentResponse]:
    if await PropertyRepository(session).get(property_id) is None:
        raise NotFoundError("Property not found")
    residents = await ResidentRepository(session).list_by_property(property_id)
    return [ResidentResponse.model_validate(resident) for resident in residents]


@router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: UUID,
    payload: PropertyUpdateRequest,
    _: AuthContext = Depends(require_permission("update:properties")),
    session: AsyncSession = Depends(get_db_session),
) -> PropertyResponse:
    repository = PropertyRepository(session)
    existing = await repository.get(property_id)
    if existing is None:
        raise NotFoundError("Property not found")

    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    total_units = updates.get("total_units", existing.total_units)
    occupied_units = updates.get("occupied_units", existing.occupied_units)
    if occupied_units > total_units:
        raise ValidationError("Occupied units cannot exceed total units")

    updated = await repository.update(property_id, **updates)
    await session.commit()
    return PropertyResponse.model_validate(updated)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
    property_id: UUID,
    auth: AuthContext = Depends(require_permission("delete:properties")),
    session: AsyncSession = Depends(get_db_session),
) -> None:
    deleted = await PropertyRepository(session).delete(property_id)
    if not deleted:
        raise NotFoundError("Property not found")
    await ActivityLogRepository(session).create(
        user_id=auth.user_id,
        action="property_deleted",
        entity_type="property",
        description=f"Property {property_id} archived",
    )
    await session.commit()
