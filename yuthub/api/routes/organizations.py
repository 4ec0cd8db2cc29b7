from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.auth import AuthContext
from yuthub.core.billing import get_current_organization
from yuthub.core.db import get_db_session
from yuthub.core.errors import AuthorizationError, ValidationError
from yuthub.core.permissions import (
    get_assignable_roles,
    get_role_description,
    get_role_display_name,
    get_role_permissions,
    require_permission,
)
from yuthub.core.repositories.activity_log import ActivityLogRepository
from yuthub.models.organization import Organization
from yuthub.schemas.organization import (
    ActivityLogEntry,
    OrganizationResponse,
    OrganizationUpdateRequest,
    RoleResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("/current", response_model=OrganizationResponse)
async def get_current(
    organization: Organization = Depends(get_current_organization),
) -> OrganizationResponse:
    return OrganizationResponse.model_validate(organization)


@router.get("/roles", response_model=list[RoleResponse])
async def list_assignable_roles(
    _: AuthContext = Depends(require_permission("read:team")),
) -> list[RoleResponse]:
    return [
        RoleResponse(
            role=role.value,
            display_name=get_role_display_name(role),
            description=get_role_description(role),
            permissions=sorted(get_role_permissions(role)),
        )
        for role in get_assignable_roles()
    ]


@router.get("/activity", response_model=list[ActivityLogEntry])
async def list_activity(
    limit: int = Query(default=50, ge=1, le=200),
    _: AuthContext = Depends(require_permission("read:team")),
    session: AsyncSession = Depends(get_db_session),
) -> list[ActivityLogEntry]:
    entries = await ActivityLogRepository(session).recent(limit=limit)
    return [ActivityLogEntry.model_validate(entry) for entry in entries]


@router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: UUID,
    payload: OrganizationUpdateRequest,
    auth: AuthContext = Depends(require_permission("manage:settings")),
    organization: Organization = Depends(get_current_organization),
    session: AsyncSession = Depends(get_db_session),
) -> OrganizationResponse:
    if organization_id != organization.id:
        raise AuthorizationError("Cannot update another organization")

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No updatable fields supplied")

    for field, value in updates.items():
        setattr(organization, field, value)
    await ActivityLogRepository(session).create(
        user_id=auth.user_id,
        action="organization_updated",
        entity_type="organization",
        description=f"Updated {', '.join(sorted(updates))}",
    )
    await session.commit()

    logger.info("Organization %s updated fields=%s by user=%s", organization.id, sorted(updates), auth.user_id)
    return OrganizationResponse.model_validate(organization)
