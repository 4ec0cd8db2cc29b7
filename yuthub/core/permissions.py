"""Role-based access control table.

Permissions follow the ``action:resource`` pattern. ``*`` grants everything and
is held by ``platform_admin`` only. The table is read-only at runtime.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from types import MappingProxyType

from fastapi import Depends, HTTPException, status

from yuthub.core.auth import AuthContext, require_auth_context

WILDCARD = "*"


class Role(str, Enum):
    staff = "staff"
    coordinator = "coordinator"
    manager = "manager"
    admin = "admin"
    platform_admin = "platform_admin"
    resident = "resident"


_STAFF = frozenset(
    {
        "read:residents",
        "read:properties",
        "create:notes",
        "read:notes",
        "read:support-plans",
        "read:incidents",
        "read:assessments",
        "read:team",
        "invite:team",
    }
)

_COORDINATOR = _STAFF | {
    "create:residents",
    "update:residents",
    "create:support-plans",
    "update:support-plans",
    "create:assessments",
    "update:assessments",
    "update:notes",
    "manage:team",
}

_MANAGER = _COORDINATOR | {
    "read:reports",
    "create:reports",
    "export:reports",
    "create:incidents",
    "update:incidents",
    "read:financials",
    "create:financials",
    "update:financials",
    "create:properties",
    "update:properties",
}

_ADMIN = _MANAGER | {
    "delete:residents",
    "delete:properties",
    "delete:notes",
    "delete:support-plans",
    "delete:incidents",
    "read:settings",
    "manage:settings",
    "manage:billing",
    "read:users",
    "manage:users",
    "update:roles",
}

ROLE_PERMISSIONS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        Role.staff: _STAFF,
        Role.coordinator: frozenset(_COORDINATOR),
        Role.manager: frozenset(_MANAGER),
        Role.admin: frozenset(_ADMIN),
        Role.platform_admin: frozenset({WILDCARD}),
        Role.resident: frozenset({"read:notes", "read:support-plans"}),
    }
)

ROLE_HIERARCHY: tuple[Role, ...] = (
    Role.resident,
    Role.staff,
    Role.coordinator,
    Role.manager,
    Role.admin,
    Role.platform_admin,
)

_DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {
        Role.staff: "Staff",
        Role.coordinator: "Coordinator",
        Role.manager: "Manager",
        Role.admin: "Administrator",
        Role.platform_admin: "Platform Administrator",
        Role.resident: "Resident",
    }
)

_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
    {
        Role.staff: "View residents, create notes, and invite team members",
        Role.coordinator: "Manage residents, support plans, and team members",
        Role.manager: "Access reports, manage team, handle incidents and finances",
        Role.admin: "Full organization access including settings and billing",
        Role.platform_admin: "Complete system administration across all organizations",
        Role.resident: "Limited access to own information only",
    }
)


def get_role_permissions(role: str) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: str, permission: str) -> bool:
    granted = get_role_permissions(role)
    if WILDCARD in granted:
        return True
    return permission in granted


def can_perform_action(role: str, action: str, resource: str) -> bool:
    return has_permission(role, f"{action}:{resource}")


def get_role_display_name(role: str) -> str:
    return _DISPLAY_NAMES.get(role, str(role))


def get_role_description(role: str) -> str:
    return _DESCRIPTIONS.get(role, "")


def _rank(role: str) -> int:
    for index, candidate in enumerate(ROLE_HIERARCHY):
        if candidate == role:
            return index
    return -1


def is_higher_role(role: str, other: str) -> bool:
    """Return True when ``role`` sits strictly above ``other``; unknown roles rank lowest."""
    return _rank(role) > _rank(other)


def get_assignable_roles() -> list[Role]:
    return [Role.staff, Role.coordinator, Role.manager, Role.admin]


def require_permission(permission: str) -> Callable[..., Awaitable[AuthContext]]:
    async def _dependency(
        context: AuthContext = Depends(require_auth_context),
    ) -> AuthContext:
        if not has_permission(context.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return context

    return _dependency
