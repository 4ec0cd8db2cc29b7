from yuthub.models.activity_log import SYSTEM_USER_ID, ActivityLog
from yuthub.models.base import Base, OrganizationScopedBase, TimestampedBase
from yuthub.models.organization import Organization
from yuthub.models.property import Property
from yuthub.models.resident import Resident
from yuthub.models.user_organization import UserOrganization

__all__ = [
    "Base",
    "TimestampedBase",
    "OrganizationScopedBase",
    "Organization",
    "UserOrganization",
    "ActivityLog",
    "SYSTEM_USER_ID",
    "Resident",
    "Property",
]
