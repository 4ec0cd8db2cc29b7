from yuthub.core.repositories.activity_log import ActivityLogRepository
from yuthub.core.repositories.base import (
    OrganizationContextMissingError,
    OrganizationRepository,
    SoftDeleteRepository,
)
from yuthub.core.repositories.properties import PropertyRepository
from yuthub.core.repositories.residents import ResidentRepository

__all__ = [
    "OrganizationContextMissingError",
    "OrganizationRepository",
    "SoftDeleteRepository",
    "ActivityLogRepository",
    "PropertyRepository",
    "ResidentRepository",
]
