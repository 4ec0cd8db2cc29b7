from __future__ import annotations

from uuid import UUID

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from yuthub.models.base import OrganizationScopedBase


class UserOrganization(OrganizationScopedBase):
    __tablename__ = "user_organizations"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_user_organizations_org_user"),
    )

    user_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="staff")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    is_primary: Mapped[bool] = mapped_column(nullable=False, default=False)
