from __future__ import annotations

from uuid import UUID

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from yuthub.models.base import OrganizationScopedBase

SYSTEM_USER_ID = UUID(int=0)


class ActivityLog(OrganizationScopedBase):
    __tablename__ = "team_activity_log"

    user_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, default=SYSTEM_USER_ID)
    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
