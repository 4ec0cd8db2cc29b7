from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import Date, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from yuthub.models.base import OrganizationScopedBase


class Resident(OrganizationScopedBase):
    __tablename__ = "residents"

    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    property_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True, index=True)
    risk_level: Mapped[str] = mapped_column(String(20), nullable=False, default="low")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    is_deleted: Mapped[bool] = mapped_column(nullable=False, default=False)
