from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from yuthub.models.base import OrganizationScopedBase


class Property(OrganizationScopedBase):
    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    property_type: Mapped[str] = mapped_column(String(50), nullable=False, default="shared_housing")
    total_units: Mapped[int] = mapped_column(nullable=False, default=1)
    occupied_units: Mapped[int] = mapped_column(nullable=False, default=0)
    is_deleted: Mapped[bool] = mapped_column(nullable=False, default=False)
