"""Persistence model for craft labor classifications."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, CheckConstraint, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


LABOR_CATEGORIES: tuple[str, ...] = ("direct", "indirect", "staff")


class CraftType(Base):
	"""Labor classification reference data; deactivated rather than deleted."""

	__tablename__ = "craft_types"
	__table_args__ = (
		CheckConstraint("category IN ('direct', 'indirect', 'staff')", name="ck_craft_types_category"),
	)

	id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
	name: Mapped[str] = mapped_column(String(120), nullable=False)
	code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
	category: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
	is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
