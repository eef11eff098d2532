"""Persistence model for recorded weekly labor actuals per craft type."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Numeric, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


# Largest values the Numeric(10, 2) and Numeric(15, 2) columns hold.
MAX_TOTAL_HOURS = 99_999_999.99
MAX_TOTAL_COST = 9_999_999_999_999.99


class LaborActual(Base):
	"""Historical cost and hours for one craft type in one Sunday-ending week."""

	__tablename__ = "labor_actuals"
	__table_args__ = (
		UniqueConstraint("project_id", "craft_type_id", "week_ending", name="uq_labor_actual_per_week"),
		CheckConstraint("total_hours >= 0", name="ck_labor_actuals_hours"),
		CheckConstraint("total_cost >= 0", name="ck_labor_actuals_cost"),
	)

	id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
	project_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
	craft_type_id: Mapped[uuid.UUID] = mapped_column(
		Uuid(as_uuid=True),
		ForeignKey("craft_types.id"),
		nullable=False,
		index=True,
	)
	week_ending: Mapped[date] = mapped_column(Date, nullable=False, index=True)
	total_hours: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False, default=0)
	total_cost: Mapped[float] = mapped_column(Numeric(15, 2), nullable=False, default=0)
	updated_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True),
		nullable=False,
		server_default=func.now(),
		onupdate=func.now(),
	)
