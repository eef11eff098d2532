"""Persistence model for planned craft headcount by future week."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


# Upper bound of a 32-bit Integer column.
MAX_HEADCOUNT = 2_147_483_647


class HeadcountForecast(Base):
	"""Planned headcount for a craft type, stored against the Tuesday week-starting date."""

	__tablename__ = "labor_headcount_forecasts"
	__table_args__ = (
		UniqueConstraint("project_id", "craft_type_id", "week_starting", name="uq_headcount_forecast_per_week"),
		CheckConstraint("headcount >= 0", name="ck_headcount_forecasts_headcount"),
	)

	id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
	project_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
	craft_type_id: Mapped[uuid.UUID] = mapped_column(
		Uuid(as_uuid=True),
		ForeignKey("craft_types.id"),
		nullable=False,
		index=True,
	)
	week_starting: Mapped[date] = mapped_column(Date, nullable=False, index=True)
	headcount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
	updated_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True),
		nullable=False,
		server_default=func.now(),
		onupdate=func.now(),
	)
