"""Data-access boundary for craft types, weekly labor actuals, and headcount plans.

This is the only module that knows headcount rows are stored against a Tuesday
``week_starting`` date. Everything it returns is keyed by the Sunday week
ending, so calculation services never perform week-convention arithmetic.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.craft_type_model import LABOR_CATEGORIES, CraftType
from models.headcount_forecast_model import MAX_HEADCOUNT, HeadcountForecast
from models.labor_actual_model import MAX_TOTAL_COST, MAX_TOTAL_HOURS, LaborActual
from services.errors import DataUnavailableError, InvalidArgumentError
from utils.week_dates import (
	DateLike,
	format_date,
	week_ending_for_any_date,
	week_ending_from_week_starting,
	week_starting_from_week_ending,
)

logger = logging.getLogger("labor-forecast.data")


@dataclass(frozen=True)
class CraftTypeInfo:
	"""Craft type reference data as seen by the calculation services."""

	id: uuid.UUID
	name: str
	code: str
	category: str
	is_active: bool = True


@dataclass(frozen=True)
class WeeklyActual:
	project_id: uuid.UUID
	craft: CraftTypeInfo
	week_ending: date
	total_cost: float
	total_hours: float


@dataclass(frozen=True)
class HeadcountForecastEntry:
	project_id: uuid.UUID
	craft: CraftTypeInfo
	week_ending: date
	headcount: int


@dataclass(frozen=True)
class WeeklyActualInput:
	craft_type_id: uuid.UUID
	total_hours: float
	total_cost: float


@dataclass(frozen=True)
class HeadcountInput:
	craft_type_id: uuid.UUID
	headcount: int


@dataclass(frozen=True)
class UpsertSummary:
	"""Outcome of a batch upsert."""

	created: int
	updated: int
	week_endings: tuple[date, ...]

	def to_dict(self) -> dict[str, Any]:
		return {
			"created": self.created,
			"updated": self.updated,
			"weekEndings": [format_date(week) for week in self.week_endings],
		}


def coerce_project_id(value: uuid.UUID | str | None) -> uuid.UUID:
	"""Validate and normalize a project identifier before any query is issued."""
	if value is None or (isinstance(value, str) and not value.strip()):
		raise InvalidArgumentError("project_id is required.")
	if isinstance(value, uuid.UUID):
		return value
	try:
		return uuid.UUID(str(value).strip())
	except ValueError as exc:
		raise InvalidArgumentError(f"project_id '{value}' is not a valid UUID.") from exc


def _to_float(value: Decimal | float | int | None) -> float:
	"""Normalize DB numeric values into Python float."""
	return float(value) if value is not None else 0.0


def _craft_info(row: CraftType) -> CraftTypeInfo:
	return CraftTypeInfo(
		id=row.id,
		name=row.name,
		code=row.code,
		category=row.category,
		is_active=bool(row.is_active),
	)


def _unavailable(operation: str, project_id: uuid.UUID | None, exc: SQLAlchemyError) -> DataUnavailableError:
	logger.error("data_unavailable | operation=%s | project_id=%s | error=%s", operation, project_id, exc)
	return DataUnavailableError(f"Labor data could not be accessed during {operation}.")


def fetch_craft_type_catalog(db: Session, include_inactive: bool = False) -> list[CraftTypeInfo]:
	"""Return the craft type catalog ordered by labor category then name."""
	query = select(CraftType)
	if not include_inactive:
		query = query.where(CraftType.is_active.is_(True))
	query = query.order_by(CraftType.category.asc(), CraftType.name.asc(), CraftType.id.asc())

	try:
		rows = db.execute(query).scalars().all()
	except SQLAlchemyError as exc:
		raise _unavailable("fetch_craft_type_catalog", None, exc) from exc

	return [_craft_info(row) for row in rows]


def fetch_weekly_actuals(
	db: Session,
	project_id: uuid.UUID | str,
	since_date: date | None = None,
	until_date: date | None = None,
) -> list[WeeklyActual]:
	"""Return weekly actuals for a project, optionally bounded by week-ending dates."""
	project_uuid = coerce_project_id(project_id)
	query = (
		select(LaborActual, CraftType)
		.join(CraftType, LaborActual.craft_type_id == CraftType.id)
		.where(LaborActual.project_id == project_uuid)
	)
	if since_date is not None:
		query = query.where(LaborActual.week_ending >= since_date)
	if until_date is not None:
		query = query.where(LaborActual.week_ending <= until_date)
	query = query.order_by(LaborActual.week_ending.asc(), CraftType.name.asc(), LaborActual.craft_type_id.asc())

	try:
		rows = db.execute(query).all()
	except SQLAlchemyError as exc:
		raise _unavailable("fetch_weekly_actuals", project_uuid, exc) from exc

	return [
		WeeklyActual(
			project_id=actual.project_id,
			craft=_craft_info(craft),
			week_ending=actual.week_ending,
			total_cost=_to_float(actual.total_cost),
			total_hours=_to_float(actual.total_hours),
		)
		for actual, craft in rows
	]


def fetch_headcount_entries(
	db: Session,
	project_id: uuid.UUID | str,
	from_week: date,
	to_week: date,
) -> list[HeadcountForecastEntry]:
	"""Return planned headcount between two Sunday week endings, inclusive."""
	project_uuid = coerce_project_id(project_id)
	from_starting = week_starting_from_week_ending(from_week)
	to_starting = week_starting_from_week_ending(to_week)

	query = (
		select(HeadcountForecast, CraftType)
		.join(CraftType, HeadcountForecast.craft_type_id == CraftType.id)
		.where(HeadcountForecast.project_id == project_uuid)
		.where(HeadcountForecast.week_starting >= from_starting)
		.where(HeadcountForecast.week_starting <= to_starting)
		.order_by(HeadcountForecast.week_starting.asc(), CraftType.name.asc(), HeadcountForecast.craft_type_id.asc())
	)

	try:
		rows = db.execute(query).all()
	except SQLAlchemyError as exc:
		raise _unavailable("fetch_headcount_entries", project_uuid, exc) from exc

	return [
		HeadcountForecastEntry(
			project_id=forecast.project_id,
			craft=_craft_info(craft),
			week_ending=week_ending_from_week_starting(forecast.week_starting),
			headcount=int(forecast.headcount),
		)
		for forecast, craft in rows
	]


def _reject_duplicate_crafts(batch: list[Any]) -> None:
	seen: set[uuid.UUID] = set()
	for entry in batch:
		if entry.craft_type_id in seen:
			raise InvalidArgumentError(f"craft_type_id {entry.craft_type_id} appears more than once for the same week.")
		seen.add(entry.craft_type_id)


def _require_known_crafts(db: Session, craft_type_ids: Iterable[uuid.UUID]) -> None:
	requested = set(craft_type_ids)
	if not requested:
		return
	known = set(db.execute(select(CraftType.id).where(CraftType.id.in_(requested))).scalars().all())
	missing = sorted(str(craft_id) for craft_id in requested - known)
	if missing:
		raise InvalidArgumentError(f"Unknown craft_type_id values: {', '.join(missing)}.")


def upsert_weekly_actuals(
	db: Session,
	project_id: uuid.UUID | str,
	week_ending: DateLike,
	entries: Iterable[WeeklyActualInput],
) -> UpsertSummary:
	"""Create or correct weekly actuals keyed on project, craft type, and week."""
	project_uuid = coerce_project_id(project_id)
	week = week_ending_for_any_date(week_ending)
	batch = list(entries)

	for entry in batch:
		if not (math.isfinite(entry.total_hours) and math.isfinite(entry.total_cost)):
			raise InvalidArgumentError("total_hours and total_cost must be finite numbers.")
		if entry.total_hours < 0 or entry.total_cost < 0:
			raise InvalidArgumentError("total_hours and total_cost must be non-negative.")
		if entry.total_hours > MAX_TOTAL_HOURS or entry.total_cost > MAX_TOTAL_COST:
			raise InvalidArgumentError(
				f"total_hours must not exceed {MAX_TOTAL_HOURS:,.2f} and total_cost must not exceed {MAX_TOTAL_COST:,.2f}."
			)
	_reject_duplicate_crafts(batch)

	created = updated = 0
	try:
		_require_known_crafts(db, (entry.craft_type_id for entry in batch))
		for entry in batch:
			existing = db.execute(
				select(LaborActual)
				.where(LaborActual.project_id == project_uuid)
				.where(LaborActual.craft_type_id == entry.craft_type_id)
				.where(LaborActual.week_ending == week)
			).scalar_one_or_none()

			if existing is None:
				db.add(
					LaborActual(
						project_id=project_uuid,
						craft_type_id=entry.craft_type_id,
						week_ending=week,
						total_hours=Decimal(str(entry.total_hours)),
						total_cost=Decimal(str(entry.total_cost)),
					)
				)
				created += 1
			else:
				existing.total_hours = Decimal(str(entry.total_hours))
				existing.total_cost = Decimal(str(entry.total_cost))
				updated += 1
		db.commit()
	except SQLAlchemyError as exc:
		db.rollback()
		raise _unavailable("upsert_weekly_actuals", project_uuid, exc) from exc

	logger.info(
		"weekly_actuals_upserted | project_id=%s | week_ending=%s | created=%s | updated=%s",
		project_uuid,
		format_date(week),
		created,
		updated,
	)
	return UpsertSummary(created=created, updated=updated, week_endings=(week,))


def upsert_headcount_forecasts(
	db: Session,
	project_id: uuid.UUID | str,
	weeks: Iterable[tuple[DateLike, Iterable[HeadcountInput]]],
) -> UpsertSummary:
	"""Create or replace planned headcount for each (week ending, entries) pair."""
	project_uuid = coerce_project_id(project_id)
	plan: list[tuple[date, list[HeadcountInput]]] = []
	for week_value, entries in weeks:
		batch = list(entries)
		for entry in batch:
			count = entry.headcount
			if isinstance(count, bool) or not isinstance(count, int) or not 0 <= count <= MAX_HEADCOUNT:
				raise InvalidArgumentError(f"headcount must be an integer between 0 and {MAX_HEADCOUNT}.")
		_reject_duplicate_crafts(batch)
		plan.append((week_ending_for_any_date(week_value), batch))

	planned_weeks = [week for week, _ in plan]
	if len(set(planned_weeks)) != len(planned_weeks):
		raise InvalidArgumentError("Each week ending may appear only once per headcount batch.")

	created = updated = 0
	try:
		_require_known_crafts(db, (entry.craft_type_id for _, batch in plan for entry in batch))
		for week, batch in plan:
			week_starting = week_starting_from_week_ending(week)
			for entry in batch:
				existing = db.execute(
					select(HeadcountForecast)
					.where(HeadcountForecast.project_id == project_uuid)
					.where(HeadcountForecast.craft_type_id == entry.craft_type_id)
					.where(HeadcountForecast.week_starting == week_starting)
				).scalar_one_or_none()

				if existing is None:
					db.add(
						HeadcountForecast(
							project_id=project_uuid,
							craft_type_id=entry.craft_type_id,
							week_starting=week_starting,
							headcount=entry.headcount,
						)
					)
					created += 1
				else:
					existing.headcount = entry.headcount
					updated += 1
		db.commit()
	except SQLAlchemyError as exc:
		db.rollback()
		raise _unavailable("upsert_headcount_forecasts", project_uuid, exc) from exc

	logger.info(
		"headcount_forecasts_upserted | project_id=%s | weeks=%s | created=%s | updated=%s",
		project_uuid,
		len(plan),
		created,
		updated,
	)
	return UpsertSummary(
		created=created,
		updated=updated,
		week_endings=tuple(sorted({week for week, _ in plan})),
	)


def validate_categories(categories: Iterable[str] | None) -> tuple[str, ...]:
	"""Return requested labor categories in canonical order, defaulting to all."""
	if categories is None:
		return LABOR_CATEGORIES
	requested = {category.strip().lower() for category in categories if category and category.strip()}
	unknown = sorted(requested - set(LABOR_CATEGORIES))
	if unknown:
		raise InvalidArgumentError(f"Unknown labor categories: {', '.join(unknown)}.")
	if not requested:
		return LABOR_CATEGORIES
	return tuple(category for category in LABOR_CATEGORIES if category in requested)
