"""Service boundary for trailing average hourly rates per craft type."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

import numpy as np
from sqlalchemy.orm import Session

from models.craft_type_model import LABOR_CATEGORIES
from services.errors import InvalidArgumentError
from services.labor_data_service import (
	CraftTypeInfo,
	WeeklyActual,
	coerce_project_id,
	fetch_craft_type_catalog,
	fetch_weekly_actuals,
)
from utils.week_dates import DateLike, format_date, parse_date, utc_today


DEFAULT_LOOKBACK_WEEKS = 8


@dataclass(frozen=True)
class RateTrendPoint:
	"""One contributing week of actuals for a craft type."""

	week_ending: date
	rate: float
	hours: float
	cost: float

	def to_dict(self) -> dict[str, Any]:
		return {
			"weekEnding": format_date(self.week_ending),
			"rate": round(self.rate, 2),
			"hours": round(self.hours, 2),
			"cost": round(self.cost, 2),
		}


@dataclass(frozen=True)
class RunningAverage:
	"""Trailing average hourly rate for one craft type on one project.

	``avg_rate`` is ``None`` when the window holds no hours for the craft; that
	means "no data yet", never "zero-cost labor".
	"""

	project_id: uuid.UUID
	craft: CraftTypeInfo
	avg_rate: float | None
	total_hours: float
	total_cost: float
	weeks_of_data: int
	last_actual_week: date | None
	trends: tuple[RateTrendPoint, ...] = field(default_factory=tuple)

	@property
	def has_data(self) -> bool:
		return self.avg_rate is not None

	@property
	def labor_category(self) -> str:
		return self.craft.category

	def to_dict(self) -> dict[str, Any]:
		return {
			"craftTypeId": str(self.craft.id),
			"craftName": self.craft.name,
			"craftCode": self.craft.code,
			"laborCategory": self.craft.category,
			"avgRate": None if self.avg_rate is None else round(self.avg_rate, 2),
			"totalHours": round(self.total_hours, 2),
			"totalCost": round(self.total_cost, 2),
			"weeksOfData": self.weeks_of_data,
			"lastActualWeek": None if self.last_actual_week is None else format_date(self.last_actual_week),
			"hasData": self.has_data,
			"trends": [point.to_dict() for point in self.trends],
		}


def validate_week_count(value: int, name: str) -> int:
	"""Validate a week count is a positive integer."""
	if isinstance(value, bool) or not isinstance(value, int):
		raise InvalidArgumentError(f"{name} must be a positive integer.")
	if value < 1:
		raise InvalidArgumentError(f"{name} must be a positive integer; received {value}.")
	return value


def lookback_window_start(today: date, lookback_weeks: int) -> date:
	return today - timedelta(weeks=lookback_weeks)


def _craft_sort_key(craft: CraftTypeInfo) -> tuple[int, str, str]:
	category_rank = LABOR_CATEGORIES.index(craft.category) if craft.category in LABOR_CATEGORIES else len(LABOR_CATEGORIES)
	return category_rank, craft.name.casefold(), str(craft.id)


def _average_for_craft(project_id: uuid.UUID, craft: CraftTypeInfo, actuals: list[WeeklyActual]) -> RunningAverage:
	"""Sum cost and hours over contributing weeks; rows without hours carry no rate signal."""
	contributing = sorted(
		(actual for actual in actuals if actual.total_hours > 0),
		key=lambda actual: actual.week_ending,
	)
	if not contributing:
		return RunningAverage(
			project_id=project_id,
			craft=craft,
			avg_rate=None,
			total_hours=0.0,
			total_cost=0.0,
			weeks_of_data=0,
			last_actual_week=None,
		)

	hours = np.asarray([actual.total_hours for actual in contributing], dtype=np.float64)
	costs = np.asarray([actual.total_cost for actual in contributing], dtype=np.float64)
	total_hours = float(np.sum(hours))
	total_cost = float(np.sum(costs))

	trends = tuple(
		RateTrendPoint(
			week_ending=actual.week_ending,
			rate=actual.total_cost / actual.total_hours,
			hours=actual.total_hours,
			cost=actual.total_cost,
		)
		for actual in contributing
	)

	return RunningAverage(
		project_id=project_id,
		craft=craft,
		avg_rate=total_cost / total_hours,
		total_hours=total_hours,
		total_cost=total_cost,
		weeks_of_data=len({actual.week_ending for actual in contributing}),
		last_actual_week=max(actual.week_ending for actual in contributing),
		trends=trends,
	)


def compute_running_averages(
	db: Session,
	project_id: uuid.UUID | str | None,
	lookback_weeks: int = DEFAULT_LOOKBACK_WEEKS,
	today: DateLike | None = None,
) -> list[RunningAverage]:
	"""Return one trailing-rate record per active craft type for the project.

	Crafts with no hours in the lookback window are still returned, with
	``weeks_of_data == 0`` and no rate. A deactivated craft that still has
	contributing actuals in the window is reported as well.
	"""
	project_uuid = coerce_project_id(project_id)
	lookback_weeks = validate_week_count(lookback_weeks, "lookback_weeks")
	reference_day = utc_today() if today is None else parse_date(today)
	window_start = lookback_window_start(reference_day, lookback_weeks)

	catalog = fetch_craft_type_catalog(db)
	actuals = fetch_weekly_actuals(db, project_uuid, since_date=window_start)

	crafts: dict[uuid.UUID, CraftTypeInfo] = {craft.id: craft for craft in catalog}
	grouped: dict[uuid.UUID, list[WeeklyActual]] = {}
	for actual in actuals:
		grouped.setdefault(actual.craft.id, []).append(actual)
		if actual.craft.id not in crafts and actual.total_hours > 0:
			crafts[actual.craft.id] = actual.craft

	ordered = sorted(crafts.values(), key=_craft_sort_key)
	return [_average_for_craft(project_uuid, craft, grouped.get(craft.id, [])) for craft in ordered]


def rate_map(averages: list[RunningAverage]) -> dict[uuid.UUID, float | None]:
	"""Map craft type id to its average rate, keeping ``None`` for crafts without data."""
	return {average.craft.id: average.avg_rate for average in averages}


def summarize_running_averages(averages: list[RunningAverage]) -> dict[str, Any]:
	"""Summarize data coverage across craft types."""
	total = len(averages)
	with_data = sum(1 for average in averages if average.has_data)
	# Half-up, so an average of 2.5 weeks reports as 3.
	avg_weeks = int(sum(average.weeks_of_data for average in averages) / total + 0.5) if total else 0
	return {
		"totalCraftTypes": total,
		"craftTypesWithData": with_data,
		"avgWeeksOfData": avg_weeks,
	}
