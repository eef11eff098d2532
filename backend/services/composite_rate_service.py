"""Service boundary for project-wide composite labor rates."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Any, Iterable

import numpy as np
from sqlalchemy.orm import Session

from models.craft_type_model import LABOR_CATEGORIES
from services.labor_data_service import WeeklyActual, coerce_project_id, fetch_weekly_actuals, validate_categories
from services.running_average_service import lookback_window_start, validate_week_count
from utils.week_dates import DateLike, format_date, parse_date, utc_today


def _rate(cost: float, hours: float) -> float | None:
	"""Return cost per hour, or ``None`` when no hours were recorded."""
	if hours <= 0:
		return None
	return cost / hours


def _rounded(value: float | None) -> float | None:
	return None if value is None else round(value, 2)


def _sums(actuals: list[WeeklyActual]) -> tuple[float, float]:
	if not actuals:
		return 0.0, 0.0
	hours = np.asarray([actual.total_hours for actual in actuals], dtype=np.float64)
	costs = np.asarray([actual.total_cost for actual in actuals], dtype=np.float64)
	return float(np.sum(hours)), float(np.sum(costs))


def compute_composite_rate(
	db: Session,
	project_id: uuid.UUID | str | None,
	lookback_weeks: int = 12,
	categories: Iterable[str] | None = None,
	recent_weeks: int = 4,
	today: DateLike | None = None,
) -> dict[str, Any]:
	"""Blend actual cost over actual hours across crafts for a project.

	Returns the overall and recent composite rates, a per-category breakdown,
	and the week-by-week trend. Every rate is ``None`` when its hours are zero.
	"""
	project_uuid = coerce_project_id(project_id)
	lookback_weeks = validate_week_count(lookback_weeks, "lookback_weeks")
	recent_weeks = validate_week_count(recent_weeks, "recent_weeks")
	included = validate_categories(categories)

	end_date = utc_today() if today is None else parse_date(today)
	start_date = lookback_window_start(end_date, lookback_weeks)
	recent_start = end_date - timedelta(weeks=recent_weeks)

	actuals = [
		actual
		for actual in fetch_weekly_actuals(db, project_uuid, since_date=start_date, until_date=end_date)
		if actual.total_hours > 0 and actual.craft.category in included
	]

	total_hours, total_cost = _sums(actuals)
	recent_hours, recent_cost = _sums([actual for actual in actuals if actual.week_ending >= recent_start])

	by_week: dict[date, list[WeeklyActual]] = {}
	by_category: dict[str, list[WeeklyActual]] = {category: [] for category in LABOR_CATEGORIES}
	for actual in actuals:
		by_week.setdefault(actual.week_ending, []).append(actual)
		by_category[actual.craft.category].append(actual)

	category_rates = []
	for category in LABOR_CATEGORIES:
		hours, cost = _sums(by_category[category])
		category_rates.append(
			{
				"category": category,
				"included": category in included,
				"rate": _rounded(_rate(cost, hours)),
				"hours": round(hours, 2),
				"cost": round(cost, 2),
			}
		)

	weekly_trend = []
	for week in sorted(by_week):
		hours, cost = _sums(by_week[week])
		weekly_trend.append(
			{
				"weekEnding": format_date(week),
				"rate": _rounded(_rate(cost, hours)),
				"hours": round(hours, 2),
				"cost": round(cost, 2),
			}
		)

	return {
		"projectId": str(project_uuid),
		"categories": list(included),
		"compositeRate": {
			"overall": _rounded(_rate(total_cost, total_hours)),
			"recent": _rounded(_rate(recent_cost, recent_hours)),
			"recentWeeks": recent_weeks,
			"totalHours": round(total_hours, 2),
			"totalCost": round(total_cost, 2),
			"weeksOfData": len(by_week),
			"dateRange": {"start": format_date(start_date), "end": format_date(end_date)},
		},
		"categoryRates": category_rates,
		"weeklyTrend": weekly_trend,
	}
