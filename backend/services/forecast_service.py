"""Forecasting service boundary for headcount-driven labor cost projection."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from models.craft_type_model import LABOR_CATEGORIES
from services.labor_data_service import CraftTypeInfo, coerce_project_id, fetch_headcount_entries
from services.running_average_service import compute_running_averages, rate_map, validate_week_count
from utils.week_dates import DateLike, format_date, parse_date, utc_today, week_ending_for_any_date, week_endings_window

if TYPE_CHECKING:
	from config import Settings

logger = logging.getLogger("labor-forecast.forecast")


@dataclass(frozen=True)
class ForecastConfig:
	"""Calculation settings for headcount-driven projections."""

	standard_hours_per_week: float = 40.0
	default_lookback_weeks: int = 8
	default_weeks_ahead: int = 12

	@classmethod
	def from_settings(cls, settings: "Settings") -> "ForecastConfig":
		return cls(
			standard_hours_per_week=float(settings.STANDARD_HOURS_PER_WEEK),
			default_lookback_weeks=settings.DEFAULT_LOOKBACK_WEEKS,
			default_weeks_ahead=settings.DEFAULT_WEEKS_AHEAD,
		)


def _money(value: float) -> float:
	"""Round a currency amount to cents for output."""
	return round(value, 2)


def _hours(value: float) -> float:
	return round(value, 2)


def _category_rank(category: str) -> int:
	return LABOR_CATEGORIES.index(category) if category in LABOR_CATEGORIES else len(LABOR_CATEGORIES)


@dataclass(frozen=True)
class ForecastEntry:
	"""Projection for one craft type in one week."""

	craft: CraftTypeInfo
	headcount: int
	hours: float
	rate: float | None
	cost: float

	@property
	def rate_available(self) -> bool:
		return self.rate is not None

	@property
	def uncosted_hours(self) -> float:
		return 0.0 if self.rate_available else self.hours

	def to_dict(self) -> dict[str, Any]:
		return {
			"craftTypeId": str(self.craft.id),
			"craftName": self.craft.name,
			"craftCode": self.craft.code,
			"laborCategory": self.craft.category,
			"headcount": self.headcount,
			"hours": _hours(self.hours),
			"avgRate": None if self.rate is None else _money(self.rate),
			"rateAvailable": self.rate_available,
			"cost": _money(self.cost),
		}


@dataclass(frozen=True)
class ForecastTotals:
	headcount: int = 0
	total_hours: float = 0.0
	total_cost: float = 0.0
	uncosted_hours: float = 0.0

	@classmethod
	def of(cls, entries: list[ForecastEntry]) -> "ForecastTotals":
		return cls(
			headcount=sum(entry.headcount for entry in entries),
			total_hours=sum(entry.hours for entry in entries),
			total_cost=sum(entry.cost for entry in entries),
			uncosted_hours=sum(entry.uncosted_hours for entry in entries),
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"headcount": self.headcount,
			"totalHours": _hours(self.total_hours),
			"totalCost": _money(self.total_cost),
			"uncostedHours": _hours(self.uncosted_hours),
		}


@dataclass(frozen=True)
class ForecastWeek:
	week_ending: date
	entries: tuple[ForecastEntry, ...]
	totals: ForecastTotals

	def to_dict(self) -> dict[str, Any]:
		return {
			"weekEnding": format_date(self.week_ending),
			"entries": [entry.to_dict() for entry in self.entries],
			"totals": self.totals.to_dict(),
		}


@dataclass(frozen=True)
class CategorySummary:
	"""Per labor category rollup; ``avg_rate`` is total cost over costed hours."""

	category: str
	craft_count: int
	total_headcount: int
	total_hours: float
	total_cost: float
	costed_hours: float

	@property
	def avg_rate(self) -> float | None:
		if self.costed_hours <= 0:
			return None
		return self.total_cost / self.costed_hours

	def to_dict(self) -> dict[str, Any]:
		return {
			"category": self.category,
			"craftCount": self.craft_count,
			"totalHeadcount": self.total_headcount,
			"totalHours": _hours(self.total_hours),
			"totalCost": _money(self.total_cost),
			"avgRate": None if self.avg_rate is None else _money(self.avg_rate),
		}


@dataclass(frozen=True)
class UncostedCraft:
	"""A craft projected without any rate history, surfaced as a caveat."""

	craft: CraftTypeInfo
	headcount: int
	hours: float

	def to_dict(self) -> dict[str, Any]:
		return {
			"craftTypeId": str(self.craft.id),
			"craftName": self.craft.name,
			"craftCode": self.craft.code,
			"laborCategory": self.craft.category,
			"headcount": self.headcount,
			"hours": _hours(self.hours),
		}


@dataclass(frozen=True)
class ForecastResult:
	project_id: uuid.UUID
	start_date: date
	weeks_ahead: int
	lookback_weeks: int
	standard_hours_per_week: float
	weeks: tuple[ForecastWeek, ...]
	grand_totals: ForecastTotals
	category_summary: tuple[CategorySummary, ...]
	uncosted_crafts: tuple[UncostedCraft, ...]
	generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	@property
	def end_date(self) -> date:
		return week_endings_window(self.start_date, self.weeks_ahead)[-1]

	def to_dict(self) -> dict[str, Any]:
		return {
			"projectId": str(self.project_id),
			"startDate": format_date(self.start_date),
			"endDate": format_date(self.end_date),
			"weeksAhead": self.weeks_ahead,
			"lookbackWeeks": self.lookback_weeks,
			"standardHoursPerWeek": self.standard_hours_per_week,
			"weeks": [week.to_dict() for week in self.weeks],
			"grandTotals": self.grand_totals.to_dict(),
			"categorySummary": [summary.to_dict() for summary in self.category_summary],
			"uncostedCraftTypes": [craft.to_dict() for craft in self.uncosted_crafts],
			"generatedAt": self.generated_at.isoformat(),
		}


def resolve_forecast_window(start_date: DateLike | None, weeks_ahead: int, today: DateLike | None = None) -> list[date]:
	"""Resolve the consecutive Sunday week endings a forecast covers."""
	weeks_ahead = validate_week_count(weeks_ahead, "weeks_ahead")
	if start_date is None:
		start_date = utc_today() if today is None else today
	start_week = week_ending_for_any_date(parse_date(start_date))
	return week_endings_window(start_week, weeks_ahead)


def _build_category_summary(entries: list[ForecastEntry]) -> tuple[CategorySummary, ...]:
	grouped: dict[str, list[ForecastEntry]] = {}
	for entry in entries:
		grouped.setdefault(entry.craft.category, []).append(entry)

	summaries = []
	for category in sorted(grouped, key=lambda name: (_category_rank(name), name)):
		rows = grouped[category]
		summaries.append(
			CategorySummary(
				category=category,
				craft_count=len({row.craft.id for row in rows}),
				total_headcount=sum(row.headcount for row in rows),
				total_hours=sum(row.hours for row in rows),
				total_cost=sum(row.cost for row in rows),
				costed_hours=sum(row.hours for row in rows if row.rate_available),
			)
		)
	return tuple(summaries)


def _build_uncosted_crafts(entries: list[ForecastEntry]) -> tuple[UncostedCraft, ...]:
	grouped: dict[uuid.UUID, list[ForecastEntry]] = {}
	for entry in entries:
		if not entry.rate_available:
			grouped.setdefault(entry.craft.id, []).append(entry)

	crafts = [
		UncostedCraft(
			craft=rows[0].craft,
			headcount=sum(row.headcount for row in rows),
			hours=sum(row.hours for row in rows),
		)
		for rows in grouped.values()
	]
	crafts.sort(key=lambda item: (_category_rank(item.craft.category), item.craft.name.casefold(), str(item.craft.id)))
	return tuple(crafts)


def calculate_forecast(
	db: Session,
	project_id: uuid.UUID | str | None,
	start_date: DateLike | None = None,
	weeks_ahead: int = 12,
	config: ForecastConfig | None = None,
	today: DateLike | None = None,
	lookback_weeks: int | None = None,
) -> ForecastResult:
	"""Project weekly labor hours and cost from planned headcount and trailing rates.

	Crafts with no rate history are projected at zero cost but stay flagged:
	each entry reports ``rateAvailable``, week and grand totals carry
	``uncostedHours``, and ``uncostedCraftTypes`` lists the affected crafts.
	A project with no usable headcount in the window yields no weeks and zero totals.
	"""
	active_config = config or ForecastConfig()
	project_uuid = coerce_project_id(project_id)
	window = resolve_forecast_window(start_date, weeks_ahead, today=today)
	lookback = validate_week_count(
		active_config.default_lookback_weeks if lookback_weeks is None else lookback_weeks,
		"lookback_weeks",
	)

	averages = compute_running_averages(db, project_uuid, lookback_weeks=lookback, today=today)
	rates = rate_map(averages)
	headcounts = fetch_headcount_entries(db, project_uuid, window[0], window[-1])

	entries_by_week: dict[date, list[ForecastEntry]] = {week: [] for week in window}
	for headcount_entry in headcounts:
		if headcount_entry.week_ending not in entries_by_week:
			logger.warning(
				"forecast_misaligned_week | project_id=%s | craft=%s | week_ending=%s",
				project_uuid,
				headcount_entry.craft.code,
				format_date(headcount_entry.week_ending),
			)
			continue
		rate = rates.get(headcount_entry.craft.id)
		hours = headcount_entry.headcount * active_config.standard_hours_per_week
		entries_by_week[headcount_entry.week_ending].append(
			ForecastEntry(
				craft=headcount_entry.craft,
				headcount=headcount_entry.headcount,
				hours=hours,
				rate=rate,
				cost=hours * rate if rate is not None else 0.0,
			)
		)

	weeks: list[ForecastWeek] = []
	all_entries: list[ForecastEntry] = []
	if any(entries_by_week.values()):
		for week in sorted(entries_by_week):
			entries = sorted(
				entries_by_week[week],
				key=lambda entry: (_category_rank(entry.craft.category), entry.craft.name.casefold(), str(entry.craft.id)),
			)
			all_entries.extend(entries)
			weeks.append(ForecastWeek(week_ending=week, entries=tuple(entries), totals=ForecastTotals.of(entries)))

	uncosted = _build_uncosted_crafts(all_entries)
	if uncosted:
		logger.warning(
			"forecast_uncosted_crafts | project_id=%s | crafts=%s",
			project_uuid,
			",".join(item.craft.code for item in uncosted),
		)

	return ForecastResult(
		project_id=project_uuid,
		start_date=window[0],
		weeks_ahead=len(window),
		lookback_weeks=lookback,
		standard_hours_per_week=active_config.standard_hours_per_week,
		weeks=tuple(weeks),
		grand_totals=ForecastTotals.of(all_entries),
		category_summary=_build_category_summary(all_entries),
		uncosted_crafts=uncosted,
	)


def format_currency(amount: float) -> str:
	"""Display a currency amount rounded to whole units."""
	return f"${amount:,.0f}"
