"""Weekly labor entry routes for recorded actuals and planned headcount."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config import Settings, get_settings
from dependencies import get_db, get_forecast_config
from models.headcount_forecast_model import MAX_HEADCOUNT
from models.labor_actual_model import MAX_TOTAL_COST, MAX_TOTAL_HOURS
from services.errors import InvalidArgumentError
from services.forecast_service import ForecastConfig, resolve_forecast_window
from services.labor_data_service import (
	HeadcountForecastEntry,
	HeadcountInput,
	WeeklyActualInput,
	coerce_project_id,
	fetch_craft_type_catalog,
	fetch_headcount_entries,
	fetch_weekly_actuals,
	upsert_headcount_forecasts,
	upsert_weekly_actuals,
)
from services.running_average_service import compute_running_averages, rate_map
from utils.week_dates import format_date, week_ending_for_any_date

router = APIRouter(prefix="/labor-forecasts", tags=["labor-entry"])


class WeeklyActualEntry(BaseModel):
	craft_type_id: uuid.UUID
	total_cost: float = Field(ge=0, le=MAX_TOTAL_COST, allow_inf_nan=False)
	total_hours: float = Field(ge=0, le=MAX_TOTAL_HOURS, allow_inf_nan=False)


class WeeklyActualBatch(BaseModel):
	project_id: uuid.UUID
	week_ending: str
	entries: list[WeeklyActualEntry]


class HeadcountEntry(BaseModel):
	craft_type_id: uuid.UUID
	headcount: int = Field(ge=0, le=MAX_HEADCOUNT)


class HeadcountWeek(BaseModel):
	week_ending: str
	entries: list[HeadcountEntry]


class HeadcountBatch(BaseModel):
	project_id: uuid.UUID
	weeks: list[HeadcountWeek]


def _rounded(value: float | None) -> float | None:
	return None if value is None else round(value, 2)


@router.get("/weekly-actuals", summary="Recorded weekly actuals with running-average context")
def list_weekly_actuals(
	project_id: str | None = Query(default=None),
	week_ending: str | None = Query(default=None),
	db: Session = Depends(get_db),
	forecast_config: ForecastConfig = Depends(get_forecast_config),
) -> dict:
	project_uuid = coerce_project_id(project_id)
	week = week_ending_for_any_date(week_ending) if week_ending else None

	actuals = fetch_weekly_actuals(db, project_uuid, since_date=week, until_date=week)
	averages = rate_map(compute_running_averages(db, project_uuid, forecast_config.default_lookback_weeks))
	catalog = fetch_craft_type_catalog(db)

	return {
		"projectId": str(project_uuid),
		"weekEnding": None if week is None else format_date(week),
		"actuals": [
			{
				"craftTypeId": str(actual.craft.id),
				"craftName": actual.craft.name,
				"craftCode": actual.craft.code,
				"laborCategory": actual.craft.category,
				"weekEnding": format_date(actual.week_ending),
				"totalHours": round(actual.total_hours, 2),
				"totalCost": round(actual.total_cost, 2),
				"ratePerHour": _rounded(actual.total_cost / actual.total_hours) if actual.total_hours > 0 else None,
				"runningAvgRate": _rounded(averages.get(actual.craft.id)),
			}
			for actual in sorted(actuals, key=lambda item: (item.week_ending, item.craft.name), reverse=True)
		],
		"craftTypes": [
			{
				"id": str(craft.id),
				"name": craft.name,
				"code": craft.code,
				"laborCategory": craft.category,
				"runningAvgRate": _rounded(averages.get(craft.id)),
			}
			for craft in catalog
		],
	}


@router.post("/weekly-actuals", summary="Create or correct a week of labor actuals")
def save_weekly_actuals(batch: WeeklyActualBatch, db: Session = Depends(get_db)) -> dict:
	summary = upsert_weekly_actuals(
		db,
		batch.project_id,
		batch.week_ending,
		[
			WeeklyActualInput(
				craft_type_id=entry.craft_type_id,
				total_hours=entry.total_hours,
				total_cost=entry.total_cost,
			)
			for entry in batch.entries
		],
	)
	return {"projectId": str(batch.project_id), **summary.to_dict()}


@router.get("/headcount", summary="Planned headcount by week ending")
def list_headcount(
	project_id: str | None = Query(default=None),
	start_date: str | None = Query(default=None),
	weeks_ahead: int | None = Query(default=None, ge=1),
	db: Session = Depends(get_db),
	forecast_config: ForecastConfig = Depends(get_forecast_config),
	settings: Settings = Depends(get_settings),
) -> dict:
	project_uuid = coerce_project_id(project_id)
	horizon = weeks_ahead or forecast_config.default_weeks_ahead
	if horizon > settings.MAX_WEEKS_AHEAD:
		raise InvalidArgumentError(f"weeks_ahead must not exceed {settings.MAX_WEEKS_AHEAD}.")

	window = resolve_forecast_window(start_date, horizon)
	entries = fetch_headcount_entries(db, project_uuid, window[0], window[-1])

	by_week: dict[date, list[HeadcountForecastEntry]] = {week: [] for week in window}
	for entry in entries:
		if entry.week_ending in by_week:
			by_week[entry.week_ending].append(entry)

	return {
		"projectId": str(project_uuid),
		"weeks": [
			{
				"weekEnding": format_date(week),
				"entries": [
					{
						"craftTypeId": str(entry.craft.id),
						"craftName": entry.craft.name,
						"craftCode": entry.craft.code,
						"laborCategory": entry.craft.category,
						"headcount": entry.headcount,
					}
					for entry in by_week[week]
				],
				"totalHeadcount": sum(entry.headcount for entry in by_week[week]),
			}
			for week in sorted(by_week)
		],
	}


@router.post("/headcount", summary="Create or replace planned headcount")
def save_headcount(batch: HeadcountBatch, db: Session = Depends(get_db)) -> dict:
	summary = upsert_headcount_forecasts(
		db,
		batch.project_id,
		[
			(
				week.week_ending,
				[HeadcountInput(craft_type_id=entry.craft_type_id, headcount=entry.headcount) for entry in week.entries],
			)
			for week in batch.weeks
		],
	)
	return {"projectId": str(batch.project_id), **summary.to_dict()}
