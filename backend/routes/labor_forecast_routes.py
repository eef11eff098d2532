"""Labor forecast API route declarations for projections and rate analysis."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config import Settings, get_settings
from dependencies import get_db, get_forecast_config
from services.composite_rate_service import compute_composite_rate
from services.errors import InvalidArgumentError
from services.forecast_service import ForecastConfig, ForecastResult, calculate_forecast
from services.labor_data_service import coerce_project_id
from services.running_average_service import compute_running_averages, summarize_running_averages
from utils.pdf_generator import generate_forecast_pdf

router = APIRouter(prefix="/labor-forecasts", tags=["labor-forecasts"])


class ForecastRequest(BaseModel):
	project_id: str | None = None
	start_date: str | None = None
	weeks_ahead: int | None = Field(default=None, ge=1)


def _run_forecast(
	request: ForecastRequest,
	db: Session,
	forecast_config: ForecastConfig,
	settings: Settings,
) -> ForecastResult:
	weeks_ahead = request.weeks_ahead or forecast_config.default_weeks_ahead
	if weeks_ahead > settings.MAX_WEEKS_AHEAD:
		raise InvalidArgumentError(f"weeks_ahead must not exceed {settings.MAX_WEEKS_AHEAD}.")
	return calculate_forecast(
		db=db,
		project_id=request.project_id,
		start_date=request.start_date,
		weeks_ahead=weeks_ahead,
		config=forecast_config,
	)


@router.post("/calculate", summary="Project labor hours and cost from planned headcount")
def calculate(
	request: ForecastRequest,
	db: Session = Depends(get_db),
	forecast_config: ForecastConfig = Depends(get_forecast_config),
	settings: Settings = Depends(get_settings),
) -> dict:
	"""Return weekly, per-category, and grand-total projections for a project."""
	return _run_forecast(request, db, forecast_config, settings).to_dict()


@router.post("/calculate/pdf", summary="Download the labor forecast as a PDF report")
def calculate_pdf(
	request: ForecastRequest,
	db: Session = Depends(get_db),
	forecast_config: ForecastConfig = Depends(get_forecast_config),
	settings: Settings = Depends(get_settings),
):
	result = _run_forecast(request, db, forecast_config, settings)
	pdf_content = generate_forecast_pdf(result.to_dict())
	file_name = f"labor_forecast_{result.project_id}_{datetime.now().strftime('%Y%m%d')}.pdf"

	return StreamingResponse(
		iter([pdf_content]),
		media_type="application/pdf",
		headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
	)


@router.get("/running-averages", summary="Trailing average hourly rate per craft type")
def running_averages(
	project_id: str | None = Query(default=None),
	weeks_back: int | None = Query(default=None, ge=1, le=260),
	db: Session = Depends(get_db),
	forecast_config: ForecastConfig = Depends(get_forecast_config),
) -> dict:
	"""Return running-average rates; crafts without history report ``avgRate: null``."""
	project_uuid = coerce_project_id(project_id)
	lookback = weeks_back or forecast_config.default_lookback_weeks
	averages = compute_running_averages(db, project_uuid, lookback_weeks=lookback)
	return {
		"projectId": str(project_uuid),
		"weeksBack": lookback,
		"averages": [average.to_dict() for average in averages],
		"summary": summarize_running_averages(averages),
	}


@router.get("/composite-rate", summary="Project-wide composite labor rate")
def composite_rate(
	project_id: str | None = Query(default=None),
	weeks_back: int | None = Query(default=None, ge=1, le=260),
	categories: str | None = Query(default=None, description="Comma-separated labor categories"),
	db: Session = Depends(get_db),
	settings: Settings = Depends(get_settings),
) -> dict:
	"""Return overall, recent, per-category, and weekly composite rates."""
	return compute_composite_rate(
		db,
		project_id,
		lookback_weeks=weeks_back or settings.COMPOSITE_LOOKBACK_WEEKS,
		categories=categories.split(",") if categories else None,
		recent_weeks=settings.COMPOSITE_RECENT_WEEKS,
	)
