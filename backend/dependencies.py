"""Shared dependency providers for forecast route handlers."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from config import get_settings
from database import get_db as database_get_db
from services.forecast_service import ForecastConfig


def get_db() -> Generator[Session, None, None]:
	"""Expose database session dependency for FastAPI route handlers."""
	yield from database_get_db()


def get_forecast_config() -> ForecastConfig:
	"""Build the forecast calculation settings from application configuration."""
	return ForecastConfig.from_settings(get_settings())
