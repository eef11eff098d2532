"""Centralized backend configuration and environment-driven settings definitions."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	"""Application settings loaded from environment variables."""

	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	DATABASE_URL: str = Field(default="sqlite:///./labor_forecast.db")
	ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(default="production")

	STANDARD_HOURS_PER_WEEK: float = Field(default=40.0)
	DEFAULT_LOOKBACK_WEEKS: int = Field(default=8)
	DEFAULT_WEEKS_AHEAD: int = Field(default=12)
	MAX_WEEKS_AHEAD: int = Field(default=104)
	COMPOSITE_LOOKBACK_WEEKS: int = Field(default=12)
	COMPOSITE_RECENT_WEEKS: int = Field(default=4)

	app_name: str = Field(default="Construction Labor Forecast Service")
	app_version: str = Field(default="1.0.0")
	app_description: str = Field(
		default=(
			"API for craft labor running-average rates, headcount-driven cost "
			"projections, and weekly labor actuals on construction projects."
		)
	)
	debug: bool = Field(default=False)

	api_prefix: str = Field(default="/api/v1")
	frontend_origin: str = Field(default="http://localhost:3000")
	cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")

	log_level: str = Field(default="INFO")

	@field_validator("STANDARD_HOURS_PER_WEEK")
	@classmethod
	def validate_standard_hours(cls, value: float) -> float:
		"""Validate the standard weekly hours per person fit inside one week."""
		if value <= 0 or value > 168:
			raise ValueError("STANDARD_HOURS_PER_WEEK must be greater than 0 and at most 168.")
		return value

	@field_validator(
		"DEFAULT_LOOKBACK_WEEKS",
		"DEFAULT_WEEKS_AHEAD",
		"MAX_WEEKS_AHEAD",
		"COMPOSITE_LOOKBACK_WEEKS",
		"COMPOSITE_RECENT_WEEKS",
	)
	@classmethod
	def validate_positive_weeks(cls, value: int) -> int:
		"""Validate week counts are positive integers."""
		if value < 1:
			raise ValueError("Week counts must be positive integers.")
		return value

	@model_validator(mode="after")
	def validate_horizon_bounds(self) -> "Settings":
		"""Validate the default planning horizon does not exceed the maximum."""
		if self.DEFAULT_WEEKS_AHEAD > self.MAX_WEEKS_AHEAD:
			raise ValueError("DEFAULT_WEEKS_AHEAD must not exceed MAX_WEEKS_AHEAD.")
		return self

	@property
	def database_url(self) -> str:
		"""Lowercase accessor for database URL."""
		return self.DATABASE_URL

	@property
	def environment(self) -> str:
		"""Lowercase accessor for deployment environment."""
		return self.ENVIRONMENT

	@property
	def allowed_cors_origins(self) -> List[str]:
		"""Return normalized CORS origins list."""
		raw_origins = [item.strip() for item in self.cors_origins.split(",")]
		merged = [origin for origin in raw_origins if origin]
		if self.frontend_origin and self.frontend_origin not in merged:
			merged.append(self.frontend_origin)
		return merged


@lru_cache(maxsize=1)
def get_settings() -> Settings:
	"""Return cached settings instance for dependency injection."""
	return Settings()
