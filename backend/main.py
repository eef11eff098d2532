"""Backend API application entrypoint for the Construction Labor Forecast Service."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from database import check_database_connection, init_db
from routes.labor_forecast_routes import router as labor_forecast_router
from routes.weekly_entry_routes import router as weekly_entry_router
from services.errors import DataUnavailableError, InvalidArgumentError


def configure_logging(settings: Settings) -> logging.Logger:
	"""Configure application-wide structured logging."""
	level = getattr(logging, settings.log_level.upper(), logging.INFO)
	logging.basicConfig(
		level=level,
		format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
	)
	logger = logging.getLogger("labor-forecast")
	logger.setLevel(level)
	return logger


settings = get_settings()
logger = configure_logging(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
	"""Manage startup and shutdown lifecycle events."""
	logger.info("Starting server | app=%s | version=%s", settings.app_name, settings.app_version)
	init_db()
	logger.info("Database metadata initialization completed")
	app.state.started_at = time.time()
	app.state.instance_id = str(uuid.uuid4())
	app.state.environment = settings.environment
	yield
	logger.info("Shutting down server | app=%s", settings.app_name)


def add_cors_middleware(app: FastAPI, app_settings: Settings) -> None:
	"""Attach CORS middleware for frontend interaction."""
	app.add_middleware(
		CORSMiddleware,
		allow_origins=app_settings.allowed_cors_origins,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)


def add_request_context_middleware(app: FastAPI) -> None:
	"""Attach request context middleware for tracing and observability."""

	@app.middleware("http")
	async def inject_request_context(request: Request, call_next: Callable):
		request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
		request.state.request_id = request_id
		start = time.perf_counter()

		response = await call_next(request)

		elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
		response.headers["X-Request-ID"] = request_id
		response.headers["X-Response-Time-ms"] = str(elapsed_ms)

		logger.info(
			"request_complete | request_id=%s | method=%s | path=%s | status=%s | latency_ms=%s",
			request_id,
			request.method,
			request.url.path,
			response.status_code,
			elapsed_ms,
		)
		return response


def _error_response(request: Request, status_code: int, error_type: str, message: object, **extra: object) -> JSONResponse:
	request_id = getattr(request.state, "request_id", "unknown")
	return JSONResponse(
		status_code=status_code,
		content={
			"error": {
				"type": error_type,
				"message": message,
				**extra,
				"request_id": request_id,
			}
		},
	)


def register_exception_handlers(app: FastAPI) -> None:
	"""Register global exception handlers."""

	@app.exception_handler(StarletteHTTPException)
	async def http_exception_handler(request: Request, exc: StarletteHTTPException):
		return _error_response(request, exc.status_code, "http_error", exc.detail)

	@app.exception_handler(RequestValidationError)
	async def validation_exception_handler(request: Request, exc: RequestValidationError):
		return _error_response(
			request,
			status.HTTP_422_UNPROCESSABLE_ENTITY,
			"validation_error",
			"Request payload validation failed.",
			details=jsonable_errors(exc),
		)

	@app.exception_handler(InvalidArgumentError)
	async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
		return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_argument", str(exc))

	@app.exception_handler(DataUnavailableError)
	async def data_unavailable_handler(request: Request, exc: DataUnavailableError):
		logger.warning(
			"data_unavailable | request_id=%s | path=%s",
			getattr(request.state, "request_id", "unknown"),
			request.url.path,
		)
		return _error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, "data_unavailable", str(exc))

	@app.exception_handler(Exception)
	async def unhandled_exception_handler(request: Request, exc: Exception):
		logger.exception("unhandled_exception | request_id=%s", getattr(request.state, "request_id", "unknown"))
		return _error_response(
			request,
			status.HTTP_500_INTERNAL_SERVER_ERROR,
			"internal_server_error",
			"An unexpected error occurred.",
		)


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
	"""Reduce validation errors to JSON-safe location, message, and type fields."""
	return [
		{"loc": list(error.get("loc", ())), "msg": str(error.get("msg", "")), "type": str(error.get("type", ""))}
		for error in exc.errors()
	]


def register_routes(app: FastAPI, app_settings: Settings) -> None:
	"""Register all feature routers with a shared API prefix."""
	app.include_router(labor_forecast_router, prefix=app_settings.api_prefix)
	app.include_router(weekly_entry_router, prefix=app_settings.api_prefix)


def create_app() -> FastAPI:
	"""Create and configure FastAPI application instance."""
	app = FastAPI(
		title=settings.app_name,
		version=settings.app_version,
		description=settings.app_description,
		lifespan=lifespan,
		docs_url="/docs",
		redoc_url="/redoc",
		openapi_url=f"{settings.api_prefix}/openapi.json",
	)

	add_cors_middleware(app, settings)
	add_request_context_middleware(app)
	register_exception_handlers(app)
	register_routes(app, settings)

	@app.get("/", tags=["system"], summary="Root endpoint")
	def root() -> dict[str, str]:
		return {
			"service": settings.app_name,
			"version": settings.app_version,
			"status": "running",
		}

	@app.get("/health", tags=["system"], summary="Service health check")
	def health_check() -> dict[str, object]:
		"""Return runtime and dependency health status."""
		db_ok = check_database_connection()
		uptime_seconds = int(time.time() - app.state.started_at)

		return {
			"status": "healthy" if db_ok else "degraded",
			"code": "ok" if db_ok else "db_unreachable",
			"environment": app.state.environment,
			"version": settings.app_version,
			"instance_id": app.state.instance_id,
			"database": {"connected": db_ok},
			"uptime_seconds": uptime_seconds,
		}

	return app


app = create_app()
