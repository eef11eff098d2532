"""Database connectivity, session lifecycle, and persistence integration boundary."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from config import get_settings


settings = get_settings()

Base = declarative_base()


def _build_engine(database_url: str):
	"""Create a SQLAlchemy engine tuned for PostgreSQL with a SQLite fallback."""
	engine_kwargs: dict[str, object] = {
		"pool_pre_ping": True,
		"pool_recycle": 1800,
	}

	if database_url.startswith("postgresql"):
		engine_kwargs.update(
			{
				"pool_size": 20,
				"max_overflow": 40,
				"pool_timeout": 30,
				"pool_use_lifo": True,
			}
		)
	elif database_url.startswith("sqlite"):
		engine_kwargs.update({"connect_args": {"check_same_thread": False}})

	return create_engine(database_url, **engine_kwargs)


engine = _build_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
	"""Yield a request-scoped database session."""
	session = SessionLocal()
	try:
		yield session
	finally:
		session.close()


def init_db() -> None:
	"""Create registered metadata tables at application startup."""
	from models import craft_type_model, headcount_forecast_model, labor_actual_model  # noqa: F401

	Base.metadata.create_all(bind=engine)


def check_database_connection() -> bool:
	"""Run a lightweight readiness query against the configured database."""
	try:
		with engine.connect() as connection:
			connection.execute(text("SELECT 1"))
		return True
	except SQLAlchemyError:
		return False
