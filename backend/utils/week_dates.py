"""Week boundary conversions between Tuesday week-starting and Sunday week-ending dates.

Headcount plans are stored against the Tuesday that starts a week while actuals,
the UI, and every API response speak in the Sunday that ends it. All helpers
return ``datetime.date`` values, which carry no time component and therefore
cannot drift across a timezone boundary once produced. Aware datetimes are
converted to UTC before their calendar day is taken.

Strings arriving from forms or query parameters must go through
:func:`normalize_date_string` (or :func:`parse_date`) before they are compared:
``"2025-08-04"`` and ``"2025-08-04T04:59:59.999Z"`` name the same day but are
not equal as text.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Union

from services.errors import InvalidArgumentError


DateLike = Union[date, datetime, str]

TUESDAY = 1
SUNDAY = 6
WEEK_START_TO_END_DAYS = 5


def normalize_date_string(value: str) -> str:
	"""Strip any time component and re-serialize the calendar day as ``YYYY-MM-DD``."""
	if not isinstance(value, str):
		raise InvalidArgumentError("Date value must be a string.")

	cleaned = value.strip()
	day_part = cleaned.split("T", 1)[0].split(" ", 1)[0]
	try:
		parsed = date.fromisoformat(day_part)
	except ValueError as exc:
		raise InvalidArgumentError(f"Invalid date value '{value}'; expected YYYY-MM-DD.") from exc
	return parsed.isoformat()


def to_utc_date(value: date | datetime) -> date:
	"""Reduce a date or datetime to its UTC calendar day."""
	if isinstance(value, datetime):
		if value.tzinfo is not None:
			value = value.astimezone(timezone.utc)
		return value.date()
	return value


def parse_date(value: DateLike) -> date:
	"""Parse any accepted boundary representation into a calendar date."""
	if isinstance(value, str):
		return date.fromisoformat(normalize_date_string(value))
	if isinstance(value, (date, datetime)):
		return to_utc_date(value)
	raise InvalidArgumentError(f"Unsupported date value of type {type(value).__name__}.")


def format_date(value: date) -> str:
	return value.isoformat()


def week_ending_from_week_starting(week_starting: DateLike) -> date:
	"""Return the Sunday five days after a Tuesday week start.

	The input is not checked for being a Tuesday; any other weekday yields a
	date five days later that is not a real week boundary.
	"""
	return parse_date(week_starting) + timedelta(days=WEEK_START_TO_END_DAYS)


def week_starting_from_week_ending(week_ending: DateLike) -> date:
	"""Return the Tuesday five days before a Sunday week ending."""
	return parse_date(week_ending) - timedelta(days=WEEK_START_TO_END_DAYS)


def week_starting_for_any_date(value: DateLike) -> date:
	"""Roll back to the most recent Tuesday on or before the given day."""
	day = parse_date(value)
	return day - timedelta(days=(day.weekday() - TUESDAY) % 7)


def week_ending_for_any_date(value: DateLike) -> date:
	"""Roll forward to the Sunday on or after the given day."""
	day = parse_date(value)
	return day + timedelta(days=(SUNDAY - day.weekday()) % 7)


def week_endings_window(start_week: date, count: int) -> list[date]:
	"""Return ``count`` consecutive week-ending dates beginning at ``start_week``."""
	return [start_week + timedelta(weeks=offset) for offset in range(count)]


def utc_today() -> date:
	return datetime.now(timezone.utc).date()
