"""Domain error taxonomy shared by the labor forecast services."""

from __future__ import annotations


class LaborForecastError(Exception):
	"""Base error for labor forecast computation and data access."""


class InvalidArgumentError(LaborForecastError, ValueError):
	"""Raised when caller input is missing or malformed; nothing is computed."""


class DataUnavailableError(LaborForecastError):
	"""Raised when the underlying store could not be read or written.

	Callers must not substitute empty or zero data for a failed read.
	"""
