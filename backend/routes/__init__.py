from .labor_forecast_routes import router as labor_forecast_routes
from .weekly_entry_routes import router as weekly_entry_routes

__all__ = [
	"labor_forecast_routes",
	"weekly_entry_routes",
]
