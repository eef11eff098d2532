# tests/test_composite_rate_service.py
from datetime import date

import pytest

from conftest import TODAY
from services.composite_rate_service import compute_composite_rate
from services.errors import InvalidArgumentError


@pytest.fixture
def seeded(crafts, project_id, add_actual):
    add_actual(project_id, crafts["CARP"], date(2025, 6, 1), 40, 1200)
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1600)
    add_actual(project_id, crafts["FORE"], date(2025, 8, 3), 20, 1000)
    add_actual(project_id, crafts["SUPT"], date(2025, 7, 27), 10, 1000)
    add_actual(project_id, crafts["ELEC"], date(2025, 7, 27), 0, 50)
    # Outside the twelve-week window.
    add_actual(project_id, crafts["CARP"], date(2025, 5, 4), 40, 9000)
    return project_id


def _category(result, name):
    return next(item for item in result["categoryRates"] if item["category"] == name)


def test_overall_and_recent_rates(db, seeded):
    result = compute_composite_rate(db, seeded, lookback_weeks=12, recent_weeks=4, today=TODAY)
    composite = result["compositeRate"]

    assert composite["overall"] == 43.64
    assert composite["recent"] == 51.43
    assert composite["totalHours"] == 110
    assert composite["totalCost"] == 4800
    assert composite["weeksOfData"] == 3
    assert composite["recentWeeks"] == 4
    assert composite["dateRange"] == {"start": "2025-05-14", "end": "2025-08-06"}
    assert result["categories"] == ["direct", "indirect", "staff"]


def test_category_breakdown(db, seeded):
    result = compute_composite_rate(db, seeded, today=TODAY)

    assert _category(result, "direct")["rate"] == 35
    assert _category(result, "indirect")["rate"] == 50
    assert _category(result, "staff")["rate"] == 100
    assert all(item["included"] for item in result["categoryRates"])


def test_weekly_trend_skips_zero_hour_rows(db, seeded):
    result = compute_composite_rate(db, seeded, today=TODAY)

    assert [point["weekEnding"] for point in result["weeklyTrend"]] == ["2025-06-01", "2025-07-27", "2025-08-03"]
    assert result["weeklyTrend"][1] == {"weekEnding": "2025-07-27", "rate": 100, "hours": 10, "cost": 1000}
    assert result["weeklyTrend"][2]["rate"] == pytest.approx(43.33)


def test_category_filter_limits_the_blend(db, seeded):
    result = compute_composite_rate(db, seeded, categories=["Direct", " "], today=TODAY)

    assert result["categories"] == ["direct"]
    assert result["compositeRate"]["overall"] == 35
    staff = _category(result, "staff")
    assert staff["included"] is False
    assert staff["rate"] is None


def test_no_actuals_gives_null_rates(db, crafts, project_id):
    result = compute_composite_rate(db, project_id, today=TODAY)

    assert result["compositeRate"]["overall"] is None
    assert result["compositeRate"]["recent"] is None
    assert result["compositeRate"]["weeksOfData"] == 0
    assert result["weeklyTrend"] == []
    assert all(item["rate"] is None for item in result["categoryRates"])


def test_unknown_category_is_rejected(db, project_id):
    with pytest.raises(InvalidArgumentError):
        compute_composite_rate(db, project_id, categories=["direct", "overhead"], today=TODAY)


@pytest.mark.parametrize("field", ["lookback_weeks", "recent_weeks"])
def test_non_positive_windows_are_rejected(db, project_id, field):
    with pytest.raises(InvalidArgumentError):
        compute_composite_rate(db, project_id, today=TODAY, **{field: 0})
