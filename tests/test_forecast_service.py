# tests/test_forecast_service.py
import random
from datetime import date, timedelta

import pytest

from conftest import TODAY
from models.headcount_forecast_model import HeadcountForecast
from services.errors import InvalidArgumentError
from services.forecast_service import (
    ForecastConfig,
    calculate_forecast,
    format_currency,
    resolve_forecast_window,
)

FIRST_WEEK = date(2025, 8, 10)


def _week(result, week_ending):
    return next(week for week in result["weeks"] if week["weekEnding"] == week_ending)


def test_single_craft_projection(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1000)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 10)

    result = calculate_forecast(db, project_id, weeks_ahead=1, today=TODAY).to_dict()

    entry = result["weeks"][0]["entries"][0]
    assert entry["hours"] == 400
    assert entry["avgRate"] == 25
    assert entry["cost"] == 10000
    assert entry["rateAvailable"] is True
    assert result["grandTotals"] == {"headcount": 10, "totalHours": 400, "totalCost": 10000, "uncostedHours": 0}


def test_two_craft_week_totals(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)
    add_actual(project_id, crafts["FORE"], date(2025, 8, 3), 40, 1800)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 8)
    add_headcount(project_id, crafts["FORE"], FIRST_WEEK, 4)

    result = calculate_forecast(db, project_id, weeks_ahead=1, today=TODAY).to_dict()

    totals = result["weeks"][0]["totals"]
    assert totals["headcount"] == 12
    assert totals["totalHours"] == 480
    assert totals["totalCost"] == 16800
    assert [entry["craftCode"] for entry in result["weeks"][0]["entries"]] == ["CARP", "FORE"]


def test_craft_without_history_is_flagged_not_silently_costed(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 2)
    add_headcount(project_id, crafts["ELEC"], FIRST_WEEK, 5)

    result = calculate_forecast(db, project_id, weeks_ahead=1, today=TODAY).to_dict()

    electrician = next(entry for entry in result["weeks"][0]["entries"] if entry["craftCode"] == "ELEC")
    assert electrician["avgRate"] is None
    assert electrician["rateAvailable"] is False
    assert electrician["cost"] == 0
    assert electrician["hours"] == 200

    assert result["grandTotals"]["totalCost"] == 2400
    assert result["grandTotals"]["uncostedHours"] == 200
    assert result["weeks"][0]["totals"]["uncostedHours"] == 200
    assert [craft["craftCode"] for craft in result["uncostedCraftTypes"]] == ["ELEC"]
    assert result["uncostedCraftTypes"][0]["hours"] == 200

    direct = next(summary for summary in result["categorySummary"] if summary["category"] == "direct")
    assert direct["craftCount"] == 2
    assert direct["totalHours"] == 280
    assert direct["avgRate"] == 30


def test_window_lists_every_week_once_headcount_exists(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK + timedelta(weeks=1), 3)

    result = calculate_forecast(db, project_id, weeks_ahead=3, today=TODAY).to_dict()

    assert [week["weekEnding"] for week in result["weeks"]] == ["2025-08-10", "2025-08-17", "2025-08-24"]
    assert result["weeks"][0]["entries"] == []
    assert result["weeks"][0]["totals"]["totalCost"] == 0
    assert result["weeks"][1]["totals"]["totalHours"] == 120
    assert result["startDate"] == "2025-08-10"
    assert result["endDate"] == "2025-08-24"


def test_no_headcount_yields_empty_result(db, crafts, project_id, add_actual):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)

    result = calculate_forecast(db, project_id, weeks_ahead=4, today=TODAY).to_dict()

    assert result["weeks"] == []
    assert result["grandTotals"] == {"headcount": 0, "totalHours": 0, "totalCost": 0, "uncostedHours": 0}
    assert result["categorySummary"] == []
    assert result["uncostedCraftTypes"] == []
    assert result["weeksAhead"] == 4


def test_headcount_outside_window_is_excluded(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)
    add_headcount(project_id, crafts["CARP"], date(2025, 8, 3), 50)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK + timedelta(weeks=2), 50)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 1)

    result = calculate_forecast(db, project_id, weeks_ahead=2, today=TODAY).to_dict()

    assert result["grandTotals"]["headcount"] == 1


def test_row_not_on_a_week_boundary_is_skipped(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 1)
    db.add(
        HeadcountForecast(
            project_id=project_id,
            craft_type_id=crafts["FORE"].id,
            week_starting=date(2025, 8, 6),
            headcount=9,
        )
    )
    db.commit()

    result = calculate_forecast(db, project_id, weeks_ahead=2, today=TODAY).to_dict()

    assert result["grandTotals"]["headcount"] == 1


def test_plan_with_only_off_boundary_rows_is_empty(db, crafts, project_id, add_actual):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)
    db.add(
        HeadcountForecast(
            project_id=project_id,
            craft_type_id=crafts["CARP"].id,
            week_starting=date(2025, 8, 6),
            headcount=4,
        )
    )
    db.commit()

    result = calculate_forecast(db, project_id, weeks_ahead=2, today=TODAY).to_dict()

    assert result["weeks"] == []
    assert result["grandTotals"]["headcount"] == 0


def test_start_date_is_snapped_to_its_week_ending(db, crafts, project_id, add_headcount):
    add_headcount(project_id, crafts["CARP"], date(2025, 9, 7), 2)

    result = calculate_forecast(db, project_id, start_date="2025-09-02T10:00:00Z", weeks_ahead=1, today=TODAY).to_dict()

    assert result["startDate"] == "2025-09-07"
    assert result["grandTotals"]["headcount"] == 2


def test_totals_are_consistent_across_weeks_and_categories(db, crafts, project_id, add_actual, add_headcount):
    rng = random.Random(1729)
    for code, rate in (("CARP", 31.5), ("ELEC", 52.25), ("FORE", 47.1), ("SUPT", 88.8)):
        add_actual(project_id, crafts[code], date(2025, 8, 3), 40, 40 * rate)
    for offset in range(6):
        for code in ("CARP", "ELEC", "FORE", "SUPT"):
            add_headcount(project_id, crafts[code], FIRST_WEEK + timedelta(weeks=offset), rng.randint(0, 25))

    result = calculate_forecast(db, project_id, weeks_ahead=6, today=TODAY)

    week_hours = sum(week.totals.total_hours for week in result.weeks)
    week_cost = sum(week.totals.total_cost for week in result.weeks)
    category_cost = sum(summary.total_cost for summary in result.category_summary)
    entry_cost = sum(entry.cost for week in result.weeks for entry in week.entries)

    assert result.grand_totals.total_hours == pytest.approx(week_hours)
    assert result.grand_totals.total_cost == pytest.approx(week_cost)
    assert result.grand_totals.total_cost == pytest.approx(category_cost)
    assert result.grand_totals.total_cost == pytest.approx(entry_cost)
    assert result.grand_totals.headcount == sum(summary.total_headcount for summary in result.category_summary)


def test_repeated_calculation_is_stable(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1200)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 3)
    add_headcount(project_id, crafts["SUPT"], FIRST_WEEK, 1)

    first = calculate_forecast(db, project_id, weeks_ahead=2, today=TODAY).to_dict()
    second = calculate_forecast(db, project_id, weeks_ahead=2, today=TODAY).to_dict()
    first.pop("generatedAt")
    second.pop("generatedAt")

    assert first == second


def test_standard_hours_come_from_config(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1000)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 10)

    config = ForecastConfig(standard_hours_per_week=37.5)
    result = calculate_forecast(db, project_id, weeks_ahead=1, config=config, today=TODAY).to_dict()

    assert result["standardHoursPerWeek"] == 37.5
    assert result["grandTotals"]["totalHours"] == 375
    assert result["grandTotals"]["totalCost"] == 9375


def test_lookback_override_changes_which_rates_apply(db, crafts, project_id, add_actual, add_headcount):
    add_actual(project_id, crafts["CARP"], date(2025, 6, 15), 40, 800)
    add_actual(project_id, crafts["CARP"], date(2025, 8, 3), 40, 1600)
    add_headcount(project_id, crafts["CARP"], FIRST_WEEK, 1)

    narrow = calculate_forecast(db, project_id, weeks_ahead=1, today=TODAY, lookback_weeks=2).to_dict()
    wide = calculate_forecast(db, project_id, weeks_ahead=1, today=TODAY, lookback_weeks=8).to_dict()

    assert narrow["weeks"][0]["entries"][0]["avgRate"] == 40
    assert wide["weeks"][0]["entries"][0]["avgRate"] == 30
    assert narrow["lookbackWeeks"] == 2


@pytest.mark.parametrize("weeks_ahead", [0, -1, 1.5, None])
def test_invalid_horizon_is_rejected(db, project_id, weeks_ahead):
    with pytest.raises(InvalidArgumentError):
        calculate_forecast(db, project_id, weeks_ahead=weeks_ahead, today=TODAY)


def test_missing_project_is_rejected(db):
    with pytest.raises(InvalidArgumentError):
        calculate_forecast(db, None, today=TODAY)


def test_malformed_start_date_is_rejected(db, project_id):
    with pytest.raises(InvalidArgumentError):
        calculate_forecast(db, project_id, start_date="08/10/2025", today=TODAY)


def test_resolve_forecast_window_defaults_to_today():
    assert resolve_forecast_window(None, 2, today=TODAY) == [date(2025, 8, 10), date(2025, 8, 17)]


def test_format_currency_rounds_to_whole_dollars():
    assert format_currency(16800) == "$16,800"
    assert format_currency(1234.56) == "$1,235"
