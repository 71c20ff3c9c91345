from datetime import date

import pytest

from app.domain.models import DividendEvent, YearlyTotal
from app.services.aggregates import chart_window, coverage_note, dividend_growth_rate, summarize_history, yearly_totals
from app.services.history import enrich_history
from tests.conftest import ts


def _quarterly(years, amount_by_year):
    events = []
    for y in years:
        for m in (2, 5, 8, 11):
            events.append(DividendEvent(ts(y, m, 10), amount_by_year[y]))
    return events


def test_yearly_totals_and_growth():
    records = enrich_history(_quarterly([2022, 2023], {2022: 0.5, 2023: 0.55}))
    totals = yearly_totals(records)
    assert [t.year for t in totals] == [2022, 2023]
    assert totals[0].total == pytest.approx(2.0)
    assert totals[1].total == pytest.approx(2.2)
    assert totals[1].count == 4
    assert dividend_growth_rate(totals) == pytest.approx(10.0)


def test_aggregation_is_pure():
    records = enrich_history(_quarterly([2021, 2022, 2023], {2021: 0.4, 2022: 0.45, 2023: 0.5}))
    first = summarize_history(records, today=date(2024, 6, 1))
    second = summarize_history(records, today=date(2024, 6, 1))
    assert first.yearly_totals == second.yearly_totals
    assert first.dividend_growth_rate == second.dividend_growth_rate


def test_growth_rate_edge_cases():
    assert dividend_growth_rate([]) == 0
    assert dividend_growth_rate([YearlyTotal(2023, 1.0)]) == 0
    assert dividend_growth_rate([YearlyTotal(2022, 0.0), YearlyTotal(2023, 1.0)]) == 0


def test_current_year_shortfall_is_not_yet_published():
    events = _quarterly([2023], {2023: 0.5}) + [DividendEvent(ts(2024, 2, 10), 0.5), DividendEvent(ts(2024, 5, 10), 0.5)]
    records = enrich_history(events)
    note = coverage_note(records, "quarterly", today=date(2024, 7, 1))
    assert note.kind == "incomplete_year"
    assert note.year == 2024
    assert note.expected_count == 4
    assert note.actual_count == 2
    assert note.not_yet_published == 2


def test_past_year_shortfall_is_a_gap():
    events = _quarterly([2022], {2022: 0.5}) + [DividendEvent(ts(2023, 2, 10), 0.5)]
    note = coverage_note(enrich_history(events), "quarterly", today=date(2025, 1, 1))
    assert note.kind == "incomplete_year"
    assert note.year == 2023
    assert note.not_yet_published == 0


def test_missing_months_for_monthly_cadence():
    events = [DividendEvent(ts(2024, m, 1), 0.1) for m in range(1, 11)]
    note = coverage_note(enrich_history(events), "monthly", today=date(2024, 10, 15))
    assert note.missing_months == [11, 12]
    assert note.not_yet_published == 2


def test_full_years_with_different_totals_is_rate_change():
    records = enrich_history(_quarterly([2022, 2023], {2022: 0.5, 2023: 0.55}))
    assert coverage_note(records, "quarterly", today=date(2024, 3, 1)).kind == "rate_change"


def test_chart_window_keeps_last_ten_years():
    totals = [YearlyTotal(y, 1.0) for y in range(2000, 2025)]
    window = chart_window(totals)
    assert window[0].year == 2015
    assert window[-1].year == 2024
    assert len(window) == 10
