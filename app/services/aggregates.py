from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Sequence

import pandas as pd

from app.domain.models import CoverageNote, EnrichedHistoryRecord, HistorySummary, YearlyTotal
from app.services.cadence import detect_cadence, expected_payments

CHART_YEARS = 10


def yearly_totals(records: Sequence[EnrichedHistoryRecord]) -> List[YearlyTotal]:
    """
    Per-calendar-year sums of the full ledger, oldest year first.
    Pure function of the records; recomputed on every call, never stored.
    """
    if not records:
        return []

    frame = pd.DataFrame(
        {
            "year": [int(r.year) for r in records],
            "amount": [float(r.amount) for r in records],
        }
    )
    grouped = frame.groupby("year")["amount"].agg(["sum", "count"]).sort_index()
    return [
        YearlyTotal(year=int(year), total=float(row["sum"]), count=int(row["count"]))
        for year, row in grouped.iterrows()
    ]


def dividend_growth_rate(totals: Sequence[YearlyTotal]) -> float:
    ordered = sorted(totals, key=lambda t: t.year)
    if len(ordered) < 2:
        return 0.0
    latest, prior = ordered[-1], ordered[-2]
    if prior.total <= 0:
        return 0.0
    return (latest.total - prior.total) / prior.total * 100.0


def chart_window(totals: Sequence[YearlyTotal], years: int = CHART_YEARS) -> List[YearlyTotal]:
    ordered = sorted(totals, key=lambda t: t.year)
    if not ordered:
        return []
    start = ordered[-1].year - (years - 1)
    return [t for t in ordered if t.year >= start]


def _utc_today() -> date:
    return datetime.utcnow().date()


def coverage_note(
    records: Sequence[EnrichedHistoryRecord],
    cadence: str,
    today: Optional[date] = None,
) -> CoverageNote:
    """
    Explain why the latest yearly totals may look off.

    - latest year short of the cadence's expected count -> incomplete_year; if it
      is the current calendar year the shortfall counts as not yet published
    - otherwise prior year short -> incomplete_year for the prior year
    - otherwise totals differ -> rate_change (per-payment amount moved)
    """
    today = today or _utc_today()
    expected = expected_payments(cadence)
    totals = yearly_totals(records)
    if not totals or expected <= 0:
        return CoverageNote(kind="none")

    latest = totals[-1]
    prior = totals[-2] if len(totals) > 1 else None

    if latest.count < expected:
        months = sorted({int(r.ex_date[5:7]) for r in records if r.year == latest.year})
        missing = [m for m in range(1, 13) if m not in months] if cadence == "monthly" else []
        pending = expected - latest.count if latest.year == today.year else 0
        return CoverageNote(
            kind="incomplete_year",
            year=latest.year,
            expected_count=expected,
            actual_count=latest.count,
            missing_months=missing,
            not_yet_published=pending,
        )

    if prior is None:
        return CoverageNote(kind="none")

    if prior.count < expected:
        return CoverageNote(
            kind="incomplete_year",
            year=prior.year,
            expected_count=expected,
            actual_count=prior.count,
        )

    if round(latest.total, 4) != round(prior.total, 4):
        return CoverageNote(kind="rate_change", year=latest.year, expected_count=expected, actual_count=latest.count)

    return CoverageNote(kind="none")


def summarize_history(
    records: Sequence[EnrichedHistoryRecord],
    cadence: Optional[str] = None,
    today: Optional[date] = None,
) -> HistorySummary:
    cadence = cadence or detect_cadence(records)
    totals = yearly_totals(records)
    return HistorySummary(
        cadence=cadence,
        yearly_totals=totals,
        dividend_growth_rate=dividend_growth_rate(totals),
        latest_year=totals[-1].year if totals else None,
        prior_year=totals[-2].year if len(totals) > 1 else None,
        note=coverage_note(records, cadence, today=today),
        has_cuts=any(r.is_cut for r in records),
        increases=sum(1 for r in records if r.change_percent > 0),
        chart=chart_window(totals),
    )
