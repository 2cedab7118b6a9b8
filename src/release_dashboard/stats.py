"""Summary statistics over filtered release records.

This module provides utilities for:
- Rounding with half-up semantics (``2.5 -> 3``) for day-based figures.
- Computing the average number of days between consecutive releases.
- Release rates (per year, week and day) over the span of releases.
- Counts within calendar periods and trailing windows relative to today.
- Building the ``statistics`` block of the aggregate payload.
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Union

from .models import ReleaseRecord
from .records import sunday_based_weekday

_SECONDS_PER_DAY = 24 * 60 * 60

StatValue = Union[int, float, Optional[str]]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, breaking ties away from negative infinity."""
    return int(math.floor(value + 0.5))


def round_cents(value: float) -> float:
    """Round to two decimals with half-up semantics."""
    return round_half_up(value * 100) / 100


def average_release_interval(published: Sequence[datetime]) -> int:
    """Average days between releases over the span of ``published`` timestamps.

    The span from the earliest to the latest timestamp is divided by the
    number of gaps (``n - 1``). Fewer than two timestamps yield ``0``.

    Args:
        published: Publish timestamps in any order.

    Returns:
        Average interval in whole days, rounded half-up.
    """
    if len(published) < 2:
        return 0

    ordered = sorted(published)
    span_days = (ordered[-1] - ordered[0]).total_seconds() / _SECONDS_PER_DAY
    return round_half_up(span_days / (len(ordered) - 1))


def release_rates(published: Sequence[datetime]) -> Dict[str, float]:
    """Releases per year, week and day over the span of ``published``.

    The span is counted in whole days, rounded up. A span of zero days
    (no releases, or all on the same instant) yields zero rates.

    Returns:
        Dictionary with ``releasesPerYear``, ``releasesPerWeek`` and
        ``releasesPerDay``, each rounded half-up to two decimals.
    """
    if not published:
        return {"releasesPerYear": 0.0, "releasesPerWeek": 0.0, "releasesPerDay": 0.0}

    span_days = math.ceil((max(published) - min(published)).total_seconds() / _SECONDS_PER_DAY)
    if span_days == 0:
        return {"releasesPerYear": 0.0, "releasesPerWeek": 0.0, "releasesPerDay": 0.0}

    count = len(published)
    return {
        "releasesPerYear": round_cents(count * 365 / span_days),
        "releasesPerWeek": round_cents(count * 7 / span_days),
        "releasesPerDay": round_cents(count / span_days),
    }


def months_before(day: date, months: int) -> date:
    """Same calendar day ``months`` months earlier, clamped to the month's length."""
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def period_counts(published: Sequence[datetime], today: date) -> Dict[str, int]:
    """Count releases in calendar periods and trailing windows ending ``today``.

    All comparisons use UTC publish dates. ``thisYear``, ``thisWeek`` (weeks
    start on Sunday) and ``today`` are open-ended from their start. The
    trailing windows are disjoint bands:

    - ``releasesLastYear``: from one year ago up to the start of this year.
    - ``releasesLast6Months``: from six months ago up to three months ago.
    - ``releasesLast3Months``: from three months ago up to one month ago.
    - ``releasesLastMonth``: from one month ago up to today (exclusive).
    """
    days = [value.date() for value in published]
    start_of_year = date(today.year, 1, 1)
    start_of_week = today - timedelta(days=sunday_based_weekday(today))
    one_year_ago = months_before(today, 12)
    six_months_ago = months_before(today, 6)
    three_months_ago = months_before(today, 3)
    one_month_ago = months_before(today, 1)

    def between(lower: date, upper: date) -> int:
        return sum(1 for day in days if lower <= day < upper)

    return {
        "releasesThisYear": sum(1 for day in days if day >= start_of_year),
        "releasesThisWeek": sum(1 for day in days if day >= start_of_week),
        "releasesToday": sum(1 for day in days if day >= today),
        "releasesLastYear": between(one_year_ago, start_of_year),
        "releasesLast6Months": between(six_months_ago, three_months_ago),
        "releasesLast3Months": between(three_months_ago, one_month_ago),
        "releasesLastMonth": between(one_month_ago, today),
    }


def compute_statistics(records: List[ReleaseRecord], today: date) -> Dict[str, StatValue]:
    """Compute the summary statistics block for a filtered record set.

    Undated records count toward totals but are ignored for the interval,
    the first/latest release dates, the rates and the period counts.

    Args:
        records: Already filtered records.
        today: Current UTC date anchoring the period counts.

    Returns:
        Dictionary with ``totalReleases``, ``preReleases``,
        ``averageReleaseInterval``, ``draftReleases``, ``releasesWithNotes``,
        ``firstReleaseDate``, ``latestReleaseDate``, the keys of
        :func:`release_rates` and those of :func:`period_counts`.
    """
    published = sorted(record.published_at for record in records if record.is_dated)

    stats: Dict[str, StatValue] = {
        "totalReleases": len(records),
        "preReleases": sum(1 for record in records if record.is_prerelease),
        "averageReleaseInterval": average_release_interval(published),
        "draftReleases": sum(1 for record in records if record.is_draft),
        "releasesWithNotes": sum(1 for record in records if record.has_note),
        "firstReleaseDate": published[0].date().isoformat() if published else None,
        "latestReleaseDate": published[-1].date().isoformat() if published else None,
    }
    stats.update(release_rates(published))
    stats.update(period_counts(published, today))
    return stats
