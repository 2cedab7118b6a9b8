"""Query-time filtering and aggregation of persisted release records.

A query loads the whole persisted table, applies the optional date-range and
repository filters, and derives four views from the filtered records:

- ``monthlyData``: release counts per ``YYYY-MM`` and repository. Every month
  between the earliest and latest dated release appears, and every
  repository of the filtered set has a column in every row (zero-filled).
- ``weekdayData``: counts per publish weekday, labelled for the locale.
- ``releaseTypeData``: ordinary / prerelease / draft counts. The buckets are
  independent predicates, not a partition, so a draft prerelease counts in
  both of the last two buckets and they need not sum to the total.
- ``statistics``: see :func:`release_dashboard.stats.compute_statistics`.

Records without a usable publish date never enter a date-dependent view and
are dropped whenever a date bound is given.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .errors import InvalidQueryError
from .models import QueryParams, ReleaseRecord
from .records import parse_datetime
from .stats import compute_statistics
from .store import CsvReleaseStore

logger = logging.getLogger(__name__)

ALL_REPOSITORIES = "all"

LABELS: Dict[str, Dict[str, Any]] = {
    "en": {
        "weekdays": ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
        "types": {"ordinary": "Release", "prerelease": "Pre-release", "draft": "Draft"},
    },
    "ko": {
        "weekdays": ["일", "월", "화", "수", "목", "금", "토"],
        "types": {"ordinary": "일반 릴리스", "prerelease": "프리릴리스", "draft": "초안"},
    },
}


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_query_date(value: Optional[str], field_name: str) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` (or full ISO8601 timestamp) query value.

    Blank values mean "no bound".

    Raises:
        InvalidQueryError: If the value is not a recognizable date.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    parsed = parse_datetime(text)
    if parsed is None:
        raise InvalidQueryError(f"Invalid value for '{field_name}': expected YYYY-MM-DD, got '{value}'.")
    return parsed.date()


def parse_query_params(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    repository: Optional[str] = None,
) -> QueryParams:
    """Build validated ``QueryParams`` from raw request values.

    Raises:
        InvalidQueryError: If a date is malformed or ``startDate`` is after ``endDate``.
    """
    start = parse_query_date(start_date, "startDate")
    end = parse_query_date(end_date, "endDate")
    if start is not None and end is not None and start > end:
        raise InvalidQueryError("'startDate' must not be after 'endDate'.")

    repo = (repository or "").strip() or None
    return QueryParams(start_date=start, end_date=end, repository=repo)


def filter_by_date(
    records: Sequence[ReleaseRecord],
    start: Optional[date],
    end: Optional[date],
    today: date,
) -> List[ReleaseRecord]:
    """Keep dated records published within ``[start, end]`` (inclusive, UTC dates).

    With no bounds at all the input is returned unchanged, undated records
    included. A missing ``start`` is unbounded; a missing ``end`` is ``today``.
    """
    if start is None and end is None:
        return list(records)

    upper = end if end is not None else today
    kept = []
    for record in records:
        if not record.is_dated:
            continue
        published_on = record.published_at.date()
        if start is not None and published_on < start:
            continue
        if published_on > upper:
            continue
        kept.append(record)
    return kept


def filter_by_repository(records: Sequence[ReleaseRecord], repository: Optional[str]) -> List[ReleaseRecord]:
    """Keep records of exactly ``repository``; ``None`` or ``"all"`` keeps everything."""
    if repository is None or repository == ALL_REPOSITORIES:
        return list(records)
    return [record for record in records if record.repository == repository]


def _iter_months(first: str, last: str) -> Iterator[str]:
    year, month = (int(part) for part in first.split("-"))
    last_year, last_month = (int(part) for part in last.split("-"))
    while (year, month) <= (last_year, last_month):
        yield f"{year:04d}-{month:02d}"
        month += 1
        if month > 12:
            year, month = year + 1, 1


def monthly_counts(records: Sequence[ReleaseRecord], repositories: Sequence[str]) -> List[Dict[str, Any]]:
    """Per-month release counts with one zero-filled column per repository."""
    counts: Counter = Counter()
    for record in records:
        key = record.month_key
        if key is not None:
            counts[(key, record.repository)] += 1

    if not counts:
        return []

    month_keys = sorted({key for key, _ in counts})
    rows: List[Dict[str, Any]] = []
    for month in _iter_months(month_keys[0], month_keys[-1]):
        row: Dict[str, Any] = {"month": month}
        for repository in repositories:
            row[repository] = counts.get((month, repository), 0)
        rows.append(row)
    return rows


def weekday_counts(records: Sequence[ReleaseRecord], locale: str = "en") -> List[Dict[str, Any]]:
    """Counts per weekday index (Sunday first), only for weekdays that occur."""
    labels = LABELS[locale]["weekdays"]
    counts = Counter(record.weekday for record in records if record.weekday is not None)
    return [{"name": labels[weekday], "value": counts[weekday]} for weekday in sorted(counts)]


def release_type_counts(records: Sequence[ReleaseRecord], locale: str = "en") -> List[Dict[str, Any]]:
    """Exactly three buckets in fixed order: ordinary, prerelease, draft."""
    labels = LABELS[locale]["types"]
    buckets = [
        ("ordinary", sum(1 for r in records if not r.is_prerelease and not r.is_draft)),
        ("prerelease", sum(1 for r in records if r.is_prerelease)),
        ("draft", sum(1 for r in records if r.is_draft)),
    ]
    return [{"type": key, "name": labels[key], "value": value} for key, value in buckets]


def build_payload(
    records: Sequence[ReleaseRecord],
    locale: str = "en",
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Derive the full aggregate payload from an already filtered record set.

    ``today`` anchors the period counts in ``statistics`` and defaults to the
    current UTC date.
    """
    repositories = sorted({record.repository for record in records})
    return {
        "monthlyData": monthly_counts(records, repositories),
        "weekdayData": weekday_counts(records, locale),
        "releaseTypeData": release_type_counts(records, locale),
        "statistics": compute_statistics(list(records), today if today is not None else _utc_today()),
        "repositories": repositories,
    }


class QueryEngine:
    """Loads the persisted table and answers aggregate queries against it."""

    def __init__(
        self,
        store: CsvReleaseStore,
        locale: str = "en",
        clock: Callable[[], date] = _utc_today,
    ) -> None:
        if locale not in LABELS:
            raise ValueError(f"Unsupported locale '{locale}'.")
        self._store = store
        self._locale = locale
        self._clock = clock

    def query(self, params: QueryParams) -> Dict[str, Any]:
        """Filter the persisted records and build the aggregate payload.

        An empty or missing table yields the empty payload. Storage errors
        propagate to the caller.
        """
        records = self._store.read_all()
        today = self._clock()
        filtered = filter_by_date(records, params.start_date, params.end_date, today)
        filtered = filter_by_repository(filtered, params.repository)

        logger.debug(
            "Aggregating %d of %d releases",
            len(filtered),
            len(records),
            extra={
                "records_total": len(records),
                "records_filtered": len(filtered),
                "repository": params.repository,
            },
        )
        return build_payload(filtered, self._locale, today)
