"""Domain models for release ingestion and aggregation.

These dataclasses intentionally model only the subset of GitHub release
fields that the dashboard persists and aggregates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """One normalized, flat release row.

    Date-derived fields are ``None`` when ``published_at`` is missing or
    unparsable, and ``days_to_publish`` is ``None`` when either timestamp is.
    """

    repository: str
    tag_name: str
    name: str
    created_at_raw: str
    published_at_raw: str
    created_at: Optional[datetime]
    published_at: Optional[datetime]
    year: Optional[int]
    month: Optional[int]
    day: Optional[int]
    weekday: Optional[int]
    is_weekend: Optional[bool]
    is_draft: bool
    is_prerelease: bool
    note_length: int
    has_note: bool
    days_to_publish: Optional[int]

    @property
    def is_dated(self) -> bool:
        """Whether the record carries a usable publish timestamp."""
        return self.published_at is not None

    @property
    def month_key(self) -> Optional[str]:
        """Zero-padded ``YYYY-MM`` bucket key, or ``None`` for undated records."""
        if self.year is None or self.month is None:
            return None
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(slots=True)
class FetchResult:
    """Outcome of fetching one repository: records on success, a reason on failure."""

    repository: str
    records: List[ReleaseRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class IngestionReport:
    """Summary of one ingestion run."""

    results: List[FetchResult] = field(default_factory=list)
    total_records: int = 0
    written: bool = False
    write_error: Optional[str] = None

    @property
    def failed_repositories(self) -> List[str]:
        return [result.repository for result in self.results if not result.ok]


@dataclass(frozen=True, slots=True)
class QueryParams:
    """Validated filters for one aggregate query."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    repository: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RepositoryId:
    """A parsed ``owner/name`` repository identifier."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"
