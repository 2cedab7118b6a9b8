"""Release record derivation and CSV row mapping.

This module owns the flat record schema:
- Building a ``ReleaseRecord`` from a raw GitHub release payload, including
  the publish-date derived fields (year, month, day, weekday, weekend flag).
- Serializing records into string rows for the persisted CSV table.
- Parsing persisted rows back into records.

Weekday indexes follow the GitHub/JavaScript convention: ``0`` is Sunday and
``6`` is Saturday. All derivations use UTC.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .errors import DataValidationError
from .models import ReleaseRecord, RepositoryId

CSV_FIELDS: List[str] = [
    "repository",
    "tagName",
    "name",
    "createdAt",
    "publishedAt",
    "createdAtIso",
    "publishedAtIso",
    "publishedYear",
    "publishedMonth",
    "publishedDay",
    "weekday",
    "isWeekend",
    "isDraft",
    "isPrerelease",
    "releaseNoteLength",
    "hasReleaseNote",
    "daysToPublish",
]

_SECONDS_PER_DAY = 24 * 60 * 60


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse GitHub ISO8601 timestamps into timezone-aware UTC datetimes.

    Returns ``None`` for missing or unparsable values instead of raising.
    """
    if not value:
        return None

    text = value.strip()
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_datetime(value: Optional[datetime]) -> str:
    """Format a UTC datetime as ``YYYY-MM-DDTHH:MM:SSZ``; empty string for ``None``."""
    if value is None:
        return ""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_repository_id(repository: str) -> RepositoryId:
    """Split an ``owner/name`` identifier.

    Raises:
        DataValidationError: If the identifier is not exactly two non-empty parts.
    """
    parts = repository.strip().split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise DataValidationError(
            f"Invalid repository identifier '{repository}': expected 'owner/name'."
        )
    return RepositoryId(owner=parts[0].strip(), name=parts[1].strip())


def sunday_based_weekday(value: date) -> int:
    """Return the weekday index with Sunday as ``0``."""
    return (value.weekday() + 1) % 7


def days_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    """Whole days from ``start`` to ``end``, floored; negative spans are kept."""
    if start is None or end is None:
        return None
    return math.floor((end - start).total_seconds() / _SECONDS_PER_DAY)


def build_record(repository: str, raw: Mapping[str, Any]) -> ReleaseRecord:
    """Normalize one raw GitHub release payload into a ``ReleaseRecord``."""
    created_at_raw = str(raw.get("created_at") or "")
    published_at_raw = str(raw.get("published_at") or "")
    created_at = parse_datetime(created_at_raw)
    published_at = parse_datetime(published_at_raw)

    body = raw.get("body") or ""
    note_length = len(body)

    weekday: Optional[int] = None
    if published_at is not None:
        weekday = sunday_based_weekday(published_at)

    return ReleaseRecord(
        repository=repository,
        tag_name=str(raw.get("tag_name") or ""),
        name=str(raw.get("name") or ""),
        created_at_raw=created_at_raw,
        published_at_raw=published_at_raw,
        created_at=created_at,
        published_at=published_at,
        year=published_at.year if published_at else None,
        month=published_at.month if published_at else None,
        day=published_at.day if published_at else None,
        weekday=weekday,
        is_weekend=(weekday in (0, 6)) if weekday is not None else None,
        is_draft=bool(raw.get("draft")),
        is_prerelease=bool(raw.get("prerelease")),
        note_length=note_length,
        has_note=note_length > 0,
        days_to_publish=days_between(created_at, published_at),
    )


def _format_bool(value: Optional[bool]) -> str:
    if value is None:
        return ""
    return "true" if value else "false"


def _format_int(value: Optional[int], width: int = 0) -> str:
    if value is None:
        return ""
    return f"{value:0{width}d}" if width else str(value)


def record_to_row(record: ReleaseRecord) -> Dict[str, str]:
    """Serialize a record into the string-valued CSV row layout."""
    return {
        "repository": record.repository,
        "tagName": record.tag_name,
        "name": record.name,
        "createdAt": record.created_at_raw,
        "publishedAt": record.published_at_raw,
        "createdAtIso": format_datetime(record.created_at),
        "publishedAtIso": format_datetime(record.published_at),
        "publishedYear": _format_int(record.year),
        "publishedMonth": _format_int(record.month, width=2),
        "publishedDay": _format_int(record.day, width=2),
        "weekday": _format_int(record.weekday),
        "isWeekend": _format_bool(record.is_weekend),
        "isDraft": _format_bool(record.is_draft),
        "isPrerelease": _format_bool(record.is_prerelease),
        "releaseNoteLength": str(record.note_length),
        "hasReleaseNote": _format_bool(record.has_note),
        "daysToPublish": _format_int(record.days_to_publish),
    }


def _parse_bool(row: Mapping[str, str], key: str) -> Optional[bool]:
    value = (row.get(key) or "").strip().lower()
    if not value:
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    raise DataValidationError(f"Column '{key}' must be 'true' or 'false', got '{value}'.")


def _parse_int(row: Mapping[str, str], key: str) -> Optional[int]:
    value = (row.get(key) or "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise DataValidationError(f"Column '{key}' must be an integer, got '{value}'.") from exc


def record_from_row(row: Mapping[str, str]) -> ReleaseRecord:
    """Parse a persisted CSV row back into a ``ReleaseRecord``.

    Rows whose publish timestamp cannot be parsed keep their raw strings but
    carry ``None`` for every date-derived field, so aggregation skips them.

    Raises:
        DataValidationError: If the repository is empty or a boolean/integer
            column holds an invalid value.
    """
    repository = (row.get("repository") or "").strip()
    if not repository:
        raise DataValidationError(f"Persisted release row has no repository: {dict(row)}")

    created_at_raw = row.get("createdAt") or ""
    published_at_raw = row.get("publishedAt") or ""
    created_at = parse_datetime(row.get("createdAtIso") or created_at_raw)
    published_at = parse_datetime(row.get("publishedAtIso") or published_at_raw)

    note_length = _parse_int(row, "releaseNoteLength") or 0
    days_to_publish = _parse_int(row, "daysToPublish")

    year = month = day = weekday = None
    is_weekend: Optional[bool] = None
    if published_at is not None:
        year = _parse_int(row, "publishedYear")
        month = _parse_int(row, "publishedMonth")
        day = _parse_int(row, "publishedDay")
        weekday = _parse_int(row, "weekday")
        is_weekend = _parse_bool(row, "isWeekend")
        if weekday is not None and not 0 <= weekday <= 6:
            raise DataValidationError(f"Column 'weekday' out of range: {weekday}")

    return ReleaseRecord(
        repository=repository,
        tag_name=row.get("tagName") or "",
        name=row.get("name") or "",
        created_at_raw=created_at_raw,
        published_at_raw=published_at_raw,
        created_at=created_at,
        published_at=published_at,
        year=year,
        month=month,
        day=day,
        weekday=weekday,
        is_weekend=is_weekend,
        is_draft=bool(_parse_bool(row, "isDraft")),
        is_prerelease=bool(_parse_bool(row, "isPrerelease")),
        note_length=note_length,
        has_note=note_length > 0,
        days_to_publish=days_to_publish if published_at is not None else None,
    )
