"""Tests for release record derivation and CSV row mapping."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from release_dashboard.errors import DataValidationError
from release_dashboard.records import (
    CSV_FIELDS,
    build_record,
    parse_datetime,
    parse_repository_id,
    record_from_row,
    record_to_row,
)


def _raw_release(**overrides) -> dict:
    payload = {
        "tag_name": "v1.0.0",
        "name": "First",
        "created_at": "2024-01-13T08:00:00Z",
        "published_at": "2024-01-15T10:30:00Z",
        "body": "notes",
        "draft": False,
        "prerelease": False,
    }
    payload.update(overrides)
    return payload


def test_build_record_derives_publish_date_fields():
    """Verify year, month, day and Sunday-based weekday come from publishedAt in UTC."""
    record = build_record("a/b", _raw_release())

    assert record.repository == "a/b"
    assert record.tag_name == "v1.0.0"
    assert (record.year, record.month, record.day) == (2024, 1, 15)
    assert record.weekday == 1  # Monday
    assert record.is_weekend is False
    assert record.month_key == "2024-01"
    assert record.days_to_publish == 2


def test_build_record_weekend_flag_for_sunday_and_saturday():
    """Verify weekday 0 (Sunday) and 6 (Saturday) are flagged as weekend."""
    sunday = build_record("a/b", _raw_release(published_at="2024-03-10T12:00:00Z"))
    saturday = build_record("a/b", _raw_release(published_at="2024-03-09T12:00:00Z"))

    assert sunday.weekday == 0
    assert sunday.is_weekend is True
    assert saturday.weekday == 6
    assert saturday.is_weekend is True


def test_build_record_note_fields_follow_body_length():
    """Verify hasNote is true exactly when the body is non-empty."""
    with_note = build_record("a/b", _raw_release(body="abc"))
    without_note = build_record("a/b", _raw_release(body=None))

    assert with_note.note_length == 3
    assert with_note.has_note is True
    assert without_note.note_length == 0
    assert without_note.has_note is False


def test_build_record_negative_days_to_publish_is_not_clamped():
    """Verify publish-before-create yields a negative floored day count."""
    record = build_record(
        "a/b",
        _raw_release(created_at="2024-01-15T12:00:00Z", published_at="2024-01-14T18:00:00Z"),
    )

    assert record.days_to_publish == -1


def test_build_record_missing_published_at_uses_none_sentinels():
    """Verify an unpublished release still yields a record with empty date-derived fields."""
    record = build_record("a/b", _raw_release(published_at=None, name=None, draft=True))

    assert record.published_at is None
    assert record.published_at_raw == ""
    assert record.year is None
    assert record.weekday is None
    assert record.is_weekend is None
    assert record.days_to_publish is None
    assert record.month_key is None
    assert record.name == ""
    assert record.is_draft is True


def test_parse_datetime_handles_invalid_and_naive_values():
    """Verify unparsable values return None and naive timestamps are treated as UTC."""
    assert parse_datetime("not-a-date") is None
    assert parse_datetime("") is None
    assert parse_datetime("2024-01-15T10:00:00") == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)


def test_parse_repository_id_rejects_malformed_identifiers():
    """Verify only owner/name identifiers are accepted."""
    assert parse_repository_id(" daangn/stackflow ").full_name == "daangn/stackflow"

    for value in ["stackflow", "a/b/c", "/b", "a/"]:
        with pytest.raises(DataValidationError):
            parse_repository_id(value)


def test_record_to_row_serializes_every_field_as_string():
    """Verify the row uses the persisted column set with padded month/day and lowercase booleans."""
    row = record_to_row(build_record("a/b", _raw_release(prerelease=True)))

    assert list(row.keys()) == CSV_FIELDS
    assert all(isinstance(value, str) for value in row.values())
    assert row["publishedMonth"] == "01"
    assert row["publishedDay"] == "15"
    assert row["isPrerelease"] == "true"
    assert row["isDraft"] == "false"
    assert row["publishedAtIso"] == "2024-01-15T10:30:00Z"


def test_record_from_row_restores_record_written_by_record_to_row():
    """Verify a serialized row parses back into an equal record."""
    original = build_record("a/b", _raw_release())

    assert record_from_row(record_to_row(original)) == original


def test_record_from_row_unparsable_publish_date_drops_derived_fields():
    """Verify a corrupted publish timestamp keeps the row but clears date-derived fields."""
    row = record_to_row(build_record("a/b", _raw_release()))
    row["publishedAt"] = "garbage"
    row["publishedAtIso"] = "garbage"

    record = record_from_row(row)

    assert record.published_at is None
    assert record.weekday is None
    assert record.year is None
    assert record.days_to_publish is None
    assert record.published_at_raw == "garbage"


def test_record_from_row_invalid_boolean_raises_data_validation_error():
    """Verify schema violations in boolean columns are reported."""
    row = record_to_row(build_record("a/b", _raw_release()))
    row["isDraft"] = "maybe"

    with pytest.raises(DataValidationError):
        record_from_row(row)
