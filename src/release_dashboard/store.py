"""CSV persistence for the full release record set."""

from __future__ import annotations

import csv
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List

from .errors import DataValidationError, StorageError
from .models import ReleaseRecord
from .records import CSV_FIELDS, record_from_row, record_to_row

logger = logging.getLogger(__name__)

_REQUIRED_COLUMNS = {"repository", "tagName", "publishedAt", "isDraft", "isPrerelease"}
TABLE_FILE_MODE = 0o644


class CsvReleaseStore:
    """Whole-file CSV store: every write replaces the previous table."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, records: Iterable[ReleaseRecord]) -> int:
        """Atomically overwrite the table with ``records``.

        Rows go to a temporary file next to the target which is then moved
        into place, so readers see either the old or the new complete table.

        Returns:
            Number of rows written.

        Raises:
            StorageError: If the directory or file cannot be written. The
                previous table is left untouched.
        """
        tmp_name = None
        count = 0
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS, quoting=csv.QUOTE_ALL)
                writer.writeheader()
                for record in records:
                    writer.writerow(record_to_row(record))
                    count += 1
            os.chmod(tmp_name, TABLE_FILE_MODE)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            raise StorageError(f"Failed to write release table '{self._path}': {exc}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info("Wrote %d rows to %s", count, self._path, extra={"path": str(self._path), "rows": count})
        return count

    def read_all(self) -> List[ReleaseRecord]:
        """Return every persisted record, or an empty list if nothing was written yet.

        Raises:
            StorageError: If the file cannot be read, lacks required columns,
                or holds a row that does not match the record schema.
        """
        if not self._path.exists():
            return []

        try:
            with self._path.open("r", encoding="utf-8", newline="") as handle:
                reader = csv.DictReader(handle)
                if reader.fieldnames is None:
                    return []

                missing = _REQUIRED_COLUMNS.difference(reader.fieldnames)
                if missing:
                    raise StorageError(
                        f"Release table '{self._path}' is missing columns: {', '.join(sorted(missing))}"
                    )

                return [record_from_row(row) for row in reader]
        except DataValidationError as exc:
            raise StorageError(f"Release table '{self._path}' is corrupt: {exc}") from exc
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise StorageError(f"Failed to read release table '{self._path}': {exc}") from exc
