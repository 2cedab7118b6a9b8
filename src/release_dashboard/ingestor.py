"""Ingestion run orchestration: fetch every repository, then replace the table."""

from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from .errors import StorageError
from .fetcher import fetch_releases
from .github_client import GitHubClient
from .models import FetchResult, IngestionReport, ReleaseRecord
from .store import CsvReleaseStore

logger = logging.getLogger(__name__)

FetchFn = Callable[[GitHubClient, str], FetchResult]


class Ingestor:
    """Runs one complete fetch-all-repositories-and-persist cycle per ``run()``."""

    def __init__(
        self,
        client: GitHubClient,
        store: CsvReleaseStore,
        repositories: Sequence[str],
        fetch: FetchFn = fetch_releases,
    ) -> None:
        self._client = client
        self._store = store
        self._repositories = tuple(repositories)
        self._fetch = fetch

    def run(self) -> IngestionReport:
        """Fetch repositories one after another and write the combined set.

        Repositories are processed sequentially to keep page pacing
        predictable. A failing repository contributes zero records. A run
        with no records still writes a header-only table. Write failures are
        logged and reported; the previous table stays in place.
        """
        report = IngestionReport()
        records: List[ReleaseRecord] = []

        for repository in self._repositories:
            result = self._fetch(self._client, repository)
            report.results.append(result)
            records.extend(result.records)

        report.total_records = len(records)

        try:
            self._store.write(records)
            report.written = True
        except StorageError as exc:
            report.write_error = str(exc)
            logger.error(
                "Failed to persist release table %s; keeping previous content: %s",
                self._store.path,
                exc,
                extra={"path": str(self._store.path), "error": str(exc)},
            )

        logger.info(
            "Ingestion run finished: %d releases from %d repositories, %d failed (%s), written=%s",
            report.total_records,
            len(self._repositories),
            len(report.failed_repositories),
            ", ".join(report.failed_repositories) or "none",
            report.written,
            extra={
                "repositories_total": len(self._repositories),
                "repositories_failed": len(report.failed_repositories),
                "records_total": report.total_records,
                "written": report.written,
            },
        )
        return report
