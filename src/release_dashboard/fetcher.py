"""Paginated release retrieval for a single repository.

Pages are requested with a fixed size and a fixed pause between them. The
pause is unconditional and does not look at rate-limit headers; retries for
429/5xx responses live in :class:`GitHubClient`.
"""

from __future__ import annotations

import logging
import time
from typing import List, Set

from .errors import ReleaseDashboardError
from .github_client import GitHubClient
from .models import FetchResult, ReleaseRecord
from .records import build_record, parse_repository_id

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
PAGE_DELAY_SECONDS = 1.0


def fetch_releases(client: GitHubClient, repository: str) -> FetchResult:
    """Fetch and normalize every release of ``repository``.

    Starts at page 1 and advances until a page comes back empty, sleeping
    ``PAGE_DELAY_SECONDS`` after each non-empty page.

    Failures never propagate: an invalid identifier or any client error
    abandons the repository and is reported through ``FetchResult.error`` so
    that one repository cannot abort ingestion of the others.
    """
    try:
        repo_id = parse_repository_id(repository)
    except ReleaseDashboardError as exc:
        logger.error(
            "Skipping repository with invalid identifier %r: %s",
            repository,
            exc,
            extra={"repository": repository},
        )
        return FetchResult(repository=repository, error=str(exc))

    records: List[ReleaseRecord] = []
    seen_tags: Set[str] = set()
    page = 1

    try:
        while True:
            items = client.list_releases(repo_id.owner, repo_id.name, page=page, per_page=PAGE_SIZE)
            if not items:
                break

            for item in items:
                record = build_record(repo_id.full_name, item)
                if record.tag_name in seen_tags:
                    # A release published mid-fetch shifts entries onto the next page.
                    logger.debug(
                        "Skipping duplicate release %s in %s",
                        record.tag_name,
                        repo_id.full_name,
                        extra={"repository": repo_id.full_name, "page": page, "tag": record.tag_name},
                    )
                    continue
                seen_tags.add(record.tag_name)
                records.append(record)

            logger.debug(
                "Fetched release page %d of %s (%d items)",
                page,
                repo_id.full_name,
                len(items),
                extra={"repository": repo_id.full_name, "page": page, "items": len(items)},
            )
            page += 1
            time.sleep(PAGE_DELAY_SECONDS)
    except ReleaseDashboardError as exc:
        logger.error(
            "Failed to fetch releases for %s on page %d; repository contributes no records this run: %s",
            repo_id.full_name,
            page,
            exc,
            extra={"repository": repo_id.full_name, "page": page, "error": str(exc)},
        )
        return FetchResult(repository=repo_id.full_name, error=str(exc))

    logger.info(
        "Fetched %d releases from %s",
        len(records),
        repo_id.full_name,
        extra={"repository": repo_id.full_name, "releases": len(records), "pages": page - 1},
    )
    return FetchResult(repository=repo_id.full_name, records=records)
