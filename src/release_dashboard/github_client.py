"""GitHub REST API client for release metadata retrieval."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests

from .errors import ApiError, AuthenticationError


class GitHubClient:
    """Small, typed client for the GitHub releases API."""

    _BASE_URL = "https://api.github.com"
    _API_VERSION = "2022-11-28"
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, token: str, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            token: GitHub token sent as a bearer credential; may be empty for
                unauthenticated (heavily rate limited) access.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._timeout_seconds = timeout_seconds

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self._API_VERSION,
                "User-Agent": "release-dashboard",
            }
        )
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the API root."""
        return f"{self._BASE_URL}/{path.lstrip('/')}"

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a GET request with retry logic for 429/5xx responses.

        Raises:
            AuthenticationError: If GitHub rejects the credential (HTTP 401).
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return valid JSON.
        """
        url = self._build_url(path)
        query = dict(params or {})

        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise ApiError(f"GitHub request failed after retries: GET {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if status_code == 401:
                raise AuthenticationError(f"GitHub rejected the configured token: GET {url}")

            if status_code >= 400:
                raise ApiError(
                    "GitHub API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                return response.json()
            except ValueError as exc:
                raise ApiError(f"GitHub API returned invalid JSON: GET {url}") from exc

        raise ApiError(f"GitHub request failed after retries: GET {url}") from last_error

    def list_releases(self, owner: str, repo: str, page: int, per_page: int) -> List[Dict[str, Any]]:
        """Return one page of raw release payloads for ``owner/repo``.

        An empty list marks the end of pagination.
        """
        payload = self._get_json(
            f"repos/{owner}/{repo}/releases",
            params={"page": page, "per_page": per_page},
        )

        if not isinstance(payload, list):
            raise ApiError(f"GitHub API returned unexpected payload shape for {owner}/{repo} releases")

        return [item for item in payload if isinstance(item, dict)]
