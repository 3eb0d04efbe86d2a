"""GitHub REST API client for Copilot metrics retrieval."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError
from .models import DateWindow, MetricsScope, Team

logger = logging.getLogger(__name__)


class CopilotClient:
    """Small, typed client for the GitHub Copilot metrics and team APIs."""

    _API_VERSION = "2022-11-28"
    _TEAM_PAGE_SIZE = 100
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including organization and token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = config.base_url.rstrip("/")

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"token {config.token}",
                "X-GitHub-Api-Version": self._API_VERSION,
            }
        )

    def _build_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

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
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return a JSON object or array.
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
                backoff = self._extract_backoff_seconds(response, attempt)
                logger.info(
                    "Retrying GitHub request",
                    extra={"url": url, "status_code": status_code, "backoff_seconds": backoff},
                )
                time.sleep(backoff)
                continue

            if status_code >= 400:
                raise ApiError(
                    f"GitHub API request failed: GET {url} returned {status_code} - {response.text}",
                    status_code=status_code,
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise ApiError(
                    f"GitHub API returned invalid JSON: GET {url}", status_code=status_code
                ) from exc

            if not isinstance(payload, (dict, list)):
                raise ApiError(
                    f"GitHub API returned unexpected payload shape: GET {url}",
                    status_code=status_code,
                )

            return payload

        raise ApiError(f"GitHub request failed after retries: GET {url}") from last_error

    def _window_params(self, window: Optional[DateWindow]) -> Dict[str, Any]:
        if window is None:
            return {}
        return {"since": window.start.isoformat(), "until": window.end.isoformat()}

    def get_organization_metrics(self, org: str, window: Optional[DateWindow] = None) -> Any:
        """Fetch the raw Copilot metrics payload for an organization."""
        return self._get_json(f"orgs/{org}/copilot/metrics", params=self._window_params(window))

    def get_team_metrics(
        self,
        org: str,
        team_slug: str,
        window: Optional[DateWindow] = None,
    ) -> Any:
        """Fetch the raw Copilot metrics payload for a team."""
        return self._get_json(
            f"orgs/{org}/teams/{team_slug}/copilot/metrics",
            params=self._window_params(window),
        )

    def fetch_snapshot(self, scope: MetricsScope, window: Optional[DateWindow] = None) -> Any:
        """Fetch the raw metrics payload for an organization or team scope."""
        if not scope.is_team:
            return self.get_organization_metrics(scope.organization, window)
        return self.get_team_metrics(scope.organization, scope.team_slug, window)

    def list_teams(self, org: str) -> List[Team]:
        """List teams in an organization, following page-number pagination."""
        teams: List[Team] = []
        page = 1

        while True:
            payload = self._get_json(
                f"orgs/{org}/teams",
                params={"per_page": self._TEAM_PAGE_SIZE, "page": page},
            )
            if not isinstance(payload, list):
                raise ApiError(f"GitHub API returned unexpected team listing for '{org}'.")

            for item in payload:
                slug = item.get("slug") if isinstance(item, dict) else None
                if not slug:
                    continue
                team_id = item.get("id")
                teams.append(
                    Team(
                        slug=str(slug),
                        name=str(item.get("name") or slug),
                        id=int(team_id) if team_id is not None else None,
                    )
                )

            if len(payload) < self._TEAM_PAGE_SIZE:
                break

            page += 1

        return teams
