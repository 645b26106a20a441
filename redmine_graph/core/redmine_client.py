"""Redmine REST client wrapper (issues.json pagination, status and filter catalogs)."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import requests

from .config import API_KEY_HEADER, ISSUE_PAGE_LIMIT, REQUEST_TIMEOUT_SECONDS
from .models import FetchProgress

logger = logging.getLogger(__name__)

FetchProgressCallback = Callable[[FetchProgress], None]


class RedmineAPIError(RuntimeError):
    """Raised when Redmine answers with an HTTP error or an unexpected payload."""


class RedmineAPI:
    def __init__(self, server: str, api_key: str = "", *, timeout: float = REQUEST_TIMEOUT_SECONDS):
        self.server = server.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["Content-Type"] = "application/json"
        if api_key:
            self.session.headers[API_KEY_HEADER] = api_key

    def _get_json(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        url = f"{self.server}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RedmineAPIError(f"Request to {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise RedmineAPIError(f"Request to {path} failed {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as exc:
            raise RedmineAPIError(f"Malformed JSON from {path}") from exc

    def fetch_issue_statuses(self) -> list[dict[str, Any]]:
        data = self._get_json("/issue_statuses.json")
        return list((data or {}).get("issue_statuses") or [])

    def fetch_issues_page(
        self,
        project_id: str,
        query: Mapping[str, Any] | None,
        offset: int,
        limit: int = ISSUE_PAGE_LIMIT,
    ) -> dict[str, Any]:
        params = dict(query or {})
        # All statuses, so closed issues (with closed_on) are included too
        params["status_id"] = "*"
        params["limit"] = limit
        params["offset"] = offset
        data = self._get_json(f"/projects/{project_id}/issues.json", params)
        if not isinstance(data, dict):
            raise RedmineAPIError("Unexpected issues.json payload")
        return data

    def fetch_all_issues(
        self,
        project_id: str,
        query: Mapping[str, Any] | None = None,
        progress: FetchProgressCallback | None = None,
        *,
        limit: int = ISSUE_PAGE_LIMIT,
    ) -> list[dict[str, Any]]:
        """Fetch every page of a query until ``total_count`` is reached or a page is empty."""
        out: list[dict[str, Any]] = []
        offset = 0
        while True:
            data = self.fetch_issues_page(project_id, query, offset, limit)
            page = data.get("issues") or []
            total = int(data.get("total_count") or 0)
            out.extend(page)
            if progress:
                progress(FetchProgress(fetched=len(out), total=total))
            if len(out) >= total or not page:
                break
            offset += limit
        logger.debug("Fetched %d issue(s) for project %s", len(out), project_id)
        return out

    def fetch_filter_values(self, project_id: str | None, field_key: str) -> Any:
        params = {"project_id": project_id or "", "type": "IssueQuery", "name": field_key}
        return self._get_json("/queries/filter", params)
