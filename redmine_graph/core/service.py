"""GraphService: orchestrates fetching, mapping, and aggregation for the chart pages."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import date
from typing import Any

from redmine_graph.analytics.aggregations.categorical import aggregate_pie
from redmine_graph.analytics.aggregations.series import aggregate_series

from .config import FALLBACK_STATUSES
from .filter_catalog import FieldCatalog
from .mappers import map_issues
from .models import DataPoint, IssueModel, PieSlice, RedmineStatus, SeriesCondition, UserSettings
from .redmine_client import FetchProgressCallback, RedmineAPI, RedmineAPIError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


def fallback_statuses() -> list[RedmineStatus]:
    return [RedmineStatus(id=i, name=n, is_closed=c) for i, n, c in FALLBACK_STATUSES]


class GraphService:
    def __init__(self, api: RedmineAPI):
        self.api = api
        # Message of the last failed issue fetch, None after a successful one
        self.last_error: str | None = None

    # ------------------ Fetch Methods ------------------
    def load_issues(
        self,
        project_id: str,
        query: Mapping[str, Any] | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[IssueModel]:
        """Fetch every issue of a query; an unavailable source yields an empty list and sets ``last_error``."""
        self.last_error = None
        if progress:
            progress(f"Querying issues for {project_id}", None, None)

        page_progress: FetchProgressCallback | None = None
        if progress:
            page_progress = lambda p: progress("Loading issues", p.fetched, p.total)  # noqa: E731

        try:
            raw = self.api.fetch_all_issues(project_id, query, page_progress)
        except RedmineAPIError as exc:
            logger.warning("Issue data unavailable for %s: %s", project_id, exc)
            self.last_error = str(exc)
            return []
        return map_issues(raw)

    def load_statuses(self, catalog: FieldCatalog | None = None) -> list[RedmineStatus]:
        """Status catalog: page filters first, then the API, then the static fallback."""
        if catalog is not None:
            from_page = catalog.statuses()
            if from_page:
                return from_page
        try:
            raw = self.api.fetch_issue_statuses()
        except RedmineAPIError as exc:
            logger.warning("Status catalog unavailable, using fallback: %s", exc)
            return fallback_statuses()
        statuses = [
            RedmineStatus(id=int(s["id"]), name=str(s.get("name") or ""), is_closed=bool(s.get("is_closed")))
            for s in raw
            if isinstance(s, dict) and s.get("id") is not None
        ]
        return statuses or fallback_statuses()

    # ------------------ Aggregation ------------------
    @staticmethod
    def build_series(issues: Sequence[IssueModel], settings: UserSettings, today: date) -> list[DataPoint]:
        return aggregate_series(issues, settings.series, settings.options, today)

    @staticmethod
    def build_pie(
        issues: Sequence[IssueModel],
        group_by: str,
        conditions: Sequence[SeriesCondition] | None = None,
    ) -> list[PieSlice]:
        return aggregate_pie(issues, group_by, conditions)
