"""Central configuration, constants, and default series definitions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# Redmine Connection Settings
# =============================================================================
API_KEY_HEADER = "X-Redmine-API-Key"
REQUEST_TIMEOUT_SECONDS: float = 30.0
ISSUE_PAGE_LIMIT: int = 100  # Redmine caps issues.json pages at 100

# =============================================================================
# Aggregation Defaults
# =============================================================================
DEFAULT_LOOKBACK_DAYS: int = 14  # Window start when no explicit start date is set

# Completion timestamps are bucketed on the team's local calendar (UTC+9).
# Creation timestamps are deliberately NOT shifted; see analytics.metrics.dates.
CLOSED_DATE_OFFSET_HOURS: int = 9

# Weekly buckets are anchored on a working day: 1=Monday .. 5=Friday
DEFAULT_ANCHOR_WEEKDAY: int = 1
VALID_ANCHOR_WEEKDAYS: frozenset[int] = frozenset({1, 2, 3, 4, 5})

WEEKDAY_LABELS: dict[int, str] = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
}

# =============================================================================
# Field Catalog
# =============================================================================
# availableFilters types that carry a finite option list
LIST_FILTER_TYPES: frozenset[str] = frozenset(
    {
        "list",
        "list_optional",
        "list_with_history",
        "list_optional_with_history",
    }
)
DATE_FILTER_TYPE = "date"

# Built-in pie group-by keys; list fields from the catalog (cf_<id>, ...) are offered too
PIE_GROUP_BY_FIELDS: dict[str, str] = {
    "status_id": "Status",
    "tracker_id": "Tracker",
    "priority_id": "Priority",
    "assigned_to_id": "Assignee",
}
DEFAULT_LEFT_PIE_GROUP_BY = "status_id"
DEFAULT_RIGHT_PIE_GROUP_BY = "tracker_id"

# Used when neither the page nor the API can provide the status catalog
FALLBACK_STATUSES: Sequence[tuple[int, str, bool]] = (
    (1, "New", False),
    (2, "In Progress", False),
    (3, "Feedback", False),
    (4, "Resolved", False),
    (5, "Closed", True),
    (6, "Rejected", True),
)

# =============================================================================
# Series Defaults
# =============================================================================
SERIES_COLORS: Sequence[str] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
)

DEFAULT_SERIES: Sequence[dict] = (
    {
        "id": "series-0",
        "label": "Created",
        "date_field": "created_on",
        "chart_type": "bar",
        "axis": "right",
        "aggregation": "daily",
        "color": "#1f77b4",
    },
    {
        "id": "series-1",
        "label": "Created (total)",
        "date_field": "created_on",
        "chart_type": "line",
        "axis": "left",
        "aggregation": "cumulative",
        "color": "#ff7f0e",
    },
    {
        "id": "series-2",
        "label": "Closed (total)",
        "date_field": "closed_on",
        "chart_type": "line",
        "axis": "left",
        "aggregation": "cumulative",
        "color": "#2ca02c",
    },
)

# =============================================================================
# Settings Storage
# =============================================================================
SETTINGS_VERSION: int = 1
SETTINGS_DIR_NAME = ".redmine_graph"
SETTINGS_FILE_TEMPLATE = "settings-{project}.yaml"
PRESETS_FILE_NAME = "presets.yaml"

DATE_FORMATS: Sequence[str] = ("yyyy-mm-dd", "M/D")
DEFAULT_CHART_HEIGHT: int = 320


@dataclass(slots=True)
class AppSettings:
    chart_height: int = DEFAULT_CHART_HEIGHT
    dummy_days: int = 30
    download_encoding: str = "utf-8"


SETTINGS = AppSettings()
