"""Filterable field catalog built from Redmine's ``availableFilters`` payload.

Used to populate condition pickers and custom date choices; the aggregation
engine never consults it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import DATE_FILTER_TYPE, LIST_FILTER_TYPES
from .models import FilterField, FilterOption, RedmineStatus
from .redmine_client import RedmineAPI, RedmineAPIError

logger = logging.getLogger(__name__)


def parse_filter_response(data: Any) -> list[FilterOption]:
    """Parse ``/queries/filter`` output.

    Two shapes exist: a flat list of strings (custom fields, label == value)
    and a list of ``[label, value]`` pairs (tracker, priority, ...).
    """
    if not isinstance(data, list) or not data:
        return []
    if isinstance(data[0], str):
        return [FilterOption(label=v, value=v) for v in data if isinstance(v, str)]
    if isinstance(data[0], list):
        return [
            FilterOption(label=str(pair[0]), value=str(pair[1]))
            for pair in data
            if isinstance(pair, list) and len(pair) >= 2
        ]
    return []


class FieldCatalog:
    def __init__(
        self,
        available_filters: Mapping[str, Any] | None,
        api: RedmineAPI | None = None,
        project_id: str | None = None,
    ):
        self.available_filters = dict(available_filters or {})
        self.api = api
        self.project_id = project_id
        self._option_cache: dict[str, list[FilterOption]] = {}

    def list_fields(self) -> list[FilterField]:
        return [
            FilterField(key=key, name=str(spec.get("name") or key))
            for key, spec in self.available_filters.items()
            if isinstance(spec, Mapping) and spec.get("type") in LIST_FILTER_TYPES
        ]

    def date_fields(self) -> list[FilterField]:
        # Dotted keys (fixed_version.due_date, ...) are not attributes of issues.json entries
        return [
            FilterField(key=key, name=str(spec.get("name") or key))
            for key, spec in self.available_filters.items()
            if isinstance(spec, Mapping) and spec.get("type") == DATE_FILTER_TYPE and "." not in key
        ]

    def statuses(self) -> list[RedmineStatus] | None:
        spec = self.available_filters.get("status_id")
        values = spec.get("values") if isinstance(spec, Mapping) else None
        if not isinstance(values, list) or not values:
            return None
        statuses = []
        for pair in values:
            if not isinstance(pair, list | tuple) or len(pair) < 2:
                continue
            try:
                statuses.append(RedmineStatus(id=int(pair[1]), name=str(pair[0])))
            except (TypeError, ValueError):
                continue
        return statuses or None

    def options(self, field_key: str) -> list[FilterOption]:
        if field_key in self._option_cache:
            return self._option_cache[field_key]
        spec = self.available_filters.get(field_key)
        if not isinstance(spec, Mapping):
            return []
        if not spec.get("remote") and isinstance(spec.get("values"), list):
            options = [
                FilterOption(label=str(pair[0]), value=str(pair[1]))
                for pair in spec["values"]
                if isinstance(pair, list | tuple) and len(pair) >= 2
            ]
        else:
            if self.api is None:
                return []
            try:
                options = parse_filter_response(self.api.fetch_filter_values(self.project_id, field_key))
            except RedmineAPIError as exc:
                logger.warning("Failed to load options for %s: %s", field_key, exc)
                return []
        self._option_cache[field_key] = options
        return options
