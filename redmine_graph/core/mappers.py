"""Mapping raw Redmine issue JSON and stored settings dicts into model instances."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

import pandas as pd

from .config import (
    DATE_FORMATS,
    DEFAULT_ANCHOR_WEEKDAY,
    DEFAULT_LEFT_PIE_GROUP_BY,
    DEFAULT_RIGHT_PIE_GROUP_BY,
    DEFAULT_SERIES,
    SERIES_COLORS,
    SETTINGS_VERSION,
)
from .models import (
    Aggregation,
    AggregationOptions,
    Axis,
    ChartType,
    ConditionOperator,
    CustomFieldModel,
    DateField,
    FieldValue,
    IssueModel,
    ListValue,
    NamedRef,
    NullValue,
    PieSettings,
    Preset,
    ScalarValue,
    SeriesCondition,
    SeriesDefinition,
    UserSettings,
)

# Keys of an issues.json entry that are mapped onto dedicated IssueModel fields
_MAPPED_KEYS = frozenset(
    {
        "id",
        "status",
        "tracker",
        "priority",
        "assigned_to",
        "subject",
        "created_on",
        "closed_on",
        "updated_on",
        "custom_fields",
    }
)


def parse_field_value(value: Any) -> FieldValue:
    if value is None:
        return NullValue()
    if isinstance(value, list):
        return ListValue(tuple(None if item is None else str(item) for item in value))
    return ScalarValue(str(value))


def _named_ref(value: Any) -> NamedRef | None:
    if not isinstance(value, dict) or value.get("id") is None:
        return None
    return NamedRef(id=int(value["id"]), name=str(value.get("name") or ""))


def map_issue(raw: dict[str, Any]) -> IssueModel:
    custom_fields = [
        CustomFieldModel(
            id=int(cf["id"]),
            name=str(cf.get("name") or ""),
            value=parse_field_value(cf.get("value")),
        )
        for cf in raw.get("custom_fields") or []
        if isinstance(cf, dict) and cf.get("id") is not None
    ]
    attributes = {k: v for k, v in raw.items() if k not in _MAPPED_KEYS}
    return IssueModel(
        id=int(raw.get("id") or 0),
        status=_named_ref(raw.get("status")) or NamedRef(0, ""),
        tracker=_named_ref(raw.get("tracker")) or NamedRef(0, ""),
        created_on=str(raw.get("created_on") or ""),
        closed_on=raw.get("closed_on") or None,
        updated_on=raw.get("updated_on") or None,
        priority=_named_ref(raw.get("priority")),
        assigned_to=_named_ref(raw.get("assigned_to")),
        subject=raw.get("subject"),
        custom_fields=custom_fields,
        attributes=attributes,
    )


def map_issues(raw_issues: Iterable[dict[str, Any]]) -> list[IssueModel]:
    return [map_issue(r) for r in raw_issues if isinstance(r, dict)]


# ------------------ Settings (de)serialization ------------------
def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(str(value), errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def condition_from_dict(data: dict[str, Any]) -> SeriesCondition:
    return SeriesCondition(
        field=str(data.get("field") or ""),
        operator=ConditionOperator(data.get("operator") or "="),
        values=frozenset(str(v) for v in data.get("values") or []),
    )


def condition_to_dict(cond: SeriesCondition) -> dict[str, Any]:
    return {
        "field": cond.field,
        "operator": str(cond.operator),
        "values": sorted(cond.values),
    }


def series_from_dict(data: dict[str, Any]) -> SeriesDefinition:
    # Accept the camelCase keys used by browser-side configurations too
    date_key = data.get("custom_date_field_key", data.get("customDateFieldKey"))
    status_ids = data.get("status_ids", data.get("statusIds")) or []
    axis = data.get("axis", data.get("yAxisId")) or "left"
    chart_type = data.get("chart_type", data.get("chartType")) or "bar"
    date_field = data.get("date_field", data.get("dateField")) or "created_on"
    return SeriesDefinition(
        id=str(data["id"]),
        label=str(data.get("label") or data["id"]),
        date_field=DateField(date_field),
        custom_date_field_key=date_key or None,
        status_ids=frozenset(int(s) for s in status_ids),
        conditions=tuple(condition_from_dict(c) for c in data.get("conditions") or []),
        aggregation=Aggregation(data.get("aggregation") or "daily"),
        chart_type=ChartType(chart_type),
        axis=Axis(axis),
        color=str(data.get("color") or "#1f77b4"),
        visible=bool(data.get("visible", True)),
    )


def series_to_dict(series: SeriesDefinition) -> dict[str, Any]:
    return {
        "id": series.id,
        "label": series.label,
        "date_field": str(series.date_field),
        "custom_date_field_key": series.custom_date_field_key,
        "status_ids": sorted(series.status_ids),
        "conditions": [condition_to_dict(c) for c in series.conditions],
        "aggregation": str(series.aggregation),
        "chart_type": str(series.chart_type),
        "axis": str(series.axis),
        "color": series.color,
        "visible": series.visible,
    }


def default_series() -> list[SeriesDefinition]:
    return [series_from_dict(s) for s in DEFAULT_SERIES]


def new_series(existing: Sequence[SeriesDefinition], label: str | None = None) -> SeriesDefinition:
    """Daily created-on bar series with the next free ``series-N`` id and a palette color."""
    used = set()
    for s in existing:
        prefix, _, suffix = s.id.partition("-")
        if prefix == "series" and suffix.isdigit():
            used.add(int(suffix))
    next_id = max(used, default=-1) + 1
    return SeriesDefinition(
        id=f"series-{next_id}",
        label=label or f"Series {len(existing) + 1}",
        color=SERIES_COLORS[len(existing) % len(SERIES_COLORS)],
    )


def pie_from_dict(data: Any, default_group_by: str) -> PieSettings:
    if not isinstance(data, dict):
        return PieSettings(default_group_by)
    return PieSettings(
        group_by=str(data.get("group_by", data.get("groupBy")) or default_group_by),
        conditions=tuple(condition_from_dict(c) for c in data.get("conditions") or []),
    )


def pie_to_dict(pie: PieSettings) -> dict[str, Any]:
    return {"group_by": pie.group_by, "conditions": [condition_to_dict(c) for c in pie.conditions]}


def settings_from_dict(data: dict[str, Any]) -> UserSettings:
    """Build UserSettings from a stored mapping.

    Raises ``ValueError``/``KeyError`` on malformed payloads; callers at the
    storage boundary decide whether to discard them.
    """
    series_raw = data.get("series")
    series = [series_from_dict(s) for s in series_raw] if series_raw else default_series()
    anchor = data.get("anchor_weekday", data.get("anchorDay"))
    options = AggregationOptions(
        start_date=_parse_date(data.get("start_date", data.get("startDate"))),
        hide_weekends=bool(data.get("hide_weekends", data.get("hideWeekends", False))),
        weekly_mode=bool(data.get("weekly_mode", data.get("weeklyMode", False))),
        anchor_weekday=int(anchor) if anchor is not None else DEFAULT_ANCHOR_WEEKDAY,
    )
    left_raw = data.get("left_pie", data.get("pieLeft"))
    if left_raw is None:
        # Single-pie configurations only carried a group-by key
        left_raw = {"group_by": data.get("pie_group_by", data.get("pieGroupBy"))}
    date_format = data.get("date_format", data.get("dateFormat"))
    return UserSettings(
        series=series,
        options=options,
        left_pie=pie_from_dict(left_raw, DEFAULT_LEFT_PIE_GROUP_BY),
        right_pie=pie_from_dict(data.get("right_pie", data.get("pieRight")), DEFAULT_RIGHT_PIE_GROUP_BY),
        y_axis_left_min=data.get("y_axis_left_min", data.get("yAxisLeftMin")),
        y_axis_right_max=data.get("y_axis_right_max", data.get("yAxisRightMax")),
        date_format=date_format if date_format in DATE_FORMATS else DATE_FORMATS[0],
        chart_height=data.get("chart_height", data.get("chartHeight")),
        version=int(data.get("version", SETTINGS_VERSION)),
    )


def settings_to_dict(settings: UserSettings, *, include_version: bool = True) -> dict[str, Any]:
    opts = settings.options
    out: dict[str, Any] = {
        "series": [series_to_dict(s) for s in settings.series],
        "start_date": opts.start_date.isoformat() if opts.start_date else None,
        "hide_weekends": opts.hide_weekends,
        "weekly_mode": opts.weekly_mode,
        "anchor_weekday": opts.anchor_weekday,
        "left_pie": pie_to_dict(settings.left_pie),
        "right_pie": pie_to_dict(settings.right_pie),
        "y_axis_left_min": settings.y_axis_left_min,
        "y_axis_right_max": settings.y_axis_right_max,
        "date_format": settings.date_format,
        "chart_height": settings.chart_height,
    }
    if include_version:
        out["version"] = settings.version
    return out


def preset_from_dict(data: dict[str, Any]) -> Preset:
    return Preset(
        id=str(data.get("id") or data.get("name") or ""),
        name=str(data["name"]),
        settings=settings_from_dict(data.get("settings") or {}),
    )


def preset_to_dict(preset: Preset) -> dict[str, Any]:
    return {
        "id": preset.id,
        "name": preset.name,
        "settings": settings_to_dict(preset.settings, include_version=False),
    }
