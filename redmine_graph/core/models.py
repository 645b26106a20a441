"""Domain data models for Redmine issues, series configuration, and chart output."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any

from .config import (
    DEFAULT_ANCHOR_WEEKDAY,
    DEFAULT_LEFT_PIE_GROUP_BY,
    DEFAULT_RIGHT_PIE_GROUP_BY,
    SETTINGS_VERSION,
    VALID_ANCHOR_WEEKDAYS,
)

# =============================================================================
# Custom field values
# =============================================================================


@dataclass(frozen=True, slots=True)
class ScalarValue:
    text: str

    def values(self) -> list[str]:
        return [self.text]

    def first(self) -> str | None:
        return self.text


@dataclass(frozen=True, slots=True)
class ListValue:
    items: tuple[str | None, ...] = ()

    def values(self) -> list[str]:
        return [item for item in self.items if item is not None]

    def first(self) -> str | None:
        return self.items[0] if self.items else None


@dataclass(frozen=True, slots=True)
class NullValue:
    def values(self) -> list[str]:
        return []

    def first(self) -> str | None:
        return None


FieldValue = ScalarValue | ListValue | NullValue


# =============================================================================
# Issues
# =============================================================================


@dataclass(frozen=True, slots=True)
class NamedRef:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class CustomFieldModel:
    id: int
    name: str
    value: FieldValue = NullValue()


@dataclass(slots=True)
class IssueModel:
    id: int
    status: NamedRef
    tracker: NamedRef
    created_on: str
    closed_on: str | None = None
    updated_on: str | None = None
    priority: NamedRef | None = None
    assigned_to: NamedRef | None = None
    subject: str | None = None
    custom_fields: list[CustomFieldModel] = field(default_factory=list)
    # Other named attributes (start_date, due_date, ...) addressable by key
    attributes: dict[str, Any] = field(default_factory=dict)

    def custom_field(self, field_id: int) -> CustomFieldModel | None:
        for cf in self.custom_fields:
            if cf.id == field_id:
                return cf
        return None

    def attribute(self, name: str) -> Any:
        if name in self.attributes:
            return self.attributes[name]
        if name in ("created_on", "closed_on", "updated_on", "subject"):
            return getattr(self, name)
        return None


# =============================================================================
# Series configuration
# =============================================================================


class DateField(StrEnum):
    CREATED_ON = "created_on"
    CLOSED_ON = "closed_on"
    CUSTOM = "custom"


class Aggregation(StrEnum):
    DAILY = "daily"
    CUMULATIVE = "cumulative"


class ConditionOperator(StrEnum):
    EQUALS_ANY = "="
    NOT_EQUALS_ANY = "!"


class ChartType(StrEnum):
    BAR = "bar"
    LINE = "line"


class Axis(StrEnum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True, slots=True)
class SeriesCondition:
    field: str
    operator: ConditionOperator = ConditionOperator.EQUALS_ANY
    values: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class SeriesDefinition:
    id: str
    label: str
    date_field: DateField = DateField.CREATED_ON
    custom_date_field_key: str | None = None
    status_ids: frozenset[int] = frozenset()
    conditions: tuple[SeriesCondition, ...] = ()
    aggregation: Aggregation = Aggregation.DAILY
    # Rendering-only attributes; the aggregation engine ignores them.
    chart_type: ChartType = ChartType.BAR
    axis: Axis = Axis.LEFT
    color: str = "#1f77b4"
    visible: bool = True


@dataclass(frozen=True, slots=True)
class PieSettings:
    group_by: str
    conditions: tuple[SeriesCondition, ...] = ()


@dataclass(frozen=True, slots=True)
class AggregationOptions:
    start_date: date | None = None
    hide_weekends: bool = False
    weekly_mode: bool = False
    anchor_weekday: int = DEFAULT_ANCHOR_WEEKDAY

    def __post_init__(self):
        if self.anchor_weekday not in VALID_ANCHOR_WEEKDAYS:
            raise ValueError(
                f"anchor_weekday must be one of {sorted(VALID_ANCHOR_WEEKDAYS)}, got {self.anchor_weekday!r}"
            )


# =============================================================================
# Aggregation output
# =============================================================================


@dataclass(slots=True)
class DataPoint:
    date: str  # YYYY-MM-DD
    values: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PieSlice:
    name: str
    count: int


# =============================================================================
# Collaborator payloads
# =============================================================================


@dataclass(frozen=True, slots=True)
class RedmineStatus:
    id: int
    name: str
    is_closed: bool = False


@dataclass(frozen=True, slots=True)
class FetchProgress:
    fetched: int
    total: int | None = None


@dataclass(frozen=True, slots=True)
class FilterField:
    key: str
    name: str


@dataclass(frozen=True, slots=True)
class FilterOption:
    label: str
    value: str


@dataclass(slots=True)
class UserSettings:
    series: list[SeriesDefinition] = field(default_factory=list)
    options: AggregationOptions = field(default_factory=AggregationOptions)
    left_pie: PieSettings = PieSettings(DEFAULT_LEFT_PIE_GROUP_BY)
    right_pie: PieSettings = PieSettings(DEFAULT_RIGHT_PIE_GROUP_BY)
    y_axis_left_min: float | None = None
    y_axis_right_max: float | None = None
    date_format: str = "yyyy-mm-dd"
    chart_height: int | None = None
    version: int = SETTINGS_VERSION


@dataclass(slots=True)
class Preset:
    id: str
    name: str
    settings: UserSettings
