"""Pure helpers to build the graph page context for testing (no Streamlit)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

import pandas as pd

from redmine_graph.analytics.aggregations.categorical import aggregate_pie
from redmine_graph.analytics.aggregations.series import aggregate_series, datapoints_to_frame
from redmine_graph.analytics.dummy import generate_pie_dummy_data, generate_series_dummy_data
from redmine_graph.core.config import PIE_GROUP_BY_FIELDS, SETTINGS
from redmine_graph.core.filter_catalog import FieldCatalog
from redmine_graph.core.models import DataPoint, IssueModel, PieSettings, PieSlice, UserSettings
from redmine_graph.visual.charts import format_date_label


@dataclass(slots=True)
class GraphContext:
    points: list[DataPoint]
    frame: pd.DataFrame
    left_pie: list[PieSlice]
    right_pie: list[PieSlice]
    synthetic: bool


def _pie_slices(issues: Sequence[IssueModel] | None, pie: PieSettings) -> list[PieSlice]:
    if issues is None:
        return generate_pie_dummy_data(pie.group_by)
    return aggregate_pie(issues, pie.group_by, pie.conditions)


def build_graph_context(
    issues: Sequence[IssueModel] | None,
    settings: UserSettings,
    today: date,
    *,
    dummy_seed: int | None = None,
) -> GraphContext:
    """Aggregate ``issues`` per ``settings``; ``issues=None`` means no data source, so synthetic data is used."""
    if issues is None:
        points = generate_series_dummy_data(settings.series, today, days=SETTINGS.dummy_days, seed=dummy_seed)
        synthetic = True
    else:
        points = aggregate_series(issues, settings.series, settings.options, today)
        synthetic = False
    frame = datapoints_to_frame(points, settings.series)
    return GraphContext(
        points=points,
        frame=frame,
        left_pie=_pie_slices(issues, settings.left_pie),
        right_pie=_pie_slices(issues, settings.right_pie),
        synthetic=synthetic,
    )


def pie_group_by_choices(catalog: FieldCatalog, current: str | None = None) -> dict[str, str]:
    """Group-by keys for the pie pickers: built-in fields, then the catalog's list fields.

    ``current`` is always included so stored settings stay selectable even
    when the catalog no longer lists the field.
    """
    choices = dict(PIE_GROUP_BY_FIELDS)
    for f in catalog.list_fields():
        choices.setdefault(f.key, f.name)
    if current:
        choices.setdefault(current, current)
    return choices


def export_frame(ctx: GraphContext, settings: UserSettings) -> pd.DataFrame:
    """Series table with display labels as column headers, for CSV download."""
    out = ctx.frame.copy()
    out["date"] = out["date"].apply(lambda k: format_date_label(k, settings.date_format))
    return out.rename(columns={s.id: s.label for s in settings.series})
