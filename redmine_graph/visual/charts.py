"""Chart builders (Altair) for the series combo chart and the pie summary."""

from __future__ import annotations

import json
from collections.abc import Sequence

import altair as alt
import pandas as pd

from redmine_graph.analytics.metrics.buckets import parse_date_key
from redmine_graph.core.config import DEFAULT_CHART_HEIGHT
from redmine_graph.core.models import Axis, ChartType, PieSlice, SeriesDefinition


def format_date_label(key: str, fmt: str = "yyyy-mm-dd") -> str:
    if fmt != "M/D":
        return key
    parsed = parse_date_key(key)
    if parsed is None:
        return key
    return f"{parsed.month}/{parsed.day}"


def _long_frame(frame: pd.DataFrame, series: Sequence[SeriesDefinition], date_format: str) -> pd.DataFrame:
    ids = [s.id for s in series if s.id in frame.columns]
    long = frame.melt(id_vars=["date"], value_vars=ids, var_name="series_id", value_name="value")
    labels = {s.id: s.label for s in series}
    long["series"] = long["series_id"].map(labels)
    long["date_label"] = long["date"].apply(lambda k: format_date_label(k, date_format))
    return long


def _axis_layer(
    long: pd.DataFrame,
    series: Sequence[SeriesDefinition],
    *,
    orient: str,
    color: alt.Color,
    x_order: list[str],
    scale: alt.Scale,
):
    layers = []
    x = alt.X("date_label:O", sort=x_order, title="Date")
    y = alt.Y("value:Q", title=None, scale=scale, axis=alt.Axis(orient=orient))
    tooltip = [
        alt.Tooltip("date:N", title="Date"),
        alt.Tooltip("series:N", title="Series"),
        alt.Tooltip("value:Q", title="Count"),
    ]
    bar_ids = [s.id for s in series if s.chart_type == ChartType.BAR]
    line_ids = [s.id for s in series if s.chart_type == ChartType.LINE]
    if bar_ids:
        bars = long[long["series_id"].isin(bar_ids)]
        layers.append(
            alt.Chart(bars)
            .mark_bar(opacity=0.8)
            .encode(x=x, y=y, color=color, xOffset="series_id:N", tooltip=tooltip)
        )
    if line_ids:
        lines = long[long["series_id"].isin(line_ids)]
        layers.append(
            alt.Chart(lines)
            .mark_line(point=True)
            .encode(x=x, y=y, color=color, detail="series_id:N", tooltip=tooltip)
        )
    if not layers:
        return None
    return alt.layer(*layers)


def combo_chart(
    frame: pd.DataFrame,
    series: Sequence[SeriesDefinition],
    *,
    height: int | None = None,
    date_format: str = "yyyy-mm-dd",
    y_left_min: float | None = None,
    y_right_max: float | None = None,
):
    """Bars and lines per series over the bucket axis, with left and right y axes.

    ``frame`` is the output of ``datapoints_to_frame``. Hidden series are
    skipped. Returns None when there is nothing to draw.
    """
    if frame is None or frame.empty:
        return None
    visible = [s for s in series if s.visible and s.id in frame.columns]
    if not visible:
        return None

    long = _long_frame(frame, visible, date_format)
    x_order = [format_date_label(k, date_format) for k in frame["date"]]
    # Colors are keyed by id so series sharing a label stay distinct
    labels = json.dumps({s.id: s.label for s in visible}, ensure_ascii=False)
    color = alt.Color(
        "series_id:N",
        scale=alt.Scale(domain=[s.id for s in visible], range=[s.color for s in visible]),
        legend=alt.Legend(title=None, orient="bottom", labelExpr=f"{labels}[datum.label]"),
    )

    left_scale = alt.Scale(domainMin=y_left_min) if y_left_min is not None else alt.Scale()
    right_scale = alt.Scale(domainMax=y_right_max) if y_right_max is not None else alt.Scale()
    left = _axis_layer(
        long,
        [s for s in visible if s.axis == Axis.LEFT],
        orient="left",
        color=color,
        x_order=x_order,
        scale=left_scale,
    )
    right = _axis_layer(
        long,
        [s for s in visible if s.axis == Axis.RIGHT],
        orient="right",
        color=color,
        x_order=x_order,
        scale=right_scale,
    )
    parts = [p for p in (left, right) if p is not None]
    chart = parts[0] if len(parts) == 1 else alt.layer(*parts).resolve_scale(y="independent")
    return chart.properties(height=height or DEFAULT_CHART_HEIGHT)


def pie_chart(slices: Sequence[PieSlice], *, title: str | None = None):
    if not slices:
        return None
    data = pd.DataFrame([{"name": s.name, "count": s.count} for s in slices])
    chart = (
        alt.Chart(data)
        .mark_arc()
        .encode(
            theta=alt.Theta("count:Q"),
            color=alt.Color("name:N", sort=list(data["name"]), legend=alt.Legend(title=None)),
            tooltip=[alt.Tooltip("name:N", title="Group"), alt.Tooltip("count:Q", title="Issues")],
        )
        .properties(height=280)
    )
    if title:
        chart = chart.properties(title=title)
    return chart
