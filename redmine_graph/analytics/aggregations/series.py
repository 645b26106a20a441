"""Calendar-bucketed series aggregation (daily and cumulative counts)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta

import pandas as pd

from redmine_graph.analytics.metrics.buckets import (
    format_date_key,
    next_anchor_date,
    parse_date_key,
    plan_buckets,
    shift_weekend_to_monday,
)
from redmine_graph.analytics.metrics.dates import resolve_issue_date
from redmine_graph.analytics.segments.conditions import matches_all
from redmine_graph.core.config import DEFAULT_LOOKBACK_DAYS
from redmine_graph.core.models import (
    Aggregation,
    AggregationOptions,
    DataPoint,
    IssueModel,
    SeriesDefinition,
)

logger = logging.getLogger(__name__)


def window_start(options: AggregationOptions, today: date) -> date:
    if options.start_date is not None:
        return options.start_date
    return today - timedelta(days=DEFAULT_LOOKBACK_DAYS)


def passes_filters(issue: IssueModel, series: SeriesDefinition) -> bool:
    if series.status_ids and issue.status.id not in series.status_ids:
        return False
    return matches_all(issue, series.conditions)


def bucket_date(issue: IssueModel, series: SeriesDefinition, options: AggregationOptions) -> str | None:
    """Resolved date of ``issue`` for ``series`` after weekly/weekend remapping."""
    resolved = parse_date_key(resolve_issue_date(issue, series))
    if resolved is None:
        return None
    if options.weekly_mode:
        resolved = next_anchor_date(resolved, options.anchor_weekday)
    elif options.hide_weekends:
        resolved = shift_weekend_to_monday(resolved)
    return format_date_key(resolved)


def series_bucket_dates(
    issues: Sequence[IssueModel],
    series: SeriesDefinition,
    options: AggregationOptions,
) -> list[str]:
    """Remapped date keys of every issue that counts towards ``series``."""
    out: list[str] = []
    for issue in issues:
        if not passes_filters(issue, series):
            continue
        key = bucket_date(issue, series, options)
        if key is not None:
            out.append(key)
    return out


def _series_counts(
    dates: list[str],
    buckets: list[str],
    series: SeriesDefinition,
    options: AggregationOptions,
) -> pd.Series:
    counts = pd.Series(dates, dtype=object).value_counts().reindex(buckets, fill_value=0).astype(int)
    if series.aggregation != Aggregation.CUMULATIVE:
        return counts
    seed = 0
    # Backfill only applies to an explicit start date; the default lookback
    # window always starts cumulating from zero.
    if options.start_date is not None and buckets:
        boundary = buckets[0]
        seed = sum(1 for key in dates if key < boundary)
    return counts.cumsum() + seed


def aggregate_series(
    issues: Sequence[IssueModel],
    series: Sequence[SeriesDefinition],
    options: AggregationOptions | None,
    today: date,
) -> list[DataPoint]:
    """Aggregate issues into one data point per calendar bucket.

    Parameters
    ----------
    issues : sequence of IssueModel
        Already-fetched issue snapshot; may be empty.
    series : sequence of SeriesDefinition
        Series to compute. Each is filtered and dated independently.
    options : AggregationOptions or None
        Window and bucketing options (defaults when None).
    today : date
        Window end. Passed explicitly so results are reproducible.

    Returns
    -------
    list[DataPoint]
        One entry per bucket key, in key order, holding every series' value.
        Buckets without matching issues are zero-filled.
    """
    options = options or AggregationOptions()
    start = window_start(options, today)
    buckets = plan_buckets(
        start,
        today,
        weekly=options.weekly_mode,
        hide_weekends=options.hide_weekends,
        anchor_weekday=options.anchor_weekday,
    )
    logger.debug(
        "Aggregating %d issue(s) into %d bucket(s) from %s to %s for %d series",
        len(issues),
        len(buckets),
        start,
        today,
        len(series),
    )
    columns: dict[str, pd.Series] = {}
    for s in series:
        dates = series_bucket_dates(issues, s, options)
        columns[s.id] = _series_counts(dates, buckets, s, options)

    return [DataPoint(date=key, values={sid: int(col[key]) for sid, col in columns.items()}) for key in buckets]


def datapoints_to_frame(points: Sequence[DataPoint], series: Sequence[SeriesDefinition]) -> pd.DataFrame:
    """Wide DataFrame (``date`` + one column per series id) for charts and CSV export."""
    rows = []
    for point in points:
        row: dict[str, object] = {"date": point.date}
        for s in series:
            row[s.id] = point.values.get(s.id, 0)
        rows.append(row)
    columns = ["date"] + [s.id for s in series]
    return pd.DataFrame(rows, columns=columns)
