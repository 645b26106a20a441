"""Synthetic chart data used when no Redmine connection is configured."""

from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import date, timedelta

from redmine_graph.analytics.metrics.buckets import format_date_key
from redmine_graph.core.models import Aggregation, DataPoint, PieSlice, SeriesDefinition

_PIE_PRESETS: dict[str, list[tuple[str, int]]] = {
    "status_id": [("New", 12), ("In Progress", 8), ("Feedback", 3), ("Resolved", 15), ("Closed", 5)],
    "tracker_id": [("Bug", 18), ("Feature", 12), ("Support", 7), ("Task", 6)],
}


def generate_series_dummy_data(
    series: Sequence[SeriesDefinition],
    today: date,
    *,
    days: int = 30,
    seed: int | None = None,
) -> list[DataPoint]:
    """Random daily counts (1..8) for the ``days`` days ending ``today``."""
    rng = random.Random(seed)
    start = today - timedelta(days=max(days, 1) - 1)
    running = {s.id: 0 for s in series}
    points: list[DataPoint] = []
    for offset in range(max(days, 1)):
        point = DataPoint(date=format_date_key(start + timedelta(days=offset)))
        for s in series:
            daily = rng.randint(1, 8)
            running[s.id] += daily
            point.values[s.id] = running[s.id] if s.aggregation == Aggregation.CUMULATIVE else daily
        points.append(point)
    return points


def generate_pie_dummy_data(group_by: str) -> list[PieSlice]:
    preset = _PIE_PRESETS.get(group_by)
    if preset is None:
        preset = [(f"{group_by} {suffix}", count) for suffix, count in zip("ABCD", (10, 8, 5, 3), strict=True)]
    return [PieSlice(name=name, count=count) for name, count in preset]
