"""Categorical (pie chart) aggregations."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pandas as pd

from redmine_graph.analytics.segments.conditions import matches_all
from redmine_graph.core.models import IssueModel, PieSlice, SeriesCondition


def _status_label(issue: IssueModel) -> str | None:
    return issue.status.name


def _tracker_label(issue: IssueModel) -> str | None:
    return issue.tracker.name


def _priority_label(issue: IssueModel) -> str | None:
    return issue.priority.name if issue.priority is not None else None


def _assignee_label(issue: IssueModel) -> str | None:
    return issue.assigned_to.name if issue.assigned_to is not None else None


GROUP_LABELS: dict[str, Callable[[IssueModel], str | None]] = {
    "status_id": _status_label,
    "tracker_id": _tracker_label,
    "priority_id": _priority_label,
    "assigned_to_id": _assignee_label,
}


def group_label(issue: IssueModel, group_by: str) -> str | None:
    resolver = GROUP_LABELS.get(group_by)
    if resolver is not None:
        return resolver(issue)
    if group_by.startswith("cf_"):
        try:
            field_id = int(group_by[3:])
        except ValueError:
            return None
        cf = issue.custom_field(field_id)
        return cf.value.first() if cf is not None else None
    return None


def aggregate_pie(
    issues: Sequence[IssueModel],
    group_by: str,
    conditions: Sequence[SeriesCondition] | None = None,
) -> list[PieSlice]:
    """Count issues per ``group_by`` label, largest group first.

    Issues without a label (missing priority/assignee, empty custom field, or
    an unsupported ``group_by`` key) are dropped rather than counted as
    unknown. Ties keep first-seen order.
    """
    labels = []
    for issue in issues:
        if not matches_all(issue, conditions):
            continue
        label = group_label(issue, group_by)
        if label is None or label == "":
            continue
        labels.append(label)
    if not labels:
        return []
    counts = pd.Series(labels, dtype=object).value_counts(sort=False).sort_values(ascending=False, kind="stable")
    return [PieSlice(name=str(name), count=int(count)) for name, count in counts.items()]
