"""Field-based series conditions evaluated against individual issues.

A condition names a field key from the Redmine filter catalog, an operator
(``=`` equals-any, ``!`` not-equals-any) and a value set. The issue side is
resolved into a set of strings through ``FIELD_RESOLVERS`` (exact keys) or
``PREFIX_RESOLVERS`` (``cf_<id>``). Keys neither table knows are no-ops: the
condition holds for both operators.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from redmine_graph.core.models import ConditionOperator, IssueModel, SeriesCondition

Resolver = Callable[[IssueModel], frozenset[str]]
PrefixResolver = Callable[[IssueModel, str], frozenset[str]]


def _status_values(issue: IssueModel) -> frozenset[str]:
    return frozenset({str(issue.status.id)})


def _tracker_values(issue: IssueModel) -> frozenset[str]:
    return frozenset({str(issue.tracker.id)})


def _priority_values(issue: IssueModel) -> frozenset[str]:
    if issue.priority is None:
        return frozenset()
    return frozenset({str(issue.priority.id)})


def _custom_field_values(issue: IssueModel, suffix: str) -> frozenset[str]:
    try:
        field_id = int(suffix)
    except ValueError:
        return frozenset()
    cf = issue.custom_field(field_id)
    if cf is None:
        return frozenset()
    return frozenset(cf.value.values())


FIELD_RESOLVERS: dict[str, Resolver] = {
    "status_id": _status_values,
    "tracker_id": _tracker_values,
    "priority_id": _priority_values,
}

PREFIX_RESOLVERS: dict[str, PrefixResolver] = {
    "cf_": _custom_field_values,
}


def resolve_field_values(issue: IssueModel, field: str) -> frozenset[str] | None:
    """Values ``issue`` holds for ``field``; None when the field is not supported."""
    resolver = FIELD_RESOLVERS.get(field)
    if resolver is not None:
        return resolver(issue)
    for prefix, prefix_resolver in PREFIX_RESOLVERS.items():
        if field.startswith(prefix):
            return prefix_resolver(issue, field[len(prefix) :])
    return None


def matches(issue: IssueModel, condition: SeriesCondition) -> bool:
    issue_values = resolve_field_values(issue, condition.field)
    if issue_values is None:
        return True
    has_match = not issue_values.isdisjoint(condition.values)
    if condition.operator == ConditionOperator.EQUALS_ANY:
        return has_match
    return not has_match


def matches_all(issue: IssueModel, conditions: Iterable[SeriesCondition] | None) -> bool:
    if not conditions:
        return True
    return all(matches(issue, cond) for cond in conditions)
