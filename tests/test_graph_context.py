from datetime import date

from redmine_graph.core.filter_catalog import FieldCatalog
from redmine_graph.core.mappers import default_series, map_issue
from redmine_graph.core.models import (
    Aggregation,
    AggregationOptions,
    ConditionOperator,
    PieSettings,
    PieSlice,
    SeriesCondition,
    UserSettings,
)
from redmine_graph.features.graphs.context import build_graph_context, export_frame, pie_group_by_choices


def _sample_settings(**kwargs):
    return UserSettings(series=default_series(), options=AggregationOptions(start_date=date(2026, 2, 9)), **kwargs)


def _sample_issues():
    return [
        map_issue(
            {
                "id": 1,
                "status": {"id": 5, "name": "Closed"},
                "tracker": {"id": 1, "name": "Bug"},
                "created_on": "2026-02-09T01:00:00Z",
                "closed_on": "2026-02-10T02:00:00Z",
                "custom_fields": [{"id": 11, "name": "Area", "value": "UI"}],
            }
        ),
        map_issue(
            {
                "id": 2,
                "status": {"id": 1, "name": "New"},
                "tracker": {"id": 2, "name": "Task"},
                "created_on": "2026-02-10T01:00:00Z",
                "custom_fields": [{"id": 11, "name": "Area", "value": "API"}],
            }
        ),
    ]


def test_real_issues_are_aggregated():
    ctx = build_graph_context(_sample_issues(), _sample_settings(), date(2026, 2, 11))
    assert not ctx.synthetic
    assert ctx.left_pie == [PieSlice("Closed", 1), PieSlice("New", 1)]
    assert ctx.right_pie == [PieSlice("Bug", 1), PieSlice("Task", 1)]
    assert list(ctx.frame["series-1"]) == [1, 2, 2]
    assert list(ctx.frame["series-2"]) == [0, 1, 1]


def test_pie_settings_group_and_filter_independently():
    only_tasks = (SeriesCondition("tracker_id", ConditionOperator.EQUALS_ANY, frozenset({"2"})),)
    settings = _sample_settings(left_pie=PieSettings("cf_11"), right_pie=PieSettings("status_id", only_tasks))
    ctx = build_graph_context(_sample_issues(), settings, date(2026, 2, 11))
    assert ctx.left_pie == [PieSlice("UI", 1), PieSlice("API", 1)]
    assert ctx.right_pie == [PieSlice("New", 1)]


def test_empty_issue_list_is_not_synthetic():
    ctx = build_graph_context([], _sample_settings(), date(2026, 2, 11))
    assert not ctx.synthetic
    assert ctx.left_pie == [] and ctx.right_pie == []
    assert len(ctx.points) == 3


def test_synthetic_data_without_source():
    settings = _sample_settings()
    first = build_graph_context(None, settings, date(2026, 2, 11), dummy_seed=7)
    second = build_graph_context(None, settings, date(2026, 2, 11), dummy_seed=7)
    assert first.synthetic
    assert first.points == second.points
    assert first.points[-1].date == "2026-02-11"
    assert first.left_pie[0].name == "New"
    assert first.right_pie[0].name == "Bug"
    for s in settings.series:
        vals = [p.values[s.id] for p in first.points]
        if s.aggregation == Aggregation.CUMULATIVE:
            assert vals == sorted(vals)
        else:
            assert all(1 <= v <= 8 for v in vals)


def test_pie_group_by_choices_include_catalog_fields():
    catalog = FieldCatalog(
        {
            "tracker_id": {"name": "Tracker (page)", "type": "list"},
            "cf_11": {"name": "Area", "type": "list_optional"},
            "subject": {"name": "Subject", "type": "text"},
        }
    )
    choices = pie_group_by_choices(catalog)
    assert list(choices) == ["status_id", "tracker_id", "priority_id", "assigned_to_id", "cf_11"]
    assert choices["tracker_id"] == "Tracker"
    assert choices["cf_11"] == "Area"
    assert pie_group_by_choices(FieldCatalog({}), "cf_99")["cf_99"] == "cf_99"


def test_export_frame_uses_labels_and_date_format():
    settings = _sample_settings(date_format="M/D")
    ctx = build_graph_context(_sample_issues(), settings, date(2026, 2, 11))
    out = export_frame(ctx, settings)
    assert list(out.columns) == ["date", "Created", "Created (total)", "Closed (total)"]
    assert list(out["date"]) == ["2/9", "2/10", "2/11"]
