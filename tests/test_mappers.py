from datetime import date

import pytest

from redmine_graph.core.mappers import (
    map_issue,
    new_series,
    parse_field_value,
    settings_from_dict,
    settings_to_dict,
)
from redmine_graph.core.models import (
    Aggregation,
    AggregationOptions,
    ConditionOperator,
    DateField,
    ListValue,
    NullValue,
    PieSettings,
    ScalarValue,
    SeriesDefinition,
)


def test_parse_field_value_union():
    assert parse_field_value(None) == NullValue()
    assert parse_field_value("QA") == ScalarValue("QA")
    assert parse_field_value(["QA", None]) == ListValue(("QA", None))
    assert ListValue(("QA", None, "BUG")).values() == ["QA", "BUG"]
    assert ListValue(()).first() is None
    assert NullValue().values() == []


def test_map_issue_keeps_extra_attributes():
    issue = map_issue(
        {
            "id": 12,
            "subject": "Crash",
            "status": {"id": 1, "name": "New"},
            "tracker": {"id": 2, "name": "Bug"},
            "assigned_to": {"id": 3, "name": "Alice"},
            "created_on": "2026-02-05T17:09:11Z",
            "closed_on": None,
            "due_date": "2026-03-01",
            "custom_fields": [{"id": 628, "name": "Type", "value": ["QA"]}],
        }
    )
    assert issue.priority is None
    assert issue.assigned_to.name == "Alice"
    assert issue.attribute("due_date") == "2026-03-01"
    assert issue.attribute("created_on") == "2026-02-05T17:09:11Z"
    assert issue.custom_field(628).value.first() == "QA"
    assert issue.custom_field(1) is None


def test_settings_from_browser_style_dict():
    settings = settings_from_dict(
        {
            "version": 1,
            "startDate": "2026-02-09",
            "hideWeekends": True,
            "anchorDay": 3,
            "series": [
                {
                    "id": "series-0",
                    "label": "Closed",
                    "dateField": "closed_on",
                    "statusIds": [5, 6],
                    "chartType": "line",
                    "yAxisId": "right",
                    "aggregation": "cumulative",
                    "color": "#ff0000",
                    "conditions": [{"field": "cf_628", "operator": "!", "values": ["QA"]}],
                }
            ],
        }
    )
    assert settings.options.start_date == date(2026, 2, 9)
    assert settings.options.hide_weekends is True
    assert settings.options.anchor_weekday == 3
    s = settings.series[0]
    assert s.date_field == DateField.CLOSED_ON
    assert s.status_ids == {5, 6}
    assert s.aggregation == Aggregation.CUMULATIVE
    assert s.conditions[0].operator == ConditionOperator.NOT_EQUALS_ANY


def test_settings_dict_round_trip_defaults():
    settings = settings_from_dict({})
    assert [s.id for s in settings.series] == ["series-0", "series-1", "series-2"]
    restored = settings_from_dict(settings_to_dict(settings))
    assert restored == settings


def test_anchor_weekday_validated():
    with pytest.raises(ValueError):
        AggregationOptions(anchor_weekday=6)
    with pytest.raises(ValueError):
        settings_from_dict({"anchor_weekday": 0, "weekly_mode": True, "series": []})


def test_unknown_date_format_falls_back():
    assert settings_from_dict({"dateFormat": "MM/DD", "series": []}).date_format == "yyyy-mm-dd"
    assert settings_from_dict({"date_format": "M/D"}).date_format == "M/D"
    assert settings_from_dict({}).date_format == "yyyy-mm-dd"


def test_pie_settings_from_dict():
    settings = settings_from_dict(
        {
            "pieLeft": {"groupBy": "cf_628", "conditions": [{"field": "tracker_id", "operator": "=", "values": [1]}]},
        }
    )
    assert settings.left_pie.group_by == "cf_628"
    assert settings.left_pie.conditions[0].values == {"1"}
    assert settings.right_pie == PieSettings("tracker_id")
    assert settings_from_dict({"pie_group_by": "priority_id"}).left_pie == PieSettings("priority_id")
    assert settings_from_dict({}).left_pie == PieSettings("status_id")
    restored = settings_from_dict(settings_to_dict(settings))
    assert restored.left_pie == settings.left_pie


def test_new_series_picks_next_id_and_palette_color():
    first = new_series([])
    assert (first.id, first.label, first.color) == ("series-0", "Series 1", "#1f77b4")
    existing = [first, new_series([first]), SeriesDefinition(id="custom", label="Custom")]
    added = new_series(existing)
    assert added.id == "series-2"
    assert added.color == "#d62728"
    assert added.aggregation == Aggregation.DAILY
    assert added.date_field == DateField.CREATED_ON
