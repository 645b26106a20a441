from datetime import date

from redmine_graph.core.filter_catalog import FieldCatalog
from redmine_graph.core.mappers import default_series
from redmine_graph.core.models import AggregationOptions, FetchProgress, PieSlice, RedmineStatus, UserSettings
from redmine_graph.core.redmine_client import RedmineAPI, RedmineAPIError
from redmine_graph.core.service import GraphService, fallback_statuses


class DummyAPI(RedmineAPI):
    def __init__(self, issues=None, statuses=None, fail=False):
        super().__init__("https://redmine.example.org")
        self.issues = issues or []
        self.statuses = statuses or []
        self.fail = fail

    def fetch_all_issues(self, project_id, query=None, progress=None, *, limit=100):
        if self.fail:
            raise RedmineAPIError("unavailable")
        if progress:
            progress(FetchProgress(fetched=len(self.issues), total=len(self.issues)))
        return list(self.issues)

    def fetch_issue_statuses(self):
        if self.fail:
            raise RedmineAPIError("unavailable")
        return list(self.statuses)


def _raw(issue_id, created, tracker=1):
    return {
        "id": issue_id,
        "status": {"id": 1, "name": "New"},
        "tracker": {"id": tracker, "name": "Bug" if tracker == 1 else "Task"},
        "created_on": created,
    }


def test_load_issues_maps_and_reports_progress():
    api = DummyAPI(issues=[_raw(1, "2026-02-10T00:00:00Z"), _raw(2, "2026-02-11T00:00:00Z", tracker=2)])
    messages = []
    issues = GraphService(api).load_issues("proj", progress=lambda m, cur, tot: messages.append((m, cur, tot)))
    assert [i.id for i in issues] == [1, 2]
    assert messages[0] == ("Querying issues for proj", None, None)
    assert messages[-1] == ("Loading issues", 2, 2)


def test_load_issues_failure_yields_empty_list():
    assert GraphService(DummyAPI(fail=True)).load_issues("proj") == []


def test_load_statuses_prefers_page_catalog():
    catalog = FieldCatalog({"status_id": {"type": "list_status", "values": [["Open", "7"]]}})
    api = DummyAPI(statuses=[{"id": 1, "name": "New", "is_closed": False}])
    service = GraphService(api)
    assert service.load_statuses(catalog) == [RedmineStatus(7, "Open")]
    assert service.load_statuses() == [RedmineStatus(1, "New", False)]


def test_load_statuses_falls_back():
    statuses = GraphService(DummyAPI(fail=True)).load_statuses(FieldCatalog({}))
    assert statuses == fallback_statuses()
    assert [s.name for s in statuses if s.is_closed] == ["Closed", "Rejected"]
    assert GraphService(DummyAPI()).load_statuses() == fallback_statuses()


def test_build_series_and_pie():
    api = DummyAPI(issues=[_raw(1, "2026-02-10T00:00:00Z"), _raw(2, "2026-02-10T08:00:00Z", tracker=2)])
    service = GraphService(api)
    issues = service.load_issues("proj")
    settings = UserSettings(series=default_series()[:1], options=AggregationOptions(start_date=date(2026, 2, 9)))
    points = service.build_series(issues, settings, date(2026, 2, 11))
    assert [p.date for p in points] == ["2026-02-09", "2026-02-10", "2026-02-11"]
    assert points[1].values[settings.series[0].id] == 2
    assert service.build_pie(issues, "tracker_id") == [PieSlice("Bug", 1), PieSlice("Task", 1)]


def test_last_error_tracks_fetch_outcome():
    api = DummyAPI(fail=True)
    service = GraphService(api)
    assert service.load_issues("proj") == []
    assert service.last_error == "unavailable"
    api.fail = False
    assert service.load_issues("proj") == []
    assert service.last_error is None
