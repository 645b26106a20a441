from redmine_graph.core.filter_catalog import FieldCatalog, parse_filter_response
from redmine_graph.core.models import FilterField, FilterOption, RedmineStatus
from redmine_graph.core.redmine_client import RedmineAPI, RedmineAPIError

AVAILABLE_FILTERS = {
    "status_id": {"name": "Status", "type": "list_status", "values": [["New", "1"], ["Closed", "5"]]},
    "tracker_id": {"name": "Tracker", "type": "list", "values": [["Bug", "1"], ["Task", "2"]]},
    "cf_628": {"name": "Type", "type": "list_optional", "remote": True},
    "subject": {"name": "Subject", "type": "text"},
    "due_date": {"name": "Due date", "type": "date"},
    "fixed_version.due_date": {"name": "Version's due date", "type": "date"},
}


class DummyAPI(RedmineAPI):
    def __init__(self, payload=None, fail=False):
        super().__init__("https://redmine.example.org")
        self.payload = payload
        self.fail = fail
        self.calls = 0

    def fetch_filter_values(self, project_id, field_key):
        self.calls += 1
        if self.fail:
            raise RedmineAPIError("boom")
        return self.payload


def test_parse_filter_response_shapes():
    assert parse_filter_response(["QA", "BUG"]) == [FilterOption("QA", "QA"), FilterOption("BUG", "BUG")]
    assert parse_filter_response([["Bug", "1"], ["Task", 2]]) == [FilterOption("Bug", "1"), FilterOption("Task", "2")]
    assert parse_filter_response([]) == []
    assert parse_filter_response({"error": "x"}) == []


def test_field_lists():
    catalog = FieldCatalog(AVAILABLE_FILTERS)
    assert [f.key for f in catalog.list_fields()] == ["tracker_id", "cf_628"]
    assert catalog.date_fields() == [FilterField("due_date", "Due date")]


def test_statuses_from_page_filters():
    catalog = FieldCatalog(AVAILABLE_FILTERS)
    assert catalog.statuses() == [RedmineStatus(1, "New"), RedmineStatus(5, "Closed")]
    assert FieldCatalog({}).statuses() is None


def test_local_options_need_no_api():
    catalog = FieldCatalog(AVAILABLE_FILTERS)
    assert catalog.options("tracker_id") == [FilterOption("Bug", "1"), FilterOption("Task", "2")]
    assert catalog.options("cf_628") == []
    assert catalog.options("missing") == []


def test_remote_options_are_cached():
    api = DummyAPI(payload=["QA", "BUG"])
    catalog = FieldCatalog(AVAILABLE_FILTERS, api=api, project_id="proj")
    assert [o.value for o in catalog.options("cf_628")] == ["QA", "BUG"]
    catalog.options("cf_628")
    assert api.calls == 1


def test_remote_failure_is_not_cached():
    api = DummyAPI(fail=True)
    catalog = FieldCatalog(AVAILABLE_FILTERS, api=api, project_id="proj")
    assert catalog.options("cf_628") == []
    assert catalog.options("cf_628") == []
    assert api.calls == 2
