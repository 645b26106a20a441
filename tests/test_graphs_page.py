from redmine_graph.core.filter_catalog import FieldCatalog
from redmine_graph.core.models import RedmineStatus
from redmine_graph.core.redmine_client import RedmineAPI
from redmine_graph.core.service import GraphService
from redmine_graph.pages import graphs as graphs_page


class CountingService(GraphService):
    def __init__(self):
        super().__init__(RedmineAPI("https://redmine.example.org"))
        self.status_calls = []

    def load_statuses(self, catalog=None):
        self.status_calls.append(catalog.project_id)
        return [RedmineStatus(len(self.status_calls), f"Status for {catalog.project_id}")]


def test_issues_are_kept_per_project(monkeypatch):
    monkeypatch.setattr(graphs_page.st, "session_state", {})
    service = CountingService()
    graphs_page.st.session_state[graphs_page._issues_key("alpha")] = ["alpha issue"]
    assert graphs_page._stored_issues(service, "alpha") == ["alpha issue"]
    assert graphs_page._stored_issues(service, "beta") is None
    assert graphs_page._stored_issues(None, "alpha") is None


def test_statuses_are_cached_per_project(monkeypatch):
    monkeypatch.setattr(graphs_page.st, "session_state", {})
    service = CountingService()
    alpha = graphs_page._statuses(service, FieldCatalog({}, project_id="alpha"), "alpha")
    graphs_page._statuses(service, FieldCatalog({}, project_id="alpha"), "alpha")
    beta = graphs_page._statuses(service, FieldCatalog({}, project_id="beta"), "beta")
    assert service.status_calls == ["alpha", "beta"]
    assert alpha[0].name == "Status for alpha"
    assert beta[0].name == "Status for beta"
