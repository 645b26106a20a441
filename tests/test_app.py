from redmine_graph import app


def test_ordered_pages(monkeypatch):
    monkeypatch.setattr(app, "PAGES", {})
    for label in ("Zeta", "Setup / Connection", "Issue Graphs", "Alpha"):
        app.register_page(label)(lambda: None)
    assert app.ordered_pages() == ["Issue Graphs", "Setup / Connection", "Alpha", "Zeta"]


def test_parse_available_filters():
    from redmine_graph.pages.setup import parse_available_filters

    assert parse_available_filters('{"tracker_id": {"type": "list"}}') == {"tracker_id": {"type": "list"}}
    assert parse_available_filters({"due_date": {"type": "date"}}) == {"due_date": {"type": "date"}}
    assert parse_available_filters("[1, 2]") == {}
    assert parse_available_filters("{broken") == {}
    assert parse_available_filters(None) == {}
