"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``redmine_graph/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from redmine_graph.app import main

st.set_page_config(layout="wide")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("redmine_graph")


def _auto_init_graph_service():
    """Initialize the Redmine service from Streamlit secrets if available."""
    if "graph_service" in st.session_state:
        return

    from redmine_graph.pages.setup import parse_available_filters, redmine_secret, redmine_secrets

    server, api_key = redmine_secrets()
    if not server:
        st.sidebar.warning("Redmine secrets not found. Please use the Setup page.")
        return

    from redmine_graph.core.redmine_client import RedmineAPI
    from redmine_graph.core.service import GraphService

    st.session_state["redmine_server"] = server
    st.session_state["graph_service"] = GraphService(RedmineAPI(server, api_key or ""))
    st.session_state["available_filters"] = parse_available_filters(redmine_secret("AVAILABLE_FILTERS"))
    st.sidebar.success("Redmine connection configured.")


PAGES_DIR = Path(__file__).parent / "redmine_graph" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"redmine_graph.pages.{py.stem}"
    try:
        import_module(mod_name)
    except ImportError as e:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, e)

_auto_init_graph_service()

if __name__ == "__main__":
    main()
