"""Connection setup page: collect Redmine credentials and initialize GraphService."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping

import streamlit as st

from redmine_graph.app import register_page
from redmine_graph.core.config import REQUEST_TIMEOUT_SECONDS
from redmine_graph.core.redmine_client import RedmineAPI
from redmine_graph.core.service import GraphService

logger = logging.getLogger(__name__)


def redmine_secret(name: str) -> str | None:
    """Value of ``name`` from a ``[redmine]`` secrets section, else from the top level."""
    try:
        section = st.secrets.get("redmine", {})
        return section.get(name) or st.secrets.get(name)
    except FileNotFoundError:
        # No secrets.toml configured
        return None


def redmine_secrets() -> tuple[str | None, str | None]:
    return redmine_secret("REDMINE_SERVER"), redmine_secret("REDMINE_API_KEY")


def parse_available_filters(raw) -> dict:
    """Parse a pasted ``availableFilters`` JSON object (or a secrets table); anything else yields {}."""
    if not raw:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.warning("Ignoring availableFilters payload: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}


@register_page("Setup / Connection")
def setup_page():
    st.title("Redmine Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    secret_server, secret_key = redmine_secrets()
    server = st.text_input(
        "Redmine Server URL",
        value=st.session_state.get("redmine_server") or secret_server or "",
    )
    api_key = st.text_input("API Key", type="password", value=secret_key or "")
    timeout = st.number_input(
        "Request timeout (seconds)",
        min_value=5.0,
        max_value=300.0,
        value=REQUEST_TIMEOUT_SECONDS,
    )
    secret_filters = redmine_secret("AVAILABLE_FILTERS")
    if not isinstance(secret_filters, str):
        # Table-valued secrets are read directly at startup
        secret_filters = ""
    filters_raw = st.text_area(
        "availableFilters JSON (optional)",
        value=st.session_state.get("available_filters_raw") or secret_filters or "",
        help="Copied from the issues page; enables condition fields, custom date fields and status names.",
    )
    if st.button("Initialize Connection", type="primary"):
        if not server:
            st.error("Server URL required.")
            return
        api = RedmineAPI(server, api_key, timeout=float(timeout))
        st.session_state["redmine_server"] = server
        st.session_state["graph_service"] = GraphService(api)
        st.session_state["available_filters_raw"] = filters_raw
        st.session_state["available_filters"] = parse_available_filters(filters_raw or redmine_secret("AVAILABLE_FILTERS"))
        for key in [k for k in st.session_state if str(k).startswith("field_catalog:")]:
            del st.session_state[key]
        st.success("Connection initialized.")

    if "graph_service" in st.session_state:
        st.info("GraphService ready.")
