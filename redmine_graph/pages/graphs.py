"""Issue graphs page.

Fetches the project's issues (or falls back to synthetic data when no
connection is configured), then renders the series combo chart and the two
pie summaries for the current settings.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from urllib.parse import parse_qsl

import streamlit as st

from redmine_graph.app import register_page
from redmine_graph.core.config import (
    DATE_FORMATS,
    DEFAULT_ANCHOR_WEEKDAY,
    SETTINGS,
    WEEKDAY_LABELS,
)
from redmine_graph.core.filter_catalog import FieldCatalog
from redmine_graph.core.mappers import default_series, new_series
from redmine_graph.core.models import (
    Aggregation,
    AggregationOptions,
    Axis,
    ChartType,
    ConditionOperator,
    DateField,
    PieSettings,
    Preset,
    RedmineStatus,
    SeriesCondition,
    SeriesDefinition,
    UserSettings,
)
from redmine_graph.core.service import GraphService, fallback_statuses
from redmine_graph.core.settings_store import SettingsStore, load_team_presets
from redmine_graph.features.graphs.context import build_graph_context, export_frame, pie_group_by_choices
from redmine_graph.pages.setup import redmine_secret
from redmine_graph.visual.charts import combo_chart, pie_chart
from redmine_graph.visual.progress import ProgressReporter

OPERATORS = list(ConditionOperator)
OPERATOR_LABELS = {ConditionOperator.EQUALS_ANY: "is", ConditionOperator.NOT_EQUALS_ANY: "is not"}

# Widget key prefixes; cleared whenever rows are added or removed so keyed widgets re-read settings
SERIES_WIDGETS = "series:"
PIE_WIDGETS = "pie:"


def _settings_key(project_id: str) -> str:
    return f"graph_settings:{project_id}"


def _current_settings(store: SettingsStore, project_id: str) -> UserSettings:
    key = _settings_key(project_id)
    if key not in st.session_state:
        st.session_state[key] = store.load_settings(project_id) or UserSettings(series=default_series())
    return st.session_state[key]


def _clear_widgets(*prefixes: str) -> None:
    for key in [k for k in st.session_state if str(k).startswith(prefixes)]:
        del st.session_state[key]


def _commit_and_rerun(project_id: str, settings: UserSettings) -> None:
    st.session_state[_settings_key(project_id)] = settings
    _clear_widgets(SERIES_WIDGETS, PIE_WIDGETS)
    st.rerun()


def _field_catalog(service: GraphService | None, project_id: str) -> FieldCatalog:
    key = f"field_catalog:{project_id}"
    if key not in st.session_state:
        st.session_state[key] = FieldCatalog(
            st.session_state.get("available_filters"),
            api=service.api if service is not None else None,
            project_id=project_id or None,
        )
    return st.session_state[key]


def _statuses(service: GraphService | None, catalog: FieldCatalog, project_id: str) -> list[RedmineStatus]:
    if service is None:
        return catalog.statuses() or fallback_statuses()
    key = f"statuses:{project_id}"
    if key not in st.session_state:
        st.session_state[key] = service.load_statuses(catalog)
    return st.session_state[key]


def _issues_key(project_id: str) -> str:
    return f"issues:{project_id}"


def _stored_issues(service: GraphService | None, project_id: str):
    """Issues fetched for ``project_id`` in this session; None means chart synthetic data."""
    if service is None:
        return None
    return st.session_state.get(_issues_key(project_id))


def _presets_sidebar(store: SettingsStore, settings: UserSettings, project_id: str) -> UserSettings:
    presets = load_team_presets(redmine_secret("TEAM_PRESETS")) + store.load_presets()
    st.sidebar.subheader("Presets")
    if presets:
        names = [p.name for p in presets]
        choice = st.sidebar.selectbox("Preset", names)
        if st.sidebar.button("Apply preset"):
            _commit_and_rerun(project_id, presets[names.index(choice)].settings)
    name = st.sidebar.text_input("Save current as")
    if name and st.sidebar.button("Save preset"):
        own = [p for p in store.load_presets() if p.name != name]
        store.save_presets([*own, Preset(id=name, name=name, settings=settings)])
        st.sidebar.success(f"Preset '{name}' saved.")
    return settings


def _options_sidebar(settings: UserSettings) -> UserSettings:
    opts = settings.options
    st.sidebar.subheader("Axis")
    use_start = st.sidebar.checkbox("Fixed start date", value=opts.start_date is not None)
    start_date = None
    if use_start:
        start_date = st.sidebar.date_input("Start date", value=opts.start_date or date.today())
    weekly = st.sidebar.checkbox("Weekly buckets", value=opts.weekly_mode)
    anchor = opts.anchor_weekday
    hide_weekends = opts.hide_weekends
    if weekly:
        anchor = st.sidebar.selectbox(
            "Week ends on",
            list(WEEKDAY_LABELS),
            index=list(WEEKDAY_LABELS).index(opts.anchor_weekday or DEFAULT_ANCHOR_WEEKDAY),
            format_func=WEEKDAY_LABELS.get,
        )
    else:
        hide_weekends = st.sidebar.checkbox("Hide weekends (count on Monday)", value=opts.hide_weekends)
    formats = list(DATE_FORMATS)
    date_format = st.sidebar.selectbox(
        "Date labels",
        formats,
        index=formats.index(settings.date_format) if settings.date_format in formats else 0,
    )
    return replace(
        settings,
        options=AggregationOptions(
            start_date=start_date,
            hide_weekends=hide_weekends,
            weekly_mode=weekly,
            anchor_weekday=anchor,
        ),
        date_format=date_format,
    )


def _condition_editor(
    prefix: str,
    conditions: tuple[SeriesCondition, ...],
    catalog: FieldCatalog,
) -> tuple[tuple[SeriesCondition, ...], bool]:
    """One field/operator/values row per condition; the flag is True when a row was added or removed."""
    list_fields = {f.key: f.name for f in catalog.list_fields()}
    out: list[SeriesCondition] = []
    structural = False
    for idx, cond in enumerate(conditions):
        field_keys = ["", *list_fields]
        if cond.field and cond.field not in list_fields:
            field_keys.append(cond.field)
        cols = st.columns([3, 2, 5, 1])
        field_key = cols[0].selectbox(
            "Field",
            field_keys,
            index=field_keys.index(cond.field),
            format_func=lambda k: list_fields.get(k, k or "(choose a field)"),
            key=f"{prefix}:{idx}:field",
        )
        operator = cols[1].selectbox(
            "Operator",
            OPERATORS,
            index=OPERATORS.index(cond.operator),
            format_func=OPERATOR_LABELS.get,
            key=f"{prefix}:{idx}:operator",
        )
        # Changing the field starts from an empty selection
        current = sorted(cond.values) if field_key == cond.field else []
        labels = {o.value: o.label for o in catalog.options(field_key)} if field_key else {}
        for value in current:
            labels.setdefault(value, value)
        values = cols[2].multiselect(
            "Values",
            list(labels),
            default=current,
            format_func=labels.get,
            key=f"{prefix}:{idx}:values:{field_key}",
        )
        if cols[3].button("Remove", key=f"{prefix}:{idx}:remove"):
            structural = True
            continue
        out.append(SeriesCondition(field_key, operator, frozenset(values)))
    if st.button("Add condition", key=f"{prefix}:add"):
        out.append(SeriesCondition(""))
        structural = True
    return tuple(out), structural


def _series_panel(
    series: list[SeriesDefinition],
    catalog: FieldCatalog,
    statuses: list[RedmineStatus],
) -> tuple[list[SeriesDefinition], bool]:
    status_names = {s.id: s.name for s in statuses}
    date_choices = {"created_on": "Created", "closed_on": "Closed"}
    date_choices.update({f.key: f.name for f in catalog.date_fields()})
    date_keys = list(date_choices)

    out: list[SeriesDefinition] = []
    structural = False
    st.subheader("Series")
    for s in series:
        prefix = f"{SERIES_WIDGETS}{s.id}"
        with st.expander(f"{s.label} ({s.id})"):
            cols = st.columns(3)
            label = cols[0].text_input("Label", value=s.label, key=f"{prefix}:label")
            visible = cols[1].checkbox("Visible", value=s.visible, key=f"{prefix}:visible")
            color = cols[2].color_picker("Color", value=s.color, key=f"{prefix}:color")

            cols = st.columns(3)
            aggregation = cols[0].selectbox(
                "Aggregation",
                list(Aggregation),
                index=list(Aggregation).index(s.aggregation),
                key=f"{prefix}:aggregation",
            )
            chart_type = cols[1].selectbox(
                "Chart type", list(ChartType), index=list(ChartType).index(s.chart_type), key=f"{prefix}:chart"
            )
            axis = cols[2].selectbox("Y axis", list(Axis), index=list(Axis).index(s.axis), key=f"{prefix}:axis")

            cols = st.columns(2)
            current_date = s.custom_date_field_key if s.date_field == DateField.CUSTOM else str(s.date_field)
            date_key = cols[0].selectbox(
                "Date",
                date_keys,
                index=date_keys.index(current_date) if current_date in date_choices else 0,
                format_func=date_choices.get,
                key=f"{prefix}:date",
            )
            status_ids = cols[1].multiselect(
                "Statuses (none = all)",
                list(status_names),
                default=[i for i in sorted(s.status_ids) if i in status_names],
                format_func=status_names.get,
                key=f"{prefix}:statuses",
            )

            st.caption("Conditions (all must match)")
            conditions, changed = _condition_editor(f"{prefix}:cond", s.conditions, catalog)
            structural |= changed
            if st.button("Remove series", key=f"{prefix}:remove"):
                structural = True
                continue

        if date_key in (DateField.CREATED_ON, DateField.CLOSED_ON):
            date_field, custom_key = DateField(date_key), None
        else:
            date_field, custom_key = DateField.CUSTOM, date_key
        out.append(
            replace(
                s,
                label=label or s.label,
                visible=visible,
                color=color,
                aggregation=Aggregation(aggregation),
                chart_type=ChartType(chart_type),
                axis=Axis(axis),
                date_field=date_field,
                custom_date_field_key=custom_key,
                status_ids=frozenset(status_ids),
                conditions=conditions,
            )
        )
    if st.button("Add series"):
        out.append(new_series(out))
        structural = True
    return out, structural


def _pie_panel(title: str, key: str, pie: PieSettings, catalog: FieldCatalog) -> tuple[PieSettings, bool]:
    choices = pie_group_by_choices(catalog, pie.group_by)
    keys = list(choices)
    group_by = st.selectbox(
        f"{title} grouping",
        keys,
        index=keys.index(pie.group_by),
        format_func=choices.get,
        key=f"{PIE_WIDGETS}{key}:group_by",
    )
    st.caption("Conditions (all must match)")
    conditions, changed = _condition_editor(f"{PIE_WIDGETS}{key}:cond", pie.conditions, catalog)
    return PieSettings(group_by, conditions), changed


@register_page("Issue Graphs")
def graphs_page():
    st.title("Issue Graphs")
    service: GraphService | None = st.session_state.get("graph_service")
    store = SettingsStore()
    project_id = st.text_input("Project identifier", value=st.session_state.get("project_id", ""))
    query = st.text_input("Issue filter query string", value=st.session_state.get("issue_query", ""))
    st.session_state["project_id"] = project_id
    st.session_state["issue_query"] = query

    catalog = _field_catalog(service, project_id)
    settings = _presets_sidebar(store, _current_settings(store, project_id), project_id)
    settings = _options_sidebar(settings)

    series, series_changed = _series_panel(settings.series, catalog, _statuses(service, catalog, project_id))
    settings = replace(settings, series=series)

    st.subheader("Pie charts")
    left_col, right_col = st.columns(2)
    with left_col:
        left_pie, left_changed = _pie_panel("Left pie", "left", settings.left_pie, catalog)
    with right_col:
        right_pie, right_changed = _pie_panel("Right pie", "right", settings.right_pie, catalog)
    settings = replace(settings, left_pie=left_pie, right_pie=right_pie)

    if series_changed or left_changed or right_changed:
        _commit_and_rerun(project_id, settings)
    st.session_state[_settings_key(project_id)] = settings

    if service is not None and project_id and st.button("Fetch Issues", type="primary"):
        reporter = ProgressReporter(f"Fetching issues for {project_id}")
        issues = service.load_issues(project_id, dict(parse_qsl(query)), progress=reporter.callback)
        if service.last_error:
            reporter.error(f"Could not load issues: {service.last_error}")
        else:
            st.session_state[_issues_key(project_id)] = issues
            reporter.complete(f"Loaded {len(issues)} issue(s).")

    issues = _stored_issues(service, project_id)
    if issues is None:
        st.info("No Redmine data loaded; showing synthetic data.")

    ctx = build_graph_context(issues, settings, date.today())
    chart = combo_chart(
        ctx.frame,
        settings.series,
        height=settings.chart_height or SETTINGS.chart_height,
        date_format=settings.date_format,
        y_left_min=settings.y_axis_left_min,
        y_right_max=settings.y_axis_right_max,
    )
    if chart is None:
        st.info("No visible series.")
    else:
        st.altair_chart(chart, use_container_width=True)

    for col, pie, slices in (
        (left_col, settings.left_pie, ctx.left_pie),
        (right_col, settings.right_pie, ctx.right_pie),
    ):
        title = pie_group_by_choices(catalog, pie.group_by)[pie.group_by]
        rendered = pie_chart(slices, title=title)
        if rendered is None:
            col.info(f"No issues to group by {title}.")
        else:
            col.altair_chart(rendered, use_container_width=True)

    csv = export_frame(ctx, settings).to_csv(index=False).encode(SETTINGS.download_encoding)
    st.download_button(
        "Download Series CSV",
        data=csv,
        file_name=f"redmine_series_{project_id or 'sample'}.csv",
        mime="text/csv",
    )
    if project_id and st.button("Save settings"):
        store.save_settings(project_id, settings)
        st.success("Settings saved.")
