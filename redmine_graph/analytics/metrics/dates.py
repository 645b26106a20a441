"""Issue date resolution for series bucketing (pure functions)."""

from __future__ import annotations

import pandas as pd
import pytz

from redmine_graph.analytics.metrics.buckets import format_date_key, parse_date_key
from redmine_graph.core.config import CLOSED_DATE_OFFSET_HOURS
from redmine_graph.core.models import DateField, IssueModel, SeriesDefinition

CLOSED_DATE_TZ = pytz.FixedOffset(CLOSED_DATE_OFFSET_HOURS * 60)


def to_created_date(utc_timestamp: str | None) -> str | None:
    """Calendar date of a creation timestamp: its UTC date part, no offset applied."""
    parsed = parse_date_key(utc_timestamp)
    if parsed is None:
        return None
    return format_date_key(parsed)


def to_closed_date(utc_timestamp: str | None) -> str | None:
    """Calendar date of a completion timestamp, shifted +9h before truncation.

    >>> to_closed_date("2026-02-25T15:05:00Z")
    '2026-02-26'
    """
    if not utc_timestamp:
        return None
    ts = pd.to_datetime(utc_timestamp, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return format_date_key(ts.tz_convert(CLOSED_DATE_TZ).date())


def _custom_date(issue: IssueModel, key: str) -> str | None:
    if key.startswith("cf_"):
        try:
            field_id = int(key[3:])
        except ValueError:
            return None
        cf = issue.custom_field(field_id)
        raw = cf.value.first() if cf is not None else None
    else:
        raw = issue.attribute(key)
    if not raw or not isinstance(raw, str):
        return None
    parsed = parse_date_key(raw)
    return format_date_key(parsed) if parsed is not None else None


def resolve_issue_date(issue: IssueModel, series: SeriesDefinition) -> str | None:
    """Date key an issue contributes to ``series``, or None to skip it for that series."""
    if series.date_field == DateField.CLOSED_ON:
        return to_closed_date(issue.closed_on)
    if series.date_field == DateField.CUSTOM:
        if not series.custom_date_field_key:
            return None
        return _custom_date(issue, series.custom_date_field_key)
    return to_created_date(issue.created_on)
