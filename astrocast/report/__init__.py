from .calendar import build_calendar_url
from .formatters import format_json, format_summary, format_text
from .generator import ReportGenerator, group_by_site
from .types import (
    LocationReport,
    ObjectReport,
    Observation,
    ReportStage,
    RunSummary,
    SiteFailure,
    SiteObservations,
    User,
    UserOutcome,
)

__all__ = [
    "LocationReport",
    "ObjectReport",
    "Observation",
    "ReportGenerator",
    "ReportStage",
    "RunSummary",
    "SiteFailure",
    "SiteObservations",
    "User",
    "UserOutcome",
    "build_calendar_url",
    "format_json",
    "format_summary",
    "format_text",
    "group_by_site",
]
