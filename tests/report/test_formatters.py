import datetime
import json

from astrocast.report.formatters import format_json, format_summary, format_text, summary_to_dict
from astrocast.report.types import (
    ReportStage,
    RunSummary,
    SiteFailure,
    User,
    UserOutcome,
)
from conftest import make_report as _report

UTC = datetime.timezone.utc
INSTANT = datetime.datetime(2024, 1, 15, 22, 0, tzinfo=UTC)


def test_format_text_lists_window_objects_and_warnings():
    text = format_text(_report())
    assert "Observation report: Garden" in text
    assert "Best time: 2024-01-15 22:00 UTC" in text
    assert "Bortle 4 (Rural/Suburban Transition)" in text
    assert "- Cloud coverage >50%, observations may be difficult" in text
    assert "HIP 32349 | Sirius" in text
    assert "alt  18.2°" in text
    assert "az 190.0° S" in text
    assert "Add to calendar: https://calendar.example/?action=TEMPLATE" in text


def test_format_json_is_serializable():
    data = json.loads(format_json(_report()))
    assert data["instant_utc"] == "2024-01-15T22:00:00+00:00"
    assert data["index"] == 134.0
    obj = data["objects"][0]["tracked_object"]
    assert obj["kind"] == "star"
    assert obj["designation"] == "HIP 32349"
    assert obj["more_information_url"] == "http://cdsportal.u-strasbg.fr/?target=hip+32349"


def _summary():
    ada = User(1, "Ada", "ada@example.org")
    grace = User(2, "Grace", "grace@example.org")
    return RunSummary(
        started_utc=INSTANT,
        finished_utc=INSTANT + datetime.timedelta(seconds=3),
        outcomes=[
            UserOutcome(user=ada, reports=[_report()], notified=True),
            UserOutcome(
                user=grace,
                failures=[SiteFailure(2, 5, ReportStage.SCORING, "no night hour")],
            ),
        ],
    )


def test_format_summary():
    text = format_summary(_summary())
    assert "Users: 2 (3.0s)" in text
    assert "ok      user 1 site 1" in text
    assert "failed  user 2 site 5 [scoring] no night hour" in text


def test_summary_to_dict():
    data = summary_to_dict(_summary())
    assert data["succeeded"] == [{"user_id": 1, "site_id": 1}]
    assert data["failed"][0]["stage"] == "scoring"
    assert data["ok"] is False


def test_summary_lists_errored_users():
    summary = _summary()
    summary.outcomes.append(UserOutcome(user=User(3, "Edwin", "edwin@example.org"), error="RuntimeError: boom"))
    assert "Errored: 3" in format_summary(summary)
    data = summary_to_dict(summary)
    assert data["errored_user_ids"] == [3]


def test_failure_stages_are_per_site_steps():
    assert [stage.value for stage in ReportStage] == [
        "fetching_forecast",
        "scoring",
        "transforming_objects",
        "assembled",
    ]
