import datetime
import json
from dataclasses import asdict

from astrocast.util.format import compass_point, deg_to_dms, deg_to_hms, format_utc
from .types import LocationReport, RunSummary


def report_to_dict(report: LocationReport) -> dict:
    data = asdict(report)
    data["instant_utc"] = report.instant_utc
    data["index"] = report.index
    for obj_data, obj in zip(data["objects"], report.objects):
        obj_data["tracked_object"]["designation"] = obj.tracked_object.designation
        obj_data["tracked_object"]["ra_deg"] = obj.tracked_object.coordinate.ra_deg
        obj_data["tracked_object"]["dec_deg"] = obj.tracked_object.coordinate.dec_deg
        obj_data["tracked_object"]["more_information_url"] = obj.tracked_object.more_information_url
    return data


def format_json(report: LocationReport) -> str:
    return json.dumps(report_to_dict(report), indent=2, default=_json_default)


def _json_default(value):
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return str(value)


def format_text(report: LocationReport) -> str:
    site = report.site
    forecast = report.forecast
    lines: list[str] = []
    title = f"Observation report: {site.name}"
    lines.append(title)
    lines.append("=" * len(title))
    lines.append(
        f"Location: lat {site.latitude_deg:.3f}°, lon {site.longitude_deg:.3f}°"
    )
    sky = f"Sky: Bortle {site.bortle}"
    if site.bortle_description:
        sky += f" ({site.bortle_description})"
    sky += f", naked-eye limit {site.limiting_magnitude:.2f} mag"
    lines.append(sky)
    lines.append(f"Best time: {format_utc(report.instant_utc)} (index {report.index:.2f})")

    weather = []
    if forecast.description:
        weather.append(forecast.description)
    weather.append(f"cloud {forecast.cloud_coverage_pct:.0f}%")
    weather.append(f"wind {forecast.wind_speed_mps:.1f} m/s")
    weather.append(f"humidity {forecast.humidity_pct:.0f}%")
    weather.append(f"precipitation {forecast.precipitation_probability:.0%}")
    if forecast.temperature_c is not None:
        weather.append(f"{forecast.temperature_c:.1f}°C")
    lines.append("Weather: " + ", ".join(weather))

    if report.warnings:
        lines.append("")
        lines.append("Warnings")
        lines.append("--------")
        for warning in report.warnings:
            lines.append(f"- {warning}")

    if report.objects:
        lines.append("")
        lines.append("Objects")
        lines.append("-------")
        rows = []
        for idx, item in enumerate(report.objects, start=1):
            obj = item.tracked_object
            rows.append(
                {
                    "idx": f"{idx:>2}.",
                    "name": obj.display_name,
                    "coords": f"{deg_to_hms(obj.coordinate.ra_deg, 1)} {deg_to_dms(obj.coordinate.dec_deg, 0)}",
                    "alt": f"alt {item.altaz.altitude_deg:5.1f}°",
                    "az": f"az {item.altaz.azimuth_deg:5.1f}° {compass_point(item.altaz.azimuth_deg)}",
                    "mag": f"mag {obj.apparent_magnitude:.2f}",
                    "notes": "; ".join(item.verdict.warnings),
                }
            )
        name_w = min(40, max(len(r["name"]) for r in rows))
        for r in rows:
            name = _pad(_truncate(r["name"], name_w), name_w)
            line = f"{r['idx']} {name}  {r['coords']}  {r['alt']}  {r['az']}  {r['mag']}"
            lines.append(f"{line}  {r['notes']}" if r["notes"] else line)

    lines.append("")
    lines.append(f"Add to calendar: {report.calendar_url}")
    return "\n".join(lines)


def format_summary(summary: RunSummary) -> str:
    lines: list[str] = []
    elapsed = (summary.finished_utc - summary.started_utc).total_seconds()
    lines.append("Report run summary")
    lines.append("==================")
    lines.append(f"Users: {len(summary.outcomes)} ({elapsed:.1f}s)")
    lines.append(f"Reports generated: {len(summary.succeeded)}")
    for user_id, site_id in summary.succeeded:
        lines.append(f"  ok      user {user_id} site {site_id}")
    lines.append(f"Site failures: {len(summary.failed)}")
    for failure in summary.failed:
        lines.append(
            f"  failed  user {failure.user_id} site {failure.site_id} "
            f"[{failure.stage.value}] {failure.reason}"
        )
    if summary.skipped_user_ids:
        lines.append("Skipped (no observations): " + _join_ids(summary.skipped_user_ids))
    if summary.errored_user_ids:
        lines.append("Errored: " + _join_ids(summary.errored_user_ids))
    if summary.cancelled_user_ids:
        lines.append("Cancelled: " + _join_ids(summary.cancelled_user_ids))
    if summary.notification_failures:
        lines.append("Notification failures: " + _join_ids(summary.notification_failures))
    return "\n".join(lines)


def summary_to_dict(summary: RunSummary) -> dict:
    return {
        "started_utc": summary.started_utc.isoformat(),
        "finished_utc": summary.finished_utc.isoformat(),
        "users": len(summary.outcomes),
        "succeeded": [{"user_id": u, "site_id": s} for u, s in summary.succeeded],
        "failed": [
            {
                "user_id": f.user_id,
                "site_id": f.site_id,
                "stage": f.stage.value,
                "reason": f.reason,
            }
            for f in summary.failed
        ],
        "skipped_user_ids": summary.skipped_user_ids,
        "errored_user_ids": summary.errored_user_ids,
        "cancelled_user_ids": summary.cancelled_user_ids,
        "notification_failures": summary.notification_failures,
        "ok": summary.ok,
    }


def _join_ids(ids: list[int]) -> str:
    return ", ".join(str(i) for i in ids)


def _truncate(value: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width <= 3:
        return value[:width]
    return value[: width - 3] + "..."


def _pad(value: str, width: int) -> str:
    if len(value) >= width:
        return value
    return value + (" " * (width - len(value)))
