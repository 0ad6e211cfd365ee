import datetime
from urllib.parse import urlencode

from astrocast.astronomy.types import HourlyForecast, ObservingSite, TrackedObject

DEFAULT_CALENDAR_BASE_URL = "https://calendar.google.com/calendar/render"
EVENT_DURATION = datetime.timedelta(hours=1)


def _calendar_stamp(instant: datetime.datetime) -> str:
    return instant.astimezone(datetime.timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def forecast_summary(forecast: HourlyForecast) -> str:
    parts = []
    if forecast.description:
        parts.append(forecast.description)
    parts.append(f"Cloud {forecast.cloud_coverage_pct:.0f}%")
    parts.append(f"Wind {forecast.wind_speed_mps:.1f} m/s")
    parts.append(f"Humidity {forecast.humidity_pct:.0f}%")
    parts.append(f"Precipitation {forecast.precipitation_probability:.0%}")
    return ", ".join(parts)


def build_calendar_url(
    site: ObservingSite,
    instant_utc: datetime.datetime,
    forecast: HourlyForecast,
    objects: tuple[TrackedObject, ...] = (),
    base_url: str = DEFAULT_CALENDAR_BASE_URL,
) -> str:
    """Google Calendar "add event" link for a one-hour observing session."""
    details = [f"Forecast: {forecast_summary(forecast)}"]
    if objects:
        details.append("Objects: " + ", ".join(o.display_name for o in objects))
    params = {
        "action": "TEMPLATE",
        "text": f"Observation session at {site.name}",
        "dates": f"{_calendar_stamp(instant_utc)}/{_calendar_stamp(instant_utc + EVENT_DURATION)}",
        "details": "\n".join(details),
        "location": f"{site.latitude_deg:.5f},{site.longitude_deg:.5f}",
    }
    return f"{base_url}?{urlencode(params)}"
