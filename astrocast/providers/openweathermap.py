import datetime
import logging

from astrocast.astronomy.types import ForecastBundle, HourlyForecast
from astrocast.errors import ExternalCollaboratorError
from .base import ForecastProvider
from .http import build_url, fetch_json

logger = logging.getLogger(__name__)


class OpenWeatherMapForecastProvider(ForecastProvider):
    def __init__(self, config, timeout_s: float | None = None):
        self.api_key = config.openweathermap_api_key
        self.base_url = config.openweathermap_forecast_url
        self.timeout_s = timeout_s if timeout_s is not None else config.report_fetch_timeout_s

    def get_forecast(self, longitude_deg: float, latitude_deg: float) -> ForecastBundle:
        if not self.api_key:
            raise ExternalCollaboratorError("OpenWeatherMap api_key is not configured")
        url = build_url(
            self.base_url,
            {
                "lat": latitude_deg,
                "lon": longitude_deg,
                "units": "metric",
                "appid": self.api_key,
            },
        )
        payload = fetch_json(url, timeout=self.timeout_s, redact=self.api_key)
        return parse_hourly_payload(payload)


def parse_hourly_payload(payload: dict) -> ForecastBundle:
    try:
        city = payload["city"]
        sunrise = _from_unix(city["sunrise"])
        sunset = _from_unix(city["sunset"])
        hourly: dict[tuple[int, int], HourlyForecast] = {}
        for item in payload["list"]:
            instant = _entry_instant(item)
            hourly[(instant.day, instant.hour)] = _parse_entry(item)
    except (KeyError, TypeError, ValueError) as e:
        raise ExternalCollaboratorError(f"Malformed forecast payload: {e!r}") from e

    logger.debug("Parsed %d hourly forecast entries", len(hourly))
    return ForecastBundle(hourly=hourly, sunrise_utc=sunrise, sunset_utc=sunset)


def _from_unix(value) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(int(value), tz=datetime.timezone.utc)


def _entry_instant(item: dict) -> datetime.datetime:
    if "dt" in item:
        return _from_unix(item["dt"])
    parsed = datetime.datetime.strptime(item["dt_txt"], "%Y-%m-%d %H:%M:%S")
    return parsed.replace(tzinfo=datetime.timezone.utc)


def _parse_entry(item: dict) -> HourlyForecast:
    main = item.get("main", {})
    weather = item.get("weather") or [{}]
    return HourlyForecast(
        cloud_coverage_pct=float(item.get("clouds", {}).get("all", 0.0)),
        wind_speed_mps=float(item.get("wind", {}).get("speed", 0.0)),
        precipitation_probability=float(item.get("pop", 0.0)),
        humidity_pct=float(main.get("humidity", 0.0)),
        description=_capitalize(weather[0].get("description", "")),
        temperature_c=float(main["temp"]) if "temp" in main else None,
    )


def _capitalize(text: str) -> str:
    text = text.strip()
    if not text:
        return text
    return text[0].upper() + text[1:]
