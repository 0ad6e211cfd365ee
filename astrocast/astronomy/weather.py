import datetime
from dataclasses import dataclass
from typing import Mapping

from astrocast.errors import NoViableWindow
from .types import HourlyForecast, ObservingWindow


@dataclass
class WarningThresholds:
    cloud_warning_pct: float = 50.0
    cloud_severe_pct: float = 90.0
    precipitation_probability: float = 0.5


def observing_index(forecast: HourlyForecast) -> float:
    """Rate an hourly forecast for observing; lower is better.

    This is a plain sum of cloud coverage (%), wind speed (m/s), probability
    of precipitation (0-1) and humidity (%). The terms are not normalised to a
    common unit and the result is not a probability; it only ranks hours of a
    single forecast against each other.
    """
    return (
        forecast.cloud_coverage_pct
        + forecast.wind_speed_mps
        + forecast.precipitation_probability
        + forecast.humidity_pct
    )


def is_night_hour(hour: int, sunrise_utc: datetime.datetime, sunset_utc: datetime.datetime) -> bool:
    return hour > sunset_utc.hour or hour < sunrise_utc.hour


def select_best_window(
    hourly: Mapping[tuple[int, int], HourlyForecast],
    sunrise_utc: datetime.datetime,
    sunset_utc: datetime.datetime,
    now_utc: datetime.datetime,
) -> ObservingWindow:
    start = now_utc.replace(minute=0, second=0, microsecond=0)
    end = start + datetime.timedelta(hours=len(hourly))

    best: ObservingWindow | None = None
    t = start
    while t <= end:
        candidate = _candidate_at(t, hourly, sunrise_utc, sunset_utc)
        t += datetime.timedelta(hours=1)
        if candidate is None:
            continue
        # strict comparison keeps the earliest of equally rated hours
        if best is None or candidate.index < best.index:
            best = candidate

    if best is None:
        raise NoViableWindow(
            f"No night-time forecast hour between {start.isoformat()} and {end.isoformat()}"
        )
    return best


def _candidate_at(
    t: datetime.datetime,
    hourly: Mapping[tuple[int, int], HourlyForecast],
    sunrise_utc: datetime.datetime,
    sunset_utc: datetime.datetime,
) -> ObservingWindow | None:
    if not is_night_hour(t.hour, sunrise_utc, sunset_utc):
        return None
    forecast = hourly.get((t.day, t.hour))
    if forecast is None:
        return None
    return ObservingWindow(instant_utc=t, forecast=forecast, index=observing_index(forecast))


def weather_warnings(
    forecast: HourlyForecast,
    thresholds: WarningThresholds | None = None,
) -> list[str]:
    thresholds = thresholds or WarningThresholds()
    warnings: list[str] = []
    if forecast.cloud_coverage_pct > thresholds.cloud_severe_pct:
        warnings.append(
            f"Cloud coverage >{thresholds.cloud_severe_pct:.0f}%, observations will likely be impossible"
        )
    elif forecast.cloud_coverage_pct > thresholds.cloud_warning_pct:
        warnings.append(
            f"Cloud coverage >{thresholds.cloud_warning_pct:.0f}%, observations may be difficult"
        )
    if forecast.precipitation_probability > thresholds.precipitation_probability:
        warnings.append(
            f"Probability of precipitation >{thresholds.precipitation_probability:.0%}, "
            "protect your equipment"
        )
    return warnings
