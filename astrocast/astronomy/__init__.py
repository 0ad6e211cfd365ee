from .bortle import bortle_description, bortle_from_radiance, bortle_to_limiting_magnitude
from .transform import equatorial_to_horizontal, julian_day, mean_sidereal_time
from .types import (
    AltAz,
    Declination,
    EquatorialCoordinate,
    ForecastBundle,
    HourlyForecast,
    LightPollution,
    ObjectKind,
    ObservingSite,
    ObservingWindow,
    RightAscension,
    TrackedObject,
    VisibilityVerdict,
)
from .visibility import evaluate_visibility
from .weather import observing_index, select_best_window, weather_warnings

__all__ = [
    "AltAz",
    "Declination",
    "EquatorialCoordinate",
    "ForecastBundle",
    "HourlyForecast",
    "LightPollution",
    "ObjectKind",
    "ObservingSite",
    "ObservingWindow",
    "RightAscension",
    "TrackedObject",
    "VisibilityVerdict",
    "bortle_description",
    "bortle_from_radiance",
    "bortle_to_limiting_magnitude",
    "equatorial_to_horizontal",
    "evaluate_visibility",
    "julian_day",
    "mean_sidereal_time",
    "observing_index",
    "select_best_window",
    "weather_warnings",
]
