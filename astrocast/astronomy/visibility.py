import datetime

from .transform import equatorial_to_horizontal
from .types import ObservingSite, TrackedObject, VisibilityVerdict

DEFAULT_SWEEP_HOURS = 24


def evaluate_visibility(
    obj: TrackedObject,
    site: ObservingSite,
    now_utc: datetime.datetime,
    sweep_hours: int = DEFAULT_SWEEP_HOURS,
) -> VisibilityVerdict:
    peak_alt = _peak_altitude(obj, site, now_utc, sweep_hours)
    horizon_alert = peak_alt <= 0.0
    horizon_message = None
    if horizon_alert:
        horizon_message = (
            f"{obj.display_name} does not rise above the horizon at {site.name} "
            f"and is not visible in the next {sweep_hours} hours"
        )

    visibility_alert = obj.apparent_magnitude > site.limiting_magnitude
    if visibility_alert:
        visibility_message = (
            f"This object is too dim to be seen with the naked eye from {site.name}, "
            "however, you may still be able to see it with telescopes, binoculars, "
            "or long exposure photography"
        )
    else:
        visibility_message = f"This object is bright enough to be seen from {site.name}"

    warnings = []
    if horizon_message:
        warnings.append(horizon_message)
    if visibility_alert:
        warnings.append(visibility_message)

    return VisibilityVerdict(
        visibility_alert=visibility_alert,
        horizon_alert=horizon_alert,
        visibility_message=visibility_message,
        horizon_message=horizon_message,
        peak_altitude_deg=peak_alt,
        warnings=tuple(warnings),
    )


def _sweep_times(now_utc: datetime.datetime, hours: int) -> list[datetime.datetime]:
    return [now_utc + datetime.timedelta(hours=i) for i in range(1, hours + 1)]


def _peak_altitude(
    obj: TrackedObject,
    site: ObservingSite,
    now_utc: datetime.datetime,
    hours: int,
) -> float:
    peak = -90.0
    for t in _sweep_times(now_utc, hours):
        altaz = equatorial_to_horizontal(obj.coordinate, t, site.longitude_deg, site.latitude_deg)
        if altaz.altitude_deg > peak:
            peak = altaz.altitude_deg
    return peak
