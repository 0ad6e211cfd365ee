import datetime
from typing import Tuple


def _split_sexagesimal(value: float, precision: int) -> Tuple[int, int, int, float]:
    sign = -1 if value < 0 else 1
    total_seconds = round(abs(value) * 3600.0, precision)
    whole = int(total_seconds // 3600)
    rem = total_seconds - whole * 3600
    minutes = int(rem // 60)
    seconds = rem - minutes * 60
    return sign, whole, minutes, seconds


def _seconds_field(seconds: float, precision: int) -> str:
    width = 3 + precision if precision > 0 else 2
    return f"{seconds:0{width}.{precision}f}"


def deg_to_hms(ra_deg: float, precision: int = 2) -> str:
    hours = (ra_deg % 360.0) / 15.0
    _, h, m, s = _split_sexagesimal(hours, precision)
    h %= 24
    s_fmt = _seconds_field(s, precision)
    return f"{h:02d}h{m:02d}m{s_fmt}s"


def deg_to_dms(angle_deg: float, precision: int = 1) -> str:
    sign_val, d, m, s = _split_sexagesimal(angle_deg, precision)
    sign = "-" if sign_val < 0 else "+"
    s_fmt = _seconds_field(s, precision)
    return f"{sign}{d:02d}°{m:02d}'{s_fmt}\""


def format_angle(angle_deg: float, style: str = "deg", precision: int = 2) -> str:
    if style == "deg":
        return f"{angle_deg:.{precision}f}°"
    if style == "hms":
        return deg_to_hms(angle_deg, precision=precision)
    if style == "dms":
        return deg_to_dms(angle_deg, precision=precision)
    raise ValueError(f"Unknown angle style: {style}")


_COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def compass_point(azimuth_deg: float) -> str:
    idx = int(((azimuth_deg % 360.0) + 11.25) // 22.5) % 16
    return _COMPASS_POINTS[idx]


def format_utc(instant: datetime.datetime) -> str:
    return instant.astimezone(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
