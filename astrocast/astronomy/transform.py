"""Equatorial to horizontal coordinate transformation.

Follows Meeus, *Astronomical Algorithms* (2nd ed., 1998): chapter 7 for the
Julian Day, chapter 12 for mean sidereal time and chapter 13 for the
conversion to altitude and azimuth.

Conventions used throughout:

* every instant must be a timezone-aware UTC ``datetime``;
* longitude is east-positive, in degrees, so Meeus's west-positive
  longitudes must be negated (Washington is -77.06556, not 77.06556);
* azimuth is measured from North, increasing through East, in [0, 360).
"""

import datetime
import math

from astrocast.errors import InvalidInput
from .types import AltAz, EquatorialCoordinate

J2000_JD = 2451545.0
DAYS_PER_CENTURY = 36525.0


def require_utc(instant: datetime.datetime) -> None:
    offset = instant.utcoffset()
    if offset is None or offset != datetime.timedelta(0):
        raise InvalidInput(f"Instant must be UTC, got {instant!r}")


def normalize_degrees(value: float) -> float:
    while value < 0.0:
        value += 360.0
    while value >= 360.0:
        value -= 360.0
    return value


def julian_day(instant: datetime.datetime) -> float:
    require_utc(instant)
    year = instant.year
    month = instant.month
    day_fraction = (
        instant.hour
        + (instant.minute + (instant.second + instant.microsecond / 1e6) / 60.0) / 60.0
    ) / 24.0
    if month <= 2:
        year -= 1
        month += 12
    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    whole = math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + instant.day + b
    return (whole - 1524.5) + day_fraction


def days_since_j2000(instant: datetime.datetime) -> float:
    return julian_day(instant) - J2000_JD


def mean_sidereal_time(instant: datetime.datetime) -> float:
    """Greenwich mean sidereal time in degrees, in [0, 360)."""
    d = days_since_j2000(instant)
    t = d / DAYS_PER_CENTURY
    gmst = 280.46061837 + 360.98564736629 * d + 0.000387933 * t * t - t * t * t / 38710000.0
    return normalize_degrees(gmst)


def local_sidereal_time(instant: datetime.datetime, longitude_deg: float) -> float:
    return normalize_degrees(mean_sidereal_time(instant) + longitude_deg)


def equatorial_to_horizontal(
    coordinate: EquatorialCoordinate,
    instant: datetime.datetime,
    longitude_deg: float,
    latitude_deg: float,
) -> AltAz:
    ra_deg = coordinate.ra_deg
    dec_rad = math.radians(coordinate.dec_deg)
    lat_rad = math.radians(latitude_deg)

    ha_deg = normalize_degrees(local_sidereal_time(instant, longitude_deg) - ra_deg)
    ha_rad = math.radians(ha_deg)

    sin_alt = math.sin(dec_rad) * math.sin(lat_rad) + math.cos(dec_rad) * math.cos(lat_rad) * math.cos(ha_rad)
    alt = math.asin(max(-1.0, min(1.0, sin_alt)))
    az = math.atan2(
        -math.sin(ha_rad) * math.cos(dec_rad),
        math.sin(dec_rad) * math.cos(lat_rad) - math.cos(dec_rad) * math.sin(lat_rad) * math.cos(ha_rad),
    )
    return AltAz(
        altitude_deg=math.degrees(alt),
        azimuth_deg=normalize_degrees(math.degrees(az)),
        instant_utc=instant,
        longitude_deg=longitude_deg,
        latitude_deg=latitude_deg,
    )
