from dataclasses import dataclass, field
import datetime
import enum
from typing import Mapping, Optional


@dataclass(frozen=True)
class RightAscension:
    hours: int
    minutes: int = 0
    seconds: float = 0.0

    @property
    def decimal_hours(self) -> float:
        value = self.hours + self.minutes / 60.0 + self.seconds / 3600.0
        return value % 24.0

    @property
    def degrees(self) -> float:
        return self.decimal_hours * 15.0


@dataclass(frozen=True)
class Declination:
    degrees: int
    minutes: int = 0
    seconds: float = 0.0
    negative: bool = False

    @property
    def decimal_degrees(self) -> float:
        magnitude = abs(self.degrees) + self.minutes / 60.0 + self.seconds / 3600.0
        if self.negative or self.degrees < 0:
            return -magnitude
        return magnitude


@dataclass(frozen=True)
class EquatorialCoordinate:
    ra: RightAscension
    dec: Declination

    @property
    def ra_deg(self) -> float:
        return self.ra.degrees

    @property
    def dec_deg(self) -> float:
        return self.dec.decimal_degrees

    @classmethod
    def from_degrees(cls, ra_deg: float, dec_deg: float) -> "EquatorialCoordinate":
        hours = (ra_deg % 360.0) / 15.0
        h = int(hours)
        m = int((hours - h) * 60.0)
        s = (hours - h - m / 60.0) * 3600.0
        a = abs(dec_deg)
        d = int(a)
        dm = int((a - d) * 60.0)
        ds = (a - d - dm / 60.0) * 3600.0
        return cls(
            ra=RightAscension(h, m, s),
            dec=Declination(d, dm, ds, negative=dec_deg < 0),
        )


@dataclass(frozen=True)
class AltAz:
    altitude_deg: float
    azimuth_deg: float
    instant_utc: datetime.datetime
    longitude_deg: float
    latitude_deg: float


class ObjectKind(enum.Enum):
    STAR = "star"
    DEEP_SKY = "deep_sky"

    @property
    def catalogue_prefix(self) -> str:
        return "HIP" if self is ObjectKind.STAR else "NGC"


@dataclass(frozen=True)
class TrackedObject:
    catalogue_id: int
    kind: ObjectKind
    coordinate: EquatorialCoordinate
    apparent_magnitude: float
    name: str | None = None
    part_of_multiple_system: bool | None = None

    @property
    def designation(self) -> str:
        return f"{self.kind.catalogue_prefix} {self.catalogue_id}"

    @property
    def display_name(self) -> str:
        if self.name:
            return f"{self.designation} | {self.name}"
        return self.designation

    @property
    def more_information_url(self) -> str:
        prefix = self.kind.catalogue_prefix.lower()
        return f"http://cdsportal.u-strasbg.fr/?target={prefix}+{self.catalogue_id}"


@dataclass(frozen=True)
class ObservingSite:
    id: int
    name: str
    longitude_deg: float
    latitude_deg: float
    bortle: int
    limiting_magnitude: float
    bortle_description: str | None = None


@dataclass(frozen=True)
class LightPollution:
    bortle: int
    raw_radiance: float


@dataclass(frozen=True)
class HourlyForecast:
    cloud_coverage_pct: float
    wind_speed_mps: float
    precipitation_probability: float
    humidity_pct: float
    description: str = ""
    temperature_c: float | None = None


@dataclass(frozen=True)
class ForecastBundle:
    # keyed by (day of month, hour) in UTC
    hourly: Mapping[tuple[int, int], HourlyForecast]
    sunrise_utc: datetime.datetime
    sunset_utc: datetime.datetime


@dataclass(frozen=True)
class ObservingWindow:
    instant_utc: datetime.datetime
    forecast: HourlyForecast
    index: float


@dataclass(frozen=True)
class VisibilityVerdict:
    visibility_alert: bool
    horizon_alert: bool
    visibility_message: str
    horizon_message: Optional[str] = None
    peak_altitude_deg: float | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)
