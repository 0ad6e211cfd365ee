import datetime
import time

import pytest

from astrocast.astronomy.types import (
    AltAz,
    Declination,
    EquatorialCoordinate,
    ForecastBundle,
    HourlyForecast,
    ObjectKind,
    ObservingSite,
    ObservingWindow,
    RightAscension,
    TrackedObject,
    VisibilityVerdict,
)
from astrocast.errors import ExternalCollaboratorError
from astrocast.providers.base import (
    ForecastProvider,
    NotificationSender,
    ObservationStore,
    ReportStore,
    StaticMapProvider,
)
from astrocast.report.types import LocationReport, ObjectReport, Observation, User

UTC = datetime.timezone.utc


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run tests marked as integration",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration"):
        return

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(
                pytest.mark.skip(
                    reason="need --integration option to run integration tests"
                )
            )


def make_site(site_id=1, name="Garden", lon=-1.5, lat=53.4, bortle=4, nelm=6.3):
    return ObservingSite(
        id=site_id,
        name=name,
        longitude_deg=lon,
        latitude_deg=lat,
        bortle=bortle,
        limiting_magnitude=nelm,
        bortle_description="Rural/Suburban Transition",
    )


def make_object(catalogue_id=32349, ra_deg=101.287, dec_deg=-16.716, magnitude=-1.46, name="Sirius",
                kind=ObjectKind.STAR):
    return TrackedObject(
        catalogue_id=catalogue_id,
        kind=kind,
        coordinate=EquatorialCoordinate.from_degrees(ra_deg, dec_deg),
        apparent_magnitude=magnitude,
        name=name,
    )


def make_forecast(cloud=10.0, wind=2.0, pop=0.0, humidity=60.0, description="Clear sky"):
    return HourlyForecast(
        cloud_coverage_pct=cloud,
        wind_speed_mps=wind,
        precipitation_probability=pop,
        humidity_pct=humidity,
        description=description,
        temperature_c=4.0,
    )


def make_bundle(start, hours=48, sunrise_hour=7, sunset_hour=17, overrides=None):
    """Hourly forecast from ``start`` with optional per-instant overrides."""
    overrides = overrides or {}
    hourly = {}
    for i in range(hours):
        t = start + datetime.timedelta(hours=i)
        hourly[(t.day, t.hour)] = overrides.get(t, make_forecast())
    day = start.replace(minute=0, second=0, microsecond=0)
    return ForecastBundle(
        hourly=hourly,
        sunrise_utc=day.replace(hour=sunrise_hour),
        sunset_utc=day.replace(hour=sunset_hour),
    )


REPORT_INSTANT = datetime.datetime(2024, 1, 15, 22, 0, tzinfo=UTC)


def make_report():
    site = make_site()
    verdict = VisibilityVerdict(
        visibility_alert=False,
        horizon_alert=False,
        visibility_message="This object is bright enough to be seen from Garden",
        peak_altitude_deg=20.0,
    )
    return LocationReport(
        site=site,
        window=ObservingWindow(instant_utc=REPORT_INSTANT, forecast=make_forecast(cloud=60.0), index=134.0),
        objects=(
            ObjectReport(
                tracked_object=make_object(),
                altaz=AltAz(18.2, 190.0, REPORT_INSTANT, site.longitude_deg, site.latitude_deg),
                verdict=verdict,
            ),
        ),
        warnings=("Cloud coverage >50%, observations may be difficult",),
        calendar_url="https://calendar.example/?action=TEMPLATE",
        static_map_image_name="location_1.png",
        generated_utc=REPORT_INSTANT,
    )


class InMemoryObservationStore(ObservationStore):
    def __init__(self, users, observations, fail=False):
        self._users = list(users)
        self._observations = list(observations)
        self.fail = fail

    def users(self):
        if self.fail:
            raise ExternalCollaboratorError("store offline")
        return list(self._users)

    def observations(self):
        if self.fail:
            raise ExternalCollaboratorError("store offline")
        return list(self._observations)


class StubForecastProvider(ForecastProvider):
    """Returns a fixed bundle, or raises for sites at failing longitudes."""

    def __init__(self, bundle, failing_longitudes=(), delay_s=0.0, error=None):
        self.bundle = bundle
        self.failing_longitudes = set(failing_longitudes)
        self.delay_s = delay_s
        self.error = error
        self.calls = []

    def get_forecast(self, longitude_deg, latitude_deg):
        self.calls.append((longitude_deg, latitude_deg))
        if longitude_deg in self.failing_longitudes:
            raise self.error or ExternalCollaboratorError("forecast service unavailable")
        if self.delay_s:
            time.sleep(self.delay_s)
        return self.bundle


class StubMapProvider(StaticMapProvider):
    def get_static_map(self, longitude_deg, latitude_deg):
        return f"png:{longitude_deg},{latitude_deg}".encode()


class RecordingReportStore(ReportStore):
    def __init__(self):
        self.saved = []

    def save(self, user, report):
        self.saved.append((user.id, report.site.id))


class RecordingSender(NotificationSender):
    def __init__(self, result=True):
        self.result = result
        self.sent = []

    def send(self, user, reports, images):
        self.sent.append((user, list(reports), dict(images)))
        return self.result


@pytest.fixture
def now_utc():
    return datetime.datetime(2024, 1, 15, 12, 20, tzinfo=UTC)


@pytest.fixture
def site():
    return make_site()


@pytest.fixture
def sirius():
    return make_object()


@pytest.fixture
def venus_coordinate():
    return EquatorialCoordinate(
        ra=RightAscension(23, 9, 16.641),
        dec=Declination(6, 43, 11.61, negative=True),
    )


@pytest.fixture
def users():
    return [
        User(id=1, name="Ada", email="ada@example.org"),
        User(id=2, name="Grace", email="grace@example.org"),
        User(id=3, name="Edwin", email="edwin@example.org"),
    ]


def observations_for(user, site, *objects):
    return [Observation(user=user, site=site, tracked_object=o) for o in objects]
