from dataclasses import dataclass, field
import datetime
import enum
from typing import Optional

from astrocast.astronomy.types import (
    AltAz,
    HourlyForecast,
    ObservingSite,
    ObservingWindow,
    TrackedObject,
    VisibilityVerdict,
)


@dataclass(frozen=True)
class User:
    id: int
    name: str
    email: str


@dataclass(frozen=True)
class Observation:
    user: User
    site: ObservingSite
    tracked_object: TrackedObject


@dataclass(frozen=True)
class SiteObservations:
    site: ObservingSite
    objects: tuple[TrackedObject, ...]


class ReportStage(enum.Enum):
    FETCHING_FORECAST = "fetching_forecast"
    SCORING = "scoring"
    TRANSFORMING_OBJECTS = "transforming_objects"
    ASSEMBLED = "assembled"


@dataclass(frozen=True)
class ObjectReport:
    tracked_object: TrackedObject
    altaz: AltAz
    verdict: VisibilityVerdict


@dataclass(frozen=True)
class LocationReport:
    site: ObservingSite
    window: ObservingWindow
    objects: tuple[ObjectReport, ...]
    warnings: tuple[str, ...]
    calendar_url: str
    static_map_image_name: str
    generated_utc: datetime.datetime

    @property
    def instant_utc(self) -> datetime.datetime:
        return self.window.instant_utc

    @property
    def forecast(self) -> HourlyForecast:
        return self.window.forecast

    @property
    def index(self) -> float:
        return self.window.index


@dataclass(frozen=True)
class SiteFailure:
    user_id: int
    site_id: int
    stage: ReportStage
    reason: str


@dataclass
class UserOutcome:
    user: User
    reports: list[LocationReport] = field(default_factory=list)
    failures: list[SiteFailure] = field(default_factory=list)
    skipped: bool = False
    cancelled: bool = False
    notified: Optional[bool] = None
    notification_error: Optional[str] = None
    error: Optional[str] = None


@dataclass
class RunSummary:
    started_utc: datetime.datetime
    finished_utc: datetime.datetime
    outcomes: list[UserOutcome]

    @property
    def succeeded(self) -> list[tuple[int, int]]:
        return [(o.user.id, r.site.id) for o in self.outcomes for r in o.reports]

    @property
    def failed(self) -> list[SiteFailure]:
        return [f for o in self.outcomes for f in o.failures]

    @property
    def skipped_user_ids(self) -> list[int]:
        return [o.user.id for o in self.outcomes if o.skipped]

    @property
    def cancelled_user_ids(self) -> list[int]:
        return [o.user.id for o in self.outcomes if o.cancelled]

    @property
    def errored_user_ids(self) -> list[int]:
        return [o.user.id for o in self.outcomes if o.error is not None]

    @property
    def notification_failures(self) -> list[int]:
        return [o.user.id for o in self.outcomes if o.notified is False]

    @property
    def ok(self) -> bool:
        return (
            not self.failed
            and not self.errored_user_ids
            and not self.cancelled_user_ids
            and not self.notification_failures
        )
