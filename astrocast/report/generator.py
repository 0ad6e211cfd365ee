"""Per-user observation report synthesis.

A run takes a snapshot of users and observations from the observation store,
then processes users concurrently. Within one user, each observing site is an
independent unit: its forecast and map are fetched on a shared I/O pool, the
best night-time hour is chosen, every tracked object is placed on the sky at
that hour, and a ``LocationReport`` is assembled. A site that fails at any
stage is recorded as a ``SiteFailure`` and its siblings carry on.

Each collaborator call is given ``fetch_timeout_s`` from the moment it starts
running on the I/O pool; time spent queued behind other calls does not count.

Cancellation is cooperative: once the cancel event is set, users that have
not started yet are recorded as cancelled while users already in progress
finish their site loop.
"""

import concurrent.futures
import datetime
import logging
import threading
import time
from typing import TYPE_CHECKING, Iterable, Sequence

from astrocast.astronomy.transform import equatorial_to_horizontal, require_utc
from astrocast.astronomy.visibility import DEFAULT_SWEEP_HOURS, evaluate_visibility
from astrocast.astronomy.weather import WarningThresholds, select_best_window, weather_warnings
from astrocast.errors import AstrocastError, ExternalCollaboratorError, ServiceError
from .calendar import DEFAULT_CALENDAR_BASE_URL, build_calendar_url
from .types import (
    LocationReport,
    ObjectReport,
    Observation,
    ReportStage,
    RunSummary,
    SiteFailure,
    SiteObservations,
    User,
    UserOutcome,
)

if TYPE_CHECKING:
    from astrocast.providers.base import (
        ForecastProvider,
        NotificationSender,
        ObservationStore,
        ReportStore,
        StaticMapProvider,
    )

logger = logging.getLogger(__name__)

_START_POLL_S = 0.05


def group_by_site(observations: Iterable[Observation]) -> tuple[SiteObservations, ...]:
    """Group observations by site in order of first appearance.

    The same object observed twice at one site is listed once.
    """
    sites = {}
    objects: dict[int, list] = {}
    for obs in observations:
        site_id = obs.site.id
        if site_id not in sites:
            sites[site_id] = obs.site
            objects[site_id] = []
        if obs.tracked_object not in objects[site_id]:
            objects[site_id].append(obs.tracked_object)
    return tuple(
        SiteObservations(site=sites[site_id], objects=tuple(objects[site_id]))
        for site_id in sites
    )


def static_map_image_name(site_id: int) -> str:
    return f"location_{site_id}.png"


def _reason(exc: BaseException) -> str:
    if isinstance(exc, AstrocastError):
        return str(exc)
    return f"{exc.__class__.__name__}: {exc}"


class _TimedCall:
    """A collaborator call that records when it leaves the I/O queue."""

    def __init__(self, func, *args):
        self.func = func
        self.args = args
        self.started = threading.Event()
        self.started_at: float | None = None

    def __call__(self):
        self.started_at = time.monotonic()
        self.started.set()
        return self.func(*self.args)


class _SiteFailed(Exception):
    def __init__(self, stage: ReportStage, reason: str):
        super().__init__(reason)
        self.stage = stage
        self.reason = reason


class ReportGenerator:
    def __init__(
        self,
        observation_store: "ObservationStore",
        forecast_provider: "ForecastProvider",
        static_map_provider: "StaticMapProvider",
        report_store: "ReportStore",
        notification_sender: "NotificationSender",
        workers: int = 4,
        io_workers: int = 8,
        fetch_timeout_s: float = 20.0,
        sweep_hours: int = DEFAULT_SWEEP_HOURS,
        thresholds: WarningThresholds | None = None,
        calendar_base_url: str = DEFAULT_CALENDAR_BASE_URL,
        cancel_event: threading.Event | None = None,
    ):
        if workers < 1 or io_workers < 1:
            raise ValueError("Worker counts must be at least 1")
        self.observation_store = observation_store
        self.forecast_provider = forecast_provider
        self.static_map_provider = static_map_provider
        self.report_store = report_store
        self.notification_sender = notification_sender
        self.workers = workers
        self.io_workers = io_workers
        self.fetch_timeout_s = fetch_timeout_s
        self.sweep_hours = sweep_hours
        self.thresholds = thresholds or WarningThresholds()
        self.calendar_base_url = calendar_base_url
        self.cancel_event = cancel_event or threading.Event()

    @classmethod
    def from_config(cls, config, cancel_event: threading.Event | None = None) -> "ReportGenerator":
        from astrocast.providers import (
            get_forecast_provider,
            get_notification_sender,
            get_observation_store,
            get_report_store,
            get_static_map_provider,
        )

        return cls(
            observation_store=get_observation_store(config),
            forecast_provider=get_forecast_provider(config),
            static_map_provider=get_static_map_provider(config),
            report_store=get_report_store(config),
            notification_sender=get_notification_sender(config),
            workers=config.report_workers,
            io_workers=config.report_io_workers,
            fetch_timeout_s=config.report_fetch_timeout_s,
            sweep_hours=config.report_horizon_sweep_hours,
            thresholds=WarningThresholds(
                cloud_warning_pct=config.report_cloud_warning_pct,
                cloud_severe_pct=config.report_cloud_severe_pct,
                precipitation_probability=config.report_precipitation_warning,
            ),
            calendar_base_url=config.report_calendar_base_url,
            cancel_event=cancel_event,
        )

    def cancel(self) -> None:
        self.cancel_event.set()

    def run_report_generation(
        self,
        force_user_id: int | None = None,
        now_utc: datetime.datetime | None = None,
    ) -> RunSummary:
        now_utc = now_utc or datetime.datetime.now(datetime.timezone.utc)
        require_utc(now_utc)
        try:
            users = list(self.observation_store.users())
            observations = list(self.observation_store.observations())
        except ExternalCollaboratorError as e:
            raise ServiceError(f"Observation store unavailable: {e}") from e

        if force_user_id is not None:
            matches = [u for u in users if u.id == force_user_id]
            if not matches:
                raise ServiceError(f"User {force_user_id} does not exist")
            if not any(o.user.id == force_user_id for o in observations):
                raise ServiceError(f"User {force_user_id} has no observations")
            users = matches

        summary = self.generate_reports(users, now_utc, observations)
        logger.info(
            "Report run finished: %d users, %d reports, %d site failures, %d skipped, %d cancelled",
            len(summary.outcomes),
            len(summary.succeeded),
            len(summary.failed),
            len(summary.skipped_user_ids),
            len(summary.cancelled_user_ids),
        )
        return summary

    def generate_reports(
        self,
        users: Sequence[User],
        now_utc: datetime.datetime,
        observations: Sequence[Observation] | None = None,
    ) -> RunSummary:
        require_utc(now_utc)
        started = datetime.datetime.now(datetime.timezone.utc)
        if observations is None:
            observations = list(self.observation_store.observations())

        by_user: dict[int, list[Observation]] = {}
        for obs in observations:
            by_user.setdefault(obs.user.id, []).append(obs)

        io_pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.io_workers, thread_name_prefix="astrocast-io"
        )
        try:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="astrocast-user"
            ) as pool:
                futures = [
                    pool.submit(self._run_user, user, by_user.get(user.id, []), now_utc, io_pool)
                    for user in users
                ]
                outcomes = [self._collect(user, f) for user, f in zip(users, futures)]
        finally:
            io_pool.shutdown(wait=False, cancel_futures=True)

        return RunSummary(
            started_utc=started,
            finished_utc=datetime.datetime.now(datetime.timezone.utc),
            outcomes=outcomes,
        )

    def _collect(self, user: User, future: concurrent.futures.Future) -> UserOutcome:
        try:
            return future.result()
        except Exception as e:
            logger.exception("Report generation for user %s failed", user.id)
            return UserOutcome(user=user, error=_reason(e))

    def _run_user(self, user, observations, now_utc, io_pool) -> UserOutcome:
        if self.cancel_event.is_set():
            logger.info("Cancelled before processing user %s", user.id)
            return UserOutcome(user=user, cancelled=True)
        return self.generate_for_user(user, observations, now_utc, io_pool=io_pool)

    def generate_for_user(
        self,
        user: User,
        observations: Iterable[Observation],
        now_utc: datetime.datetime,
        io_pool: concurrent.futures.Executor | None = None,
    ) -> UserOutcome:
        require_utc(now_utc)
        outcome = UserOutcome(user=user)
        groups = group_by_site(o for o in observations if o.user.id == user.id)
        if not groups:
            logger.info("User %s has no observations; skipping", user.id)
            outcome.skipped = True
            return outcome

        if io_pool is None:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.io_workers) as own_pool:
                images = self._process_sites(outcome, groups, now_utc, own_pool)
        else:
            images = self._process_sites(outcome, groups, now_utc, io_pool)

        if outcome.reports:
            self._persist(outcome)
            self._notify(outcome, images)
        return outcome

    def _process_sites(self, outcome, groups, now_utc, io_pool) -> dict[str, bytes]:
        # Start every fetch up front so one slow site does not hold up the others.
        pending = []
        for group in groups:
            site = group.site
            forecast_call = _TimedCall(
                self.forecast_provider.get_forecast, site.longitude_deg, site.latitude_deg
            )
            map_call = _TimedCall(
                self.static_map_provider.get_static_map, site.longitude_deg, site.latitude_deg
            )
            pending.append(
                (
                    group,
                    (forecast_call, io_pool.submit(forecast_call)),
                    (map_call, io_pool.submit(map_call)),
                )
            )

        images: dict[str, bytes] = {}
        for group, forecast_fetch, map_fetch in pending:
            try:
                report, image = self._build_site_report(group, forecast_fetch, map_fetch, now_utc)
            except _SiteFailed as e:
                logger.warning(
                    "Report for user %s site %s failed at %s: %s",
                    outcome.user.id,
                    group.site.id,
                    e.stage.value,
                    e.reason,
                )
                outcome.failures.append(
                    SiteFailure(
                        user_id=outcome.user.id,
                        site_id=group.site.id,
                        stage=e.stage,
                        reason=e.reason,
                    )
                )
                continue
            outcome.reports.append(report)
            images[report.static_map_image_name] = image
        return images

    def _await(self, fetch: tuple[_TimedCall, concurrent.futures.Future], what: str):
        call, future = fetch
        while not call.started.wait(_START_POLL_S):
            if future.done():
                break
        remaining = self.fetch_timeout_s
        if call.started_at is not None:
            remaining -= time.monotonic() - call.started_at
        try:
            return future.result(timeout=max(remaining, 0.0))
        except concurrent.futures.TimeoutError as e:
            raise ExternalCollaboratorError(
                f"{what} timed out after {self.fetch_timeout_s:g}s"
            ) from e

    def _build_site_report(self, group: SiteObservations, forecast_fetch, map_fetch, now_utc):
        site = group.site

        try:
            bundle = self._await(forecast_fetch, "Forecast fetch")
            image = self._await(map_fetch, "Static map fetch")
        except Exception as e:
            raise _SiteFailed(ReportStage.FETCHING_FORECAST, _reason(e)) from e

        try:
            window = select_best_window(bundle.hourly, bundle.sunrise_utc, bundle.sunset_utc, now_utc)
        except Exception as e:
            raise _SiteFailed(ReportStage.SCORING, _reason(e)) from e

        try:
            objects = []
            for obj in group.objects:
                altaz = equatorial_to_horizontal(
                    obj.coordinate, window.instant_utc, site.longitude_deg, site.latitude_deg
                )
                verdict = evaluate_visibility(obj, site, now_utc, sweep_hours=self.sweep_hours)
                objects.append(ObjectReport(tracked_object=obj, altaz=altaz, verdict=verdict))
        except Exception as e:
            raise _SiteFailed(ReportStage.TRANSFORMING_OBJECTS, _reason(e)) from e

        try:
            report = LocationReport(
                site=site,
                window=window,
                objects=tuple(objects),
                warnings=tuple(weather_warnings(window.forecast, self.thresholds)),
                calendar_url=build_calendar_url(
                    site,
                    window.instant_utc,
                    window.forecast,
                    group.objects,
                    base_url=self.calendar_base_url,
                ),
                static_map_image_name=static_map_image_name(site.id),
                generated_utc=now_utc,
            )
        except Exception as e:
            raise _SiteFailed(ReportStage.ASSEMBLED, _reason(e)) from e
        logger.debug(
            "Assembled report for site %s at %s (index %.2f, %d objects)",
            site.id,
            window.instant_utc.isoformat(),
            window.index,
            len(objects),
        )
        return report, image

    def _persist(self, outcome: UserOutcome) -> None:
        for report in outcome.reports:
            try:
                self.report_store.save(outcome.user, report)
            except Exception as e:
                logger.error(
                    "Could not store report for user %s site %s: %s",
                    outcome.user.id,
                    report.site.id,
                    _reason(e),
                )
                outcome.failures.append(
                    SiteFailure(
                        user_id=outcome.user.id,
                        site_id=report.site.id,
                        stage=ReportStage.ASSEMBLED,
                        reason=_reason(e),
                    )
                )

    def _notify(self, outcome: UserOutcome, images: dict[str, bytes]) -> None:
        try:
            sent = self.notification_sender.send(outcome.user, list(outcome.reports), images)
        except Exception as e:
            outcome.notified = False
            outcome.notification_error = _reason(e)
            logger.error("Notification for user %s failed: %s", outcome.user.id, _reason(e))
            return
        outcome.notified = bool(sent)
        if not sent:
            outcome.notification_error = "sender reported failure"
            logger.error("Notification for user %s was not delivered", outcome.user.id)
