from .base import (
    ForecastProvider,
    LightPollutionProvider,
    NotificationSender,
    ObservationStore,
    ReportStore,
    StaticMapProvider,
)
from .email import LogNotificationSender, SmtpNotificationSender
from .light_pollution import GridLightPollutionProvider
from .mapbox import MapboxStaticMapProvider
from .openweathermap import OpenWeatherMapForecastProvider
from .store import JsonObservationStore, JsonReportStore, NullReportStore


def get_forecast_provider(config):
    backend = config.forecast_backend
    if backend == "openweathermap":
        return OpenWeatherMapForecastProvider(config)
    raise ValueError(f"Unsupported forecast backend: {backend}")


def get_static_map_provider(config):
    backend = config.static_map_backend
    if backend == "mapbox":
        return MapboxStaticMapProvider(config)
    raise ValueError(f"Unsupported static map backend: {backend}")


def get_light_pollution_provider(config):
    path = config.light_pollution_grid_path
    if path is None:
        raise ValueError("No light pollution grid configured ([light_pollution].grid_path)")
    return GridLightPollutionProvider.from_file(path)


def get_observation_store(config):
    path = config.store_observations_path
    if path is None:
        raise ValueError("No observation store configured ([store].observations_path)")
    return JsonObservationStore(path)


def get_report_store(config):
    directory = config.store_reports_dir
    if directory is None:
        return NullReportStore()
    return JsonReportStore(directory)


def get_notification_sender(config):
    backend = config.email_backend
    if backend == "smtp":
        return SmtpNotificationSender(config)
    if backend == "log":
        return LogNotificationSender(config)
    raise ValueError(f"Unsupported email backend: {backend}")


__all__ = [
    "ForecastProvider",
    "GridLightPollutionProvider",
    "JsonObservationStore",
    "JsonReportStore",
    "LightPollutionProvider",
    "LogNotificationSender",
    "MapboxStaticMapProvider",
    "NotificationSender",
    "NullReportStore",
    "ObservationStore",
    "OpenWeatherMapForecastProvider",
    "ReportStore",
    "SmtpNotificationSender",
    "StaticMapProvider",
    "get_forecast_provider",
    "get_light_pollution_provider",
    "get_notification_sender",
    "get_observation_store",
    "get_report_store",
    "get_static_map_provider",
]
