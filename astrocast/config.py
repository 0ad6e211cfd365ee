from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import tomli as tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:  # Python < 3.11
        import tomli as tomllib

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "astrocast" / "config.toml"


class Config:
    def __init__(self, data: dict):
        self._data = data

    def _section(self, name: str) -> dict:
        return self._data.get(name, {})

    @property
    def report_workers(self) -> int:
        return int(self._section("report").get("workers", 4))

    @property
    def report_io_workers(self) -> int:
        return int(self._section("report").get("io_workers", 8))

    @property
    def report_fetch_timeout_s(self) -> float:
        return float(self._section("report").get("fetch_timeout_s", 20.0))

    @property
    def report_horizon_sweep_hours(self) -> int:
        return int(self._section("report").get("horizon_sweep_hours", 24))

    @property
    def report_cloud_warning_pct(self) -> float:
        return float(self._section("report").get("cloud_warning_pct", 50.0))

    @property
    def report_cloud_severe_pct(self) -> float:
        return float(self._section("report").get("cloud_severe_pct", 90.0))

    @property
    def report_precipitation_warning(self) -> float:
        return float(self._section("report").get("precipitation_warning", 0.5))

    @property
    def report_calendar_base_url(self) -> str:
        return self._section("report").get(
            "calendar_base_url", "https://calendar.google.com/calendar/render"
        )

    @property
    def forecast_backend(self) -> str:
        return self._section("openweathermap").get("backend", "openweathermap")

    @property
    def openweathermap_api_key(self):
        return self._section("openweathermap").get("api_key", None)

    @property
    def openweathermap_forecast_url(self) -> str:
        return self._section("openweathermap").get(
            "forecast_url", "https://pro.openweathermap.org/data/2.5/forecast/hourly"
        )

    @property
    def static_map_backend(self) -> str:
        return self._section("mapbox").get("backend", "mapbox")

    @property
    def mapbox_access_token(self):
        return self._section("mapbox").get("access_token", None)

    @property
    def mapbox_static_map_url(self) -> str:
        return self._section("mapbox").get(
            "static_map_url", "https://api.mapbox.com/styles/v1/mapbox/dark-v10/static/"
        )

    @property
    def mapbox_zoom(self) -> float:
        return float(self._section("mapbox").get("zoom", 12.5))

    @property
    def mapbox_resolution(self) -> str:
        return self._section("mapbox").get("resolution", "400x275@2x")

    @property
    def light_pollution_grid_path(self):
        path = self._section("light_pollution").get("grid_path", None)
        if not path:
            return None
        return Path(path).expanduser()

    @property
    def store_observations_path(self):
        path = self._section("store").get("observations_path", None)
        if not path:
            return None
        return Path(path).expanduser()

    @property
    def store_reports_dir(self):
        path = self._section("store").get("reports_dir", None)
        if not path:
            return None
        return Path(path).expanduser()

    @property
    def email_backend(self) -> str:
        return self._section("email").get("backend", "log")

    @property
    def email_host(self) -> str:
        return self._section("email").get("host", "localhost")

    @property
    def email_port(self) -> int:
        return int(self._section("email").get("port", 587))

    @property
    def email_username(self):
        return self._section("email").get("username", None)

    @property
    def email_password(self):
        return self._section("email").get("password", None)

    @property
    def email_use_tls(self) -> bool:
        return bool(self._section("email").get("use_tls", True))

    @property
    def email_sender(self) -> str:
        return self._section("email").get("sender", "Astrocast <no-reply@localhost>")


def load_config(path: Path | None = None) -> Config:
    explicit_path = path
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit_path is not None:
            raise FileNotFoundError(f"Config file not found: {path}")
        # Return default config if default file missing
        return Config({})

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return Config(data)
