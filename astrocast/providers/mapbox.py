from astrocast.errors import ExternalCollaboratorError
from .base import StaticMapProvider
from .http import build_url, fetch_bytes


class MapboxStaticMapProvider(StaticMapProvider):
    def __init__(self, config, timeout_s: float | None = None):
        self.access_token = config.mapbox_access_token
        self.base_url = config.mapbox_static_map_url
        self.zoom = config.mapbox_zoom
        self.resolution = config.mapbox_resolution
        self.timeout_s = timeout_s if timeout_s is not None else config.report_fetch_timeout_s

    def map_url(self, longitude_deg: float, latitude_deg: float) -> str:
        base = self.base_url.rstrip("/") + "/"
        lon = f"{longitude_deg:.6f}"
        lat = f"{latitude_deg:.6f}"
        path = f"{base}pin-s+999({lon},{lat})/{lon},{lat},{self.zoom},0/{self.resolution}"
        return build_url(path, {"access_token": self.access_token})

    def get_static_map(self, longitude_deg: float, latitude_deg: float) -> bytes:
        if not self.access_token:
            raise ExternalCollaboratorError("Mapbox access_token is not configured")
        url = self.map_url(longitude_deg, latitude_deg)
        return fetch_bytes(url, timeout=self.timeout_s, redact=self.access_token)
