import logging
from pathlib import Path

import numpy as np

from astrocast.astronomy.bortle import bortle_from_radiance
from astrocast.astronomy.types import LightPollution
from astrocast.errors import OutOfRange
from .base import LightPollutionProvider

logger = logging.getLogger(__name__)


class GridLightPollutionProvider(LightPollutionProvider):
    """Artificial sky brightness lookup on a World Atlas style raster.

    The grid is a NumPy ``.npz`` archive holding ``radiance`` (2-D, mcd/m^2,
    row 0 at the northern edge) and ``geotransform``, the six GDAL affine
    coefficients ``(x0, dx, 0, y0, 0, dy)`` with ``dy`` negative.
    """

    def __init__(self, radiance: np.ndarray, geotransform):
        radiance = np.asarray(radiance, dtype=float)
        if radiance.ndim != 2:
            raise ValueError(f"Radiance grid must be 2-D, got shape {radiance.shape}")
        geotransform = tuple(float(v) for v in geotransform)
        if len(geotransform) != 6:
            raise ValueError("Geotransform must have six coefficients")
        self.radiance = radiance
        self.geotransform = geotransform

    @classmethod
    def from_file(cls, path: Path) -> "GridLightPollutionProvider":
        if not path.exists():
            raise FileNotFoundError(f"Light pollution grid not found: {path}")
        with np.load(path) as data:
            provider = cls(data["radiance"], data["geotransform"])
        logger.info("Loaded light pollution grid %s with shape %s", path, provider.radiance.shape)
        return provider

    def pixel_offsets(self, longitude_deg: float, latitude_deg: float) -> tuple[int, int]:
        x0, dx, _, y0, _, dy = self.geotransform
        x = int(np.floor((longitude_deg - x0) / dx))
        y = int(np.floor((latitude_deg - y0) / dy))
        rows, cols = self.radiance.shape
        if not (0 <= x < cols and 0 <= y < rows):
            raise OutOfRange(
                f"Coordinates lon={longitude_deg}, lat={latitude_deg} lie outside the light pollution dataset"
            )
        return x, y

    def get_light_pollution(self, longitude_deg: float, latitude_deg: float) -> LightPollution:
        x, y = self.pixel_offsets(longitude_deg, latitude_deg)
        raw = float(self.radiance[y, x])
        return LightPollution(bortle=bortle_from_radiance(raw), raw_radiance=raw)
