import logging

from astrocast.astronomy.bortle import bortle_description, bortle_to_limiting_magnitude
from astrocast.astronomy.types import ObservingSite
from astrocast.errors import InvalidInput, OutOfRange
from astrocast.providers.base import LightPollutionProvider

logger = logging.getLogger(__name__)


def normalize_site_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise InvalidInput("Site name must not be empty")
    return name[0].upper() + name[1:]


def validate_coordinates(longitude_deg: float, latitude_deg: float) -> None:
    if not -180.0 <= longitude_deg <= 180.0:
        raise OutOfRange(f"Longitude out of range (-180 to 180): {longitude_deg}")
    if not -90.0 <= latitude_deg <= 90.0:
        raise OutOfRange(f"Latitude out of range (-90 to 90): {latitude_deg}")
    if abs(latitude_deg) == 90.0:
        raise OutOfRange("Pole locations are not allowed")


def create_site(
    site_id: int,
    name: str,
    longitude_deg: float,
    latitude_deg: float,
    light_pollution: LightPollutionProvider,
) -> ObservingSite:
    """Create an observing site, rating its sky from the light pollution dataset."""
    validate_coordinates(longitude_deg, latitude_deg)
    pollution = light_pollution.get_light_pollution(longitude_deg, latitude_deg)
    site = ObservingSite(
        id=site_id,
        name=normalize_site_name(name),
        longitude_deg=longitude_deg,
        latitude_deg=latitude_deg,
        bortle=pollution.bortle,
        limiting_magnitude=bortle_to_limiting_magnitude(pollution.bortle),
        bortle_description=bortle_description(pollution.bortle),
    )
    logger.info(
        "Created site %s (%s) with Bortle %d, radiance %.3f mcd/m^2",
        site.id,
        site.name,
        site.bortle,
        pollution.raw_radiance,
    )
    return site
