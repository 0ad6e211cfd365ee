import pytest

from astrocast.astronomy.bortle import bortle_from_radiance
from astrocast.astronomy.types import LightPollution
from astrocast.errors import InvalidInput, OutOfRange
from astrocast.providers.base import LightPollutionProvider
from astrocast.sites import create_site, normalize_site_name


class FixedLightPollution(LightPollutionProvider):
    def __init__(self, radiance):
        self.radiance = radiance
        self.calls = []

    def get_light_pollution(self, longitude_deg, latitude_deg):
        self.calls.append((longitude_deg, latitude_deg))
        if abs(latitude_deg) > 75:
            raise OutOfRange("outside dataset")
        return LightPollution(bortle=bortle_from_radiance(self.radiance), raw_radiance=self.radiance)


def test_create_site_rates_sky():
    site = create_site(5, "  back garden ", -1.5, 53.4, FixedLightPollution(0.4))
    assert site.id == 5
    assert site.name == "Back garden"
    assert site.bortle == 4
    assert site.limiting_magnitude == 6.3
    assert site.bortle_description == "Rural/Suburban Transition"


@pytest.mark.parametrize("lat", [90.0, -90.0])
def test_pole_latitudes_are_rejected(lat):
    provider = FixedLightPollution(0.1)
    with pytest.raises(OutOfRange):
        create_site(1, "Pole", 0.0, lat, provider)
    assert provider.calls == []


@pytest.mark.parametrize("lon, lat", [(181.0, 0.0), (-180.5, 0.0), (0.0, 91.0)])
def test_invalid_coordinates(lon, lat):
    with pytest.raises(OutOfRange):
        create_site(1, "Nowhere", lon, lat, FixedLightPollution(0.1))


def test_outside_dataset_propagates():
    with pytest.raises(OutOfRange):
        create_site(1, "Svalbard", 15.0, 78.2, FixedLightPollution(0.1))


def test_empty_name_rejected():
    with pytest.raises(InvalidInput):
        normalize_site_name("   ")
