from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Sequence

from astrocast.astronomy.types import ForecastBundle, LightPollution
from astrocast.report.types import LocationReport, Observation, User


class ForecastProvider(ABC):
    @abstractmethod
    def get_forecast(self, longitude_deg: float, latitude_deg: float) -> ForecastBundle:
        pass


class StaticMapProvider(ABC):
    @abstractmethod
    def get_static_map(self, longitude_deg: float, latitude_deg: float) -> bytes:
        pass


class LightPollutionProvider(ABC):
    @abstractmethod
    def get_light_pollution(self, longitude_deg: float, latitude_deg: float) -> LightPollution:
        """Raises OutOfRange for coordinates outside the dataset."""


class ObservationStore(ABC):
    @abstractmethod
    def users(self) -> Iterable[User]:
        pass

    @abstractmethod
    def observations(self) -> Iterable[Observation]:
        pass

    def observations_for(self, user_id: int) -> list[Observation]:
        return [o for o in self.observations() if o.user.id == user_id]


class ReportStore(ABC):
    @abstractmethod
    def save(self, user: User, report: LocationReport) -> None:
        pass


class NotificationSender(ABC):
    @abstractmethod
    def send(
        self,
        user: User,
        reports: Sequence[LocationReport],
        images: Mapping[str, bytes],
    ) -> bool:
        pass
