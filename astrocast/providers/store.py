import json
import logging
from pathlib import Path

from astrocast.astronomy.bortle import bortle_description, bortle_to_limiting_magnitude
from astrocast.astronomy.types import EquatorialCoordinate, ObjectKind, ObservingSite, TrackedObject
from astrocast.errors import ExternalCollaboratorError
from astrocast.report.formatters import format_json
from astrocast.report.types import LocationReport, Observation, User
from .base import ObservationStore, ReportStore

logger = logging.getLogger(__name__)


class JsonObservationStore(ObservationStore):
    """Read-only observation records from a single JSON document.

    Layout::

        {
          "users": [{"id": 1, "name": "Ada", "email": "ada@example.org"}],
          "sites": [{"id": 1, "name": "Garden", "longitude_deg": -1.5,
                     "latitude_deg": 53.1, "bortle": 4}],
          "objects": [{"kind": "star", "catalogue_id": 32349, "name": "Sirius",
                       "ra_deg": 101.287, "dec_deg": -16.716, "magnitude": -1.46}],
          "observations": [{"user_id": 1, "site_id": 1, "kind": "star",
                            "catalogue_id": 32349}]
        }

    The file is read once; later calls return the same snapshot.
    """

    def __init__(self, path: Path):
        self.path = path
        self._users: list[User] | None = None
        self._observations: list[Observation] | None = None

    def users(self) -> list[User]:
        self._load()
        return list(self._users)

    def observations(self) -> list[Observation]:
        self._load()
        return list(self._observations)

    def _load(self) -> None:
        if self._users is not None:
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            users, observations = _parse_document(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ExternalCollaboratorError(f"Cannot read observation store {self.path}: {e!r}") from e
        logger.info(
            "Loaded %d users and %d observations from %s", len(users), len(observations), self.path
        )
        self._users = users
        self._observations = observations


def _parse_document(data: dict) -> tuple[list[User], list[Observation]]:
    users = {int(u["id"]): User(id=int(u["id"]), name=u["name"], email=u["email"]) for u in data["users"]}
    sites = {int(s["id"]): _parse_site(s) for s in data.get("sites", [])}
    objects = {}
    for row in data.get("objects", []):
        obj = _parse_object(row)
        objects[(obj.kind, obj.catalogue_id)] = obj

    observations = []
    for row in data.get("observations", []):
        key = (ObjectKind(row["kind"]), int(row["catalogue_id"]))
        observations.append(
            Observation(
                user=users[int(row["user_id"])],
                site=sites[int(row["site_id"])],
                tracked_object=objects[key],
            )
        )
    return list(users.values()), observations


def _parse_site(row: dict) -> ObservingSite:
    bortle = int(row["bortle"])
    limiting = row.get("limiting_magnitude")
    return ObservingSite(
        id=int(row["id"]),
        name=row["name"],
        longitude_deg=float(row["longitude_deg"]),
        latitude_deg=float(row["latitude_deg"]),
        bortle=bortle,
        limiting_magnitude=float(limiting) if limiting is not None else bortle_to_limiting_magnitude(bortle),
        bortle_description=row.get("bortle_description") or bortle_description(bortle),
    )


def _parse_object(row: dict) -> TrackedObject:
    multiple = row.get("part_of_multiple_system")
    return TrackedObject(
        catalogue_id=int(row["catalogue_id"]),
        kind=ObjectKind(row["kind"]),
        coordinate=EquatorialCoordinate.from_degrees(float(row["ra_deg"]), float(row["dec_deg"])),
        apparent_magnitude=float(row["magnitude"]),
        name=row.get("name"),
        part_of_multiple_system=bool(multiple) if multiple is not None else None,
    )


class JsonReportStore(ReportStore):
    def __init__(self, directory: Path):
        self.directory = directory

    def path_for(self, user: User, report: LocationReport) -> Path:
        stamp = report.generated_utc.strftime("%Y%m%dT%H%M%SZ")
        return self.directory / f"user_{user.id}" / f"{stamp}_site_{report.site.id}.json"

    def save(self, user: User, report: LocationReport) -> None:
        path = self.path_for(user, report)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(format_json(report), encoding="utf-8")
        except OSError as e:
            raise ExternalCollaboratorError(f"Cannot write report {path}: {e}") from e
        logger.debug("Saved report for user %s site %s to %s", user.id, report.site.id, path)


class NullReportStore(ReportStore):
    def save(self, user: User, report: LocationReport) -> None:
        logger.debug("Report store not configured; dropping report for user %s site %s", user.id, report.site.id)
