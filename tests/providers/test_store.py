import json

import pytest

from astrocast.astronomy.types import ObjectKind
from astrocast.errors import ExternalCollaboratorError
from astrocast.providers.store import JsonObservationStore, JsonReportStore
from astrocast.report.types import User
from conftest import make_report as _report

DOCUMENT = {
    "users": [
        {"id": 1, "name": "Ada", "email": "ada@example.org"},
        {"id": 2, "name": "Grace", "email": "grace@example.org"},
    ],
    "sites": [
        {"id": 10, "name": "Garden", "longitude_deg": -1.5, "latitude_deg": 53.4, "bortle": 4},
        {
            "id": 11,
            "name": "Moor",
            "longitude_deg": -1.8,
            "latitude_deg": 53.5,
            "bortle": 2,
            "limiting_magnitude": 7.1,
        },
    ],
    "objects": [
        {"kind": "star", "catalogue_id": 32349, "name": "Sirius", "ra_deg": 101.287,
         "dec_deg": -16.716, "magnitude": -1.46},
        {"kind": "deep_sky", "catalogue_id": 224, "name": "Andromeda Galaxy", "ra_deg": 10.685,
         "dec_deg": 41.269, "magnitude": 3.44},
    ],
    "observations": [
        {"user_id": 1, "site_id": 10, "kind": "star", "catalogue_id": 32349},
        {"user_id": 1, "site_id": 11, "kind": "deep_sky", "catalogue_id": 224},
    ],
}


@pytest.fixture
def store_path(tmp_path):
    path = tmp_path / "observations.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
    return path


def test_loads_users_and_observations(store_path):
    store = JsonObservationStore(store_path)
    assert [u.id for u in store.users()] == [1, 2]
    observations = store.observations()
    assert len(observations) == 2
    first = observations[0]
    assert first.user.name == "Ada"
    assert first.site.limiting_magnitude == 6.3
    assert first.site.bortle_description == "Rural/Suburban Transition"
    assert first.tracked_object.kind is ObjectKind.STAR
    assert first.tracked_object.coordinate.ra_deg == pytest.approx(101.287, abs=1e-6)
    assert first.tracked_object.coordinate.dec_deg == pytest.approx(-16.716, abs=1e-6)
    second = observations[1]
    assert second.site.limiting_magnitude == 7.1
    assert second.tracked_object.designation == "NGC 224"


def test_observations_for_user(store_path):
    store = JsonObservationStore(store_path)
    assert len(store.observations_for(1)) == 2
    assert store.observations_for(2) == []


def test_store_is_a_snapshot(store_path):
    store = JsonObservationStore(store_path)
    store.users()
    store_path.write_text("{}", encoding="utf-8")
    assert len(store.users()) == 2


def test_missing_store_file(tmp_path):
    store = JsonObservationStore(tmp_path / "missing.json")
    with pytest.raises(ExternalCollaboratorError):
        store.users()


def test_dangling_reference(tmp_path):
    document = dict(DOCUMENT, observations=[{"user_id": 1, "site_id": 99, "kind": "star", "catalogue_id": 32349}])
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    with pytest.raises(ExternalCollaboratorError):
        JsonObservationStore(path).observations()


def test_report_store_writes_json(tmp_path):
    report = _report()
    store = JsonReportStore(tmp_path / "reports")
    user = User(1, "Ada", "ada@example.org")
    store.save(user, report)
    path = store.path_for(user, report)
    assert path.name == "20240115T220000Z_site_1.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["site"]["id"] == 1
    assert data["static_map_image_name"] == "location_1.png"


def test_report_store_write_failure(tmp_path):
    blocker = tmp_path / "reports"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonReportStore(blocker)
    with pytest.raises(ExternalCollaboratorError):
        store.save(User(1, "Ada", "ada@example.org"), _report())
