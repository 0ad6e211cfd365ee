import datetime
import http.client
import socket
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from astrocast.config import Config
from astrocast.errors import ExternalCollaboratorError
from astrocast.providers.http import fetch_bytes, fetch_json
from astrocast.providers.openweathermap import OpenWeatherMapForecastProvider, parse_hourly_payload

UTC = datetime.timezone.utc


def _ts(*args):
    return int(datetime.datetime(*args, tzinfo=UTC).timestamp())


PAYLOAD = {
    "city": {"sunrise": _ts(2024, 1, 15, 7, 50), "sunset": _ts(2024, 1, 15, 16, 20)},
    "list": [
        {
            "dt": _ts(2024, 1, 15, 18),
            "main": {"temp": 3.2, "humidity": 81},
            "clouds": {"all": 20},
            "wind": {"speed": 4.1},
            "pop": 0.1,
            "weather": [{"description": "  few clouds "}],
        },
        {
            "dt_txt": "2024-01-15 19:00:00",
            "main": {"humidity": 85},
            "clouds": {"all": 75},
            "wind": {"speed": 5.0},
            "weather": [],
        },
    ],
}


def test_parse_hourly_payload():
    bundle = parse_hourly_payload(PAYLOAD)
    assert bundle.sunrise_utc == datetime.datetime(2024, 1, 15, 7, 50, tzinfo=UTC)
    assert bundle.sunset_utc.hour == 16
    first = bundle.hourly[(15, 18)]
    assert first.cloud_coverage_pct == 20.0
    assert first.wind_speed_mps == 4.1
    assert first.precipitation_probability == 0.1
    assert first.humidity_pct == 81.0
    assert first.description == "Few clouds"
    assert first.temperature_c == 3.2
    second = bundle.hourly[(15, 19)]
    assert second.precipitation_probability == 0.0
    assert second.description == ""
    assert second.temperature_c is None


def test_parse_malformed_payload():
    with pytest.raises(ExternalCollaboratorError):
        parse_hourly_payload({"list": []})


def test_get_forecast_builds_request():
    config = Config({"openweathermap": {"api_key": "secret"}, "report": {"fetch_timeout_s": 7}})
    provider = OpenWeatherMapForecastProvider(config)
    with patch("astrocast.providers.openweathermap.fetch_json", return_value=PAYLOAD) as mock_fetch:
        bundle = provider.get_forecast(-1.5, 53.4)
    url = mock_fetch.call_args.args[0]
    assert url.startswith("https://pro.openweathermap.org/data/2.5/forecast/hourly?")
    assert "lat=53.4" in url and "lon=-1.5" in url
    assert "units=metric" in url and "appid=secret" in url
    assert mock_fetch.call_args.kwargs["timeout"] == 7.0
    assert (15, 18) in bundle.hourly


def test_get_forecast_without_api_key():
    provider = OpenWeatherMapForecastProvider(Config({}))
    with pytest.raises(ExternalCollaboratorError):
        provider.get_forecast(0.0, 0.0)


@pytest.mark.parametrize(
    "error",
    [
        HTTPError("https://x", 500, "boom", None, None),
        URLError("no route"),
        socket.timeout("timed out"),
    ],
)
def test_transport_errors_become_collaborator_errors(error):
    with patch("astrocast.providers.http.urlopen", side_effect=error):
        with pytest.raises(ExternalCollaboratorError):
            fetch_bytes("https://example.org/?appid=secret", redact="secret")


@pytest.mark.parametrize(
    "error",
    [
        ConnectionResetError(104, "Connection reset by peer"),
        http.client.IncompleteRead(b"{\"list\"", 100),
    ],
)
def test_errors_while_reading_body_become_collaborator_errors(error):
    response = MagicMock()
    response.__enter__.return_value.read.side_effect = error
    with patch("astrocast.providers.http.urlopen", return_value=response):
        with pytest.raises(ExternalCollaboratorError):
            fetch_bytes("https://example.org/")


def test_redacted_url_in_error_message():
    with patch("astrocast.providers.http.urlopen", side_effect=URLError("down")):
        with pytest.raises(ExternalCollaboratorError) as excinfo:
            fetch_bytes("https://example.org/?appid=secret", redact="secret")
    assert "secret" not in str(excinfo.value)


def test_fetch_json_invalid_payload():
    with patch("astrocast.providers.http.fetch_bytes", return_value=b"<html>"):
        with pytest.raises(ExternalCollaboratorError):
            fetch_json("https://example.org/")


@pytest.mark.integration
def test_live_forecast():
    from astrocast.config import load_config

    config = load_config()
    bundle = OpenWeatherMapForecastProvider(config).get_forecast(-1.5, 53.4)
    assert bundle.hourly
