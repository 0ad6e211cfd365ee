import http.client
import json
import logging
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from astrocast import __version__
from astrocast.errors import ExternalCollaboratorError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15


def build_url(base: str, params: dict | None = None) -> str:
    if not params:
        return base
    return f"{base}?{urlencode(params)}"


def fetch_bytes(url: str, timeout: float = DEFAULT_TIMEOUT_S, redact: str | None = None) -> bytes:
    shown = url.replace(redact, "***") if redact else url
    logger.debug("GET %s", shown)
    request = Request(url, headers={"User-Agent": f"astrocast/{__version__}"})
    try:
        with urlopen(request, timeout=timeout) as resp:
            return resp.read()
    except HTTPError as e:
        raise ExternalCollaboratorError(f"HTTP {e.code} from {shown}") from e
    except (URLError, http.client.HTTPException, OSError) as e:
        raise ExternalCollaboratorError(f"Request to {shown} failed: {e}") from e


def fetch_json(url: str, timeout: float = DEFAULT_TIMEOUT_S, redact: str | None = None):
    raw = fetch_bytes(url, timeout=timeout, redact=redact)
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ExternalCollaboratorError(f"Invalid JSON payload: {e}") from e
