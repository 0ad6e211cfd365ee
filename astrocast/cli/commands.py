import datetime
import json
import logging
import signal
import sys
import threading
from pathlib import Path

from astrocast.astronomy import (
    EquatorialCoordinate,
    ObjectKind,
    ObservingSite,
    TrackedObject,
    bortle_description,
    bortle_from_radiance,
    bortle_to_limiting_magnitude,
    equatorial_to_horizontal,
    evaluate_visibility,
)
from astrocast.config import load_config
from astrocast.errors import AstrocastError, ExternalCollaboratorError, ServiceError
from astrocast.providers import get_light_pollution_provider, get_observation_store
from astrocast.report import ReportGenerator, format_summary
from astrocast.report.formatters import summary_to_dict
from astrocast.sites import create_site
from astrocast.util.format import compass_point, deg_to_dms, deg_to_hms, format_utc

logger = logging.getLogger(__name__)


def _json_envelope(command: str, ok: bool, data=None, error=None) -> dict:
    return {
        "ok": ok,
        "command": command,
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "data": data,
        "error": error,
    }


def _init_logging(level: str | None) -> None:
    if not level:
        return
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "error": logging.ERROR,
    }
    logging.basicConfig(level=level_map.get(level, logging.INFO))


def _wants_json(args) -> bool:
    return args is not None and getattr(args, "json", False)


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _handle_error(command: str, args, code: str, exc: Exception, exit_code: int) -> int:
    if _wants_json(args):
        _print_json(
            _json_envelope(
                command=command,
                ok=False,
                data=None,
                error={"code": code, "message": str(exc), "details": None},
            )
        )
    else:
        print(str(exc), file=sys.stderr)
    return exit_code


def _config_path_from_args(args) -> Path | None:
    if args is None:
        return None
    path = getattr(args, "config", None)
    return Path(path) if path else None


def _parse_datetime_arg(value: str | None) -> datetime.datetime | None:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def _instant_from_args(args) -> datetime.datetime:
    return _parse_datetime_arg(getattr(args, "time_utc", None)) or datetime.datetime.now(
        datetime.timezone.utc
    )


def run_doctor(args=None) -> int:
    _init_logging(getattr(args, "log_level", None))

    def check_config():
        try:
            load_config(_config_path_from_args(args))
            return {"ok": True, "detail": "loaded (defaults applied if missing)"}
        except (OSError, ValueError) as e:
            return {"ok": False, "detail": f"invalid config: {e}"}

    config_check = check_config()
    if not config_check["ok"]:
        checks = {"config": config_check}
    else:
        config = load_config(_config_path_from_args(args))

        def check_store():
            try:
                store = get_observation_store(config)
                users = list(store.users())
            except (ValueError, ExternalCollaboratorError) as e:
                return {"ok": False, "detail": str(e)}
            return {"ok": True, "detail": f"{len(users)} users"}

        def check_setting(value, name):
            if value:
                return {"ok": True, "detail": "configured"}
            return {"ok": False, "detail": f"{name} not set"}

        def check_grid():
            path = config.light_pollution_grid_path
            if path is None:
                return {"ok": False, "detail": "grid_path not set (only needed for 'site')"}
            if not path.exists():
                return {"ok": False, "detail": f"not found: {path}"}
            return {"ok": True, "detail": str(path)}

        checks = {
            "config": config_check,
            "observation_store": check_store(),
            f"forecast ({config.forecast_backend})": check_setting(
                config.openweathermap_api_key, "api_key"
            ),
            f"static_map ({config.static_map_backend})": check_setting(
                config.mapbox_access_token, "access_token"
            ),
            "light_pollution": check_grid(),
            f"email ({config.email_backend})": {
                "ok": config.email_backend in ("log", "smtp"),
                "detail": "backend selected",
            },
        }

    ok = all(c["ok"] for c in checks.values())

    if _wants_json(args):
        _print_json(
            _json_envelope(
                command="doctor",
                ok=ok,
                data={"checks": checks},
                error=None
                if ok
                else {
                    "code": "doctor_failed",
                    "message": "one or more checks failed",
                    "details": None,
                },
            )
        )
    else:
        print("Astrocast Doctor Report")
        print("=======================")

        for name, result in checks.items():
            status = "OK" if result["ok"] else "MISSING"
            print(f"{name:24} : {status} ({result['detail']})")

        if ok:
            print("\nSystem ready.")
        else:
            print("\nSome components are missing or not configured.")

    return 0 if ok else 1


def _install_cancel_handlers(cancel_event: threading.Event) -> dict:
    def _handler(signum, frame):
        logger.warning("Received signal %s; finishing users in progress", signum)
        cancel_event.set()

    previous = {}
    if threading.current_thread() is not threading.main_thread():
        return previous
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    return previous


def _restore_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def run_report(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        now_utc = _parse_datetime_arg(getattr(args, "now_utc", None))
        cancel_event = threading.Event()
        generator = ReportGenerator.from_config(config, cancel_event=cancel_event)
    except (OSError, ValueError) as e:
        return _handle_error("report", args, "invalid_config", e, 2)

    previous = _install_cancel_handlers(cancel_event)
    try:
        summary = generator.run_report_generation(
            force_user_id=getattr(args, "user_id", None), now_utc=now_utc
        )
    except ServiceError as e:
        return _handle_error("report", args, "service_error", e, 2)
    finally:
        _restore_handlers(previous)

    if _wants_json(args):
        _print_json(
            _json_envelope(
                command="report",
                ok=summary.ok,
                data=summary_to_dict(summary),
                error=None
                if summary.ok
                else {
                    "code": "partial_failure",
                    "message": "some reports could not be generated or delivered",
                    "details": None,
                },
            )
        )
    else:
        print(format_summary(summary))
    return 0 if summary.ok else 1


def _site_from_args(args) -> ObservingSite:
    bortle = getattr(args, "bortle", None) or 4
    return ObservingSite(
        id=0,
        name=getattr(args, "site_name", None) or "Observer",
        longitude_deg=args.longitude_deg,
        latitude_deg=args.latitude_deg,
        bortle=bortle,
        limiting_magnitude=bortle_to_limiting_magnitude(bortle),
        bortle_description=bortle_description(bortle),
    )


def run_altaz(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        instant = _instant_from_args(args)
        coordinate = EquatorialCoordinate.from_degrees(args.ra_deg, args.dec_deg)
        altaz = equatorial_to_horizontal(coordinate, instant, args.longitude_deg, args.latitude_deg)
    except (ValueError, AstrocastError) as e:
        return _handle_error("altaz", args, "invalid_input", e, 2)

    if _wants_json(args):
        _print_json(
            _json_envelope(
                command="altaz",
                ok=True,
                data={
                    "altitude_deg": altaz.altitude_deg,
                    "azimuth_deg": altaz.azimuth_deg,
                    "instant_utc": altaz.instant_utc.isoformat(),
                    "longitude_deg": altaz.longitude_deg,
                    "latitude_deg": altaz.latitude_deg,
                },
                error=None,
            )
        )
    else:
        print(f"Time: {format_utc(instant)}")
        print(f"RA/Dec: {deg_to_hms(coordinate.ra_deg)} {deg_to_dms(coordinate.dec_deg)}")
        print(f"Altitude: {altaz.altitude_deg:.2f}°")
        print(f"Azimuth: {altaz.azimuth_deg:.2f}° ({compass_point(altaz.azimuth_deg)})")
    return 0


def run_visibility(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        instant = _instant_from_args(args)
        site = _site_from_args(args)
        obj = TrackedObject(
            catalogue_id=0,
            kind=ObjectKind.STAR,
            coordinate=EquatorialCoordinate.from_degrees(args.ra_deg, args.dec_deg),
            apparent_magnitude=args.magnitude,
            name=getattr(args, "object_name", None),
        )
        verdict = evaluate_visibility(obj, site, instant, sweep_hours=args.sweep_hours)
    except (ValueError, AstrocastError) as e:
        return _handle_error("visibility", args, "invalid_input", e, 2)

    if _wants_json(args):
        _print_json(
            _json_envelope(
                command="visibility",
                ok=True,
                data={
                    "visibility_alert": verdict.visibility_alert,
                    "horizon_alert": verdict.horizon_alert,
                    "peak_altitude_deg": verdict.peak_altitude_deg,
                    "limiting_magnitude": site.limiting_magnitude,
                    "messages": [verdict.visibility_message]
                    + ([verdict.horizon_message] if verdict.horizon_message else []),
                },
                error=None,
            )
        )
    else:
        print(f"Site: Bortle {site.bortle}, naked-eye limit {site.limiting_magnitude:.2f} mag")
        print(f"Peak altitude (next {args.sweep_hours} h): {verdict.peak_altitude_deg:.1f}°")
        print(verdict.visibility_message)
        if verdict.horizon_message:
            print(verdict.horizon_message)
    return 0


def run_bortle(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        if args.radiance is not None:
            bortle = bortle_from_radiance(args.radiance)
        else:
            bortle = args.bortle
        limiting = bortle_to_limiting_magnitude(bortle)
        description = bortle_description(bortle)
    except AstrocastError as e:
        return _handle_error("bortle", args, "out_of_range", e, 2)

    if _wants_json(args):
        _print_json(
            _json_envelope(
                command="bortle",
                ok=True,
                data={
                    "bortle": bortle,
                    "limiting_magnitude": limiting,
                    "description": description,
                },
                error=None,
            )
        )
    else:
        print(f"Bortle {bortle}: {description} (naked-eye limit {limiting:.2f} mag)")
    return 0


def run_site(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        provider = get_light_pollution_provider(config)
        site = create_site(args.site_id, args.site_name, args.longitude_deg, args.latitude_deg, provider)
    except (OSError, ValueError, AstrocastError) as e:
        return _handle_error("site", args, "invalid_site", e, 2)

    if _wants_json(args):
        _print_json(
            _json_envelope(
                command="site",
                ok=True,
                data={
                    "id": site.id,
                    "name": site.name,
                    "longitude_deg": site.longitude_deg,
                    "latitude_deg": site.latitude_deg,
                    "bortle": site.bortle,
                    "limiting_magnitude": site.limiting_magnitude,
                    "bortle_description": site.bortle_description,
                },
                error=None,
            )
        )
    else:
        print(f"Site {site.id}: {site.name}")
        print(f"Location: lat {site.latitude_deg:.4f}°, lon {site.longitude_deg:.4f}°")
        print(f"Sky: Bortle {site.bortle} ({site.bortle_description})")
        print(f"Naked-eye limit: {site.limiting_magnitude:.2f} mag")
    return 0
