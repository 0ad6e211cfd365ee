from astrocast.errors import OutOfRange

# Upper radiance bound (mcd/m^2) of each class, from the IYA sky brightness
# nomogram. Anything brighter than the last bound is class 8.
_RADIANCE_BOUNDS = (
    (0.25, 1),
    (0.275, 2),
    (0.325, 3),
    (0.5, 4),
    (2.5, 5),
    (4.0, 6),
    (6.85, 7),
)

_LIMITING_MAGNITUDE = {
    1: 7.8,
    2: 7.3,
    3: 6.8,
    4: 6.3,
    5: 5.8,
    6: 5.5,
    7: 5.0,
    8: 4.25,
}

_DESCRIPTIONS = {
    1: "Excellent Dark-sky Site",
    2: "Typical Truly Dark Site",
    3: "Rural Sky",
    4: "Rural/Suburban Transition",
    5: "Suburban Sky",
    6: "Bright Suburban Sky",
    7: "Suburban/Urban Transition",
    8: "City or inner city sky",
}


def bortle_from_radiance(mcd_per_m2: float) -> int:
    for upper, bortle in _RADIANCE_BOUNDS:
        if mcd_per_m2 <= upper:
            return bortle
    return 8


def _check_bortle(bortle: int) -> None:
    if bortle not in _LIMITING_MAGNITUDE:
        raise OutOfRange(f"Bortle value out of range (1-8): {bortle}")


def bortle_to_limiting_magnitude(bortle: int) -> float:
    """Naked-eye limiting magnitude for a Bortle class."""
    _check_bortle(bortle)
    return _LIMITING_MAGNITUDE[bortle]


def bortle_description(bortle: int) -> str:
    _check_bortle(bortle)
    return _DESCRIPTIONS[bortle]
