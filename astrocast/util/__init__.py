from .format import (
    compass_point,
    deg_to_dms,
    deg_to_hms,
    format_angle,
    format_utc,
)

__all__ = [
    "compass_point",
    "deg_to_dms",
    "deg_to_hms",
    "format_angle",
    "format_utc",
]
