class AstrocastError(Exception):
    """Base exception for Astrocast errors."""


class InvalidInput(AstrocastError, ValueError):
    """Raised when time-dependent math is given a non-UTC instant."""


class OutOfRange(AstrocastError, ValueError):
    """Raised for Bortle values outside 1-8 or coordinates outside a dataset."""


class NoViableWindow(AstrocastError):
    """Raised when no night-time forecast hour exists in the forecast horizon."""


class ExternalCollaboratorError(AstrocastError):
    """Raised for forecast, map, store or notification provider failures."""


class ServiceError(AstrocastError):
    """Raised for structural failures of a report run."""
