"""Exception types raised by the interpolation engine and the ROMS reader."""


class RomsProbeError(Exception):
    """Base class for all romsprobe errors."""


class InitializationError(RomsProbeError):
    """The model dataset is missing or malformed. The engine must not be used."""


class EngineStateError(RomsProbeError, RuntimeError):
    """The engine was used before a successful load or after a failed one."""


class OutOfGridError(RomsProbeError, LookupError):
    """Fewer than four grid nodes lie within the maximum search radius."""


class BadValueError(RomsProbeError, ValueError):
    """The interpolated value is not a number."""


class AllLandError(BadValueError):
    """Every contributing corner of the query is land-masked."""


class StaleTimeWarning(UserWarning):
    """The query time is past the last time step; the last step is reused."""
