"""Exception hierarchy for path simulation.

All errors are raised synchronously to the caller; nothing in the core retries.
"""


class PathSimulationError(Exception):
    """Base class for every error raised by vixpath."""


class InvalidInputError(PathSimulationError, ValueError):
    """Malformed or out-of-domain argument (style, counts, duration, open value)."""


class BoundaryViolationError(PathSimulationError, ValueError):
    """Start or end value lies outside the [min, max] band."""


class NumericDefectError(PathSimulationError, ArithmeticError):
    """A non-finite value reached the output stage."""


class SimulationTimeoutError(PathSimulationError, TimeoutError):
    """The caller-supplied deadline passed before all paths were generated."""
