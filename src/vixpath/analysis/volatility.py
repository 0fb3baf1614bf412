"""Range-based volatility estimator.

Turns a session's open/high/low and length into the diffusion coefficient
used by the bridge model:

    time_scaling    = sqrt(session_hours / 24)
    range_ratio     = (daily_max - daily_min) / open_value
    base_volatility = range_ratio * time_scaling
    coefficient     = base_volatility * style multiplier

Pure computation, no side effects.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from vixpath.analysis.path_models import SessionBounds
from vixpath.errors import InvalidInputError

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24.0


class VolatilityStyle(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"

    @property
    def multiplier(self) -> float:
        if self is VolatilityStyle.CONSERVATIVE:
            return 0.5
        elif self is VolatilityStyle.MODERATE:
            return 1.0
        elif self is VolatilityStyle.AGGRESSIVE:
            return 1.5
        raise InvalidInputError(f"Unhandled volatility style: {self!r}")

    @classmethod
    def parse(cls, style: "VolatilityStyle | str") -> "VolatilityStyle":
        """Accept a member or a case-insensitive name/value ("MODERATE", "moderate")."""
        if isinstance(style, cls):
            return style
        if isinstance(style, str):
            key = style.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        valid = ", ".join(m.value for m in cls)
        raise InvalidInputError(f"Unknown volatility style {style!r} (expected one of: {valid})")


@dataclass(frozen=True)
class VolatilityEstimate:
    """Estimator output with every intermediate quantity kept for reporting."""

    style: VolatilityStyle
    time_scaling: float
    daily_range: float
    range_ratio: float
    base_volatility: float
    multiplier: float
    coefficient: float


def estimate_volatility_breakdown(
    open_value: float,
    daily_max: float,
    daily_min: float,
    session_hours: float,
    style: VolatilityStyle | str = VolatilityStyle.MODERATE,
) -> VolatilityEstimate:
    """Estimate the diffusion coefficient and return the intermediate values.

    Args:
        open_value: Session opening value (divisor of the range ratio).
        daily_max: Observed daily high.
        daily_min: Observed daily low.
        session_hours: Length of the session in hours.
        style: Volatility style or its name.

    Raises:
        InvalidInputError: Non-positive open value, non-positive range,
            non-positive session length, or unknown style.
    """
    style = VolatilityStyle.parse(style)

    for name, value in (
        ("open_value", open_value),
        ("daily_max", daily_max),
        ("daily_min", daily_min),
        ("session_hours", session_hours),
    ):
        if not math.isfinite(value):
            raise InvalidInputError(f"{name} must be finite, got {value!r}")
    if open_value <= 0:
        raise InvalidInputError(f"open_value must be positive, got {open_value}")
    if daily_max <= daily_min:
        raise InvalidInputError(
            f"daily_max ({daily_max}) must exceed daily_min ({daily_min})"
        )
    if session_hours <= 0:
        raise InvalidInputError(f"session_hours must be positive, got {session_hours}")

    time_scaling = math.sqrt(session_hours / HOURS_PER_DAY)
    daily_range = daily_max - daily_min
    range_ratio = daily_range / open_value
    base_volatility = range_ratio * time_scaling
    multiplier = style.multiplier
    coefficient = base_volatility * multiplier

    logger.debug(
        "Volatility estimate: range=%.4f ratio=%.6f scaling=%.6f base=%.6f x%.1f (%s) -> %.6f",
        daily_range, range_ratio, time_scaling, base_volatility,
        multiplier, style.value, coefficient,
    )

    return VolatilityEstimate(
        style=style,
        time_scaling=time_scaling,
        daily_range=daily_range,
        range_ratio=range_ratio,
        base_volatility=base_volatility,
        multiplier=multiplier,
        coefficient=coefficient,
    )


def estimate_volatility(
    open_value: float,
    daily_max: float,
    daily_min: float,
    session_hours: float,
    style: VolatilityStyle | str = VolatilityStyle.MODERATE,
) -> float:
    """Diffusion coefficient for the given session and style."""
    return estimate_volatility_breakdown(
        open_value, daily_max, daily_min, session_hours, style
    ).coefficient


def estimate_from_bounds(
    bounds: SessionBounds,
    style: VolatilityStyle | str = VolatilityStyle.MODERATE,
) -> VolatilityEstimate:
    return estimate_volatility_breakdown(
        bounds.open_value,
        bounds.daily_max,
        bounds.daily_min,
        bounds.session_hours,
        style,
    )
