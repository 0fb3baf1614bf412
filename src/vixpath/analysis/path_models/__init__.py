"""Constrained path simulation data model.

Value types shared by the volatility estimator, the per-path bridge model
and the ensemble orchestrator:
- SessionBounds: open/close/high/low plus session length
- PathPoint / PathStatistics: per-point and per-path output records
- SimulationResult: pre-sized ensemble buffer with tabular views
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
import pandas as pd

from vixpath.errors import BoundaryViolationError, InvalidInputError


@dataclass(frozen=True)
class SessionBounds:
    """Boundary numbers of one trading session."""

    open_value: float
    close_value: float
    daily_max: float
    daily_min: float
    session_hours: float

    def __post_init__(self):
        for name in ("open_value", "close_value", "daily_max", "daily_min", "session_hours"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidInputError(f"{name} must be finite, got {getattr(self, name)!r}")
        if self.session_hours <= 0:
            raise InvalidInputError(f"session_hours must be positive, got {self.session_hours}")
        check_band(self.open_value, self.close_value, self.daily_max, self.daily_min)


def check_band(start_value: float, end_value: float, max_value: float, min_value: float) -> None:
    """Raise BoundaryViolationError unless min <= start, end <= max."""
    if min_value > max_value:
        raise BoundaryViolationError(
            f"daily min {min_value} is above daily max {max_value}"
        )
    if not min_value <= start_value <= max_value:
        raise BoundaryViolationError(
            f"start value {start_value} outside [{min_value}, {max_value}]"
        )
    if not min_value <= end_value <= max_value:
        raise BoundaryViolationError(
            f"end value {end_value} outside [{min_value}, {max_value}]"
        )


@dataclass(frozen=True)
class PathPoint:
    time: float
    value: float
    path_id: int


@dataclass(frozen=True)
class PathStatistics:
    """Summary of one finalized path."""

    path_id: int
    start_value: float
    end_value: float
    path_max: float
    path_min: float
    total_variation: float  # sum of |x[j] - x[j-1]|


@dataclass(frozen=True)
class SimulationResult:
    """Ensemble output: shared time grid, one row of values per path.

    ``values[i]`` holds path ``i + 1``. Both arrays are read-only.
    """

    times: np.ndarray  # (n_steps + 1,)
    values: np.ndarray  # (n_paths, n_steps + 1)
    statistics: tuple[PathStatistics, ...]

    @property
    def n_paths(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_steps(self) -> int:
        return int(self.values.shape[1]) - 1

    @property
    def path_ids(self) -> tuple[int, ...]:
        return tuple(range(1, self.n_paths + 1))

    def path(self, path_id: int) -> np.ndarray:
        if not 1 <= path_id <= self.n_paths:
            raise KeyError(path_id)
        return self.values[path_id - 1]

    def iter_points(self) -> Iterator[PathPoint]:
        """Yield PathPoints path by path, in time order within each path."""
        times = self.times.tolist()
        for idx, row in enumerate(self.values.tolist()):
            path_id = idx + 1
            for t, v in zip(times, row):
                yield PathPoint(time=t, value=v, path_id=path_id)

    @property
    def points(self) -> tuple[PathPoint, ...]:
        return tuple(self.iter_points())

    def points_frame(self) -> pd.DataFrame:
        """Long table of ``time, value, path_id`` rows (all paths concatenated)."""
        n_paths, n_points = self.values.shape
        return pd.DataFrame({
            "time": np.tile(self.times, n_paths),
            "value": self.values.reshape(-1),
            "path_id": np.repeat(np.arange(1, n_paths + 1), n_points),
        })

    def statistics_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "path_id": s.path_id,
                    "start_value": s.start_value,
                    "end_value": s.end_value,
                    "path_max": s.path_max,
                    "path_min": s.path_min,
                    "total_variation": s.total_variation,
                }
                for s in self.statistics
            ],
            columns=[
                "path_id", "start_value", "end_value",
                "path_max", "path_min", "total_variation",
            ],
        )

    def ensemble_mean(self) -> pd.Series:
        """Mean value across paths at each time point, indexed by time."""
        return self.points_frame().groupby("time", sort=True)["value"].mean()


__all__ = [
    "SessionBounds",
    "PathPoint",
    "PathStatistics",
    "SimulationResult",
    "check_band",
]
