"""Ensemble path simulation orchestrator.

Validates the session band, derives one child seed per path from the
caller's generator, runs the bridge model for every path (sequentially or on
a process pool) and collects the finalized paths into a pre-sized buffer.
"""

import logging
import math
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

import numpy as np

from vixpath.analysis.path_models import (
    PathStatistics,
    SessionBounds,
    SimulationResult,
    check_band,
)
from vixpath.analysis.path_models.bridge import (
    compute_path_statistics,
    simulate_bridge_path,
    time_grid,
)
from vixpath.analysis.volatility import (
    VolatilityEstimate,
    VolatilityStyle,
    estimate_from_bounds,
)
from vixpath.errors import InvalidInputError, SimulationTimeoutError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_NUM_PATHS = 10
DEFAULT_NUM_STEPS = 1000
DEFAULT_SEED = 42
MAX_CHILD_SEED = 2**63


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SimulationConfig:
    """Run parameters, fixed for the lifetime of one simulation."""

    n_paths: int = DEFAULT_NUM_PATHS
    n_steps: int = DEFAULT_NUM_STEPS
    style: VolatilityStyle = VolatilityStyle.MODERATE
    diffusion_coefficient: float | None = None  # manual override, skips the estimator
    seed: int = DEFAULT_SEED
    max_workers: int = 1
    timeout_seconds: float | None = None

    def __post_init__(self):
        object.__setattr__(self, "style", VolatilityStyle.parse(self.style))
        for name in ("n_paths", "n_steps", "max_workers"):
            value = getattr(self, name)
            if not _is_count(value) or value < 1:
                raise InvalidInputError(f"{name} must be a positive integer, got {value!r}")
        if self.diffusion_coefficient is not None and (
            not math.isfinite(self.diffusion_coefficient) or self.diffusion_coefficient < 0
        ):
            raise InvalidInputError(
                "diffusion_coefficient must be finite and non-negative, "
                f"got {self.diffusion_coefficient!r}"
            )
        if self.timeout_seconds is not None and (
            not math.isfinite(self.timeout_seconds) or self.timeout_seconds <= 0
        ):
            raise InvalidInputError(
                f"timeout_seconds must be positive, got {self.timeout_seconds!r}"
            )


@dataclass(frozen=True)
class SimulationRun:
    result: SimulationResult
    diffusion_coefficient: float
    estimate: VolatilityEstimate | None  # None when the coefficient was supplied


# ---------------------------------------------------------------------------
# Main entry points
# ---------------------------------------------------------------------------


def run_simulation(
    bounds: SessionBounds,
    config: SimulationConfig | None = None,
    rng: np.random.Generator | None = None,
) -> SimulationRun:
    """Estimate volatility (unless overridden) and generate the ensemble.

    Args:
        bounds: Validated session boundary numbers.
        config: Run parameters (default: SimulationConfig()).
        rng: Generator to draw from. Defaults to ``default_rng(config.seed)``.
    """
    config = config or SimulationConfig()

    if config.diffusion_coefficient is not None:
        estimate = None
        coefficient = config.diffusion_coefficient
        logger.info("Using manual diffusion coefficient %.6f", coefficient)
    else:
        estimate = estimate_from_bounds(bounds, config.style)
        coefficient = estimate.coefficient
        logger.info(
            "Estimated diffusion coefficient %.6f (%s style)",
            coefficient, estimate.style.value,
        )

    if rng is None:
        rng = np.random.default_rng(config.seed)

    deadline = None
    if config.timeout_seconds is not None:
        deadline = time.monotonic() + config.timeout_seconds

    result = generate_paths(
        n_paths=config.n_paths,
        n_steps=config.n_steps,
        start_value=bounds.open_value,
        end_value=bounds.close_value,
        max_value=bounds.daily_max,
        min_value=bounds.daily_min,
        duration_hours=bounds.session_hours,
        diffusion_coefficient=coefficient,
        rng=rng,
        max_workers=config.max_workers,
        deadline=deadline,
    )
    return SimulationRun(result=result, diffusion_coefficient=coefficient, estimate=estimate)


def generate_paths(
    n_paths: int,
    n_steps: int,
    start_value: float,
    end_value: float,
    max_value: float,
    min_value: float,
    duration_hours: float,
    diffusion_coefficient: float,
    rng: np.random.Generator,
    *,
    max_workers: int = 1,
    deadline: float | None = None,
) -> SimulationResult:
    """Generate ``n_paths`` clamped bridge paths.

    All preconditions are checked before the generator is touched. One child
    seed per path is then drawn from ``rng``, so the output does not depend on
    ``max_workers``.

    Args:
        n_paths: Number of paths (>= 1).
        n_steps: Steps per path (>= 1); each path has n_steps + 1 points.
        start_value: Exact first value of every path.
        end_value: Exact last value of every path.
        max_value: Upper band.
        min_value: Lower band.
        duration_hours: Session length (> 0).
        diffusion_coefficient: Bridge volatility (finite, >= 0).
        rng: Top-level random generator.
        max_workers: Worker processes; 1 runs in the calling process.
        deadline: ``time.monotonic()`` timestamp checked between paths.

    Raises:
        InvalidInputError: Bad counts, duration or coefficient.
        BoundaryViolationError: Start/end outside [min_value, max_value].
        NumericDefectError: A path produced a non-finite value.
        SimulationTimeoutError: Deadline passed between paths.
    """
    _validate_inputs(
        n_paths, n_steps, start_value, end_value, max_value, min_value,
        duration_hours, diffusion_coefficient, max_workers,
    )

    child_seeds = rng.integers(MAX_CHILD_SEED, size=n_paths)

    times = time_grid(n_steps, duration_hours)
    values = np.empty((n_paths, n_steps + 1), dtype=float)
    statistics: list[PathStatistics | None] = [None] * n_paths

    params = {
        "n_steps": n_steps,
        "start_value": start_value,
        "end_value": end_value,
        "max_value": max_value,
        "min_value": min_value,
        "duration_hours": duration_hours,
        "diffusion_coefficient": diffusion_coefficient,
    }

    logger.debug(
        "Generating %d paths x %d steps (sigma=%.6f, workers=%d)",
        n_paths, n_steps, diffusion_coefficient, max_workers,
    )

    if max_workers <= 1 or n_paths == 1:
        for idx in range(n_paths):
            _check_deadline(deadline, completed=idx, total=n_paths)
            path_id, path = _run_path_worker(idx + 1, int(child_seeds[idx]), params)
            values[idx] = path
            statistics[idx] = compute_path_statistics(path_id, values[idx])
    else:
        _check_deadline(deadline, completed=0, total=n_paths)
        workers = min(max_workers, n_paths)
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_run_path_worker, idx + 1, int(child_seeds[idx]), params): idx
                for idx in range(n_paths)
            }
            completed = 0
            try:
                for future in as_completed(futures):
                    idx = futures[future]
                    path_id, path = future.result()
                    values[idx] = path
                    statistics[idx] = compute_path_statistics(path_id, values[idx])
                    completed += 1
                    if completed < n_paths:
                        _check_deadline(deadline, completed=completed, total=n_paths)
            except BaseException:
                for f in futures:
                    f.cancel()
                raise

    times.setflags(write=False)
    values.setflags(write=False)

    logger.info("Generated %d paths with %d points each", n_paths, n_steps + 1)

    return SimulationResult(
        times=times,
        values=values,
        statistics=tuple(statistics),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_path_worker(
    path_id: int,
    seed: int,
    params: dict[str, Any],
) -> tuple[int, np.ndarray]:
    """Picklable worker for ProcessPoolExecutor.

    Args:
        path_id: 1-based path id.
        seed: Child seed dedicated to this path.
        params: Keyword arguments for simulate_bridge_path (minus rng).

    Returns:
        (path_id, path values)
    """
    child_rng = np.random.default_rng(seed)
    return path_id, simulate_bridge_path(rng=child_rng, **params)


def _check_deadline(deadline: float | None, completed: int, total: int) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        raise SimulationTimeoutError(
            f"Deadline exceeded after {completed}/{total} paths"
        )


def _is_count(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _validate_inputs(
    n_paths: int,
    n_steps: int,
    start_value: float,
    end_value: float,
    max_value: float,
    min_value: float,
    duration_hours: float,
    diffusion_coefficient: float,
    max_workers: int,
) -> None:
    if not _is_count(n_paths) or n_paths < 1:
        raise InvalidInputError(f"n_paths must be a positive integer, got {n_paths!r}")
    if not _is_count(n_steps) or n_steps < 1:
        raise InvalidInputError(f"n_steps must be a positive integer, got {n_steps!r}")
    if not _is_count(max_workers) or max_workers < 1:
        raise InvalidInputError(f"max_workers must be a positive integer, got {max_workers!r}")
    if not math.isfinite(duration_hours) or duration_hours <= 0:
        raise InvalidInputError(f"duration_hours must be positive, got {duration_hours!r}")
    if not math.isfinite(diffusion_coefficient) or diffusion_coefficient < 0:
        raise InvalidInputError(
            f"diffusion_coefficient must be finite and non-negative, got {diffusion_coefficient!r}"
        )
    for name, value in (
        ("start_value", start_value),
        ("end_value", end_value),
        ("max_value", max_value),
        ("min_value", min_value),
    ):
        if not math.isfinite(value):
            raise InvalidInputError(f"{name} must be finite, got {value!r}")

    check_band(start_value, end_value, max_value, min_value)
