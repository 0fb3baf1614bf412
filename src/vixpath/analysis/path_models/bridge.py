"""Clamped Brownian-bridge path model.

One path = linear trend from start to end + a discretised bridge term that
decays to zero displacement at the session end:

  B[0] = 0
  B[j] = B[j-1] + σ·dW[j-1] − B[j-1]·dt / (T − t[j]),   dW ~ N(0, √dt)
  B[j] = 0 once T − t[j] ≤ 0

The raw path is clipped to [min, max] and the endpoints are then re-asserted,
in that order.
"""

import logging

import numpy as np

from vixpath.errors import NumericDefectError

from . import PathStatistics

logger = logging.getLogger(__name__)


def time_grid(n_steps: int, duration_hours: float) -> np.ndarray:
    """``n_steps + 1`` uniformly spaced points on [0, duration_hours]."""
    return np.linspace(0.0, duration_hours, n_steps + 1)


def bridge_displacement(
    times: np.ndarray,
    diffusion_coefficient: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Stochastic bridge term on ``times``; first and last entries are 0."""
    n_steps = len(times) - 1
    duration = float(times[-1])
    dt = duration / n_steps

    dw = rng.normal(0.0, np.sqrt(dt), n_steps)

    b = np.zeros(n_steps + 1)
    exhausted = False
    for j in range(1, n_steps + 1):
        remaining = duration - times[j]
        if exhausted or remaining <= 0:
            # Coarse grids can hit zero before the last index; no bridge contribution after that.
            exhausted = True
            b[j] = 0.0
            continue
        b[j] = b[j - 1] + diffusion_coefficient * dw[j - 1] - b[j - 1] * dt / remaining

    return b


def simulate_bridge_path(
    n_steps: int,
    start_value: float,
    end_value: float,
    max_value: float,
    min_value: float,
    duration_hours: float,
    diffusion_coefficient: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Generate one clamped bridge path of length ``n_steps + 1``.

    Arguments are assumed validated (see ``generate_paths``).

    Args:
        n_steps: Number of time steps.
        start_value: Exact value at t = 0.
        end_value: Exact value at t = duration_hours.
        max_value: Upper band.
        min_value: Lower band.
        duration_hours: Session length.
        diffusion_coefficient: Bridge volatility σ.
        rng: Generator dedicated to this path.

    Raises:
        NumericDefectError: The unclipped path contains NaN or inf.
    """
    times = time_grid(n_steps, duration_hours)
    trend = np.linspace(start_value, end_value, n_steps + 1)
    bridge = bridge_displacement(times, diffusion_coefficient, rng)

    raw = trend + bridge
    # Checked before clipping: np.clip maps ±inf onto the band edges.
    if not np.all(np.isfinite(raw)):
        bad = int(np.count_nonzero(~np.isfinite(raw)))
        raise NumericDefectError(f"Bridge path produced {bad} non-finite values")

    path = np.clip(raw, min_value, max_value)

    # Must run after clipping
    path[0] = start_value
    path[-1] = end_value

    return path


def compute_path_statistics(path_id: int, values: np.ndarray) -> PathStatistics:
    """Start/end, extremes and total variation of a finalized path."""
    return PathStatistics(
        path_id=path_id,
        start_value=float(values[0]),
        end_value=float(values[-1]),
        path_max=float(np.max(values)),
        path_min=float(np.min(values)),
        total_variation=float(np.sum(np.abs(np.diff(values)))),
    )
