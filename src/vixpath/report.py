"""Console and CSV presentation of a simulation run."""

import logging
import os

from vixpath.analysis.path_models import SessionBounds
from vixpath.analysis.simulation import SimulationRun
from vixpath.analysis.volatility import VolatilityEstimate

logger = logging.getLogger(__name__)


def format_estimate(estimate: VolatilityEstimate) -> list[str]:
    return [
        f"Style:            {estimate.style.value} (x{estimate.multiplier})",
        f"Daily range:      {estimate.daily_range:.4f}",
        f"Range ratio:      {estimate.range_ratio:.6f}",
        f"Time scaling:     {estimate.time_scaling:.6f}",
        f"Base volatility:  {estimate.base_volatility:.6f}",
        f"Diffusion coeff:  {estimate.coefficient:.6f}",
    ]


def format_run_summary(bounds: SessionBounds, run: SimulationRun) -> list[str]:
    """Header, per-path statistics table and ensemble endpoints."""
    result = run.result
    lines = [
        f"Session: open={bounds.open_value} close={bounds.close_value} "
        f"high={bounds.daily_max} low={bounds.daily_min} hours={bounds.session_hours}",
        f"Paths: {result.n_paths}  Steps: {result.n_steps}  "
        f"Diffusion coeff: {run.diffusion_coefficient:.6f}"
        + (" (manual)" if run.estimate is None else f" ({run.estimate.style.value})"),
        "",
        f"{'path':>6} {'start':>10} {'end':>10} {'max':>10} {'min':>10} {'total var':>12}",
    ]
    for s in result.statistics:
        lines.append(
            f"{s.path_id:>6} {s.start_value:>10.4f} {s.end_value:>10.4f} "
            f"{s.path_max:>10.4f} {s.path_min:>10.4f} {s.total_variation:>12.4f}"
        )

    mean = result.ensemble_mean()
    lines.append("")
    lines.append(
        f"Ensemble mean: start={mean.iloc[0]:.4f} end={mean.iloc[-1]:.4f} "
        f"max={mean.max():.4f} min={mean.min():.4f}"
    )
    return lines


def write_tables(
    run: SimulationRun,
    points_csv: str | None = None,
    stats_csv: str | None = None,
) -> list[str]:
    """Write the point and statistics tables; returns the paths written."""
    written = []
    for path, frame_fn in (
        (points_csv, run.result.points_frame),
        (stats_csv, run.result.statistics_frame),
    ):
        if not path:
            continue
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        frame = frame_fn()
        frame.to_csv(path, index=False)
        logger.info("Wrote %d rows to %s", len(frame), path)
        written.append(path)
    return written
