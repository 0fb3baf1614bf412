"""Unit tests for the bridge path model and the path data types."""

import dataclasses

import numpy as np
import pytest

from vixpath.analysis.path_models import (
    PathPoint,
    PathStatistics,
    SessionBounds,
    SimulationResult,
)
from vixpath.analysis.path_models.bridge import (
    bridge_displacement,
    compute_path_statistics,
    simulate_bridge_path,
    time_grid,
)
from vixpath.errors import BoundaryViolationError, InvalidInputError, NumericDefectError


EPS = 1e-9


def _path(rng, n_steps=1000, sigma=0.113, **overrides):
    kwargs = dict(
        n_steps=n_steps,
        start_value=16.94,
        end_value=18.02,
        max_value=18.86,
        min_value=16.25,
        duration_hours=13.0,
        diffusion_coefficient=sigma,
        rng=rng,
    )
    kwargs.update(overrides)
    return simulate_bridge_path(**kwargs)


# ---------------------------------------------------------------------------
# Time grid / bridge term
# ---------------------------------------------------------------------------

class TestTimeGrid:
    def test_length_and_endpoints(self):
        t = time_grid(1000, 13.0)
        assert len(t) == 1001
        assert t[0] == 0.0
        assert t[-1] == 13.0

    def test_uniform_spacing(self):
        t = time_grid(10, 5.0)
        np.testing.assert_allclose(np.diff(t), 0.5)

    def test_strictly_increasing(self):
        assert np.all(np.diff(time_grid(500, 6.5)) > 0)


class TestBridgeDisplacement:
    def test_pinned_at_both_ends(self, rng):
        b = bridge_displacement(time_grid(200, 13.0), 0.5, rng)
        assert b[0] == 0.0
        assert b[-1] == 0.0
        assert np.all(np.isfinite(b))

    def test_zero_coefficient_is_flat(self, rng):
        b = bridge_displacement(time_grid(100, 13.0), 0.0, rng)
        np.testing.assert_array_equal(b, np.zeros(101))

    def test_interior_fluctuates(self, rng):
        b = bridge_displacement(time_grid(200, 13.0), 0.5, rng)
        assert np.any(b[1:-1] != 0.0)

    def test_exhausted_grid_stops_contributing(self, rng):
        """Once no time remains, every later step stays at zero without dividing by zero."""
        times = np.array([0.0, 1.0, 2.0, 2.0, 2.0])
        with np.errstate(divide="raise", invalid="raise"):
            b = bridge_displacement(times, 0.8, rng)
        assert np.all(np.isfinite(b))
        np.testing.assert_array_equal(b[2:], 0.0)

    def test_draws_one_normal_per_step(self):
        """Consumes exactly n_steps draws from the generator."""
        rng_a = np.random.default_rng(7)
        rng_b = np.random.default_rng(7)
        bridge_displacement(time_grid(50, 13.0), 0.3, rng_a)
        rng_b.normal(0.0, 1.0, 50)
        assert rng_a.standard_normal() == rng_b.standard_normal()


# ---------------------------------------------------------------------------
# Single path
# ---------------------------------------------------------------------------

class TestSimulateBridgePath:
    def test_length(self, rng):
        assert len(_path(rng)) == 1001

    def test_exact_endpoints(self, rng):
        path = _path(rng)
        assert path[0] == 16.94
        assert path[-1] == 18.02

    def test_within_band(self, rng):
        path = _path(rng, sigma=2.0)  # large noise forces clamping
        assert path.max() <= 18.86 + EPS
        assert path.min() >= 16.25 - EPS

    def test_large_noise_hits_bounds(self, rng):
        path = _path(rng, sigma=5.0)
        assert np.isclose(path.max(), 18.86) or np.isclose(path.min(), 16.25)

    def test_zero_coefficient_follows_trend(self, rng):
        path = _path(rng, n_steps=10, sigma=0.0)
        np.testing.assert_allclose(path, np.linspace(16.94, 18.02, 11))

    def test_single_step(self, rng):
        path = _path(rng, n_steps=1)
        np.testing.assert_array_equal(path, [16.94, 18.02])

    def test_degenerate_band(self, rng):
        path = _path(
            rng, n_steps=100, sigma=0.5,
            start_value=20.0, end_value=20.0, max_value=20.0, min_value=20.0,
        )
        np.testing.assert_array_equal(path, np.full(101, 20.0))

    def test_endpoints_reasserted_after_clamp(self, rng):
        """Endpoints sitting exactly on the band edges survive clipping bit-for-bit."""
        path = _path(rng, start_value=16.25, end_value=18.86, sigma=3.0)
        assert path[0] == 16.25
        assert path[-1] == 18.86

    def test_non_finite_raises(self, rng):
        with np.errstate(all="ignore"):
            with pytest.raises(NumericDefectError):
                _path(rng, n_steps=20, sigma=np.inf)

    def test_same_seed_same_path(self):
        a = _path(np.random.default_rng(3))
        b = _path(np.random.default_rng(3))
        np.testing.assert_array_equal(a, b)


class TestComputePathStatistics:
    def test_values(self):
        stats = compute_path_statistics(4, np.array([1.0, 3.0, 2.0, 2.5]))
        assert stats == PathStatistics(
            path_id=4,
            start_value=1.0,
            end_value=2.5,
            path_max=3.0,
            path_min=1.0,
            total_variation=3.5,
        )

    def test_flat_path_has_no_variation(self):
        stats = compute_path_statistics(1, np.full(10, 17.0))
        assert stats.total_variation == 0.0
        assert stats.path_max == stats.path_min == 17.0


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

class TestSessionBounds:
    def test_valid(self, sample_bounds):
        assert sample_bounds.open_value == 16.94
        assert sample_bounds.session_hours == 13.0

    def test_open_above_max(self):
        with pytest.raises(BoundaryViolationError):
            SessionBounds(19.0, 18.02, 18.86, 16.25, 13.0)

    def test_close_below_min(self):
        with pytest.raises(BoundaryViolationError):
            SessionBounds(16.94, 16.0, 18.86, 16.25, 13.0)

    def test_min_above_max(self):
        with pytest.raises(BoundaryViolationError):
            SessionBounds(17.0, 17.0, 16.0, 18.0, 13.0)

    @pytest.mark.parametrize("hours", [0.0, -2.0])
    def test_non_positive_hours(self, hours):
        with pytest.raises(InvalidInputError):
            SessionBounds(16.94, 18.02, 18.86, 16.25, hours)

    def test_nan_rejected(self):
        with pytest.raises(InvalidInputError):
            SessionBounds(float("nan"), 18.02, 18.86, 16.25, 13.0)

    def test_frozen(self, sample_bounds):
        with pytest.raises(dataclasses.FrozenInstanceError):
            sample_bounds.open_value = 17.0


@pytest.fixture
def small_result():
    times = np.array([0.0, 0.5, 1.0])
    values = np.array([[10.0, 11.0, 12.0], [10.0, 9.0, 12.0]])
    times.setflags(write=False)
    values.setflags(write=False)
    stats = tuple(compute_path_statistics(i + 1, values[i]) for i in range(2))
    return SimulationResult(times=times, values=values, statistics=stats)


class TestSimulationResult:
    def test_shape_properties(self, small_result):
        assert small_result.n_paths == 2
        assert small_result.n_steps == 2
        assert small_result.path_ids == (1, 2)

    def test_points_order(self, small_result):
        points = small_result.points
        assert len(points) == 6
        assert points[0] == PathPoint(time=0.0, value=10.0, path_id=1)
        assert points[3] == PathPoint(time=0.0, value=10.0, path_id=2)
        assert [p.path_id for p in points] == [1, 1, 1, 2, 2, 2]
        assert [p.time for p in points[:3]] == [0.0, 0.5, 1.0]

    def test_path_lookup(self, small_result):
        np.testing.assert_array_equal(small_result.path(2), [10.0, 9.0, 12.0])
        with pytest.raises(KeyError):
            small_result.path(3)
        with pytest.raises(KeyError):
            small_result.path(0)

    def test_points_frame(self, small_result):
        df = small_result.points_frame()
        assert list(df.columns) == ["time", "value", "path_id"]
        assert len(df) == 6
        assert df["path_id"].tolist() == [1, 1, 1, 2, 2, 2]
        assert df["value"].tolist() == [10.0, 11.0, 12.0, 10.0, 9.0, 12.0]

    def test_statistics_frame(self, small_result):
        df = small_result.statistics_frame()
        assert df["path_id"].tolist() == [1, 2]
        assert df["total_variation"].tolist() == [2.0, 4.0]
        assert df["path_min"].tolist() == [10.0, 9.0]

    def test_ensemble_mean(self, small_result):
        mean = small_result.ensemble_mean()
        assert mean.index.tolist() == [0.0, 0.5, 1.0]
        assert mean.tolist() == [10.0, 10.0, 12.0]

    def test_buffers_read_only(self, small_result):
        with pytest.raises(ValueError):
            small_result.values[0, 1] = 99.0
        with pytest.raises(ValueError):
            small_result.times[0] = 1.0
