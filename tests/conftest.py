"""Pytest configuration and shared fixtures."""

import os

import numpy as np
import pytest

from vixpath.analysis.path_models import SessionBounds


@pytest.fixture
def sample_bounds():
    """Typical VIX session: open 16.94, close 18.02, range 16.25-18.86 over 13h."""
    return SessionBounds(
        open_value=16.94,
        close_value=18.02,
        daily_max=18.86,
        daily_min=16.25,
        session_hours=13.0,
    )


@pytest.fixture
def sample_path_kwargs():
    """Keyword arguments for generate_paths matching sample_bounds."""
    return {
        "start_value": 16.94,
        "end_value": 18.02,
        "max_value": 18.86,
        "min_value": 16.25,
        "duration_hours": 13.0,
        "diffusion_coefficient": 0.113,
    }


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Run in tmp_path with no VIXPATH_* variables leaking in."""
    for key in list(os.environ):
        if key.startswith("VIXPATH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VIXPATH_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path
