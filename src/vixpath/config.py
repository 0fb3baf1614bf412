from pydantic_settings import BaseSettings, SettingsConfigDict

from vixpath.analysis.path_models import SessionBounds
from vixpath.analysis.simulation import SimulationConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIXPATH_",
    )

    # Session boundary numbers
    open_value: float = 16.94
    close_value: float = 18.02
    daily_max: float = 18.86
    daily_min: float = 16.25
    session_hours: float = 13.0

    # Simulation
    num_paths: int = 10
    num_steps: int = 1000
    volatility_style: str = "moderate"  # conservative / moderate / aggressive
    diffusion_coefficient: float | None = None  # set to bypass the estimator
    seed: int = 42

    # Parallelization
    max_workers: int = 1
    timeout_seconds: float | None = None

    # Logging
    log_dir: str = "logs"

    def session_bounds(self) -> SessionBounds:
        return SessionBounds(
            open_value=self.open_value,
            close_value=self.close_value,
            daily_max=self.daily_max,
            daily_min=self.daily_min,
            session_hours=self.session_hours,
        )

    def simulation_config(self) -> SimulationConfig:
        return SimulationConfig(
            n_paths=self.num_paths,
            n_steps=self.num_steps,
            style=self.volatility_style,
            diffusion_coefficient=self.diffusion_coefficient,
            seed=self.seed,
            max_workers=self.max_workers,
            timeout_seconds=self.timeout_seconds,
        )
