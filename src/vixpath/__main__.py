import logging

import click

from vixpath.config import Settings
from vixpath.errors import PathSimulationError
from vixpath.logging_config import setup_logging

logger = logging.getLogger(__name__)

STYLE_CHOICES = ["conservative", "moderate", "aggressive"]


def _session_options(f):
    """Shared session-bound options; unset options fall back to Settings."""
    options = [
        click.option("--open", "open_value", type=float, default=None, help="Session open value"),
        click.option("--close", "close_value", type=float, default=None, help="Session close value"),
        click.option("--high", "daily_max", type=float, default=None, help="Daily high"),
        click.option("--low", "daily_min", type=float, default=None, help="Daily low"),
        click.option("--hours", "session_hours", type=float, default=None,
                     help="Session length in hours"),
        click.option("--style", "-s", "volatility_style", type=click.Choice(STYLE_CHOICES,
                     case_sensitive=False), default=None, help="Volatility style"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _settings_with(ctx: click.Context, **overrides) -> Settings:
    base: Settings = ctx.obj["settings"]
    updates = {k: v for k, v in overrides.items() if v is not None}
    return base.model_copy(update=updates)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """vixpath - constrained intraday volatility index path simulator"""
    settings = Settings()
    setup_logging(settings.log_dir, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@_session_options
@click.pass_context
def estimate(ctx: click.Context, **session):
    """Print the range-based volatility estimate for a session."""
    from vixpath.analysis.volatility import estimate_from_bounds
    from vixpath.report import format_estimate

    settings = _settings_with(ctx, **session)
    try:
        bounds = settings.session_bounds()
        result = estimate_from_bounds(bounds, settings.volatility_style)
    except PathSimulationError as e:
        raise click.ClickException(str(e)) from e

    for line in format_estimate(result):
        click.echo(line)


@cli.command()
@_session_options
@click.option("--paths", "-n", "num_paths", type=int, default=None, help="Number of paths")
@click.option("--steps", "num_steps", type=int, default=None, help="Time steps per path")
@click.option("--sigma", "diffusion_coefficient", type=float, default=None,
              help="Manual diffusion coefficient (skips the estimator)")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--workers", "max_workers", type=int, default=None, help="Worker processes")
@click.option("--timeout", "timeout_seconds", type=float, default=None,
              help="Abort if paths are still being generated after this many seconds")
@click.option("--points-csv", type=click.Path(dir_okay=False), default=None,
              help="Write time/value/path_id rows to this CSV")
@click.option("--stats-csv", type=click.Path(dir_okay=False), default=None,
              help="Write per-path statistics to this CSV")
@click.pass_context
def simulate(ctx: click.Context, points_csv: str | None, stats_csv: str | None, **overrides):
    """Generate an ensemble of constrained intraday paths."""
    from vixpath.analysis.simulation import run_simulation
    from vixpath.report import format_run_summary, write_tables

    settings = _settings_with(ctx, **overrides)
    try:
        bounds = settings.session_bounds()
        config = settings.simulation_config()
        run = run_simulation(bounds, config)
    except PathSimulationError as e:
        logger.error("Simulation failed: %s", e)
        raise click.ClickException(str(e)) from e

    for line in format_run_summary(bounds, run):
        click.echo(line)

    for path in write_tables(run, points_csv=points_csv, stats_csv=stats_csv):
        click.echo(f"Wrote {path}")


if __name__ == "__main__":
    cli()
