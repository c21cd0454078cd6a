"""CLI entrypoint for the Helm release exporter."""

import asyncio
import logging
from typing import Optional

import typer
from prometheus_client import CollectorRegistry

from . import __version__
from .config import Config, load_watchlist, resolve_config_dir
from .controller import ReleaseController, serve as serve_exporter
from .errors import ConfigError
from .metrics import PrometheusMetricSet

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = typer.Typer(
    name="helm-release-exporter",
    help="Prometheus exporter for the latest releases of Helm charts",
)


def _load_config(config_dir: Optional[str]) -> Config:
    try:
        return Config.from_dir(resolve_config_dir(config_dir))
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def serve(
    config_dir: Optional[str] = typer.Argument(
        None,
        help="Directory holding config.yaml and repos_and_charts.yaml (CONFIG_PATH wins if set)",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Root log level",
    ),
) -> None:
    """Expose chart release metrics and refresh them every check interval."""
    logging.getLogger().setLevel(log_level.upper())
    config = _load_config(config_dir)

    logger.info("=" * 50)
    logger.info(f"helm-release-exporter v{__version__}")
    logger.info("=" * 50)
    logger.info(f"Config directory: {config.config_dir}")
    logger.info(f"Check interval: {config.check_interval}")

    try:
        asyncio.run(serve_exporter(config))
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def check(
    config_dir: Optional[str] = typer.Argument(
        None,
        help="Directory holding config.yaml and repos_and_charts.yaml (CONFIG_PATH wins if set)",
    ),
) -> None:
    """Run a single release check cycle and print the results."""
    config = _load_config(config_dir)
    try:
        watchlist = load_watchlist(config.repos_file)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    controller = ReleaseController(watchlist, PrometheusMetricSet(CollectorRegistry()))
    report = controller.run_cycle()

    for sample in report.resolved:
        typer.echo(f"✅ {sample.repo} {sample.chart}: {sample.version} ({sample.release_date})")
    for failure in report.failures:
        typer.echo(f"❌ {failure.repo} {failure.chart}: {failure.error}")

    typer.echo(f"\n{len(report.resolved)} resolved, {len(report.failures)} failed")
    if not report.ok:
        raise typer.Exit(1)


@app.command()
def validate(
    config_dir: Optional[str] = typer.Argument(
        None,
        help="Directory holding config.yaml and repos_and_charts.yaml (CONFIG_PATH wins if set)",
    ),
) -> None:
    """Validate the configuration and watch-list files."""
    config = _load_config(config_dir)
    try:
        watchlist = load_watchlist(config.repos_file)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    chart_count = sum(len(target.charts) for target in watchlist)
    typer.echo(f"Metrics: :{config.port}{config.metrics_path}")
    typer.echo(f"Check interval: {config.check_interval}")
    typer.echo(f"Tracking {chart_count} charts in {len(watchlist)} repositories")


@app.command()
def version() -> None:
    """Show helm-release-exporter version."""
    typer.echo(f"helm-release-exporter v{__version__}")


def main() -> None:
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
