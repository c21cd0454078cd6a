"""Reconciliation loop and metrics server for the release exporter."""

import asyncio
import logging
import signal

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from .config import Config, load_watchlist
from .errors import IndexFetchError, ReleaseExporterError
from .index_client import IndexClient
from .metrics import MetricSet, PrometheusMetricSet
from .models import ChartFailure, CycleReport, MetricSample, RepositoryTarget, WatchList
from .release import normalize_release_date, select_latest

logger = logging.getLogger(__name__)


class ReleaseController:
    """Periodically resolves the latest release of every tracked chart."""

    def __init__(
        self,
        watchlist: WatchList,
        metric_set: MetricSet,
        client: IndexClient | None = None,
        check_interval: float = 300,
    ):
        self.watchlist = watchlist
        self.metric_set = metric_set
        self.client = client or IndexClient()
        self.check_interval = check_interval
        self.running = False
        self.cycles_completed = 0
        self._shutdown_event = asyncio.Event()

    def run_cycle(self) -> CycleReport:
        """Sweep the watch-list once, publishing every chart that resolves."""
        logger.info(f"Starting release check cycle over {len(self.watchlist)} repositories")
        report = CycleReport()

        for target in self.watchlist:
            self._reconcile_repository(target, report)

        self.metric_set.mark_cycle_complete()
        self.cycles_completed += 1
        logger.info(
            f"Release check cycle complete: {len(report.resolved)} resolved, "
            f"{len(report.failures)} failed"
        )
        return report

    def _reconcile_repository(self, target: RepositoryTarget, report: CycleReport) -> None:
        try:
            index = self.client.fetch(target.url)
        except IndexFetchError as e:
            for chart in target.charts:
                self._record_failure(target.url, chart, e, report)
            return
        except Exception as e:
            logger.exception(f"Unexpected error fetching index for repository {target.url}")
            for chart in target.charts:
                self._record_failure(target.url, chart, e, report)
            return

        for chart in target.charts:
            try:
                entry = select_latest(index, chart)
                release_date = normalize_release_date(entry.created)
            except ReleaseExporterError as e:
                self._record_failure(target.url, chart, e, report)
                continue
            except Exception as e:
                logger.exception(f"Unexpected error resolving chart {chart} in repository {target.url}")
                self._record_failure(target.url, chart, e, report)
                continue

            sample = MetricSample(
                repo=target.url,
                chart=chart,
                version=entry.version,
                release_date=release_date,
            )
            self.metric_set.upsert(sample)
            self.metric_set.record_check(target.url, chart, success=True)
            report.resolved.append(sample)
            logger.debug(f"Chart {chart} in {target.url}: version {sample.version} released {release_date}")

    def _record_failure(self, repo: str, chart: str, error: Exception, report: CycleReport) -> None:
        logger.error(f"Error getting the release version for chart {chart} in repository {repo}: {error}")
        self.metric_set.record_check(repo, chart, success=False)
        report.failures.append(ChartFailure(repo=repo, chart=chart, error=error))

    async def start(self) -> None:
        """Run the reconciliation loop until stop() is called."""
        logger.info("Starting release exporter controller")
        self.running = True

        reconcile_task = asyncio.create_task(self._reconcile_loop())

        await self._shutdown_event.wait()

        # A cycle already running in its worker thread finishes on its own.
        reconcile_task.cancel()
        try:
            await reconcile_task
        except asyncio.CancelledError:
            pass

        logger.info("Controller stopped")

    def stop(self) -> None:
        """Stop the controller."""
        logger.info("Stopping controller...")
        self.running = False
        self._shutdown_event.set()

    async def _reconcile_loop(self) -> None:
        """Run a cycle, then wait one interval, until shut down."""
        while self.running:
            try:
                await asyncio.to_thread(self.run_cycle)
            except Exception:
                logger.exception("Unexpected error during release check cycle")

            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=self.check_interval)
            except asyncio.TimeoutError:
                continue


class MetricsServer:
    """HTTP server exposing the metric registry and health probes."""

    def __init__(
        self,
        controller: ReleaseController,
        registry: CollectorRegistry,
        port: int = 8080,
        metrics_path: str = "/metrics",
        host: str = "0.0.0.0",
    ):
        self.controller = controller
        self.registry = registry
        self.port = port
        self.host = host
        self.metrics_path = metrics_path
        self.app = web.Application()
        self.app.router.add_get("/healthz", self.healthz)
        self.app.router.add_get("/readyz", self.readyz)
        self.app.router.add_get(metrics_path, self.metrics)

    async def healthz(self, request: web.Request) -> web.Response:
        """Liveness probe endpoint."""
        return web.Response(text="ok")

    async def readyz(self, request: web.Request) -> web.Response:
        """Ready once the first cycle has finished."""
        if self.controller.running and self.controller.cycles_completed > 0:
            return web.Response(text="ok")
        return web.Response(text="not ready", status=503)

    async def metrics(self, request: web.Request) -> web.Response:
        """Prometheus metrics endpoint."""
        return web.Response(
            body=generate_latest(self.registry),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )

    async def start(self) -> web.AppRunner:
        """Start the metrics server."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        await site.start()
        logger.info(
            f"Metrics server started on port {self.port} with path {self.metrics_path} "
            f"and check interval {self.controller.check_interval}s"
        )
        return runner


async def serve(config: Config) -> None:
    """Run the exporter until SIGTERM or SIGINT."""
    watchlist = load_watchlist(config.repos_file)
    metric_set = PrometheusMetricSet()
    controller = ReleaseController(
        watchlist,
        metric_set,
        check_interval=config.check_interval_seconds,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, controller.stop)

    server = MetricsServer(
        controller,
        metric_set.registry,
        port=config.port,
        metrics_path=config.metrics_path,
    )
    runner = await server.start()

    try:
        await controller.start()
    finally:
        await runner.cleanup()
