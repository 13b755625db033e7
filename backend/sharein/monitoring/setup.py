import logging
import time

from fastapi import Request
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.types import ASGIApp

logger = logging.getLogger("sharein")

sweep_runs = Counter("sharein_sweep_runs_total", "Expiry sweep runs")
sweep_files_deleted = Counter("sharein_sweep_files_deleted_total", "Files deleted by the expiry sweep")
sweep_failed_deletes = Counter("sharein_sweep_failed_deletes_total", "Expired files the sweep failed to delete")
sweep_duration = Histogram("sharein_sweep_duration_seconds", "Duration of an expiry sweep in seconds")


def report_sweep(files_deleted: int, failed: int, duration: float) -> None:
    """Record sweep metrics to Prometheus."""
    sweep_runs.inc()
    if files_deleted:
        sweep_files_deleted.inc(files_deleted)
    if failed:
        sweep_failed_deletes.inc(failed)
    sweep_duration.observe(duration)


def setup_monitoring(app: ASGIApp, expose_metrics: bool = True):
    if expose_metrics:
        Instrumentator().instrument(app).expose(app, endpoint="/api/metrics", include_in_schema=False)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            process_time = time.time() - start_time
            logger.info("method=%s path=%s status=%s duration=%.4fs",
                        request.method, request.url.path,
                        getattr(response, "status_code", 500), process_time)
