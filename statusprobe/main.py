from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool

from statusprobe.api.metrics import create_metrics_router
from statusprobe.jobs.probe_loop import ProbeLoop
from statusprobe.jobs.scheduler import add_probe_loop_job, start_scheduler, stop_probe_loop
from statusprobe.middleware.auth import CredentialCheck
from statusprobe.services.exposition import build_registry
from statusprobe.services.metrics_state import MetricsState


def create_app(state: MetricsState, check: CredentialCheck, loop: Optional[ProbeLoop] = None) -> FastAPI:
    """Build the exporter app.

    When `loop` is given it is started in the background on startup and
    stopped on shutdown; without it the app only serves whatever `state`
    holds (useful in tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup logic
        if loop is not None:
            start_scheduler()
            add_probe_loop_job(loop)
        yield
        # Shutdown logic
        if loop is not None:
            # joins the scheduler thread; keep it off the event loop
            await run_in_threadpool(stop_probe_loop, loop)

    app = FastAPI(title="statusprobe", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

    # include routes
    app.include_router(create_metrics_router(build_registry(state), check))
    return app
