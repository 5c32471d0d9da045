# tems/main.py
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from . import __version__
from .auth import BasicAuthMiddleware
from .config import Config
from .forwarder import Forwarder
from .schemas import parse_metric
from .store import MetricStore

logger = logging.getLogger(__name__)

WEB_DIR = Path(__file__).parent / "web"
API_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    config: Config,
    store: Optional[MetricStore] = None,
    forwarder: Optional[Forwarder] = None,
    forward: bool = True,
) -> FastAPI:
    store = store if store is not None else MetricStore()
    forwarder = forwarder if forwarder is not None else Forwarder(store, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if forward:
            forwarder.start()
        try:
            yield
        finally:
            if forward:
                forwarder.stop(timeout=config.forward_timeout)

    app = FastAPI(
        title="TEMS",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.store = store
    app.state.forwarder = forwarder

    app.middleware("http")(BasicAuthMiddleware(config.basic))

    # agents push here; never gated. Body is JSON whatever the Content-Type says
    @app.post("/metrics", status_code=204)
    async def ingest(request: Request):
        body = await request.body()
        try:
            metric = parse_metric(body)
        except ValueError as e:
            logger.debug("rejected payload on %s: %s", request.url.path, e)
            return JSONResponse({"detail": "bad json"}, status_code=400)
        metric.last_seen = int(time.time())
        await run_in_threadpool(store.upsert, metric.hostname, metric)
        return Response(status_code=204)

    @app.api_route("/api", methods=API_METHODS)
    def api():
        snapshot = store.snapshot()
        return JSONResponse({host: m.model_dump(mode="json") for host, m in snapshot.items()})

    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse("/web/", status_code=302)

    web_dir = config.web_dir or str(WEB_DIR)
    app.mount("/web", StaticFiles(directory=web_dir, html=True), name="web")

    return app
