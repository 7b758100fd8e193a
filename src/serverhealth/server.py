"""FastAPI application serving the dashboard page and the health snapshot."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from . import __version__
from .collector.manager import CollectorManager
from .config import ServerHealthConfig


def create_app(config: ServerHealthConfig, manager: CollectorManager | None = None) -> FastAPI:
    """Build the app. Background collection runs for the app's lifespan."""
    manager = manager or CollectorManager(config)
    index_path = Path(config.server.web_root) / "index.html"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager.start()
        try:
            yield
        finally:
            manager.stop()

    app = FastAPI(title="Server Health Dashboard", version=__version__, lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"])
    app.state.manager = manager

    # CORSMiddleware only answers requests that carry an Origin header
    @app.middleware("http")
    async def allow_any_origin(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response

    @app.get("/", tags=["dashboard"])
    def index() -> Response:
        try:
            html = index_path.read_text(encoding="utf-8")
        except OSError:
            html = ""
        if not html:
            return PlainTextResponse("index.html not found", status_code=404)
        return HTMLResponse(html)

    # sync handler: runs in the threadpool since collection may block
    @app.get("/api/health", tags=["health"])
    def health() -> Response:
        return Response(content=manager.collect_json(), media_type="application/json")

    return app
