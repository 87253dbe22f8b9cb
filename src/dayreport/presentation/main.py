from __future__ import annotations

import errno
import logging
import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import inject
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.dayreport.application.fetcher import SourceFetcher
from src.dayreport.application.notifications import NotificationBus
from src.dayreport.application.registry import TaskRegistry
from src.dayreport.presentation.routes import router as api_router
from src.dayreport.presentation.websockets import ConnectionManager, router as ws_router
from src.setup.api_config import ApiSettings, get_api_settings
from src.setup.app_config import configure_di
from src.setup.logging_config import configure_logging
from src.setup.pipeline_config import PipelineSettings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    pipeline = inject.instance(PipelineSettings)
    pipeline.DATA_ROOT.mkdir(parents=True, exist_ok=True)
    logger.info("Serving", extra={"data_root": str(pipeline.DATA_ROOT)})
    yield
    await inject.instance(TaskRegistry).aclose()
    await inject.instance(SourceFetcher).aclose()


def create_app(settings: ApiSettings | None = None) -> FastAPI:
    settings = settings or get_api_settings()
    configure_di()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Paginated API ingestion into daily reports with live progress",
        lifespan=_lifespan,
    )
    # Browser pages call /health to discover a running instance.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=settings.CORS_MAX_AGE_SEC,
    )
    app.state.settings = settings
    app.state.connections = ConnectionManager(
        inject.instance(NotificationBus), settings.WS_MAX_CONNECTIONS
    )
    app.include_router(api_router, prefix="")
    app.include_router(ws_router, prefix="")
    return app


def find_available_port(host: str, start: int, attempts: int) -> int:
    """Return the first port from ``start`` that can be bound, trying ``attempts`` ports."""
    for port in range(start, start + max(attempts, 1)):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as candidate:
            try:
                candidate.bind((host, port))
            except OSError as exc:
                if exc.errno != errno.EADDRINUSE:
                    raise
                logger.warning("Port in use, trying next", extra={"port": port})
                continue
        return port
    raise OSError(errno.EADDRINUSE, f"No free port in {start}..{start + attempts - 1}")


def main() -> None:
    settings = get_api_settings()
    configure_logging(settings.LOG_LEVEL)
    port = find_available_port(settings.HOST, settings.PORT, settings.PORT_FALLBACK_ATTEMPTS)
    settings = settings.model_copy(update={"PORT": port})
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        ws_ping_interval=settings.WS_PING_INTERVAL_SEC,
        ws_ping_timeout=settings.WS_PING_INTERVAL_SEC,
        ws_max_size=settings.WS_MAX_MESSAGE_BYTES + 1024,
        log_config=None,
    )


if __name__ == "__main__":
    main()
