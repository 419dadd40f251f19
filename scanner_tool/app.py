"""FastAPI application factory."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.deps import get_manager
from .api.router import api_router
from .config import settings
from .errors import ScannerToolError
from .services.scan_manager import ScanJobManager

# Configure logging for our modules
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(name)s: %(message)s")
logging.getLogger("scanner_tool").setLevel(logging.DEBUG)

logger = logging.getLogger(__name__)


async def _inject_events(manager: ScanJobManager, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            manager.registry.simulate_events()
        except Exception:
            logger.exception("Scanner event injection failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = app.dependency_overrides.get(get_manager, get_manager)()
    events_task = None
    if settings.event_interval:
        logger.info(f"Injecting scanner events every {settings.event_interval}s")
        events_task = asyncio.create_task(_inject_events(manager, settings.event_interval))

    yield

    if events_task is not None:
        events_task.cancel()
    await manager.shutdown()


async def scanner_tool_error_handler(request: Request, exc: ScannerToolError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="scanner-tool",
        version="0.1.0",
        description="Simulated scanners and scan jobs for client tooling",
        lifespan=lifespan,
    )

    app.add_exception_handler(ScannerToolError, scanner_tool_error_handler)
    app.include_router(api_router, prefix="/api")

    return app
