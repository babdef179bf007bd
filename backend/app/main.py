"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine.Engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from app.api import router, websocket_endpoint
from app.config import Settings, get_settings
from app.services import build_services
from app.storage import create_storage

# Startup timeout in seconds
STARTUP_TIMEOUT = 30

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application for the given settings."""
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting LiquidAlpha signal service...")
        logger.info(
            f"Symbols: {', '.join(settings.symbols)} | strategy={settings.strategy.value} "
            f"| storage={settings.storage_backend}"
        )

        try:
            storage = await asyncio.wait_for(create_storage(settings), timeout=STARTUP_TIMEOUT)
        except asyncio.TimeoutError:
            raise RuntimeError(f"Storage initialization timed out after {STARTUP_TIMEOUT}s")

        services = build_services(settings, storage)
        app.state.services = services
        await services.start()
        logger.info(
            f"Market refresh every {settings.market_interval}s, "
            f"signal regeneration every {settings.signal_interval}s"
        )

        try:
            yield
        finally:
            logger.info("Shutting down...")
            await services.close()
            logger.info("Shutdown complete")

    # Create FastAPI app with orjson for faster JSON serialization
    app = FastAPI(
        title="LiquidAlpha Signals",
        description="Real-time trading signals for crypto perpetuals",
        version="0.1.0",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include REST routes
    app.include_router(router, prefix="/api")

    # WebSocket endpoint
    app.websocket("/ws")(websocket_endpoint)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "LiquidAlpha Signals",
            "version": "0.1.0",
            "docs": "/docs",
            "strategy": settings.strategy.value,
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
