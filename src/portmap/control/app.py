"""
portmap control-plane FastAPI application.

This module provides the entry point for the forwarding service. The HTTP
control plane and every port listener share one asyncio event loop.

Responsibilities:
    - Owning the binding registry for the process lifetime
    - Serving the bind/unbind/list endpoints
    - Seeding bindings from a static file at startup
    - Closing all listeners on shutdown
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from portmap import __version__
from portmap.config import PortmapConfig, config
from portmap.control import endpoints
from portmap.forward.loader import load_bindings_file
from portmap.forward.registry import BindingRegistry
from portmap.models.enums import LogLevel
from portmap.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


# =============================================================================
# Application Setup
# =============================================================================


def create_app(
    cfg: PortmapConfig | None = None,
    registry: BindingRegistry | None = None,
) -> FastAPI:
    """
    Build the control-plane application.

    Args:
        cfg: Service configuration (defaults to the global config).
        registry: Binding registry (defaults to one built from cfg).
    """
    cfg = cfg or config
    registry = registry or BindingRegistry.from_config(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("portmap service starting up")
        if cfg.BINDINGS_FILE:
            await load_bindings_file(registry, cfg.BINDINGS_FILE)
        yield
        logger.info("portmap service shutting down")
        await registry.close_all()

    app = FastAPI(
        title="portmap",
        description="Dynamic TCP port forwarding control plane",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = cfg
    app.state.registry = registry
    app.include_router(endpoints.router, tags=["Bindings"])
    return app


# =============================================================================
# Server Entry Points
# =============================================================================


def run(cfg: PortmapConfig | None = None):
    """Run the service using uvicorn."""
    import uvicorn

    cfg = cfg or config

    # Configure logging before starting uvicorn
    configure_logging(cfg.LOG_LEVEL, cfg.LOG_FILE)

    uvicorn_level_map = {
        LogLevel.FULL: "debug",
        LogLevel.DEBUG: "debug",
        LogLevel.INFO: "info",
        LogLevel.WARNING: "warning",
    }
    uvicorn_level = uvicorn_level_map.get(cfg.LOG_LEVEL, "info")

    logger.info(
        f"Starting control plane on {cfg.BIND_IP}:{cfg.MANAGEMENT_PORT} "
        f"(show data: {cfg.SHOW_DATA})"
    )

    uvicorn.run(
        create_app(cfg),
        host=cfg.BIND_IP,
        port=cfg.MANAGEMENT_PORT,
        log_level=uvicorn_level,
        log_config=None,  # Disable uvicorn's default logging config (use loguru)
    )
