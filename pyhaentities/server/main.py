"""
pyHAEntities Server - Admin FastAPI Application

Serves the admin API used by the echo node editor to pick Home Assistant
devices and entities, and hosts the echo nodes configured in HA_NODES.

Routing Structure:
    1. Admin API (prefix: settings.admin_prefix, default /amazon-echo-ha):
       - GET  /devices, /entities, /filters, /entity_info
       - POST /discover
    2. Health:
       - GET  /health

Run:
    python -m pyhaentities serve
    uvicorn pyhaentities.server.main:app --port 1880
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from pyhaentities import __version__
from pyhaentities.connection import ConnectionResolver
from pyhaentities.echo import register_types
from pyhaentities.host import NodeRegistry, node_registry
from pyhaentities.registry import Registry
from pyhaentities.server import admin
from pyhaentities.server.config import Settings, get_settings
from pyhaentities.wsapi import WSAPI

logger = logging.getLogger(__name__)


def load_nodes(settings: Settings, nodes: NodeRegistry):
    """Create server config nodes and echo nodes from settings."""
    register_types(nodes)
    for server in settings.servers:
        nodes.create_node(server.to_node_config())
    for config in settings.nodes:
        try:
            nodes.create_node(config)
        except ValueError as e:
            logger.error(f"Skipping node {config.get('id')}: {e}")


def create_app(settings: Optional[Settings] = None, nodes: Optional[NodeRegistry] = None,
               client: Optional[WSAPI] = None) -> FastAPI:
    settings = settings or get_settings()
    nodes = node_registry if nodes is None else nodes

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        logger.info(f"Starting pyHAEntities Server v{__version__}...")
        load_nodes(settings, nodes)
        logger.info(f"Configured {len(settings.servers)} server(s), {len(settings.nodes)} echo node(s)")
        if settings.managed:
            logger.info("Supervisor add-on environment detected - using http://supervisor/core")
        logger.info(f"Admin API at {settings.admin_prefix}, timeout {settings.timeout}s")

        yield

        logger.info("Shutting down pyHAEntities Server...")
        nodes.close_all()

    app = FastAPI(
        title="pyHAEntities Server",
        description="Home Assistant registry admin API for Amazon Echo emulation nodes",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.nodes = nodes
    app.state.registry = Registry(ConnectionResolver(nodes), client or WSAPI(timeout=settings.timeout))
    app.include_router(admin.router, prefix=settings.admin_prefix.rstrip("/"), tags=["Admin"])

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "ok",
            "version": __version__,
            "nodes": len(nodes.nodes()),
            "managed": settings.managed,
        }

    return app


settings = get_settings()

# Configure logging based on HA_DEBUG setting
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = create_app(settings)
