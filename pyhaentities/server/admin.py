"""
Admin API for the echo node editor

Routes are mounted under settings.admin_prefix (default /amazon-echo-ha):

    - GET  /devices?server=&area=&label=&domain=  -> [{id, name, displayName}]
           &node=<echo device id>               -> unset filters taken from the node's saved linkage
    - GET  /entities?server=&device=              -> [{entity_id, name, displayName}]
    - GET  /filters?server=                       -> {total_devices, areas, labels, domains}
    - GET  /entity_info?server=&entity=           -> {entity_id, state, attributes, detected_modes}
    - POST /discover  {"id": "<hub node id>"}     -> {"ok": true}

Errors are plain text with the message and an X-Error-Kind header:

    400 configuration / invalid_request
    404 not_found
    500 connection / protocol / auth / command / timeout / cancelled / internal
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Request
from fastapi.responses import PlainTextResponse

from pyhaentities.exceptions import NotFoundError, PyHAEntitiesError

logger = logging.getLogger(__name__)

router = APIRouter()


def error_response(status_code: int, message: str, kind: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, headers={"X-Error-Kind": kind})


async def respond(awaitable):
    """Await a registry call and map failures to text error responses."""
    try:
        return await awaitable
    except PyHAEntitiesError as exc:
        logger.warning(f"Admin request failed ({exc.kind}): {exc}")
        return error_response(exc.http_status, str(exc), exc.kind)
    except Exception as exc:
        logger.exception("Admin request failed")
        return error_response(500, str(exc) or type(exc).__name__, "internal")


@router.get("/devices")
async def devices(request: Request, server: Optional[str] = None, area: Optional[str] = None,
                  label: Optional[str] = None, domain: Optional[str] = None, node: Optional[str] = None):
    """List devices, filtered by area, label and entity domain."""
    if node:
        linkage = getattr(request.app.state.nodes.get_node(node), "linkage", None)
        if linkage is None:
            return error_response(404, f"Echo device {node} not found", "not_found")
        saved = linkage.query_args()
        server = server or saved["server"]
        area = area or saved["area"]
        label = label or saved["label"]
        domain = domain or saved["domain"]
    registry = request.app.state.registry
    return await respond(registry.list_devices(server=server, area=area, label=label, domain=domain))


@router.get("/entities")
async def entities(request: Request, server: Optional[str] = None, device: Optional[str] = None):
    """List entities, optionally only those of one device."""
    registry = request.app.state.registry
    return await respond(registry.list_entities(server=server, device=device))


@router.get("/filters")
async def filters(request: Request, server: Optional[str] = None):
    """Filter dropdown values: areas, labels and domain counts."""
    registry = request.app.state.registry
    return await respond(registry.list_filters(server=server))


@router.get("/entity_info")
async def entity_info(request: Request, server: Optional[str] = None, entity: Optional[str] = None):
    """Live state, attributes and detected modes of one entity."""
    if not entity:
        return error_response(400, "Missing entity parameter", "invalid_request")
    registry = request.app.state.registry
    return await respond(registry.get_entity_info(entity, server=server))


@router.post("/discover")
async def discover(request: Request, body: Optional[dict] = Body(default=None)):
    """Trigger discovery on an echo hub node."""
    node_id = body.get("id") if isinstance(body, dict) else None

    async def run():
        node = request.app.state.nodes.get_node(node_id) if node_id else None
        if node is None or not hasattr(node, "discover"):
            raise NotFoundError(f"Hub {node_id} not found")
        await node.discover()
        return {"ok": True}

    return await respond(run())
