"""
 Home Assistant registry queries

 Read-only views over the device, entity, area and label registries and the
 live state list of a Home Assistant server. Every operation resolves a
 connection, fans out one WSAPI call per registry (one socket each) and
 shapes the raw rows into display records.

 Class:
    Registry(resolver, client) - Query facade

 Functions:
    list_devices(server, area, label, domain) - Devices matching all given filters
    list_entities(server, device)             - Entities, optionally of one device
    list_filters(server)                      - Areas, labels and entity domains with counts
    get_entity_info(entity_id, server)        - Live state, attributes and detected modes
    detect_modes(attributes)                  - Mode / list attributes of an entity
    settle(*calls)                            - Concurrent calls, first failure raised once all finish

 Every operation takes an optional CancelToken that aborts all of its calls.
"""
import asyncio
import logging
from collections import Counter, defaultdict
from typing import Any, Dict, List, Optional

from pyhaentities.connection import ConnectionResolver, ServerConnection
from pyhaentities.exceptions import CallCancelledError, ConfigurationError, PyHAEntitiesError
from pyhaentities.models import AreaRecord, DeviceRecord, EntityRecord, EntityState, LabelRecord
from pyhaentities.wsapi import WSAPI, CancelToken

log = logging.getLogger(__name__)

# WebSocket commands
DEVICE_REGISTRY = {"type": "config/device_registry/list"}
ENTITY_REGISTRY = {"type": "config/entity_registry/list"}
AREA_REGISTRY = {"type": "config/area_registry/list"}
LABEL_REGISTRY = {"type": "config/label_registry/list"}
GET_STATES = {"type": "get_states"}

# Attributes always checked first, in this order
KNOWN_MODE_KEYS = (
    "hvac_modes",
    "preset_modes",
    "fan_modes",
    "swing_modes",
    "speed_list",
    "effect_list",
    "source_list",
    "supported_color_modes",
    "modes",
)
MODE_SUFFIXES = ("_modes", "_list")


def detect_modes(attributes: Optional[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Collect the mode-like attributes of an entity

    Known keys come first, then any other key ending in _modes or _list
    (case-insensitive). Only non-empty lists are kept.
    """
    modes: Dict[str, List[str]] = {}
    if not isinstance(attributes, dict):
        return modes

    def add(key):
        value = attributes.get(key)
        if key not in modes and isinstance(value, (list, tuple)) and value:
            modes[key] = [str(v) for v in value]

    for key in KNOWN_MODE_KEYS:
        add(key)
    for key in attributes:
        if isinstance(key, str) and key.lower().endswith(MODE_SUFFIXES):
            add(key)
    return modes


async def settle(*calls):
    """Run calls concurrently. The first failure is raised only after every call has finished."""
    results = await asyncio.gather(*calls, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def domain_counts(entities: List[EntityRecord]) -> List[Dict[str, Any]]:
    counts = Counter(e.domain for e in entities if e.entity_id)
    return [{"domain": domain, "count": counts[domain]} for domain in sorted(counts)]


class Registry:
    def __init__(self, resolver: ConnectionResolver, client: WSAPI = None):
        self.resolver = resolver
        self.client = client or WSAPI()

    def _connection(self, server: Optional[str]) -> ServerConnection:
        conn = self.resolver.resolve(server)
        if conn is None:
            raise ConfigurationError("No Home Assistant server configured (missing URL or access token)")
        return conn

    async def _call(self, conn: ServerConnection, request: dict, cancel: CancelToken = None) -> list:
        result = await self.client.call(conn.socket_url, conn.token, request, cancel=cancel)
        return result if isinstance(result, list) else []

    async def _devices(self, conn, cancel=None) -> List[DeviceRecord]:
        rows = await self._call(conn, DEVICE_REGISTRY, cancel)
        return [DeviceRecord.from_api(r) for r in rows if isinstance(r, dict)]

    async def _entities(self, conn, cancel=None) -> List[EntityRecord]:
        rows = await self._call(conn, ENTITY_REGISTRY, cancel)
        return [EntityRecord.from_api(r) for r in rows if isinstance(r, dict)]

    async def _areas(self, conn, cancel=None) -> List[AreaRecord]:
        rows = await self._call(conn, AREA_REGISTRY, cancel)
        return [AreaRecord.from_api(r) for r in rows if isinstance(r, dict)]

    async def _labels(self, conn, cancel=None) -> List[LabelRecord]:
        # Label registry only exists on HA 2024.4+
        try:
            rows = await self._call(conn, LABEL_REGISTRY, cancel)
        except CallCancelledError:
            raise
        except PyHAEntitiesError as exc:
            log.warning(f"Label registry unavailable - continuing without labels: {exc}")
            return []
        return [LabelRecord.from_api(r) for r in rows if isinstance(r, dict)]

    async def list_devices(self, server: Optional[str] = None, area: Optional[str] = None,
                           label: Optional[str] = None, domain: Optional[str] = None,
                           cancel: CancelToken = None) -> List[Dict[str, str]]:
        """
        Devices matching every given filter

        Args:
            server = Server config id (optional)
            area   = Area id of the device or of any of its entities
            label  = Label carried by any of the device's entities
            domain = Domain (light, switch, ...) of any of the device's entities
            cancel = CancelToken aborting every call of the query
        """
        conn = self._connection(server)
        devices, entities = await settle(self._devices(conn, cancel), self._entities(conn, cancel))

        owned = defaultdict(list)
        for entity in entities:
            if entity.device_id:
                owned[entity.device_id].append(entity)

        result = []
        for device in devices:
            mine = owned.get(device.id, [])
            if area and device.area_id != area and not any(e.area_id == area for e in mine):
                continue
            if label and not any(label in e.labels for e in mine):
                continue
            if domain and not any(e.domain == domain for e in mine):
                continue
            result.append(device.to_display())
        log.debug(f"list_devices: {len(result)} of {len(devices)} devices match")
        return result

    async def list_entities(self, server: Optional[str] = None,
                            device: Optional[str] = None,
                            cancel: CancelToken = None) -> List[Dict[str, str]]:
        conn = self._connection(server)
        entities = await self._entities(conn, cancel)
        if device:
            entities = [e for e in entities if e.device_id == device]
        return [e.to_display() for e in entities]

    async def list_filters(self, server: Optional[str] = None, cancel: CancelToken = None) -> Dict[str, Any]:
        """Areas, labels, domain counts and total device count for filter dropdowns"""
        conn = self._connection(server)
        areas, labels, devices, entities = await settle(
            self._areas(conn, cancel), self._labels(conn, cancel), self._devices(conn, cancel),
            self._entities(conn, cancel))
        return {
            "total_devices": len(devices),
            "areas": [a.to_dict() for a in areas],
            "labels": [lb.to_dict() for lb in labels],
            "domains": domain_counts(entities),
        }

    async def get_entity_info(self, entity_id: str, server: Optional[str] = None,
                              cancel: CancelToken = None) -> Dict[str, Any]:
        """
        Live state of one entity

        An entity missing from the state list is not an error: state is None
        and attributes / detected_modes are empty.
        """
        conn = self._connection(server)
        rows = await self._call(conn, GET_STATES, cancel)
        found = None
        for row in rows:
            if isinstance(row, dict) and row.get("entity_id") == entity_id:
                found = EntityState.from_api(row)
                break
        if found is None:
            log.debug(f"Entity {entity_id} not found in state list")
            return {"entity_id": entity_id, "state": None, "attributes": {}, "detected_modes": {}}
        return {
            "entity_id": entity_id,
            "state": found.state,
            "attributes": found.attributes,
            "detected_modes": detect_modes(found.attributes),
        }
