# pyHAEntities Module
# -*- coding: utf-8 -*-
"""
 Python module to read Home Assistant device and entity registries for
 Amazon Echo emulation nodes

 Features
    * Talks to Home Assistant over the WebSocket API (one socket per query)
    * Resolves the server to use: Supervisor add-on, explicit config or auto-discovery
    * Lists devices (area / label / domain filters), entities, filter values and entity state
    * Detects mode lists (hvac_modes, effect_list, ...) of an entity
    * Links Amazon Echo device nodes to Home Assistant devices and entities
    * Admin HTTP API (FastAPI) and command line interface

 Classes
    WSAPI(timeout)                   # WebSocket API client
    ConnectionResolver(directory)    # Server / token resolution
    Registry(resolver, client)       # Registry query facade
    AmazonEchoDevice(config)         # Echo device node with HA linkage
    AmazonEchoHub(config)            # Echo hub node

 Functions
    set_debug(toggle, color)         # Enable verbose logging
    registry_for(url, token, timeout) # Registry bound to a single server

 Requirements
    This module requires the following modules: websockets, fastapi, pydantic-settings, uvicorn
    pip install websockets fastapi pydantic-settings uvicorn
"""
import logging
import sys

version_tuple = (0, 1, 0)
version = __version__ = '%d.%d.%d' % version_tuple
__author__ = 'pyhaentities'

log = logging.getLogger(__name__)
log.debug('%s version %s', __name__, __version__)
log.debug('Python %s on %s', sys.version, sys.platform)


def set_debug(toggle=True, color=True):
    """Enable verbose logging"""
    if toggle:
        if color:
            logging.basicConfig(format='\x1b[31;1m%(levelname)s:%(message)s\x1b[0m', level=logging.DEBUG)
        else:
            logging.basicConfig(format='%(levelname)s:%(message)s', level=logging.DEBUG)
        log.setLevel(logging.DEBUG)
        log.debug("%s [%s]\n" % (__name__, __version__))
    else:
        log.setLevel(logging.NOTSET)


from pyhaentities.exceptions import (AuthError, CallCancelledError, CommandError, ConfigurationError,  # noqa: E402
                                     HAConnectionError, HATimeoutError, NotFoundError, ProtocolError,
                                     PyHAEntitiesError)
from pyhaentities.connection import ConnectionResolver, ServerConnection, to_socket_url  # noqa: E402
from pyhaentities.wsapi import WSAPI, CancelToken  # noqa: E402
from pyhaentities.registry import Registry, detect_modes  # noqa: E402
from pyhaentities.echo import AmazonEchoDevice, AmazonEchoHub  # noqa: E402


def registry_for(url: str, token: str, timeout: float = 5.0) -> Registry:
    """Registry bound to a single server (url + long-lived access token)"""
    from pyhaentities.host import NodeRegistry
    nodes = NodeRegistry()
    nodes.create_node({"id": "default", "type": "server", "url": url, "token": token})
    return Registry(ConnectionResolver(nodes), WSAPI(timeout=timeout))
