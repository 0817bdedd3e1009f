# pyHAEntities Module - Command Line Interface
# -*- coding: utf-8 -*-
"""
 Python module to read Home Assistant device and entity registries

 Usage:
    python -m pyhaentities devices [-area ID] [-label ID] [-domain light]
    python -m pyhaentities entities [-device ID]
    python -m pyhaentities filters
    python -m pyhaentities info -entity light.kitchen
    python -m pyhaentities serve
    python -m pyhaentities version

 The server comes from -url / -token, or from the environment (HA_SERVERS,
 HA_URL / HA_TOKEN, SUPERVISOR_TOKEN). A .env file in the current directory
 is loaded first.
"""

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

# Modules
from pyhaentities import version, set_debug
from pyhaentities.connection import ConnectionResolver
from pyhaentities.exceptions import PyHAEntitiesError
from pyhaentities.host import NodeRegistry
from pyhaentities.registry import Registry
from pyhaentities.wsapi import WSAPI

# Setup parser and groups
p = argparse.ArgumentParser(prog="PyHAEntities", description=f"PyHAEntities Module v{version}")
subparsers = p.add_subparsers(dest="command", title='commands (run <command> -h to see usage information)',
                              required=True)

devices_args = subparsers.add_parser("devices", help='List Home Assistant devices')
devices_args.add_argument("-area", type=str, default=None, help="Only devices in this area id")
devices_args.add_argument("-label", type=str, default=None, help="Only devices with an entity carrying this label id")
devices_args.add_argument("-domain", type=str, default=None, help="Only devices with an entity in this domain")

entities_args = subparsers.add_parser("entities", help='List Home Assistant entities')
entities_args.add_argument("-device", type=str, default=None, help="Only entities of this device id")

subparsers.add_parser("filters", help='List areas, labels and entity domains')

info_args = subparsers.add_parser("info", help='Show state, attributes and modes of an entity')
info_args.add_argument("-entity", type=str, required=True, help="Entity id, e.g. light.kitchen")

subparsers.add_parser("serve", help='Run the admin HTTP server')

subparsers.add_parser("version", help='Print version information')

# Global options
p.add_argument("-debug", action="store_true", default=False, help="Enable debug output")
p.add_argument("-url", type=str, default=None, help="Home Assistant URL, e.g. http://homeassistant.local:8123")
p.add_argument("-token", type=str, default=None, help="Long-lived access token")
p.add_argument("-server", type=str, default=None, help="Server config id from HA_SERVERS")
p.add_argument("-timeout", type=float, default=None, help="Seconds to wait for Home Assistant")


def build_registry(args, settings) -> Registry:
    nodes = NodeRegistry()
    if args.url:
        nodes.create_node({"id": "cli", "type": "server", "url": args.url, "token": args.token or ""})
    for server in settings.servers:
        nodes.create_node(server.to_node_config())
    timeout = args.timeout if args.timeout is not None else settings.timeout
    return Registry(ConnectionResolver(nodes), WSAPI(timeout=timeout))


def run(args, settings):
    registry = build_registry(args, settings)
    server = "cli" if args.url else args.server
    if args.command == 'devices':
        return registry.list_devices(server=server, area=args.area, label=args.label, domain=args.domain)
    if args.command == 'entities':
        return registry.list_entities(server=server, device=args.device)
    if args.command == 'filters':
        return registry.list_filters(server=server)
    return registry.get_entity_info(args.entity, server=server)


def main():
    if len(sys.argv) == 1:
        p.print_help(sys.stderr)
        sys.exit(1)

    # parse args
    args = p.parse_args()
    command = args.command

    # Set Debug Mode
    if args.debug:
        set_debug(True)

    load_dotenv()
    from pyhaentities.server.config import get_settings
    settings = get_settings()

    if command == 'version':
        print("pyHAEntities [%s]" % version)

    elif command == 'serve':
        import uvicorn
        uvicorn.run("pyhaentities.server.main:app", host=settings.server_host, port=settings.server_port)

    else:
        try:
            result = asyncio.run(run(args, settings))
        except PyHAEntitiesError as exc:
            print(f"ERROR ({exc.kind}): {exc}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(result, indent=4))


if __name__ == "__main__":
    main()
