"""
 Minimal in-process flow host

 Stand-in for the flow runtime the echo nodes live in. It only provides
 what the nodes and the admin server need:

    Node                - id / type / name, input and close handlers, send, status, log / warn / error
    HomeAssistantServer - "server" config node carrying url + credentials
    NodeRegistry        - node types, live instances and the config directory
                          used by ConnectionResolver

 There is no scheduler and nothing is persisted.
"""
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Type

from pyhaentities.connection import ConfigDescriptor, SERVER_KIND

log = logging.getLogger(__name__)


class Node:
    type = "node"

    def __init__(self, config: Dict[str, Any]):
        self.config = dict(config)
        self.id = str(config.get("id") or uuid.uuid4().hex[:16])
        self.name = config.get("name") or ""
        self.wires: List[Callable[[dict], None]] = []
        self.last_status: Dict[str, Any] = {}
        self._handlers: Dict[str, List[Callable]] = {"input": [], "close": []}
        self._log = logging.getLogger(f"{__name__}.{self.type}")

    def on(self, event: str, handler: Callable):
        self._handlers.setdefault(event, []).append(handler)

    def receive(self, msg: dict):
        """Deliver an inbound message to the input handlers"""
        for handler in self._handlers["input"]:
            handler(msg, self.send, lambda err=None: None)

    def send(self, msg: dict):
        for wire in self.wires:
            wire(msg)

    def status(self, status: Dict[str, Any]):
        self.last_status = dict(status)
        self._log.debug(f"[{self.id}] status {status}")

    def log(self, message: str):
        self._log.info(f"[{self.id}] {message}")

    def warn(self, message: str):
        self._log.warning(f"[{self.id}] {message}")

    def error(self, err: Any, msg: Optional[dict] = None):
        self._log.error(f"[{self.id}] {err}")

    def close(self):
        for handler in self._handlers["close"]:
            handler()


class HomeAssistantServer(Node):
    """Home Assistant server config node"""
    type = SERVER_KIND

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.url = config.get("url") or ""
        self.credentials = {"access_token": config.get("token") or ""}


class NodeRegistry:
    """Node types and live node instances (one per process)"""

    def __init__(self):
        self.types: Dict[str, Type[Node]] = {}
        self._nodes: Dict[str, Node] = {}
        self.register_type(HomeAssistantServer.type, HomeAssistantServer)

    def register_type(self, type_name: str, cls: Type[Node]):
        self.types[type_name] = cls

    def create_node(self, config: Dict[str, Any]) -> Node:
        type_name = config.get("type")
        cls = self.types.get(type_name)
        if cls is None:
            raise ValueError(f"Unknown node type: {type_name}")
        node = cls(config)
        self._nodes[node.id] = node
        log.debug(f"Created {type_name} node {node.id}")
        return node

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def close_all(self):
        for node in self.nodes():
            try:
                node.close()
            except Exception as exc:
                log.error(f"Error closing node {node.id}: {exc}")
        self._nodes.clear()

    # ConfigDirectory
    def list_configs(self, kind: str) -> List[ConfigDescriptor]:
        return [ConfigDescriptor(id=n.id, kind=n.type, name=n.name) for n in self._nodes.values() if n.type == kind]

    def get_instance(self, config_id: str) -> Optional[Node]:
        return self._nodes.get(config_id)


node_registry = NodeRegistry()
