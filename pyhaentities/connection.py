"""
 Home Assistant server connection resolution

 Picks the server (URL + access token) to talk to:

    1. Managed add-on environment - SUPERVISOR_TOKEN set: use the Supervisor
       proxy at http://supervisor/core, nothing else is consulted
    2. Explicit server config id - used if it carries a URL and a token
    3. Auto-discovery - first usable config of kind "server" in directory order
    4. Nothing usable - None (callers raise ConfigurationError)

 Config handles come in several shapes (accessor methods, plain fields,
 nested config / client objects, credentials dicts). They are read with the
 ordered extractor tables TOKEN_EXTRACTORS and URL_EXTRACTORS below; the
 first non-empty value wins and no extractor ever raises.
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Tuple

log = logging.getLogger(__name__)

SERVER_KIND = "server"
WS_PATH = "/api/websocket"

# Managed (Supervisor add-on) environment
SUPERVISOR_TOKEN_ENV = "SUPERVISOR_TOKEN"
SUPERVISOR_URL = "http://supervisor/core"


def to_socket_url(base_url: str) -> str:
    """
    Convert an HTTP(S) origin to the WebSocket API URL

    http://host:8123   -> ws://host:8123/api/websocket
    https://h/         -> wss://h/api/websocket
    host:8123          -> ws://host:8123/api/websocket
    ws://h/api/websocket is returned unchanged
    """
    url = (base_url or "").strip()
    if not url:
        return ""
    lowered = url.lower()
    if lowered.startswith("https://"):
        url = "wss://" + url[len("https://"):]
    elif lowered.startswith("http://"):
        url = "ws://" + url[len("http://"):]
    elif "://" not in url:
        url = "ws://" + url
    url = url.rstrip("/")
    if not url.endswith(WS_PATH):
        url += WS_PATH
    return url


@dataclass(frozen=True)
class ServerConnection:
    base_url: str
    socket_url: str
    token: str
    is_managed: bool = False

    @classmethod
    def from_base_url(cls, base_url: str, token: str, is_managed: bool = False) -> "ServerConnection":
        return cls(base_url=(base_url or "").strip(), socket_url=to_socket_url(base_url),
                   token=(token or "").strip(), is_managed=is_managed)

    @property
    def usable(self) -> bool:
        return bool(self.socket_url and self.token)

    def __repr__(self):
        # Keep tokens out of logs
        return f"ServerConnection(base_url={self.base_url!r}, managed={self.is_managed})"


@dataclass(frozen=True)
class ConfigDescriptor:
    id: str
    kind: str = SERVER_KIND
    name: str = ""


class ConfigDirectory(Protocol):
    """Read-only view of the host's configuration nodes"""

    def list_configs(self, kind: str) -> Sequence[ConfigDescriptor]:
        ...

    def get_instance(self, config_id: str) -> Any:
        ...


# Extractors

Extractor = Callable[[Any], str]


def _member(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def accessor(name: str) -> Extractor:
    def extract(obj):
        method = _member(obj, name)
        if not callable(method):
            return ""
        try:
            value = method()
        except Exception as exc:
            log.debug(f"config accessor {name}() failed: {exc}")
            return ""
        return value if isinstance(value, str) else ""
    extract.__name__ = f"{name}()"
    return extract


def lookup(*path: str) -> Extractor:
    def extract(obj):
        value = obj
        for name in path:
            value = _member(value, name)
        return value if isinstance(value, str) else ""
    extract.__name__ = ".".join(path)
    return extract


# Precedence order: first non-empty value wins
TOKEN_EXTRACTORS: Tuple[Extractor, ...] = (
    accessor("get_token"),
    lookup("token"),
    lookup("access_token"),
    lookup("credentials", "access_token"),
    lookup("config", "token"),
    lookup("config", "access_token"),
    lookup("client", "token"),
)

URL_EXTRACTORS: Tuple[Extractor, ...] = (
    accessor("get_url"),
    lookup("url"),
    lookup("base_url"),
    lookup("host"),
    lookup("config", "url"),
    lookup("config", "host"),
    lookup("client", "url"),
    lookup("client", "base_url"),
)


def extract_first(obj: Any, extractors: Sequence[Extractor]) -> str:
    for extract in extractors:
        value = extract(obj).strip()
        if value:
            return value
    return ""


def connection_from_config(config: Any) -> Optional[ServerConnection]:
    """Build a ServerConnection from any config handle shape (None if not usable)"""
    if config is None:
        return None
    conn = ServerConnection.from_base_url(extract_first(config, URL_EXTRACTORS),
                                          extract_first(config, TOKEN_EXTRACTORS))
    return conn if conn.usable else None


class ConnectionResolver:
    def __init__(self, directory: ConfigDirectory, environ: Mapping[str, str] = None):
        self.directory = directory
        self.environ = os.environ if environ is None else environ

    def managed_connection(self) -> Optional[ServerConnection]:
        token = (self.environ.get(SUPERVISOR_TOKEN_ENV) or "").strip()
        if not token:
            return None
        return ServerConnection.from_base_url(SUPERVISOR_URL, token, is_managed=True)

    def resolve(self, config_id: Optional[str] = None) -> Optional[ServerConnection]:
        """
        Return the connection to use, or None if nothing usable is configured

        Args:
            config_id = Preferred server config id (optional)
        """
        managed = self.managed_connection()
        if managed is not None:
            log.debug("Using managed Supervisor connection")
            return managed

        if config_id:
            conn = connection_from_config(self.directory.get_instance(config_id))
            if conn is not None:
                log.debug(f"Using server config {config_id}")
                return conn
            log.debug(f"Server config {config_id} is missing or incomplete - trying auto-discovery")

        for descriptor in self.directory.list_configs(SERVER_KIND):
            instance = self.directory.get_instance(descriptor.id)
            conn = connection_from_config(instance if instance is not None else descriptor)
            if conn is not None:
                log.debug(f"Auto-selected server config {descriptor.id}")
                return conn

        log.debug("No usable Home Assistant server config found")
        return None
