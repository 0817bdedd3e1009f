"""
Configuration Management for the pyHAEntities admin server

All configuration comes from environment variables (a .env file is loaded by
the CLI before settings are read).

Environment Variables:

    Home Assistant Servers:
        HA_SERVERS          - JSON list of server configs (highest priority)
                              '[{"id": "home", "name": "Home", "url": "http://10.0.1.5:8123", "token": "..."}]'
        HA_URL              - Single server URL (legacy, creates server "default")
        HA_TOKEN            - Single server long-lived access token (legacy)
        SUPERVISOR_TOKEN    - Set by the Supervisor inside an add-on; overrides all servers

    Echo Nodes:
        HA_NODES            - JSON list of echo node configs, e.g.
                              '[{"id": "hub1", "type": "amazon-echo-hub-ha-entities", "port": 80},
                                {"id": "n1", "type": "amazon-echo-device-ha-entities",
                                 "server": "home", "haDeviceId": "dev1", "haEntityId": "light.y"}]'

    Server Settings:
        HA_BIND_ADDRESS     - Server bind address (default: "0.0.0.0")
        HA_PORT             - Server port (default: 1880)
        HA_ADMIN_PREFIX     - Prefix of the admin routes (default: "/amazon-echo-ha")
        HA_TIMEOUT          - WebSocket call timeout in seconds (default: 5)
        HA_DEBUG            - Enable debug logging (default: no)

Server Configuration Priority:

    1. HA_SERVERS JSON
    2. HA_URL / HA_TOKEN (single server "default")

Accessing Configuration:

    from pyhaentities.server.config import get_settings

    settings = get_settings()
    timeout = settings.timeout
"""
import json
import logging
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class ServerConfig(BaseModel):
    """Configuration for a single Home Assistant server."""
    id: str
    name: str = ""
    url: str = ""
    token: str = ""

    def to_node_config(self) -> Dict[str, Any]:
        return {"id": self.id, "type": "server", "name": self.name or self.id,
                "url": self.url, "token": self.token}


class Settings(BaseSettings):
    """Application settings."""

    # Server configuration
    server_host: str = Field(default="0.0.0.0", alias="HA_BIND_ADDRESS")
    server_port: int = Field(default=1880, alias="HA_PORT")
    admin_prefix: str = Field(default="/amazon-echo-ha", alias="HA_ADMIN_PREFIX")
    debug: bool = Field(default=False, alias="HA_DEBUG")

    # Home Assistant connection settings
    timeout: float = Field(default=5.0, alias="HA_TIMEOUT")
    ha_url: Optional[str] = Field(default=None, alias="HA_URL")
    ha_token: Optional[str] = Field(default=None, alias="HA_TOKEN")
    supervisor_token: Optional[str] = Field(default=None, alias="SUPERVISOR_TOKEN")

    # Server and node configuration
    servers: List[ServerConfig] = Field(default_factory=list)
    nodes: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def managed(self) -> bool:
        """Running as a Supervisor add-on."""
        return bool(self.supervisor_token)

    model_config = {
        "env_prefix": "",
        "case_sensitive": False
    }

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._initialize_servers()
        self._initialize_nodes()

    def _initialize_servers(self):
        """Initialize server configurations from environment variables."""
        servers_json = os.getenv("HA_SERVERS")
        if servers_json:
            try:
                self.servers = [ServerConfig(**s) for s in json.loads(servers_json)]
                return
            except Exception as e:
                logger.error(f"Error parsing HA_SERVERS: {e}")

        # Fall back to single server mode
        if self.ha_url:
            self.servers = [
                ServerConfig(id="default", name="Home Assistant", url=self.ha_url, token=self.ha_token or "")
            ]

    def _initialize_nodes(self):
        nodes_json = os.getenv("HA_NODES")
        if not nodes_json:
            return
        try:
            nodes = json.loads(nodes_json)
        except ValueError as e:
            logger.error(f"Error parsing HA_NODES: {e}")
            return
        self.nodes = [n for n in nodes if isinstance(n, dict)]


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings()
