"""
 Amazon Echo Hub node (HA Entities version)

 Hub for the emulated Echo devices. The discovery responder itself
 (SSDP / Hue bridge emulation) is not implemented: start() and discover()
 only drive the hub state machine and log.

    STOPPED -> STARTING -> READY -> STOPPING -> STOPPED
    STARTING / READY -> FAILED on error
"""
import enum
from typing import Any, Dict

from pyhaentities.host import Node

DEFAULT_PORT = 80


class HubState(enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    READY = "ready"
    STOPPING = "stopping"
    FAILED = "failed"


# state -> (fill, shape) for node status
STATUS_STYLE = {
    HubState.STOPPED: ("grey", "ring"),
    HubState.STARTING: ("yellow", "ring"),
    HubState.READY: ("green", "dot"),
    HubState.STOPPING: ("yellow", "ring"),
    HubState.FAILED: ("red", "dot"),
}

TRANSITIONS = {
    HubState.STOPPED: {HubState.STARTING},
    HubState.STARTING: {HubState.READY, HubState.FAILED},
    HubState.READY: {HubState.STOPPING, HubState.FAILED},
    HubState.STOPPING: {HubState.STOPPED},
    HubState.FAILED: {HubState.STARTING, HubState.STOPPING},
}


class AmazonEchoHub(Node):
    type = "amazon-echo-hub-ha-entities"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.port = int(config.get("port") or DEFAULT_PORT)
        self.devices = list(config.get("devices") or [])
        self.state = HubState.STOPPED
        self.on("input", self.on_input)
        self.on("close", self.stop)

    def _transition(self, state: HubState, text: str = ""):
        if state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid hub transition {self.state.value} -> {state.value}")
        self.state = state
        fill, shape = STATUS_STYLE[state]
        self.status({"fill": fill, "shape": shape, "text": text or state.value})

    async def start(self):
        if self.state == HubState.READY:
            return
        self._transition(HubState.STARTING)
        if not 0 < self.port < 65536:
            self._transition(HubState.FAILED, f"invalid port {self.port}")
            raise ValueError(f"Invalid hub port: {self.port}")
        # TODO: bind the SSDP responder on self.port once discovery is implemented
        self.log(f"Amazon Echo Hub (HA Entities) started on port {self.port}")
        self._transition(HubState.READY, f"port {self.port}")

    async def discover(self) -> int:
        """Run a discovery announcement and return the number of announced devices"""
        if self.state != HubState.READY:
            await self.start()
        self.log(f"Amazon Echo Hub (HA Entities) discovery requested for {len(self.devices)} device(s)")
        return len(self.devices)

    def stop(self):
        if self.state not in (HubState.READY, HubState.FAILED):
            return
        self._transition(HubState.STOPPING)
        self.log("Amazon Echo Hub (HA Entities) stopped")
        self._transition(HubState.STOPPED)

    def on_input(self, msg, send, done):
        try:
            send(msg)
        except Exception as exc:
            self.error(exc, msg)
        finally:
            if done:
                done()
