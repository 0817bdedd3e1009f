"""
 Amazon Echo Device node (HA Entities version)

 Links an emulated Echo device to a Home Assistant device / entity. Inbound
 messages addressed to this device (msg["deviceid"] == own id) get the
 linkage ids added to their payload:

    {"deviceid": "n1", "payload": "42"}
      -> {"deviceid": "n1", "payload": {"value": "42", "haDeviceId": "dev1", "haEntityId": "light.y"}}

 Every message is forwarded, enriched or not.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pyhaentities.host import Node


@dataclass(frozen=True)
class Linkage:
    """Stored association between an echo device and Home Assistant

    Only ha_device_id, ha_entity_id and own_device_id drive enrichment.
    server, area, label and domain are the editor's picker selections, kept
    with the node config and available as registry query arguments through
    query_args().
    """
    name: str = ""
    server: str = ""
    area: str = ""
    label: str = ""
    domain: str = ""
    ha_device_id: str = ""
    ha_entity_id: str = ""
    own_device_id: str = ""

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Linkage":
        return cls(
            name=config.get("name") or "",
            server=config.get("server") or "",
            area=config.get("area") or "",
            label=config.get("label") or "",
            domain=config.get("domain") or "",
            ha_device_id=config.get("haDeviceId") or "",
            ha_entity_id=config.get("haEntityId") or "",
            own_device_id=config.get("deviceid") or "",
        )

    def query_args(self) -> Dict[str, Optional[str]]:
        """Saved picker selections as Registry.list_devices() keyword arguments"""
        return {"server": self.server or None, "area": self.area or None,
                "label": self.label or None, "domain": self.domain or None}


def as_object_payload(payload: Any) -> Dict[str, Any]:
    """Object payloads are used as-is, scalars (and None) become {"value": payload}"""
    if isinstance(payload, dict):
        return payload
    return {"value": payload}


class AmazonEchoDevice(Node):
    type = "amazon-echo-device-ha-entities"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.linkage = Linkage.from_config(config)
        self.topic = config.get("topic") or ""
        self.device_type = config.get("deviceType") or ""
        self.on("input", self.on_input)

    @property
    def device_id(self) -> str:
        return self.linkage.own_device_id or self.id

    def enrich(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        if msg.get("deviceid") == self.device_id:
            payload = as_object_payload(msg.get("payload"))
            payload["haDeviceId"] = self.linkage.ha_device_id
            payload["haEntityId"] = self.linkage.ha_entity_id
            msg["payload"] = payload
        return msg

    def on_input(self, msg, send, done):
        try:
            send(self.enrich(msg))
        except Exception as exc:
            self.error(exc, msg)
        finally:
            if done:
                done()
