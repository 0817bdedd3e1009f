"""Registry record snapshots returned by the Home Assistant WebSocket API.

Each record is an immutable snapshot built from one raw registry row. Records
are fetched fresh on every query and never cached.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class DeviceRecord:
    """Device registry entry (config/device_registry/list)."""
    id: str
    name_by_user: str = ""
    name: str = ""
    manufacturer: str = ""
    model: str = ""
    area_id: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "DeviceRecord":
        return cls(
            id=_text(data.get("id")),
            name_by_user=_text(data.get("name_by_user")),
            name=_text(data.get("name")),
            manufacturer=_text(data.get("manufacturer")),
            model=_text(data.get("model")),
            area_id=_text(data.get("area_id")),
        )

    @property
    def display_name(self) -> str:
        """User name, platform name, "manufacturer model", then id."""
        if self.name_by_user:
            return self.name_by_user
        if self.name:
            return self.name
        made = " ".join(part for part in (self.manufacturer, self.model) if part).strip()
        if made:
            return made
        return self.id or "unknown device"

    def to_display(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name_by_user or self.name, "displayName": self.display_name}


@dataclass(frozen=True)
class EntityRecord:
    """Entity registry entry (config/entity_registry/list)."""
    entity_id: str
    device_id: str = ""
    area_id: str = ""
    labels: FrozenSet[str] = field(default_factory=frozenset)
    name: str = ""
    original_name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "EntityRecord":
        labels = data.get("labels") or []
        return cls(
            entity_id=_text(data.get("entity_id")),
            device_id=_text(data.get("device_id")),
            area_id=_text(data.get("area_id")),
            labels=frozenset(label for label in labels if isinstance(label, str)),
            name=_text(data.get("name")),
            original_name=_text(data.get("original_name")),
        )

    @property
    def domain(self) -> str:
        # light.kitchen -> light
        return self.entity_id.split(".", 1)[0]

    @property
    def display_name(self) -> str:
        return self.name or self.original_name or self.entity_id or "unknown entity"

    def to_display(self) -> Dict[str, str]:
        return {"entity_id": self.entity_id, "name": self.name or self.original_name,
                "displayName": self.display_name}


@dataclass(frozen=True)
class AreaRecord:
    area_id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AreaRecord":
        return cls(area_id=_text(data.get("area_id")), name=_text(data.get("name")))

    def to_dict(self) -> Dict[str, str]:
        return {"area_id": self.area_id, "name": self.name}


@dataclass(frozen=True)
class LabelRecord:
    label_id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "LabelRecord":
        return cls(label_id=_text(data.get("label_id")), name=_text(data.get("name")))

    def to_dict(self) -> Dict[str, str]:
        return {"label_id": self.label_id, "name": self.name}


@dataclass(frozen=True)
class EntityState:
    """Live state of one entity (get_states)."""
    entity_id: str
    state: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "EntityState":
        attributes = data.get("attributes")
        return cls(
            entity_id=_text(data.get("entity_id")),
            state=data.get("state"),
            attributes=attributes if isinstance(attributes, dict) else {},
        )
