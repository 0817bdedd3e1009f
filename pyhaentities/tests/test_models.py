"""Tests for display name resolution of registry records."""
import pytest

from pyhaentities.models import DeviceRecord, EntityRecord, EntityState


@pytest.mark.parametrize("row,expected", [
    ({"id": "d1", "name_by_user": "Mine", "name": "Lamp", "manufacturer": "Acme", "model": "X"}, "Mine"),
    ({"id": "d1", "name_by_user": "Mine"}, "Mine"),
    ({"id": "d1", "name": "Lamp", "manufacturer": "Acme", "model": "X"}, "Lamp"),
    ({"id": "d1", "manufacturer": "Acme", "model": "X"}, "Acme X"),
    ({"id": "d1", "model": "X"}, "X"),
    ({"id": "d1", "name": None}, "d1"),
    ({}, "unknown device"),
])
def test_device_display_name(row, expected):
    assert DeviceRecord.from_api(row).display_name == expected


def test_device_display_record():
    device = DeviceRecord.from_api({"id": "d1", "name": "Lamp", "name_by_user": "Desk"})
    assert device.to_display() == {"id": "d1", "name": "Desk", "displayName": "Desk"}


@pytest.mark.parametrize("row,expected", [
    ({"entity_id": "light.x", "name": "Mine", "original_name": "Lamp"}, "Mine"),
    ({"entity_id": "light.x", "original_name": "Lamp"}, "Lamp"),
    ({"entity_id": "light.x"}, "light.x"),
])
def test_entity_display_name(row, expected):
    assert EntityRecord.from_api(row).display_name == expected


def test_entity_fields():
    entity = EntityRecord.from_api({"entity_id": "binary_sensor.door", "labels": ["a", None, "b"],
                                    "device_id": None})
    assert entity.domain == "binary_sensor"
    assert entity.labels == frozenset({"a", "b"})
    assert entity.device_id == ""


def test_entity_state_ignores_bad_attributes():
    state = EntityState.from_api({"entity_id": "sun.sun", "state": "above_horizon", "attributes": "x"})
    assert state.attributes == {}
    assert state.state == "above_horizon"
