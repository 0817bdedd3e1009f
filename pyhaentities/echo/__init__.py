from pyhaentities.echo.device import AmazonEchoDevice, Linkage, as_object_payload
from pyhaentities.echo.hub import AmazonEchoHub, HubState


def register_types(registry):
    """Register the echo node types with a NodeRegistry"""
    registry.register_type(AmazonEchoDevice.type, AmazonEchoDevice)
    registry.register_type(AmazonEchoHub.type, AmazonEchoHub)
