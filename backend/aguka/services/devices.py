"""
Device access for a proctored attempt.

The browser owns the camera, microphone and geolocation APIs; the server sees
what the client reports when the candidate starts the test.
"""
from typing import Optional, Protocol

from ..core.exceptions import DevicePermissionError
from ..schemas.test import DevicePermissions, LocationFix


class DeviceGateway(Protocol):
    def acquire_media(self) -> None:
        """Raise DevicePermissionError unless camera and microphone are granted."""

    def acquire_location(self) -> LocationFix:
        """Return one location fix or raise DevicePermissionError."""


class ClientReportedDevices:
    def __init__(self, permissions: DevicePermissions, location: Optional[LocationFix] = None):
        self.permissions = permissions
        self.location = location

    def acquire_media(self) -> None:
        if not self.permissions.camera:
            raise DevicePermissionError("camera")
        if not self.permissions.microphone:
            raise DevicePermissionError("microphone")

    def acquire_location(self) -> LocationFix:
        if not self.permissions.location or self.location is None:
            raise DevicePermissionError("location")
        return self.location
