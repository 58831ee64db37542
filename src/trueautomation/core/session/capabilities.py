from typing import Any, Dict, Mapping, Optional, Union

from selenium.webdriver.common.options import BaseOptions

from ...data_models import Capabilities
from .constants import TrueAutomationCapability

CapabilitySource = Union[Mapping[str, Any], BaseOptions, None]


def to_capability_dict(source: CapabilitySource) -> Capabilities:
    """Return a new dict of capabilities from a mapping or a Selenium options object."""
    if source is None:
        return {}
    if isinstance(source, BaseOptions):
        return dict(source.to_capabilities())
    if isinstance(source, Mapping):
        return dict(source)
    raise TypeError(f"Cannot read capabilities from {type(source).__name__}")


def merge(base: CapabilitySource, overlay: CapabilitySource) -> Capabilities:
    """
    Merges ``overlay`` on top of ``base`` and returns a new capability dict.

    Keys from the overlay win. Neither input is modified, and merging the same
    overlay twice gives the same result as merging it once.
    """
    merged = to_capability_dict(base)
    merged.update(to_capability_dict(overlay))
    return merged


class CapabilitiesBuilder:
    """Fluent helper for the trueautomation specific capabilities."""

    def __init__(self, capabilities: Optional[Mapping[str, Any]] = None):
        self._capabilities: Dict[str, Any] = dict(capabilities) if capabilities else {}

    def with_remote_address(self, remote_address: str) -> "CapabilitiesBuilder":
        self._capabilities[TrueAutomationCapability.REMOTE_URL] = remote_address
        return self

    def with_ta_debug(self) -> "CapabilitiesBuilder":
        self._capabilities[TrueAutomationCapability.DEBUG] = True
        return self

    def with_driver(self, name: str, version: Optional[str] = None) -> "CapabilitiesBuilder":
        self._capabilities[TrueAutomationCapability.DRIVER] = name
        if version:
            self._capabilities[TrueAutomationCapability.DRIVER_VERSION] = version
        return self

    def build(self) -> Dict[str, Any]:
        return dict(self._capabilities)
