"""
Session bootstrap package.

Public API:
- Builder: Fluent entry point that resolves capabilities and starts a session.
- SessionBootstrap: Resolve -> dispatch -> start service -> create session.
- SessionHandle: Deferred handle returned by Builder.build() / SessionBootstrap.build().
- ServiceBuilder: Launch arguments for the trueautomation driver service.
"""

from .bootstrap import Builder, SessionBootstrap
from .capabilities import CapabilitiesBuilder, merge
from .constants import Browser, DriverName, TrueAutomationCapability
from .drivers import DISPATCH_TABLE, SessionFactory, dispatch
from .errors import (
    ExecutableNotFoundError,
    HandleClosedError,
    InvalidArgumentError,
    InvalidBrowserError,
    ServiceLifecycleError,
    TrueAutomationError,
    UnsupportedBrowserError,
)
from .handle import SessionHandle
from .locator import locate
from .resolver import resolve
from .service import ServiceBuilder, TrueAutomationService

__all__ = [
    "Builder",
    "SessionBootstrap",
    "SessionHandle",
    "CapabilitiesBuilder",
    "merge",
    "Browser",
    "DriverName",
    "TrueAutomationCapability",
    "DISPATCH_TABLE",
    "SessionFactory",
    "dispatch",
    "ExecutableNotFoundError",
    "HandleClosedError",
    "InvalidArgumentError",
    "InvalidBrowserError",
    "ServiceLifecycleError",
    "TrueAutomationError",
    "UnsupportedBrowserError",
    "locate",
    "resolve",
    "ServiceBuilder",
    "TrueAutomationService",
]
