"""
TrueAutomation.IO client for Selenium.

Resolves a browser request into a running session behind a local
trueautomation driver service:

    handle = Builder().for_browser('chrome').build()
    driver = await handle
    ...
    await handle.terminate()
"""

from .core.config_loader import ConfigLoader
from .core.session import (
    DISPATCH_TABLE,
    Browser,
    Builder,
    CapabilitiesBuilder,
    ExecutableNotFoundError,
    HandleClosedError,
    InvalidArgumentError,
    InvalidBrowserError,
    ServiceBuilder,
    ServiceLifecycleError,
    SessionBootstrap,
    SessionHandle,
    TrueAutomationError,
    UnsupportedBrowserError,
)
from .data_models import CapabilityRequest, EnvironmentOverrides, TerminationReport
from .utils.locators import by_name, by_ta, escape_css, set_inner_html
from .utils.logger import setup_logger

__version__ = "0.3.0"

__all__ = [
    "ConfigLoader",
    "DISPATCH_TABLE",
    "Browser",
    "Builder",
    "CapabilitiesBuilder",
    "ExecutableNotFoundError",
    "HandleClosedError",
    "InvalidArgumentError",
    "InvalidBrowserError",
    "ServiceBuilder",
    "ServiceLifecycleError",
    "SessionBootstrap",
    "SessionHandle",
    "TrueAutomationError",
    "UnsupportedBrowserError",
    "CapabilityRequest",
    "EnvironmentOverrides",
    "TerminationReport",
    "by_name",
    "by_ta",
    "escape_css",
    "set_inner_html",
    "setup_logger",
]
