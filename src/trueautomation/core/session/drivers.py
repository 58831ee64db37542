import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Type

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.common.options import BaseOptions
from selenium.webdriver.edge.options import Options as EdgeOptions
from selenium.webdriver.firefox.options import Options as FirefoxOptions
from selenium.webdriver.ie.options import Options as IeOptions
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.safari.options import Options as SafariOptions

from ...data_models import DispatchEntry
from .capabilities import merge, to_capability_dict
from .constants import Browser, DriverName
from .errors import UnsupportedBrowserError
from .service import TrueAutomationService

logger = logging.getLogger(__name__)


class CapabilityOptions(BaseOptions):
    """Hands an already resolved capability set to ``webdriver.Remote`` unchanged."""

    def __init__(self, capabilities: Mapping[str, Any]):
        super().__init__()
        self._caps = dict(capabilities)

    @property
    def default_capabilities(self) -> Dict[str, Any]:
        return {}

    def to_capabilities(self) -> Dict[str, Any]:
        return dict(self._caps)


class SessionFactory:
    """
    Opens sessions for one browser through a running trueautomation service.

    The browser's Selenium option class supplies the default capabilities;
    the resolved capability set is laid on top of them.
    """

    def __init__(self, browser: str, options_class: Type[BaseOptions]):
        self.browser = browser
        self.options_class = options_class

    def default_capabilities(self) -> Dict[str, Any]:
        return to_capability_dict(self.options_class())

    def create_session(self, capabilities: Mapping[str, Any], service: TrueAutomationService) -> WebDriver:
        session_capabilities = merge(self.default_capabilities(), capabilities)
        logger.info(f"Creating {self.browser} session through {service.service_url}")
        driver = webdriver.Remote(
            command_executor=service.service_url,
            options=CapabilityOptions(session_capabilities),
        )
        logger.info(f"{self.browser} session {driver.session_id} created.")
        return driver

    def __repr__(self) -> str:
        return f"SessionFactory(browser={self.browser!r}, options_class={self.options_class.__module__}.{self.options_class.__name__})"


DISPATCH_TABLE: Mapping[str, DispatchEntry] = MappingProxyType({
    Browser.CHROME: DispatchEntry(
        browser=Browser.CHROME,
        factory=SessionFactory(Browser.CHROME, ChromeOptions),
        default_driver=DriverName.CHROME,
    ),
    Browser.FIREFOX: DispatchEntry(
        browser=Browser.FIREFOX,
        factory=SessionFactory(Browser.FIREFOX, FirefoxOptions),
        default_driver=DriverName.FIREFOX,
    ),
    # No bundled driver for IE; the service picks one unless the caller names it.
    Browser.INTERNET_EXPLORER: DispatchEntry(
        browser=Browser.INTERNET_EXPLORER,
        factory=SessionFactory(Browser.INTERNET_EXPLORER, IeOptions),
        default_driver=None,
    ),
    Browser.EDGE: DispatchEntry(
        browser=Browser.EDGE,
        factory=SessionFactory(Browser.EDGE, EdgeOptions),
        default_driver=DriverName.EDGE,
    ),
    Browser.SAFARI: DispatchEntry(
        browser=Browser.SAFARI,
        factory=SessionFactory(Browser.SAFARI, SafariOptions),
        default_driver=DriverName.SAFARI,
    ),
})


def dispatch(browser: str) -> DispatchEntry:
    try:
        return DISPATCH_TABLE[browser]
    except KeyError:
        raise UnsupportedBrowserError(
            f"Do not know how to build driver: {browser}; did you forget to call using_server(url)?"
        ) from None
