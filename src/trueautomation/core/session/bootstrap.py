import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

from selenium.webdriver.common.options import BaseOptions
from selenium.webdriver.remote.webdriver import WebDriver

from ..config_loader import ConfigLoader
from ...data_models import CapabilityRequest
from .capabilities import merge
from .constants import (
    BROWSER_NAME,
    BROWSER_VERSION,
    DEFAULT_CONTROL_REQUEST_TIMEOUT,
    DEFAULT_LOG_DIR,
    PLATFORM_NAME,
    Browser,
    TrueAutomationCapability,
)
from .drivers import SessionFactory, dispatch
from .handle import SessionHandle
from .resolver import ServerLauncher, resolve, start_selenium_server, stop_selenium_server
from .service import ServiceBuilder, TrueAutomationService

logger = logging.getLogger(__name__)

BrowserOptions = Union[BaseOptions, Mapping[str, Any]]


class SessionBootstrap:
    """
    Turns a capability request into a SessionHandle.

    Resolution, dispatch and service configuration happen synchronously, so
    their errors surface before any process exists. Starting the service and
    creating the session run as a task on the current event loop; a failure
    there stops whatever was already started and then reaches the caller
    through the handle. A Selenium server started for SELENIUM_SERVER_JAR is
    stopped when any later step fails.
    """

    def __init__(
        self,
        config_loader: Optional[ConfigLoader] = None,
        server_launcher: ServerLauncher = start_selenium_server,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.config_loader = config_loader if config_loader else ConfigLoader()
        self.server_launcher = server_launcher
        self.environ = environ

        self.executable_path: Optional[str] = self.config_loader.get_trueautomation_setting('executable_path')
        self.log_dir = self.config_loader.get_trueautomation_setting('log_dir', str(DEFAULT_LOG_DIR))
        self.log_file: Optional[str] = self.config_loader.get_trueautomation_setting('log_file')
        self.control_timeout = float(self.config_loader.get_trueautomation_setting(
            'control_request_timeout_seconds', DEFAULT_CONTROL_REQUEST_TIMEOUT))
        self.ignore_env = bool(self.config_loader.get_trueautomation_setting('ignore_env', False))

    def build(self, request: CapabilityRequest) -> SessionHandle:
        loop = asyncio.get_running_loop()

        resolved = resolve(
            request,
            env_overrides_enabled=not self.ignore_env,
            environ=self.environ,
            server_launcher=self.server_launcher,
        )
        capabilities = resolved.capabilities
        try:
            entry = dispatch(resolved.browser)

            driver_name = capabilities.get(TrueAutomationCapability.DRIVER) or entry.default_driver
            driver_version = capabilities.get(TrueAutomationCapability.DRIVER_VERSION)

            builder = (
                ServiceBuilder(self.executable_path, log_dir=self.log_dir)
                .logging_to(self.log_file)
                .driver_to(driver_name, driver_version)
                .ta_debug(bool(capabilities.get(TrueAutomationCapability.DEBUG)))
            )
            if resolved.remote_url:
                builder.ta_remote(True).bind(resolved.host, resolved.port)
            service = builder.build()
        except Exception:
            stop_selenium_server(resolved.server)
            raise

        logger.info(f"Bootstrapping {resolved.browser} session (driver={driver_name}, service={service.service_url})")
        pending = loop.create_task(self._open_session(entry.factory, capabilities, service, resolved.server))
        return SessionHandle(pending, service, control_timeout=self.control_timeout)

    async def _open_session(
        self,
        factory: SessionFactory,
        capabilities: Dict[str, Any],
        service: TrueAutomationService,
        server: Any = None,
    ) -> WebDriver:
        try:
            await asyncio.to_thread(service.start)
        except Exception as e:
            logger.error(f"Failed to start trueautomation service: {e}")
            await self._release(service, server)
            raise
        logger.info(f"trueautomation service ready at {service.service_url}")

        try:
            return await asyncio.to_thread(factory.create_session, capabilities, service)
        except Exception as e:
            logger.error(f"Failed to create {factory.browser} session: {e}", exc_info=True)
            await self._release(service, server)
            raise

    async def _release(self, service: TrueAutomationService, server: Any = None) -> None:
        if service.started and not service.stopped:
            try:
                await asyncio.to_thread(service.stop)
            except Exception as e:
                logger.warning(f"Could not stop trueautomation service at {service.service_url}: {e}")
        if server is not None:
            await asyncio.to_thread(stop_selenium_server, server)


class Builder:
    """
    Fluent front end for SessionBootstrap.

    Example:
        handle = Builder().for_browser('chrome').set_chrome_options(options).build()
        driver = await handle
    """

    def __init__(self, bootstrap: Optional[SessionBootstrap] = None):
        self._bootstrap = bootstrap
        self._capabilities: Dict[str, Any] = {}
        self._browser_options: Dict[str, BrowserOptions] = {}
        self._url: Optional[str] = None
        self._ignore_env = False

    def for_browser(self, name: str, version: Optional[str] = None, platform: Optional[str] = None) -> "Builder":
        identity: Dict[str, Any] = {BROWSER_NAME: name}
        if version:
            identity[BROWSER_VERSION] = version
        if platform:
            identity[PLATFORM_NAME] = platform
        self._capabilities = merge(self._capabilities, identity)
        return self

    def with_capabilities(self, capabilities: Union[Mapping[str, Any], BaseOptions]) -> "Builder":
        self._capabilities = merge(self._capabilities, capabilities)
        return self

    def get_capabilities(self) -> Dict[str, Any]:
        return dict(self._capabilities)

    def set_chrome_options(self, options: BrowserOptions) -> "Builder":
        self._browser_options[Browser.CHROME] = options
        return self

    def set_firefox_options(self, options: BrowserOptions) -> "Builder":
        self._browser_options[Browser.FIREFOX] = options
        return self

    def set_edge_options(self, options: BrowserOptions) -> "Builder":
        self._browser_options[Browser.EDGE] = options
        return self

    def set_ie_options(self, options: BrowserOptions) -> "Builder":
        self._browser_options[Browser.INTERNET_EXPLORER] = options
        return self

    def set_safari_options(self, options: BrowserOptions) -> "Builder":
        self._browser_options[Browser.SAFARI] = options
        return self

    def using_server(self, url: str) -> "Builder":
        self._url = url
        return self

    def get_server_url(self) -> Optional[str]:
        return self._url

    def disable_environment_overrides(self) -> "Builder":
        self._ignore_env = True
        return self

    def build(self) -> SessionHandle:
        """Start a new, independent session. Must be called from a running event loop."""
        if self._bootstrap is None:
            self._bootstrap = SessionBootstrap()
        request = CapabilityRequest(
            capabilities=dict(self._capabilities),
            browser_options=dict(self._browser_options),
            url=self._url,
            ignore_env=self._ignore_env,
        )
        return self._bootstrap.build(request)
