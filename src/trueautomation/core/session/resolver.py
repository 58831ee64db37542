import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import urlparse

from selenium.webdriver.common.options import BaseOptions

from ...data_models import (
    CapabilityRequest,
    EnvironmentOverrides,
    ResolvedCapabilities,
    SELENIUM_BROWSER_ENV,
    SELENIUM_REMOTE_URL_ENV,
    SELENIUM_SERVER_JAR_ENV,
)
from .capabilities import merge
from .constants import (
    BROWSER_ALIASES,
    BROWSER_NAME,
    BROWSER_VERSION,
    OPTION_KEY_SETTERS,
    PLATFORM_NAME,
    TrueAutomationCapability,
)
from .errors import InvalidArgumentError, InvalidBrowserError

logger = logging.getLogger(__name__)

ServerLauncher = Callable[[str], Tuple[str, Any]]


def start_selenium_server(jar_path: str) -> Tuple[str, Any]:
    """Start a Selenium standalone server from ``jar_path`` and return its URL and the server."""
    from selenium.webdriver.remote.server import Server

    server = Server(path=jar_path)
    server.start()
    url = f"http://{server.host or 'localhost'}:{server.port}"
    logger.info(f"Started Selenium server from {jar_path} at {url}")
    return url, server


def stop_selenium_server(server: Any) -> None:
    """Stop a server returned by a launcher. Failures are logged, not raised."""
    if server is None:
        return
    try:
        server.stop()
        logger.info("Stopped Selenium server")
    except Exception as e:
        logger.warning(f"Could not stop Selenium server: {e}")


def normalize_browser(name: str) -> str:
    return BROWSER_ALIASES.get(name, name)


def check_options(capabilities: Mapping[str, Any], key: str, setter: str) -> None:
    """Reject a whole option object stored under a browser option namespace."""
    value = capabilities.get(key)
    if isinstance(value, BaseOptions):
        raise InvalidArgumentError(
            f'{type(value).__name__} is a full capability container and should not be set as key "{key}"; '
            f'set browser-specific options with Builder.{setter}()'
        )


def _browser_identity(overrides: EnvironmentOverrides) -> Dict[str, Any]:
    name, version, platform = overrides.parse_browser()
    identity: Dict[str, Any] = {BROWSER_NAME: name}
    if version:
        identity[BROWSER_VERSION] = version
    if platform:
        identity[PLATFORM_NAME] = platform
    return identity


def _validate_browser(browser: Any) -> str:
    if browser is None:
        raise InvalidBrowserError(
            "Target browser must be a string, but is <None>; did you forget to call for_browser()?"
        )
    if not isinstance(browser, str):
        raise InvalidBrowserError(f"Target browser must be a string, but is <{type(browser).__name__}>")
    if not browser:
        raise InvalidBrowserError("Target browser must be a non-empty string")
    return browser


def _remote_url(
    request: CapabilityRequest,
    overrides: Optional[EnvironmentOverrides],
    server_launcher: ServerLauncher,
) -> Tuple[Optional[str], Any]:
    if overrides is not None:
        if overrides.remote_url:
            logger.debug(f"{SELENIUM_REMOTE_URL_ENV}={overrides.remote_url}")
            return overrides.remote_url, None
        if overrides.server_jar:
            logger.debug(f"{SELENIUM_SERVER_JAR_ENV}={overrides.server_jar}")
            return server_launcher(overrides.server_jar)
    return request.url or None, None


def resolve(
    request: CapabilityRequest,
    env_overrides_enabled: bool = True,
    environ: Optional[Mapping[str, str]] = None,
    server_launcher: ServerLauncher = start_selenium_server,
) -> ResolvedCapabilities:
    """
    Turns a capability request into the final capability set.

    Args:
        request (CapabilityRequest): What the caller asked for. Its ``url`` is
            cleared once a remote URL has been resolved.
        env_overrides_enabled (bool): Honour SELENIUM_BROWSER, SELENIUM_REMOTE_URL
            and SELENIUM_SERVER_JAR. Ignored when the request sets ``ignore_env``.
        environ (Mapping[str, str], optional): Environment to read instead of os.environ.
        server_launcher (Callable[[str], Tuple[str, Any]]): Starts a server from a jar
            path and returns its URL and a handle with a ``stop()`` method.

    Returns:
        ResolvedCapabilities: The merged capabilities, canonical browser name and,
        when a remote URL was found, its host and port. A server started from
        SELENIUM_SERVER_JAR is returned as ``server``.

    Raises:
        InvalidBrowserError: The browser name is missing or not a non-empty string.
        InvalidArgumentError: A Selenium options object was set directly under an
            option namespace key.
    """
    overrides: Optional[EnvironmentOverrides] = None
    if env_overrides_enabled and not request.ignore_env:
        overrides = EnvironmentOverrides.from_environ(environ)

    capabilities = dict(request.capabilities)
    if overrides is not None and overrides.browser is not None:
        logger.debug(f"{SELENIUM_BROWSER_ENV}={overrides.browser}")
        capabilities = merge(capabilities, _browser_identity(overrides))

    browser = normalize_browser(_validate_browser(capabilities.get(BROWSER_NAME)))
    capabilities = merge(capabilities, {BROWSER_NAME: browser})

    browser_options = request.browser_options.get(browser)
    if browser_options is not None:
        logger.debug(f"Applying {type(browser_options).__name__} for {browser}")
        capabilities = merge(capabilities, browser_options)

    for key, setter in OPTION_KEY_SETTERS.items():
        check_options(capabilities, key, setter)

    url, server = _remote_url(request, overrides, server_launcher)
    host: Optional[str] = None
    port: Optional[int] = None
    if url:
        capabilities = merge(capabilities, {TrueAutomationCapability.REMOTE_URL: url})
        request.url = None
        parsed = urlparse(url)
        try:
            port = parsed.port
        except ValueError as e:
            stop_selenium_server(server)
            raise InvalidArgumentError(f"Remote URL {url!r} has an invalid port: {e}") from e
        host = parsed.hostname
        logger.info(f"Using remote WebDriver server {url}")

    return ResolvedCapabilities(
        capabilities=capabilities,
        browser=browser,
        remote_url=url,
        host=host,
        port=port,
        server=server,
    )
