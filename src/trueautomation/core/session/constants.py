from pathlib import Path

from selenium.webdriver.common.desired_capabilities import DesiredCapabilities

TRUEAUTOMATION_EXE = "trueautomation"

# Relative to the working directory, like the service's own default
DEFAULT_LOG_DIR: Path = Path("log")
LOG_FILE_PREFIX = "trueautomation"

DEFAULT_CONTROL_REQUEST_TIMEOUT = 10

BROWSER_NAME = "browserName"
BROWSER_VERSION = "browserVersion"
PLATFORM_NAME = "platformName"


class TrueAutomationCapability:
    DRIVER = "driver"
    DRIVER_VERSION = "driverVersion"
    DEBUG = "taDebug"
    REMOTE_URL = "taRemoteUrl"


class Browser:
    CHROME = DesiredCapabilities.CHROME["browserName"]
    FIREFOX = DesiredCapabilities.FIREFOX["browserName"]
    INTERNET_EXPLORER = DesiredCapabilities.INTERNETEXPLORER["browserName"]
    EDGE = DesiredCapabilities.EDGE["browserName"]
    SAFARI = DesiredCapabilities.SAFARI["browserName"]


BROWSER_ALIASES = {
    "ie": Browser.INTERNET_EXPLORER,
}


class DriverName:
    CHROME = "chromedriver"
    FIREFOX = "geckodriver"
    EDGE = "microsoftwebdriver"
    SAFARI = "safaridriver"


# Option namespaces that must hold a nested options map, never a whole option object,
# mapped to the builder setter that should have been used instead.
OPTION_KEY_SETTERS = {
    "goog:chromeOptions": "set_chrome_options",
    "moz:firefoxOptions": "set_firefox_options",
    "safari.options": "set_safari_options",
}
