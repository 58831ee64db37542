from selenium.common.exceptions import InvalidArgumentException, WebDriverException


class TrueAutomationError(WebDriverException):
    """Base class for every session bootstrap failure."""


class ExecutableNotFoundError(TrueAutomationError):
    """The trueautomation executable is not installed or not on PATH."""


class InvalidBrowserError(TrueAutomationError, TypeError):
    """The requested browser identity is missing or not a non-empty string."""


class InvalidArgumentError(TrueAutomationError, InvalidArgumentException):
    """Browser options were attached under a capability key instead of through their setter."""


class UnsupportedBrowserError(TrueAutomationError):
    """No local driver is known for the browser."""


class HandleClosedError(TrueAutomationError):
    """The session handle has already been terminated."""


class ServiceLifecycleError(TrueAutomationError):
    """The driver service was started twice, stopped before starting, or changed after it was built."""


class InvalidCharacterError(TrueAutomationError, ValueError):
    """A CSS identifier contained a character that cannot be serialized."""
