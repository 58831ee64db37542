import os
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

SELENIUM_BROWSER_ENV = "SELENIUM_BROWSER"
SELENIUM_REMOTE_URL_ENV = "SELENIUM_REMOTE_URL"
SELENIUM_SERVER_JAR_ENV = "SELENIUM_SERVER_JAR"

# Values are strings, booleans or nested maps; Selenium option objects also
# emit numbers and lists inside their nested maps.
CapabilityValue = Union[str, bool, int, float, List[Any], Dict[str, Any]]
Capabilities = Dict[str, CapabilityValue]


class EnvironmentOverrides(BaseModel):
    model_config = ConfigDict(frozen=True)

    browser: Optional[str] = Field(None, description="Browser selector in the form name[:version[:platform]].")
    remote_url: Optional[str] = Field(None, description="URL of a remote WebDriver server.")
    server_jar: Optional[str] = Field(None, description="Path of a Selenium standalone server jar to start locally.")

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvironmentOverrides":
        """Snapshot the override variables. This is the only place they are read."""
        env = os.environ if environ is None else environ
        return cls(
            browser=env.get(SELENIUM_BROWSER_ENV) or None,
            remote_url=env.get(SELENIUM_REMOTE_URL_ENV) or None,
            server_jar=env.get(SELENIUM_SERVER_JAR_ENV) or None,
        )

    def parse_browser(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """
        Splits the browser selector into (name, version, platform).

        Only the first three colon separated fields are used. Empty version or
        platform fields come back as None; the name is returned as given so an
        empty name can be reported as malformed.
        """
        if self.browser is None:
            return None, None, None
        fields = self.browser.split(':')[:3]
        fields += [''] * (3 - len(fields))
        name, version, platform = fields
        return name, version or None, platform or None


class CapabilityRequest(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    capabilities: Dict[str, Any] = Field(default_factory=dict, description="Caller supplied capabilities.")
    browser_options: Dict[str, Any] = Field(
        default_factory=dict,
        description="Per-browser option objects (Selenium options or plain maps) keyed by canonical browser name.",
    )
    url: Optional[str] = Field(None, description="Caller specified remote server URL.")
    ignore_env: bool = Field(False, description="Skip SELENIUM_* environment overrides for this request.")


class ResolvedCapabilities(BaseModel):
    capabilities: Dict[str, Any]
    browser: str
    remote_url: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    server: Any = Field(None, description="Selenium server started for SELENIUM_SERVER_JAR, if any; has a stop() method.")


class DispatchEntry(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    browser: str
    factory: Any = Field(..., description="SessionFactory that opens sessions for this browser.")
    default_driver: Optional[str] = Field(None, description="Driver passed to the service when the caller names none.")


class TerminationState(str, Enum):
    NOT_STARTED = "not_started"
    TERMINATING = "terminating"
    TERMINATED = "terminated"


class TerminationReport(BaseModel):
    session_id: Optional[str] = None
    window_closed: bool = False
    service_shutdown: bool = False
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.service_shutdown


if __name__ == '__main__':
    overrides = EnvironmentOverrides(browser="chrome:114:linux")
    print(overrides.parse_browser())
    print(TerminationReport(session_id="abc", window_closed=True, service_shutdown=True).model_dump_json(indent=2))
