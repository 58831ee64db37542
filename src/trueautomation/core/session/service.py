import logging
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from selenium.webdriver.common import utils
from selenium.webdriver.common.service import Service

from .constants import DEFAULT_LOG_DIR, LOG_FILE_PREFIX
from .errors import ServiceLifecycleError
from .locator import locate

logger = logging.getLogger(__name__)

_last_log_stamp = 0


def _next_log_stamp() -> int:
    """Millisecond timestamp, bumped so that consecutive calls never repeat."""
    global _last_log_stamp
    stamp = max(int(time.time() * 1000), _last_log_stamp + 1)
    _last_log_stamp = stamp
    return stamp


class TrueAutomationService(Service):
    """
    The trueautomation driver service process.

    Selenium handles spawning the process and waiting until it accepts
    connections. On top of that the service may be started once and stopped
    once; anything else raises ServiceLifecycleError.
    """

    def __init__(
        self,
        executable_path: str,
        service_args: Sequence[str] = (),
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.service_args: List[str] = list(service_args)
        self.host: str = host or "localhost"
        self._state = "created"
        self._remote_shutdown_sent = False
        super().__init__(executable_path=executable_path, port=port or 0, env=env)

    @property
    def service_url(self) -> str:
        return f"http://{utils.join_host_port(self.host, self.port)}"

    @property
    def started(self) -> bool:
        return self._state != "created"

    @property
    def stopped(self) -> bool:
        return self._state == "stopped"

    def command_line_args(self) -> List[str]:
        return [f"--port={self.port}"] + self.service_args

    def start(self) -> None:
        if self._state != "created":
            raise ServiceLifecycleError(f"trueautomation service on port {self.port} was already started")
        self._state = "started"
        logger.info(f"Starting trueautomation service: {self.path} {' '.join(self.command_line_args())}")
        super().start()

    def stop(self) -> None:
        if self._state == "created":
            raise ServiceLifecycleError("Cannot stop a trueautomation service that was never started")
        if self._state == "stopped":
            raise ServiceLifecycleError(f"trueautomation service on port {self.port} was already stopped")
        self._state = "stopped"
        logger.info(f"Stopping trueautomation service at {self.service_url}")
        super().stop()

    def mark_remote_shutdown(self) -> None:
        """Record that /shutdown was already requested so stop() does not request it again."""
        self._remote_shutdown_sent = True

    def send_remote_shutdown_command(self) -> None:
        if self._remote_shutdown_sent:
            return
        self._remote_shutdown_sent = True
        super().send_remote_shutdown_command()


class ServiceBuilder:
    """
    Collects the launch arguments of a trueautomation service.

    Every setter returns the builder so calls can be chained. Arguments are
    always emitted in the same order (log file, driver, driver version, debug,
    remote, extra arguments) no matter in which order the setters ran.
    """

    def __init__(self, executable_path: Optional[str] = None, log_dir: Union[str, Path] = DEFAULT_LOG_DIR):
        self._executable = locate(executable_path)
        self._log_dir = Path(log_dir)
        self._log_file: Optional[str] = None
        self._driver: Optional[str] = None
        self._driver_version: Optional[str] = None
        self._debug = False
        self._remote = False
        self._extra_args: List[str] = []
        self._host: Optional[str] = None
        self._port: Optional[int] = None
        self._env: Optional[Dict[str, str]] = None
        self._finalized = False

    @property
    def executable(self) -> str:
        return self._executable

    @property
    def log_file(self) -> Optional[str]:
        return self._log_file

    def _ensure_mutable(self) -> None:
        if self._finalized:
            raise ServiceLifecycleError("ServiceBuilder was already built; create a new builder to change arguments")

    def logging_to(self, path: Optional[Union[str, Path]] = None) -> "ServiceBuilder":
        """Log to ``path``, or to a new timestamped file under the log directory when omitted."""
        self._ensure_mutable()
        if not path:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            path = self._log_dir / f"{LOG_FILE_PREFIX}-{_next_log_stamp()}.log"
        self._log_file = str(path)
        return self

    def driver_to(self, name: Optional[str] = None, version: Optional[str] = None) -> "ServiceBuilder":
        """Select the driver (and its version) the service starts; the service default is used otherwise."""
        self._ensure_mutable()
        self._driver = name or None
        self._driver_version = version if name and version else None
        return self

    def ta_debug(self, enabled: bool) -> "ServiceBuilder":
        self._ensure_mutable()
        self._debug = bool(enabled)
        return self

    def ta_remote(self, enabled: bool) -> "ServiceBuilder":
        self._ensure_mutable()
        self._remote = bool(enabled)
        return self

    def bind(self, host: Optional[str] = None, port: Optional[int] = None) -> "ServiceBuilder":
        self._ensure_mutable()
        self._host = host or None
        self._port = int(port) if port else None
        return self

    def add_arguments(self, *args: str) -> "ServiceBuilder":
        self._ensure_mutable()
        self._extra_args.extend(str(a) for a in args)
        return self

    def set_environment(self, env: Optional[Mapping[str, str]]) -> "ServiceBuilder":
        self._ensure_mutable()
        self._env = dict(env) if env is not None else None
        return self

    @property
    def arguments(self) -> List[str]:
        args: List[str] = []
        if self._log_file:
            args.append(f"--log-file={self._log_file}")
        if self._driver:
            args.append(f"--driver={self._driver}")
            if self._driver_version:
                args.append(f"--driver-version={self._driver_version}")
        if self._debug:
            args.append("--ta-debug")
        if self._remote:
            args.append("--remote")
        args.extend(self._extra_args)
        return args

    def build(self) -> TrueAutomationService:
        """Freeze the builder and return a service ready to be started."""
        self._ensure_mutable()
        self._finalized = True
        service = TrueAutomationService(
            self._executable,
            self.arguments,
            host=self._host,
            port=self._port,
            env=self._env,
        )
        logger.debug(f"Built trueautomation service descriptor: {service.path} {service.command_line_args()}")
        return service

    finalize = build
