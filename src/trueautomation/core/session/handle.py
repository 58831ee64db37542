import asyncio
import logging
from typing import Any, Callable, Optional, Set

import requests
from selenium.webdriver.remote.webdriver import WebDriver

from ...data_models import TerminationReport, TerminationState
from .constants import DEFAULT_CONTROL_REQUEST_TIMEOUT
from .errors import HandleClosedError
from .service import TrueAutomationService

logger = logging.getLogger(__name__)


class SessionHandle:
    """
    Caller-facing handle for a session that may still be starting.

    ``await handle`` gives the WebDriver once the service is up and the
    session exists. Driver methods and properties can be used on the handle
    right away: each use is scheduled as a task and delivered to the driver
    in call order once it is ready. ``address`` and ``port`` never wait.

    ``terminate()`` closes the window and shuts the service down through its
    HTTP control endpoint, then stops the local process. After that every
    operation raises HandleClosedError.
    """

    def __init__(
        self,
        pending: "asyncio.Future[WebDriver]",
        service: TrueAutomationService,
        control_timeout: float = DEFAULT_CONTROL_REQUEST_TIMEOUT,
    ):
        self._pending = pending
        self._service = service
        self._control_timeout = control_timeout
        self._state = TerminationState.NOT_STARTED
        self._lock = asyncio.Lock()
        self._operations: Set[asyncio.Task] = set()

    @property
    def address(self) -> str:
        return self._service.service_url

    @property
    def port(self) -> int:
        return self._service.port

    @property
    def service(self) -> TrueAutomationService:
        return self._service

    @property
    def state(self) -> TerminationState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is not TerminationState.NOT_STARTED

    def _ensure_open(self) -> None:
        if self.closed:
            raise HandleClosedError(f"Session handle for {self.address} is {self._state.value}")

    def __await__(self):
        self._ensure_open()
        return self._pending.__await__()

    async def __aenter__(self) -> "SessionHandle":
        await self
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self.closed:
            await self.terminate()

    def run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> "asyncio.Task[Any]":
        """Schedule ``fn(driver, *args, **kwargs)`` to run in a worker thread once the session is ready."""
        self._ensure_open()
        task = asyncio.get_running_loop().create_task(self._deliver(fn, args, kwargs))
        self._operations.add(task)
        task.add_done_callback(self._operations.discard)
        return task

    async def _deliver(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        # The lock hands out turns in arrival order, which keeps delivery FIFO.
        async with self._lock:
            driver = await self._pending
            return await asyncio.to_thread(fn, driver, *args, **kwargs)

    def __getattr__(self, name: str):
        """
        Forwards public names to the driver.

        Methods of the WebDriver class come back as callables that schedule the
        call. Any other name (properties, and instance attributes such as
        ``session_id`` or ``caps``) is read on the driver as a task; a name the
        driver lacks fails with AttributeError when that task is awaited.
        """
        if name.startswith('_'):
            raise AttributeError(name)
        self._ensure_open()
        member = getattr(WebDriver, name, None)
        if member is None or isinstance(member, property):
            return self.run(getattr, name)

        def forward(*args: Any, **kwargs: Any) -> "asyncio.Task[Any]":
            return self.run(lambda driver: getattr(driver, name)(*args, **kwargs))

        forward.__name__ = name
        return forward

    async def terminate(self) -> TerminationReport:
        """
        Closes the active window, shuts the service down and stops the local process.

        Operations queued before the call finish first, even if not started yet.
        Both control requests are best effort: a failed window close does not
        skip the shutdown request, and neither failure keeps the local process
        running. Failures are logged and listed in the returned report, whose
        ``ok`` follows the shutdown request.

        Raises:
            HandleClosedError: terminate() was already called.
        """
        if self.closed:
            raise HandleClosedError(f"Session handle for {self.address} was already terminated")
        self._state = TerminationState.TERMINATING
        report = TerminationReport()
        try:
            # Operations queued before this call may not have reached the lock yet.
            if self._operations:
                await asyncio.wait(set(self._operations))
            async with self._lock:
                try:
                    driver = await self._pending
                except Exception as e:
                    # The bootstrap already released the service for a session that never started.
                    logger.error(f"Session at {self.address} never became available: {e}")
                    report.errors.append(f"session: {e}")
                    return report

                report.session_id = driver.session_id
                try:
                    report.window_closed = await self._close_window(driver.session_id, report)
                    report.service_shutdown = await self._shutdown_service(report)
                finally:
                    await self._release(report)
        finally:
            self._state = TerminationState.TERMINATED

        if report.ok:
            logger.info(f"Session {report.session_id} terminated.")
        return report

    quit = terminate

    async def _close_window(self, session_id: str, report: TerminationReport) -> bool:
        url = f"{self.address}/session/{session_id}/window/"
        try:
            response = await asyncio.to_thread(
                requests.delete,
                url,
                headers={'Content-Type': 'application/json'},
                timeout=self._control_timeout,
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not close window of session {session_id}: {e}")
            report.errors.append(f"window close: {e}")
            return False

    async def _shutdown_service(self, report: TerminationReport) -> bool:
        url = f"{self.address}/shutdown"
        self._service.mark_remote_shutdown()
        try:
            response = await asyncio.to_thread(requests.get, url, timeout=self._control_timeout)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"Shutdown request to {url} failed: {e}")
            report.errors.append(f"shutdown: {e}")
            return False

    async def _release(self, report: TerminationReport) -> None:
        try:
            await asyncio.to_thread(self._service.stop)
        except Exception as e:
            logger.error(f"Error stopping trueautomation service at {self.address}: {e}", exc_info=True)
            report.errors.append(f"stop: {e}")

    def __repr__(self) -> str:
        return f"<SessionHandle address={self.address!r} state={self._state.value}>"
