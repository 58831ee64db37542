import asyncio
import shutil

import pytest
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.service import Service

from conftest import FakeDriver
from trueautomation.core.session.bootstrap import Builder, SessionBootstrap
from trueautomation.core.session.drivers import DISPATCH_TABLE, SessionFactory
from trueautomation.core.session.errors import (
    ExecutableNotFoundError,
    InvalidBrowserError,
    UnsupportedBrowserError,
)
from trueautomation.core.config_loader import ConfigLoader
from trueautomation.data_models import CapabilityRequest


def _build_and_wait(bootstrap, request):
    async def _main():
        handle = bootstrap.build(request)
        driver = await handle
        return handle, driver
    return asyncio.run(_main())


class FakeServer:
    def __init__(self):
        self.stop_calls = 0

    def stop(self):
        self.stop_calls += 1


def _jar_bootstrap(config_loader, server):
    return SessionBootstrap(
        config_loader=config_loader,
        server_launcher=lambda jar: ("http://localhost:4444", server),
        environ={"SELENIUM_SERVER_JAR": "/opt/selenium-server.jar"},
    )


def test_build_starts_service_then_creates_session(make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})
    handle, driver = _build_and_wait(bootstrap, CapabilityRequest(capabilities={"browserName": "chrome"}))

    assert isinstance(driver, FakeDriver)
    assert process_events == [("start", handle.port)]
    factory, capabilities, service = created_sessions[0]
    assert factory is DISPATCH_TABLE["chrome"].factory
    assert service is handle.service
    assert capabilities["browserName"] == "chrome"
    assert "taRemoteUrl" not in capabilities

    args = handle.service.command_line_args()
    assert args[0] == f"--port={handle.port}"
    assert args[1].startswith("--log-file=")
    assert "--driver=chromedriver" in args
    assert "--remote" not in args
    assert handle.service.host == "localhost"


@pytest.mark.parametrize("browser", sorted(DISPATCH_TABLE))
def test_build_selects_the_factory_of_each_entry(browser, make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})
    _build_and_wait(bootstrap, CapabilityRequest(capabilities={"browserName": browser}))
    assert created_sessions[0][0] is DISPATCH_TABLE[browser].factory


def test_ie_gets_no_default_driver(make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})
    handle, _ = _build_and_wait(bootstrap, CapabilityRequest(capabilities={"browserName": "ie"}))
    assert not any(a.startswith("--driver") for a in handle.service.command_line_args())
    assert created_sessions[0][0] is DISPATCH_TABLE["internet explorer"].factory


def test_driver_capabilities_override_default_driver(make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})
    request = CapabilityRequest(capabilities={
        "browserName": "chrome",
        "driver": "chromedriver-beta",
        "driverVersion": "121.0",
        "taDebug": True,
    })
    handle, _ = _build_and_wait(bootstrap, request)
    args = handle.service.command_line_args()
    assert "--driver=chromedriver-beta" in args
    assert "--driver-version=121.0" in args
    assert "--ta-debug" in args


def test_remote_url_binds_service(make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})
    request = CapabilityRequest(capabilities={"browserName": "firefox"}, url="http://grid.example:4444/wd/hub")
    handle, _ = _build_and_wait(bootstrap, request)

    assert "--remote" in handle.service.command_line_args()
    assert handle.address == "http://grid.example:4444"
    assert handle.port == 4444
    assert created_sessions[0][1]["taRemoteUrl"] == "http://grid.example:4444/wd/hub"


def test_configured_log_file_is_used(make_config, tmp_path, process_events, created_sessions):
    log_file = tmp_path / "fixed.log"
    bootstrap = SessionBootstrap(config_loader=make_config(log_file=str(log_file)), environ={})
    handle, _ = _build_and_wait(bootstrap, CapabilityRequest(capabilities={"browserName": "chrome"}))
    assert f"--log-file={log_file}" in handle.service.command_line_args()


def test_resolution_errors_raise_before_any_process(make_config, process_events):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})

    async def _main():
        with pytest.raises(InvalidBrowserError):
            bootstrap.build(CapabilityRequest())
        with pytest.raises(UnsupportedBrowserError):
            bootstrap.build(CapabilityRequest(capabilities={"browserName": "opera"}))

    asyncio.run(_main())
    assert process_events == []


def test_missing_executable_aborts_build(tmp_path, monkeypatch, process_events):
    monkeypatch.setattr(shutil, "which", lambda name: None)
    bootstrap = SessionBootstrap(config_loader=ConfigLoader(tmp_path / "missing.json"), environ={})

    async def _main():
        with pytest.raises(ExecutableNotFoundError):
            bootstrap.build(CapabilityRequest(capabilities={"browserName": "chrome"}))

    asyncio.run(_main())
    assert process_events == []


def test_unsupported_browser_stops_the_launched_server(make_config, process_events):
    server = FakeServer()
    bootstrap = _jar_bootstrap(make_config(), server)

    async def _main():
        with pytest.raises(UnsupportedBrowserError):
            bootstrap.build(CapabilityRequest(capabilities={"browserName": "opera"}))

    asyncio.run(_main())
    assert server.stop_calls == 1
    assert process_events == []


def test_missing_executable_stops_the_launched_server(tmp_path, monkeypatch, process_events):
    monkeypatch.setattr(shutil, "which", lambda name: None)
    server = FakeServer()
    bootstrap = _jar_bootstrap(ConfigLoader(tmp_path / "missing.json"), server)

    async def _main():
        with pytest.raises(ExecutableNotFoundError):
            bootstrap.build(CapabilityRequest(capabilities={"browserName": "chrome"}))

    asyncio.run(_main())
    assert server.stop_calls == 1


def test_session_creation_failure_stops_the_launched_server(make_config, process_events, monkeypatch):
    def failing_create_session(self, capabilities, service):
        raise WebDriverException("session not created")

    monkeypatch.setattr(SessionFactory, "create_session", failing_create_session)
    server = FakeServer()
    bootstrap = _jar_bootstrap(make_config(), server)

    async def _main():
        handle = bootstrap.build(CapabilityRequest(capabilities={"browserName": "chrome"}))
        with pytest.raises(WebDriverException, match="session not created"):
            await handle
        return handle

    handle = asyncio.run(_main())
    assert handle.service.stopped
    assert server.stop_calls == 1


def test_launched_server_keeps_running_for_a_live_session(make_config, process_events, created_sessions):
    server = FakeServer()
    handle, _ = _build_and_wait(_jar_bootstrap(make_config(), server),
                                CapabilityRequest(capabilities={"browserName": "chrome"}))

    assert created_sessions[0][1]["taRemoteUrl"] == "http://localhost:4444"
    assert handle.port == 4444
    assert server.stop_calls == 0


def test_session_creation_failure_stops_the_service(make_config, process_events, monkeypatch):
    def failing_create_session(self, capabilities, service):
        raise WebDriverException("session not created")

    monkeypatch.setattr(SessionFactory, "create_session", failing_create_session)
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})

    async def _main():
        handle = bootstrap.build(CapabilityRequest(capabilities={"browserName": "chrome"}))
        with pytest.raises(WebDriverException, match="session not created"):
            await handle
        return handle

    handle = asyncio.run(_main())
    assert process_events == [("start", handle.port), ("stop", handle.port)]
    assert handle.service.stopped


def test_service_start_failure_releases_process(make_config, monkeypatch, created_sessions):
    stopped = []

    def failing_start(self):
        raise WebDriverException("Can not connect to the Service")

    monkeypatch.setattr(Service, "start", failing_start)
    monkeypatch.setattr(Service, "stop", lambda self: stopped.append(self))
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})

    async def _main():
        handle = bootstrap.build(CapabilityRequest(capabilities={"browserName": "chrome"}))
        with pytest.raises(WebDriverException, match="Can not connect"):
            await handle
        return handle

    handle = asyncio.run(_main())
    assert any(s is handle.service for s in stopped)
    assert handle.service.stopped
    assert created_sessions == []


def test_two_builds_are_independent(make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})
    request = {"browserName": "chrome"}

    async def _main():
        first = bootstrap.build(CapabilityRequest(capabilities=request))
        second = bootstrap.build(CapabilityRequest(capabilities=request))
        return first, second, await first, await second

    first, second, first_driver, second_driver = asyncio.run(_main())
    assert first.service is not second.service
    assert first_driver is not second_driver
    assert len([e for e in process_events if e[0] == "start"]) == 2
    assert first.service.command_line_args()[1] != second.service.command_line_args()[1]


def test_environment_overrides_can_be_disabled_in_settings(make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(
        config_loader=make_config(ignore_env=True),
        environ={"SELENIUM_BROWSER": "firefox", "SELENIUM_REMOTE_URL": "http://grid:4444"},
    )
    handle, _ = _build_and_wait(bootstrap, CapabilityRequest(capabilities={"browserName": "chrome"}))
    assert created_sessions[0][0] is DISPATCH_TABLE["chrome"].factory
    assert "--remote" not in handle.service.command_line_args()


def test_builder_end_to_end(make_config, process_events, created_sessions, http_calls):
    calls, _ = http_calls
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})

    async def _main():
        handle = (
            Builder(bootstrap)
            .for_browser("firefox", "120", "linux")
            .with_capabilities({"taDebug": True})
            .build()
        )
        await handle.get("https://example.com")
        report = await handle.terminate()
        return handle, report

    handle, report = asyncio.run(_main())
    capabilities = created_sessions[0][1]
    assert capabilities["browserVersion"] == "120"
    assert capabilities["platformName"] == "linux"
    assert "--ta-debug" in handle.service.command_line_args()
    assert report.ok
    assert [c[0] for c in calls] == ["DELETE", "GET"]
    assert process_events == [("start", handle.port), ("stop", handle.port)]


def test_builder_keeps_server_url_between_builds(make_config, process_events, created_sessions):
    bootstrap = SessionBootstrap(config_loader=make_config(), environ={})
    builder = Builder(bootstrap).for_browser("chrome").using_server("http://grid.example:4444/wd/hub")

    async def _main():
        first = builder.build()
        second = builder.build()
        await first
        await second
        return first, second

    first, second = asyncio.run(_main())
    assert builder.get_server_url() == "http://grid.example:4444/wd/hub"
    assert first.port == second.port == 4444
