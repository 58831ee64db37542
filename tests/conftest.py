import json
from pathlib import Path

import pytest
import requests
from selenium.webdriver.common.service import Service

from trueautomation.core.config_loader import ConfigLoader
from trueautomation.core.session.drivers import SessionFactory


class FakeDriver:
    def __init__(self, session_id: str = "abc123"):
        self.session_id = session_id
        self.title = "Example Domain"
        self.calls = []

    def get(self, url):
        self.calls.append(("get", url))

    def execute_script(self, script, *args):
        self.calls.append(("execute_script", script, args))
        return None


class FakeResponse:
    def __init__(self, status_code: int = 200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


@pytest.fixture(autouse=True)
def clean_selenium_env(monkeypatch):
    for name in ("SELENIUM_BROWSER", "SELENIUM_REMOTE_URL", "SELENIUM_SERVER_JAR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_config(tmp_path: Path):
    """Writes a settings.json with a fake executable path and a tmp log dir."""
    def _make(**trueautomation) -> ConfigLoader:
        block = {
            "executable_path": str(tmp_path / "bin" / "trueautomation"),
            "log_dir": str(tmp_path / "log"),
        }
        block.update(trueautomation)
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"trueautomation": block}), encoding="utf-8")
        return ConfigLoader(path)
    return _make


@pytest.fixture
def process_events(monkeypatch):
    """Replaces Selenium's process spawning/termination with recorders."""
    events = []
    started = []

    def fake_start(self):
        started.append(self)
        events.append(("start", self.port))

    def fake_stop(self):
        # Services left over from earlier tests may be collected (and stopped) here.
        if any(s is self for s in started):
            events.append(("stop", self.port))

    monkeypatch.setattr(Service, "start", fake_start)
    monkeypatch.setattr(Service, "stop", fake_stop)
    return events


@pytest.fixture
def created_sessions(monkeypatch):
    """Replaces session creation with a FakeDriver and records (factory, capabilities, service)."""
    created = []

    def fake_create_session(self, capabilities, service):
        created.append((self, dict(capabilities), service))
        return FakeDriver()

    monkeypatch.setattr(SessionFactory, "create_session", fake_create_session)
    return created


@pytest.fixture
def http_calls(monkeypatch):
    """Records control endpoint calls; tests can swap in failures via the returned dict."""
    calls = []
    behaviour = {"delete": FakeResponse(), "get": FakeResponse()}

    def _respond(kind):
        outcome = behaviour[kind]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fake_delete(url, **kwargs):
        calls.append(("DELETE", url, kwargs.get("headers")))
        return _respond("delete")

    def fake_get(url, **kwargs):
        calls.append(("GET", url, kwargs.get("headers")))
        return _respond("get")

    monkeypatch.setattr(requests, "delete", fake_delete)
    monkeypatch.setattr(requests, "get", fake_get)
    return calls, behaviour
