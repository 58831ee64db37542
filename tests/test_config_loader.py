import json

from trueautomation.core.config_loader import ConfigLoader


def _write(tmp_path, payload) -> ConfigLoader:
    path = tmp_path / "settings.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return ConfigLoader(path)


def test_missing_file_gives_empty_settings(tmp_path):
    loader = ConfigLoader(tmp_path / "nope.json")
    assert loader.get_settings() == {}
    assert loader.get_trueautomation_setting("log_dir", "log") == "log"


def test_invalid_json_gives_empty_settings(tmp_path):
    loader = _write(tmp_path, "{not json")
    assert loader.get_settings() == {}


def test_non_object_json_gives_empty_settings(tmp_path):
    loader = _write(tmp_path, [1, 2, 3])
    assert loader.get_settings() == {}


def test_dot_path_lookup(tmp_path):
    loader = _write(tmp_path, {
        "trueautomation": {"executable_path": "/opt/ta", "control_request_timeout_seconds": 3},
        "logging": {"level": "DEBUG", "file_handler": {"enabled": True}},
    })
    assert loader.get_trueautomation_setting("executable_path") == "/opt/ta"
    assert loader.get_trueautomation_setting("control_request_timeout_seconds") == 3
    assert loader.get_logging_setting("level") == "DEBUG"
    assert loader.get_setting("logging.file_handler.enabled") is True
    assert loader.get_setting("logging.file_handler.path", "log/client.log") == "log/client.log"


def test_path_through_non_dict_returns_default(tmp_path):
    loader = _write(tmp_path, {"logging": {"level": "INFO"}})
    assert loader.get_setting("logging.level.sublevel", "fallback") == "fallback"
