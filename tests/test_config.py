import json
from pathlib import Path

import pytest

from a2a_chat.runtime.config import build_config, parse_bool
from a2a_chat.runtime.errors import ConfigError


def test_defaults(tmp_path):
    cfg = build_config(overrides={"server_url": "http://x"}, environ={}, cwd=tmp_path)
    assert cfg.server_url == "http://x"
    assert cfg.streaming is False
    assert cfg.timeout_s is None
    assert cfg.token is None
    assert cfg.registry_path == "/agents"
    assert cfg.color == "auto"
    assert cfg.log_level == "WARNING"


def test_missing_server_is_config_error(tmp_path):
    with pytest.raises(ConfigError):
        build_config(environ={}, cwd=tmp_path)


def test_layers_override_in_order(tmp_path):
    (tmp_path / "a2a-chat.json").write_text(
        json.dumps({"server": "http://file", "streaming": True, "registryPath": "registry", "timeoutS": 30}),
        encoding="utf-8",
    )
    env = {"A2A_CHAT_SERVER": "http://env", "A2A_CHAT_TIMEOUT": "10"}
    cfg = build_config(overrides={"streaming": False, "server_url": None}, environ=env, cwd=tmp_path)
    assert cfg.server_url == "http://env"
    assert cfg.streaming is False
    assert cfg.timeout_s == 10.0
    assert cfg.registry_path == "/registry"


def test_explicit_config_path(tmp_path):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"server_url": "http://custom", "download_dir": str(tmp_path / "dl")}), encoding="utf-8")
    cfg = build_config(config_path=path, environ={})
    assert cfg.server_url == "http://custom"
    assert cfg.download_dir == Path(tmp_path / "dl")


def test_invalid_config_file(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{nope", encoding="utf-8")
    with pytest.raises(ConfigError):
        build_config(config_path=path, environ={})


def test_invalid_values(tmp_path):
    with pytest.raises(ConfigError):
        build_config(overrides={"server_url": "http://x", "streaming": "maybe"}, environ={}, cwd=tmp_path)
    with pytest.raises(ConfigError):
        build_config(overrides={"server_url": "http://x", "timeout_s": "soon"}, environ={}, cwd=tmp_path)
    with pytest.raises(ConfigError):
        build_config(overrides={"server_url": "http://x", "color": "rainbow"}, environ={}, cwd=tmp_path)


def test_default_token_from_environment(tmp_path):
    cfg = build_config(overrides={"server_url": "http://x"}, environ={"A2A_CHAT_TOKEN": "tok"}, cwd=tmp_path)
    assert cfg.token == "tok"
    assert "tok" not in repr(cfg)


def test_credential_reference(tmp_path, monkeypatch):
    monkeypatch.setenv("MY_AGENT_TOKEN", "abc")
    cfg = build_config(overrides={"server_url": "http://x", "credential": "env:MY_AGENT_TOKEN"}, environ={}, cwd=tmp_path)
    assert cfg.token == "abc"
    cfg = build_config(overrides={"server_url": "http://x", "credential": "inline:xyz"}, environ={}, cwd=tmp_path)
    assert cfg.token == "xyz"


def test_unresolvable_credential(tmp_path, monkeypatch):
    monkeypatch.delenv("MISSING_TOKEN_VAR", raising=False)
    with pytest.raises(ConfigError):
        build_config(overrides={"server_url": "http://x", "credential": "env:MISSING_TOKEN_VAR"}, environ={}, cwd=tmp_path)


@pytest.mark.parametrize("value,expected", [("yes", True), ("0", False), (True, True), ("OFF", False)])
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected
