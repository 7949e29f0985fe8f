from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError, CredentialResolutionError
from .secrets import DEFAULT_TOKEN_ENV, CredentialRef, resolve_credential

DEFAULT_CONFIG_FILE = "a2a-chat.json"
ENV_PREFIX = "A2A_CHAT_"

_COLOR_MODES = {"auto", "always", "never"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class ClientConfig:
    server_url: str
    streaming: bool = False
    token: str | None = field(default=None, repr=False)
    # None disables the HTTP timeout; agent turns can legitimately run for a long time.
    timeout_s: float | None = None
    download_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    registry_path: str = "/agents"
    color: str = "auto"
    log_level: str = "WARNING"
    log_file: Path | None = None


def parse_bool(value: Any, *, field_name: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ConfigError(f"{field_name} must be a boolean (got {value!r}).")


def _parse_timeout(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in {"", "none", "off"}:
        return None
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"timeout_s must be a number (got {value!r}).") from e
    if out <= 0:
        raise ConfigError("timeout_s must be positive.")
    return out


def _snake(key: str) -> str:
    out: list[str] = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


def load_config_file(path: Path) -> dict[str, Any]:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object.")
    # Accept both camelCase and snake_case keys; `server` is an alias for `server_url`.
    out: dict[str, Any] = {}
    for key, value in raw.items():
        name = _snake(str(key))
        if name == "server":
            name = "server_url"
        out[name] = value
    return out


def env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    mapping = {
        "SERVER": "server_url",
        "STREAMING": "streaming",
        "TIMEOUT": "timeout_s",
        "DOWNLOAD_DIR": "download_dir",
        "REGISTRY_PATH": "registry_path",
        "COLOR": "color",
        "LOG_LEVEL": "log_level",
        "LOG_FILE": "log_file",
        "CREDENTIAL": "credential",
    }
    for suffix, name in mapping.items():
        value = environ.get(ENV_PREFIX + suffix)
        if value is not None and value != "":
            out[name] = value
    return out


def build_config(
    *,
    overrides: Mapping[str, Any] | None = None,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> ClientConfig:
    """
    Merge defaults < JSON file < environment < `overrides` (command line).

    `overrides` entries set to None are ignored.
    """

    env = os.environ if environ is None else environ
    merged: dict[str, Any] = {}

    if config_path is not None:
        merged.update(load_config_file(config_path))
    else:
        default_path = (cwd or Path.cwd()) / DEFAULT_CONFIG_FILE
        if default_path.is_file():
            merged.update(load_config_file(default_path))

    merged.update(env_layer(env))
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    server_url = str(merged.get("server_url") or "").strip()
    if not server_url:
        raise ConfigError(f"No server URL configured (use --server or {ENV_PREFIX}SERVER).")

    cfg = ClientConfig(server_url=server_url)

    if "streaming" in merged:
        cfg = replace(cfg, streaming=parse_bool(merged["streaming"], field_name="streaming"))
    if "timeout_s" in merged:
        cfg = replace(cfg, timeout_s=_parse_timeout(merged["timeout_s"]))
    if merged.get("download_dir"):
        cfg = replace(cfg, download_dir=Path(str(merged["download_dir"])).expanduser())
    if merged.get("registry_path"):
        path = str(merged["registry_path"]).strip()
        cfg = replace(cfg, registry_path=path if path.startswith("/") else "/" + path)
    if merged.get("color"):
        color = str(merged["color"]).strip().lower()
        if color not in _COLOR_MODES:
            raise ConfigError(f"color must be one of {sorted(_COLOR_MODES)} (got {color!r}).")
        cfg = replace(cfg, color=color)
    if merged.get("log_level"):
        level = str(merged["log_level"]).strip().upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {sorted(_LOG_LEVELS)} (got {level!r}).")
        cfg = replace(cfg, log_level=level)
    if merged.get("log_file"):
        cfg = replace(cfg, log_file=Path(str(merged["log_file"])).expanduser())

    cfg = replace(cfg, token=_resolve_token(merged.get("credential"), env))
    return cfg


def _resolve_token(credential: Any, env: Mapping[str, str]) -> str | None:
    if credential is None or str(credential).strip() == "":
        return env.get(DEFAULT_TOKEN_ENV) or None
    try:
        return resolve_credential(CredentialRef.parse(str(credential)))
    except CredentialResolutionError as e:
        raise ConfigError(str(e)) from e
