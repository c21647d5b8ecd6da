"""
Proxy Settings

Startup configuration merging logic.
Combines defaults, an optional YAML config file, environment variables and
command-line overrides (lowest to highest precedence).
"""

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from mcp_http_proxy.configs.constants import (
    DEFAULT_ADDR,
    DEFAULT_HOST,
    DEFAULT_SERVER_CMD,
    get_timeout,
)
from mcp_http_proxy.configs.logging import get_logger
from mcp_http_proxy.exceptions import ConfigurationError

logger = get_logger("configs")

# Env var name for each setting
ENV_VARS = {
    "addr": "MCP_PROXY_ADDR",
    "server_cmd": "MCP_PROXY_SERVER_CMD",
    "timeout": "MCP_PROXY_TIMEOUT",
    "debug": "MCP_PROXY_DEBUG",
    "log_file": "MCP_PROXY_LOG_FILE",
}
CONFIG_PATH_ENV_VAR = "MCP_PROXY_CONFIG"


@dataclass(frozen=True)
class Settings:
    """Read-only proxy configuration, loaded once at startup."""

    addr: str = DEFAULT_ADDR
    server_cmd: str = DEFAULT_SERVER_CMD
    timeout: float = get_timeout("backend_call")  # seconds, per call
    debug: bool = False
    log_file: Optional[str] = None

    @property
    def host(self) -> str:
        return parse_listen_address(self.addr)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.addr)[1]


def parse_listen_address(addr: str) -> tuple[str, int]:
    """
    Split a listen address into host and port.

    Accepts "host:port" or ":port" (all interfaces).

    Raises:
        ConfigurationError: If the address has no valid port
    """
    host, sep, port_text = addr.strip().rpartition(":")
    if not sep:
        raise ConfigurationError(f"invalid listen address {addr!r}: expected [host]:port")
    try:
        port = int(port_text)
    except ValueError as e:
        raise ConfigurationError(f"invalid listen address {addr!r}: bad port {port_text!r}") from e
    if not 0 <= port <= 65535:
        raise ConfigurationError(f"invalid listen address {addr!r}: port out of range")

    # [::1]:8080 style IPv6 literal
    host = host.strip("[]")
    return host or DEFAULT_HOST, port


def load_yaml_config(path: str | Path) -> dict:
    """
    Load settings from a YAML file.

    Returns:
        Configuration dictionary (empty if the file is empty)

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping
    """
    config_path = Path(path).expanduser()
    try:
        content = config_path.read_text()
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {config_path}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {config_path} must contain a mapping")

    unknown = set(data) - set(ENV_VARS)
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {config_path}: {sorted(unknown)}")
    return {key: value for key, value in data.items() if key in ENV_VARS}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid timeout {value!r}: expected seconds") from e
    if timeout <= 0:
        raise ConfigurationError(f"invalid timeout {value!r}: must be positive")
    return timeout


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from every configuration layer.

    Priority (highest first):
    1. overrides (command-line flags; None values are skipped)
    2. MCP_PROXY_* env vars
    3. YAML config file (config_path, or MCP_PROXY_CONFIG)
    4. Defaults

    Raises:
        ConfigurationError: On any invalid value
    """
    if environ is None:
        environ = os.environ

    values = asdict(Settings())

    config_path = config_path or environ.get(CONFIG_PATH_ENV_VAR)
    if config_path:
        values.update(load_yaml_config(config_path))

    for key, env_var in ENV_VARS.items():
        env_value = environ.get(env_var)
        if env_value:
            values[key] = env_value

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    server_cmd = str(values["server_cmd"])
    if not server_cmd.split():
        raise ConfigurationError("server command must not be empty")

    settings = Settings(
        addr=str(values["addr"]),
        server_cmd=server_cmd,
        timeout=_parse_timeout(values["timeout"]),
        debug=_parse_bool(values["debug"]),
        log_file=str(values["log_file"]) if values["log_file"] else None,
    )
    # Fail at startup rather than when binding
    parse_listen_address(settings.addr)
    return settings


# --- Process-wide settings ---

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the active settings, loading them from env on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Install settings (used by the entrypoint and by tests)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Forget the active settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
