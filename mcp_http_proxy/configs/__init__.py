"""
Proxy Configuration Module

Re-exports commonly used functions for cleaner imports across the codebase.
"""

# Logging (most commonly used)
from mcp_http_proxy.configs.logging import get_logger, setup_logging

# Constants
from mcp_http_proxy.configs.constants import (
    CREDENTIAL_ENV_VAR,
    DEFAULT_ADDR,
    DEFAULT_SERVER_CMD,
    TIMEOUTS,
    get_timeout,
)

# Settings
from mcp_http_proxy.configs.settings import (
    Settings,
    get_settings,
    load_settings,
    load_yaml_config,
    parse_listen_address,
    reset_settings,
    set_settings,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Constants
    "CREDENTIAL_ENV_VAR",
    "DEFAULT_ADDR",
    "DEFAULT_SERVER_CMD",
    "TIMEOUTS",
    "get_timeout",
    # Settings
    "Settings",
    "get_settings",
    "load_settings",
    "load_yaml_config",
    "parse_listen_address",
    "reset_settings",
    "set_settings",
]
