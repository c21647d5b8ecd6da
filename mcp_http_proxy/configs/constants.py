"""
Proxy Constants

Static values shared by the payload builder, the subprocess bridge and
the HTTP layer.
"""

# --- JSON-RPC ---

JSONRPC_VERSION = "2.0"
TOOLS_CALL_METHOD = "tools/call"

# Correlation ids are drawn uniformly from [0, MAX_REQUEST_ID)
MAX_REQUEST_ID = 1_000_000

# --- Backend Process ---

# The backend looks up its GitHub token under this name
CREDENTIAL_ENV_VAR = "GITHUB_PERSONAL_ACCESS_TOKEN"

DEFAULT_SERVER_CMD = "./github-mcp-server stdio"
DEFAULT_ADDR = ":8080"
DEFAULT_HOST = "0.0.0.0"

# --- Timeouts (seconds) ---

TIMEOUTS = {
    "backend_call": 25,  # Whole exchange with one backend process
    "kill_reap": 2,  # Waiting for a killed backend to be reaped
    "disconnect_poll": 0.5,  # Interval between caller-disconnect checks
}


def get_timeout(key: str, default: int | float | None = None) -> int | float:
    """
    Get a timeout value by key.

    Args:
        key: Timeout key from TIMEOUTS dict
        default: Default value if key not found

    Returns:
        Timeout value in seconds
    """
    if default is None:
        default = TIMEOUTS["backend_call"]
    return TIMEOUTS.get(key, default)
