"""
Backend Process Bridge

Spawns one stdio backend per tool call and relays its reply.
"""

from mcp_http_proxy.bridge.subprocess_bridge import (
    build_environment,
    describe_exit,
    invoke,
    kill,
    split_command,
    terminate,
    wait_for_reaping,
)

__all__ = [
    "build_environment",
    "describe_exit",
    "invoke",
    "kill",
    "split_command",
    "terminate",
    "wait_for_reaping",
]
