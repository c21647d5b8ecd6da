"""
JSON-RPC Envelope Building

Builds the tools/call request sent to the backend process.
"""

from mcp_http_proxy.jsonrpc.payload import (
    ToolCallRequest,
    build_jsonrpc_payload,
    new_tool_call,
    random_id,
)

__all__ = [
    "ToolCallRequest",
    "build_jsonrpc_payload",
    "new_tool_call",
    "random_id",
]
