"""
JSON-RPC Payload Builder

Pure functions for building the tools/call envelope:

    {"jsonrpc": "2.0", "id": N, "method": "tools/call",
     "params": {"name": <tool>, "arguments": {...}}}

"arguments" is omitted when there are none.
"""

import json
import secrets
from dataclasses import dataclass, field
from typing import Any, Optional

from mcp_http_proxy.configs.constants import (
    JSONRPC_VERSION,
    MAX_REQUEST_ID,
    TOOLS_CALL_METHOD,
)
from mcp_http_proxy.exceptions import SerializationError


def random_id() -> int:
    """Draw a correlation id uniformly from [0, MAX_REQUEST_ID) using the OS CSPRNG."""
    return secrets.randbelow(MAX_REQUEST_ID)


@dataclass
class ToolCallRequest:
    """A single JSON-RPC tools/call request."""

    name: str
    arguments: Optional[dict[str, Any]] = None
    id: int = field(default_factory=random_id)
    jsonrpc: str = JSONRPC_VERSION
    method: str = TOOLS_CALL_METHOD

    def to_dict(self) -> dict[str, Any]:
        params: dict[str, Any] = {"name": self.name}
        if self.arguments:
            params["arguments"] = self.arguments
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "method": self.method,
            "params": params,
        }

    def encode(self) -> bytes:
        """
        Serialize to compact UTF-8 JSON (no trailing newline).

        Raises:
            SerializationError: If an argument value is not JSON-encodable
                (unsupported type, cycle, NaN/Infinity)
        """
        try:
            return json.dumps(
                self.to_dict(),
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            ).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            # UnicodeEncodeError (lone surrogates) is a ValueError
            raise SerializationError(f"failed to marshal jsonrpc payload: {e}") from e


def new_tool_call(tool: str, arguments: Optional[dict[str, Any]] = None) -> ToolCallRequest:
    """Create a tools/call request with a fresh correlation id."""
    return ToolCallRequest(name=tool, arguments=arguments)


def build_jsonrpc_payload(tool: str, arguments: Optional[dict[str, Any]] = None) -> bytes:
    """
    Build the serialized tools/call envelope for a tool invocation.

    Args:
        tool: Tool name (callers reject empty names before calling)
        arguments: Tool arguments, omitted from the envelope when empty

    Returns:
        UTF-8 encoded JSON-RPC request

    Raises:
        SerializationError: If arguments cannot be encoded
    """
    return new_tool_call(tool, arguments).encode()
