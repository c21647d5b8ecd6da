"""
mcp-http-proxy - HTTP front door for stdio MCP servers.

Each POST /call becomes one JSON-RPC tools/call message, delivered to a
freshly spawned backend process over stdin; the backend's stdout is
relayed back as the HTTP response body.
"""

__version__ = "1.0.0"
