"""
Tool Call Endpoint

POST /call: translate the request body into a JSON-RPC tools/call message,
run it through a fresh backend process and relay the backend's stdout.
"""

import json
import math
import time
from typing import Any, Optional

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, ValidationError

from mcp_http_proxy.bridge import invoke
from mcp_http_proxy.configs import get_logger, get_settings
from mcp_http_proxy.exceptions import MalformedRequestError, ProxyError
from mcp_http_proxy.jsonrpc import new_tool_call

logger = get_logger("http.call")

router = APIRouter()


# --- Request Models ---


class CallRequest(BaseModel):
    """Request body for POST /call."""

    tool: str = ""
    arguments: Optional[dict[str, Any]] = None
    # Overrides the configured backend command for this call, e.g. "./github-mcp-server stdio"
    server_cmd: Optional[str] = None
    # Overrides the backend's GitHub token for this call
    github_pat: Optional[str] = None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} is out of range")
    return value


def parse_call_request(raw: bytes) -> CallRequest:
    """
    Decode and validate a /call request body.

    Raises:
        MalformedRequestError: Body is not JSON, has wrong field types, or lacks a tool
    """
    try:
        data = json.loads(
            raw,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except ValueError as e:
        raise MalformedRequestError(f"invalid JSON body: {e}") from e

    # A literal null body decodes to an empty request
    if data is None:
        data = {}

    try:
        body = CallRequest.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedRequestError(f"invalid JSON body: {problems}") from e

    if not body.tool:
        raise MalformedRequestError("`tool` is required (e.g. create_issue)")
    return body


@router.post("/call")
async def call_tool(request: Request) -> Response:
    """
    Run one tool call against a freshly spawned backend.

    Returns the backend's stdout as application/json without validating it.
    Failures are raised as ProxyError and rendered as plain text by the app.
    """
    settings = get_settings()
    body = parse_call_request(await request.body())

    call = new_tool_call(body.tool, body.arguments)
    payload = call.encode()
    command = body.server_cmd or settings.server_cmd

    logger.info(f"tools/call {body.tool} id={call.id}")
    start_time = time.time()
    try:
        output = await invoke(
            payload,
            command,
            credential=body.github_pat or None,
            timeout=settings.timeout,
            is_disconnected=request.is_disconnected,
        )
    except ProxyError as e:
        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(f"tools/call {body.tool} id={call.id} failed after {elapsed_ms:.0f}ms: {e.message.splitlines()[0]}")
        raise
    except Exception as e:
        logger.error(f"tools/call {body.tool} id={call.id} crashed: {e}")
        raise ProxyError(f"internal error: {e}") from e

    elapsed_ms = (time.time() - start_time) * 1000
    logger.info(f"tools/call {body.tool} id={call.id} ok in {elapsed_ms:.0f}ms")
    return Response(content=output, media_type="application/json")
