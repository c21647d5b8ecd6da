"""
Proxy HTTP Server

FastAPI app exposing the tool call bridge and a health check.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from mcp_http_proxy import __version__
from mcp_http_proxy.bridge import wait_for_reaping
from mcp_http_proxy.configs import get_logger
from mcp_http_proxy.exceptions import ProxyError
from mcp_http_proxy.http.call import router as call_router

logger = get_logger("http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Killed backends are reaped in the background; collect them before exiting
    await wait_for_reaping()


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="MCP HTTP Proxy",
    description="HTTP to stdio JSON-RPC bridge for MCP tool calls",
    version=__version__,
)

app.include_router(call_router, tags=["call"])


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError) -> PlainTextResponse:
    """Render proxy failures as plain text with their mapped status."""
    return PlainTextResponse(f"{exc.message}\n", status_code=exc.status_code)


@app.get("/healthz", response_class=PlainTextResponse)
def healthz() -> str:
    """Health check endpoint. Never touches the backend."""
    return "ok"


def run_server(host: str = "0.0.0.0", port: int = 8080):
    """Run the FastAPI server."""
    import uvicorn

    logger.info(f"Starting HTTP server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="warning")
