#!/usr/bin/env python3
"""
MCP HTTP Proxy Entrypoint

Starts the HTTP server that turns POST /call requests into one-shot
tools/call exchanges with a stdio MCP backend.

Usage:
  entrypoint.py [--addr :8080] [--server-cmd "./github-mcp-server stdio"] [--timeout 25]
"""

import argparse
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HTTP -> MCP stdio proxy")
    parser.add_argument("--addr", help="address to listen on (default :8080)")
    parser.add_argument(
        "--server-cmd",
        help="command used to start the stdio MCP server (quoted string)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="timeout in seconds for each MCP request (default 25)",
    )
    parser.add_argument("--config", help="YAML config file (or MCP_PROXY_CONFIG)")
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="enable debug logging",
    )
    parser.add_argument("--log-file", help="also write logs to this file")
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)

    from mcp_http_proxy.configs import get_logger, load_settings, set_settings, setup_logging
    from mcp_http_proxy.exceptions import ConfigurationError
    from mcp_http_proxy.http import run_server

    try:
        settings = load_settings(
            config_path=args.config,
            overrides={
                "addr": args.addr,
                "server_cmd": args.server_cmd,
                "timeout": args.timeout,
                "debug": args.debug,
                "log_file": args.log_file,
            },
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    # Initialize logging (must be called before get_logger)
    setup_logging(debug=settings.debug, log_file=settings.log_file)
    logger = get_logger("entrypoint")
    set_settings(settings)

    logger.info(
        f"http -> mcp proxy listening on {settings.addr} "
        f"(server-cmd={settings.server_cmd!r}, timeout={settings.timeout}s)"
    )
    run_server(host=settings.host, port=settings.port)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
