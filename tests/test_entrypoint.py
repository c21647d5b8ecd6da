"""
Tests for the command-line entrypoint.
"""

from unittest.mock import patch

import pytest

from entrypoint import build_parser, main
from mcp_http_proxy.configs import get_settings, reset_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for var in ("MCP_PROXY_ADDR", "MCP_PROXY_SERVER_CMD", "MCP_PROXY_TIMEOUT", "MCP_PROXY_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    yield
    reset_settings()


def test_flags_default_to_unset():
    args = build_parser().parse_args([])

    assert args.addr is None
    assert args.server_cmd is None
    assert args.timeout is None
    assert args.debug is None


def test_main_starts_server_with_flags():
    with patch("mcp_http_proxy.http.run_server") as run_server:
        main(["--addr", "127.0.0.1:9001", "--server-cmd", "./server stdio", "--timeout", "3"])

    run_server.assert_called_once_with(host="127.0.0.1", port=9001)
    settings = get_settings()
    assert settings.server_cmd == "./server stdio"
    assert settings.timeout == 3


def test_main_rejects_bad_config(capsys):
    with patch("mcp_http_proxy.http.run_server") as run_server:
        with pytest.raises(SystemExit) as exc_info:
            main(["--timeout", "0"])

    assert exc_info.value.code == 1
    assert "Configuration error" in capsys.readouterr().err
    run_server.assert_not_called()
