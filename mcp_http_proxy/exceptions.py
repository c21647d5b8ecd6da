"""
Proxy Exception Hierarchy

Centralized exception classes for the request → subprocess bridge.
All proxy-specific exceptions inherit from ProxyError and carry the HTTP
status code the /call endpoint answers with.

Usage:
    from mcp_http_proxy.exceptions import ProxyError, SubprocessTimeoutError

    try:
        output = await invoke(payload, command)
    except SubprocessTimeoutError as e:
        logger.warning(f"Backend timed out: {e}")
"""


class ProxyError(Exception):
    """Base exception for all proxy errors."""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ProxyError):
    """Error in proxy configuration (flags, env vars, config file)."""

    pass


# =============================================================================
# Request Errors
# =============================================================================


class MalformedRequestError(ProxyError):
    """Request body is not valid JSON or is missing the tool name."""

    status_code = 400


class SerializationError(ProxyError):
    """Tool arguments could not be encoded as JSON."""

    pass


# =============================================================================
# Subprocess Errors
# =============================================================================


class BridgeError(ProxyError):
    """Base class for backend process errors."""

    pass


class InvalidCommandError(BridgeError):
    """Backend command string resolved to zero tokens."""

    pass


class LaunchError(BridgeError):
    """Backend process could not be started."""

    def __init__(self, message: str, command: list[str] | None = None):
        details = {}
        if command:
            details["command"] = " ".join(command)
        super().__init__(message, details)
        self.command = command


class SubprocessFailedError(BridgeError):
    """Backend exited with a non-zero status or could not be waited on."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ):
        details = {}
        if returncode is not None:
            details["returncode"] = returncode
        super().__init__(message, details)
        self.returncode = returncode
        self.stderr = stderr


class SubprocessTimeoutError(BridgeError):
    """Backend did not exit before the deadline and was killed."""

    status_code = 504


class SubprocessCancelledError(SubprocessTimeoutError):
    """Caller went away before the backend exited; backend was killed."""

    pass
