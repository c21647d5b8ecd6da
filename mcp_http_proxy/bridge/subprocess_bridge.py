"""
Subprocess Bridge

Runs exactly one backend process per tool call:

1. Split the command string into argv
2. Copy the environment, layering the credential override on top
3. Spawn the backend with stdin/stdout/stderr piped
4. Write the payload plus a newline, then close stdin
5. Race the backend's exit against the deadline (and caller disconnect)

Every path leaves the backend either exited and reaped, or killed with its
reaping handed to a tracked background task (see wait_for_reaping).
"""

import asyncio
import os
import signal
from typing import Awaitable, Callable, Mapping, Optional

from mcp_http_proxy.configs.constants import CREDENTIAL_ENV_VAR, get_timeout
from mcp_http_proxy.configs.logging import get_logger
from mcp_http_proxy.exceptions import (
    InvalidCommandError,
    LaunchError,
    SubprocessCancelledError,
    SubprocessFailedError,
    SubprocessTimeoutError,
)

logger = get_logger("bridge")

DisconnectCheck = Callable[[], Awaitable[bool]]


def split_command(command: str) -> list[str]:
    """
    Split a command line on whitespace into argv.

    No shell quoting is honored: "./server --flag value" → ["./server", "--flag", "value"].

    Raises:
        InvalidCommandError: If the command has no tokens
    """
    argv = command.split()
    if not argv:
        raise InvalidCommandError("invalid server command")
    return argv


def build_environment(
    base: Optional[Mapping[str, str]] = None,
    credential: Optional[str] = None,
) -> dict[str, str]:
    """
    Build the backend's environment.

    Args:
        base: Read-only snapshot to inherit (defaults to os.environ); never mutated
        credential: Optional token exported as GITHUB_PERSONAL_ACCESS_TOKEN,
                    taking precedence over any inherited value

    Returns:
        A new environment mapping for this call only
    """
    env = dict(os.environ if base is None else base)
    if credential:
        env[CREDENTIAL_ENV_VAR] = credential
    return env


def describe_exit(returncode: int) -> str:
    """Describe a process exit the way `exit status 1` / `signal: SIGKILL` read."""
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


async def launch(argv: list[str], env: Mapping[str, str]) -> asyncio.subprocess.Process:
    """
    Start the backend with all three standard streams piped.

    The backend leads its own process group so a kill also reaches any
    children it spawned (wrapper scripts) that would hold the pipes open.

    Raises:
        LaunchError: If the executable is missing or cannot be run
    """
    try:
        return await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=dict(env),
            start_new_session=True,
        )
    except OSError as e:
        logger.error(f"Failed to start backend {argv[0]}: {e}")
        # Nothing ran, so there is no stderr to attach
        raise LaunchError(f"failed to start subprocess: {e} stderr:", command=argv) from e


def kill(process: asyncio.subprocess.Process) -> None:
    """Send SIGKILL to the backend's process group. Never blocks; no-op once reaped."""
    if process.returncode is not None:
        return
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        # Not a group leader, or already gone
        try:
            process.kill()
        except ProcessLookupError:
            pass


# Reaps still running after their invoke() returned
_reapers: set[asyncio.Task] = set()


async def _reap(process: asyncio.subprocess.Process, exchange: Optional[asyncio.Future] = None) -> None:
    # Letting communicate() finish drains and closes the pipe transports
    target = exchange if exchange is not None and not exchange.done() else process.wait()
    try:
        await asyncio.wait_for(target, timeout=get_timeout("kill_reap"))
    except asyncio.TimeoutError:
        logger.warning(f"Backend pid={process.pid} not reaped after kill")
    except Exception as e:
        logger.debug(f"Backend pid={process.pid} reap ended with: {e}")


def _reap_in_background(
    process: asyncio.subprocess.Process, exchange: Optional[asyncio.Future] = None
) -> asyncio.Task:
    task = asyncio.ensure_future(_reap(process, exchange))
    _reapers.add(task)
    task.add_done_callback(_reapers.discard)
    return task


async def wait_for_reaping() -> None:
    """Wait until every killed backend has been reaped (used at shutdown and in tests)."""
    loop = asyncio.get_running_loop()
    while True:
        tasks = [task for task in _reapers if task.get_loop() is loop]
        if not tasks:
            return
        await asyncio.gather(*tasks, return_exceptions=True)


async def terminate(process: asyncio.subprocess.Process) -> None:
    """
    Kill the backend and reap it. Safe to call on a process that already exited.

    Waiting is bounded so a stuck reap never hangs the caller.
    """
    kill(process)
    await _reap(process)


async def _wait_for_disconnect(is_disconnected: DisconnectCheck) -> None:
    interval = get_timeout("disconnect_poll")
    while not await is_disconnected():
        await asyncio.sleep(interval)


async def invoke(
    payload: bytes,
    command: str,
    credential: Optional[str] = None,
    timeout: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None,
    is_disconnected: Optional[DisconnectCheck] = None,
) -> bytes:
    """
    Deliver one JSON-RPC payload to a fresh backend process and collect its reply.

    The timeout covers the whole exchange: writing stdin, waiting for exit
    and draining stdout/stderr. On timeout or disconnect the backend is
    killed immediately and reaped in the background, so the caller gets
    its answer at the deadline.

    Args:
        payload: Serialized JSON-RPC request (newline is appended here)
        command: Backend command line, split on whitespace
        credential: Optional per-call GitHub token
        timeout: Deadline in seconds (defaults to the backend_call timeout)
        environ: Base environment snapshot (defaults to os.environ)
        is_disconnected: Coroutine function reporting whether the caller left

    Returns:
        The backend's stdout, verbatim

    Raises:
        InvalidCommandError: Command string is blank
        LaunchError: Backend could not be started
        SubprocessFailedError: Non-zero exit or a failure while waiting
        SubprocessTimeoutError: Deadline passed; backend was killed
        SubprocessCancelledError: Caller disconnected; backend was killed
    """
    if timeout is None:
        timeout = get_timeout("backend_call")

    argv = split_command(command)
    env = build_environment(environ, credential)

    process = await launch(argv, env)
    logger.debug(f"Started backend pid={process.pid}: {argv} ({len(payload)} bytes in)")

    # communicate() writes, closes stdin once, and drains both pipes concurrently
    exchange = asyncio.ensure_future(process.communicate(payload + b"\n"))
    watcher = None
    pending = {exchange}
    if is_disconnected is not None:
        watcher = asyncio.ensure_future(_wait_for_disconnect(is_disconnected))
        pending.add(watcher)

    try:
        done, _ = await asyncio.wait(
            pending, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )

        if exchange in done:
            try:
                stdout, stderr = exchange.result()
            except Exception as e:
                logger.error(f"Waiting on backend pid={process.pid} failed: {e}")
                raise SubprocessFailedError(f"subprocess error: {e}, stderr: ") from e

            returncode = process.returncode
            if returncode != 0:
                stderr_text = stderr.decode("utf-8", errors="replace")
                logger.warning(
                    f"Backend pid={process.pid} failed with {describe_exit(returncode)}"
                )
                raise SubprocessFailedError(
                    f"subprocess error: {describe_exit(returncode)}, stderr: {stderr_text}",
                    returncode=returncode,
                    stderr=stderr_text,
                )

            logger.debug(f"Backend pid={process.pid} exited cleanly ({len(stdout)} bytes out)")
            return stdout

        if watcher is not None and watcher in done:
            # Surface errors from the disconnect check itself
            watcher.result()
            logger.warning(f"Caller disconnected, killing backend pid={process.pid}")
            raise SubprocessCancelledError("request cancelled by caller")

        logger.warning(f"Backend pid={process.pid} timed out after {timeout}s, killing")
        raise SubprocessTimeoutError("subprocess timed out")

    finally:
        if watcher is not None and not watcher.done():
            watcher.cancel()
        if process.returncode is None:
            kill(process)
            _reap_in_background(process, exchange)
