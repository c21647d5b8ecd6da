"""
Pytest fixtures for proxy tests.
"""

import logging
import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add project root to path for package imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


# Fake stdio backends. Each reads (at most) one request line and exits.
BACKEND_SCRIPTS = {
    "echo_backend.py": '''
import sys

sys.stdout.write(sys.stdin.readline())
''',
    "fail_backend.py": '''
import sys

sys.stdin.read()
sys.stderr.write("boom")
sys.exit(1)
''',
    "sleep_backend.py": '''
import os
import sys
import time

with open(sys.argv[1], "w") as f:
    f.write(str(os.getpid()))
time.sleep(30)
''',
    "whoami_backend.py": '''
import json
import os
import sys

request = json.loads(sys.stdin.readline())
print(json.dumps({
    "argv0": os.path.basename(sys.argv[0]),
    "args": sys.argv[1:],
    "token": os.environ.get("GITHUB_PERSONAL_ACCESS_TOKEN"),
    "marker": os.environ.get("PROXY_TEST_MARKER"),
    "request": request,
}))
''',
    "plain_backend.py": '''
import sys

sys.stdin.read()
sys.stdout.write("not json at all")
''',
    # Exits without touching stdin
    "deaf_backend.py": '''
print('{"result": "early"}')
''',
}


@pytest.fixture(autouse=True)
def reset_proxy_logging() -> Generator[None, None, None]:
    """Drop handlers installed by setup_logging so they don't outlive captured streams."""
    yield
    logger = logging.getLogger("mcp_http_proxy")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def backend(temp_dir: Path) -> Callable[..., str]:
    """
    Return a factory building the command line for a fake backend.

    Usage:
        cmd = backend("echo")                  # "<python> <tmp>/echo_backend.py"
        cmd = backend("sleep", str(pid_file))  # extra args appended
    """
    for name, source in BACKEND_SCRIPTS.items():
        (temp_dir / name).write_text(source)

    def make_command(name: str, *args: str) -> str:
        script = temp_dir / f"{name}_backend.py"
        return " ".join([sys.executable, str(script), *args])

    return make_command


@pytest.fixture
def pid_file(temp_dir: Path) -> Path:
    """Path where the sleep backend records its pid."""
    return temp_dir / "backend.pid"


@pytest.fixture
def shell_backend(temp_dir: Path) -> Callable[[str], str]:
    """
    Return a factory writing an executable /bin/sh backend.

    The script's commands run as children of the shell, so they hold the
    backend's pipes open for as long as they live.
    """

    def make_script(body: str, name: str = "backend.sh") -> str:
        script = temp_dir / name
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(0o755)
        return str(script)

    return make_script


def _process_gone(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    # Killed but not yet collected by its parent
    try:
        with open(f"/proc/{pid}/stat") as f:
            return f.read().rsplit(")", 1)[1].split()[0] == "Z"
    except (OSError, IndexError):
        return False


@pytest.fixture
def wait_for_exit() -> Callable[..., bool]:
    """Return a poller reporting whether a pid is gone within a grace period."""

    def poll(pid: int, within: float = 5.0) -> bool:
        deadline = time.monotonic() + within
        while not _process_gone(pid):
            if time.monotonic() > deadline:
                return False
            time.sleep(0.05)
        return True

    return poll
