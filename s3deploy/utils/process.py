import logging
import subprocess
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandFailed(Exception):
    """A child process could not run or exited non-zero."""

    def __init__(self, cmd: Sequence[str], returncode: Optional[int], stderr: str):
        super().__init__(f"command {' '.join(cmd)!r} failed ({returncode})")
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr


def run_command(cmd: List[str], cwd: str, timeout: Optional[float] = None) -> str:
    """Run cmd in cwd without a shell and return its stdout."""
    logger.debug("running %s in %s", cmd, cwd)
    try:
        proc = subprocess.run(cmd, cwd=cwd, capture_output=True, timeout=timeout, check=False)
    except subprocess.TimeoutExpired as e:
        raise CommandFailed(cmd, None, f"timed out after {timeout}s") from e
    except OSError as e:
        # missing or non-executable binary
        raise CommandFailed(cmd, None, str(e)) from e

    if proc.returncode != 0:
        stderr = proc.stderr.decode("utf-8", errors="replace")
        logger.error(f"error running command {' '.join(cmd)}")
        logger.error(stderr)
        raise CommandFailed(cmd, proc.returncode, stderr)
    return proc.stdout.decode("utf-8", errors="replace")
