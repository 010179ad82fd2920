import logging
import subprocess

from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Keeps command output from blowing up the next request
OUTPUT_LIMIT = 4000


class ExecutionFailed(Exception):
    """Raised when a command could not be run to completion."""


def _truncate(text: str, limit: int = OUTPUT_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "\n... (output truncated)"


@dataclass
class ExecutionResult:
    """Captured outcome of a command run through the shell."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """Summarizes the outcome as plain text for the model."""
        lines = [f"I executed the command `{self.command}`. Exit status: {self.returncode}."]
        stdout = self.stdout.strip()
        stderr = self.stderr.strip()
        if stdout:
            lines.append(f"STDOUT:\n{_truncate(stdout)}")
        if stderr:
            lines.append(f"STDERR:\n{_truncate(stderr)}")
        if not stdout and not stderr:
            lines.append("The command produced no output.")
        return "\n".join(lines)


def run_shell_command(
    command: str, shell: str = "bash", timeout: Optional[float] = None
) -> ExecutionResult:
    """
    Runs `command` with `<shell> -c` and captures its output.

    A command that exits with a non-zero status is still a result. `ExecutionFailed`
    is raised only when the shell can't be started or the command times out.
    """
    logger.debug("Running %r with %s", command, shell)
    try:
        completed = subprocess.run(
            [shell, "-c", command],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ExecutionFailed(f"Shell '{shell}' not found. Make sure it is in your PATH.") from e
    except subprocess.TimeoutExpired as e:
        raise ExecutionFailed(f"Command timed out after {timeout} seconds.") from e
    except OSError as e:
        raise ExecutionFailed(f"Could not run the command: {e}") from e

    logger.debug("Command exited with status %d", completed.returncode)
    return ExecutionResult(
        command=command,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
