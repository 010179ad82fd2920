import logging
import os
import sys

from dataclasses import dataclass
from typing import Optional, TextIO, Tuple

logger = logging.getLogger(__name__)

# Avoid huge piped inputs blowing up the context
PIPED_INPUT_LIMIT = 40000


class ContextUnavailable(Exception):
    """Raised when the working directory cannot be resolved or listed."""


@dataclass(frozen=True)
class Context:
    """Snapshot of the user's environment, taken once at startup."""

    cwd: str
    entries: Tuple[str, ...] = ()
    piped_input: Optional[str] = None

    def render(self) -> str:
        """Formats the context as the text sent to the model."""
        text = f"Current directory: {self.cwd}\nFiles in directory: {', '.join(self.entries)}"
        if self.piped_input:
            text += f"\nPiped input:\n{self.piped_input}"
        return text


def _list_directory(path: str) -> Tuple[str, ...]:
    try:
        return tuple(sorted(os.listdir(path)))
    except OSError as e:
        raise ContextUnavailable(f"Failed to read directory '{path}': {e}") from e


def _read_piped_input(stream: TextIO) -> Optional[str]:
    if stream is None or stream.isatty():
        return None

    try:
        # Read bytes when possible so binary input is decoded leniently
        buffer = getattr(stream, "buffer", None)
        if buffer is not None:
            data = buffer.read(PIPED_INPUT_LIMIT + 1)
            truncated = len(data) > PIPED_INPUT_LIMIT
            content = data[:PIPED_INPUT_LIMIT].decode(
                getattr(stream, "encoding", None) or "utf-8", errors="replace"
            )
        else:
            content = stream.read(PIPED_INPUT_LIMIT + 1)
            truncated = len(content) > PIPED_INPUT_LIMIT
            content = content[:PIPED_INPUT_LIMIT]
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read piped input: %s", e)
        return None

    if not content:
        return None
    if truncated:
        content += "\n... (piped input truncated)"
    return content


def build_context(stdin: Optional[TextIO] = None) -> Context:
    """
    Captures the working directory, its immediate entries and any piped input.

    Listing failures are not fatal: the context simply has no entries.
    """
    stdin = stdin if stdin is not None else sys.stdin

    try:
        cwd = os.getcwd()
    except OSError as e:
        logger.warning("Could not resolve the current directory: %s", e)
        cwd = os.environ.get("PWD", ".")

    try:
        entries = _list_directory(cwd)
    except ContextUnavailable as e:
        logger.warning("%s. Continuing without directory context.", e)
        entries = ()

    piped_input = _read_piped_input(stdin)
    if piped_input:
        logger.debug("Captured %d characters of piped input", len(piped_input))

    return Context(cwd=cwd, entries=entries, piped_input=piped_input)
