import logging

from dataclasses import dataclass
from typing import Callable, Optional, Union

from rich.console import Console
from rich.markup import escape

from .shell import ExecutionFailed, ExecutionResult, run_shell_command

logger = logging.getLogger(__name__)

DECISION_PROMPT = "Pick an action: [e]xecute, [f]ollow-up, [q]uit: "
FOLLOW_UP_PROMPT = "Follow-up: "

NOT_EXECUTED_NOTE = "I did not execute the suggested command."


@dataclass(frozen=True)
class PendingCommand:
    """A suggested command waiting for the user's decision."""

    command: str


@dataclass(frozen=True)
class Execute:
    pass


@dataclass(frozen=True)
class FollowUp:
    text: str


@dataclass(frozen=True)
class Quit:
    pass


UserDecision = Union[Execute, FollowUp, Quit]

_EXECUTE_TOKENS = {"e", "execute"}
_FOLLOW_UP_TOKENS = {"f", "follow", "follow-up", "followup"}
_QUIT_TOKENS = {"q", "quit", "exit"}


class CommandDispatcher:
    """Shows a suggested command and lets the user execute it, follow up, or quit."""

    def __init__(
        self,
        console: Optional[Console] = None,
        shell: str = "bash",
        command_timeout: Optional[float] = None,
        executor: Callable[..., ExecutionResult] = run_shell_command,
    ):
        self.console = console if console is not None else Console()
        self.shell = shell
        self.command_timeout = command_timeout
        self.executor = executor

    def decide(self, pending: PendingCommand) -> UserDecision:
        """Presents the command and reads decisions until a valid one is given."""
        self.console.print(f"[bold cyan]Command:[/] {escape(pending.command)}")

        try:
            while True:
                choice = input(DECISION_PROMPT).strip().lower()
                if choice in _EXECUTE_TOKENS:
                    return Execute()
                if choice in _QUIT_TOKENS:
                    return Quit()
                if choice in _FOLLOW_UP_TOKENS:
                    text = input(FOLLOW_UP_PROMPT).strip()
                    if text:
                        return FollowUp(text)
                    continue
                self.console.print("[yellow]Please answer 'e', 'f' or 'q'.[/]")
        except (KeyboardInterrupt, EOFError):
            return Quit()

    def execute(self, pending: PendingCommand) -> str:
        """
        Runs the pending command, shows its outcome and returns a plain-text
        description of it to be shared with the model.
        """
        self.console.print(f"[green]✓ Running command:[/] {escape(pending.command)}")
        try:
            result = self.executor(pending.command, self.shell, self.command_timeout)
        except ExecutionFailed as e:
            logger.warning("Execution of %r failed: %s", pending.command, e)
            self.console.print(f"[bold red]✗ {escape(str(e))}[/]")
            return f"I tried to execute the command `{pending.command}` but it failed: {e}"

        if result.stdout:
            self.console.print(result.stdout, end="", markup=False, highlight=False)
        if result.stderr:
            self.console.print(result.stderr, end="", style="red", markup=False, highlight=False)

        if result.succeeded:
            self.console.print("[green]✓ Command finished with exit status 0[/]")
        else:
            self.console.print(f"[bold red]✗ Command failed with exit status {result.returncode}[/]")
        return result.describe()
