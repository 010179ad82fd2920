import logging

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape

from .context import Context
from .dispatcher import (
    NOT_EXECUTED_NOTE,
    CommandDispatcher,
    Execute,
    FollowUp,
    PendingCommand,
    Quit,
)
from .llm import LLMClient, ModelRequestFailed
from .prompts import SYSTEM_PROMPT
from .reply import AnswerReply, AssistantReply, CommandReply, ParseError, QuestionReply, parse

logger = logging.getLogger(__name__)

INPUT_PROMPT = "Input: "
QUIT_TOKENS = {"exit", "quit"}


@dataclass(frozen=True)
class Turn:
    """One user message and the model reply it produced."""

    user_message: str
    raw_reply: str
    reply: AssistantReply


class Session:
    """
    Drives the conversation: reads a goal, asks the model, and acts on its reply.

    History only grows when the model's reply was parsed successfully, so a
    malformed exchange is never sent back to the model.
    """

    def __init__(
        self,
        context: Context,
        llm: LLMClient,
        model: str,
        dispatcher: Optional[CommandDispatcher] = None,
        console: Optional[Console] = None,
        max_history_turns: Optional[int] = None,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.context = context
        self.llm = llm
        self.model = model
        self.console = console if console is not None else Console()
        self.dispatcher = (
            dispatcher if dispatcher is not None else CommandDispatcher(self.console)
        )
        self.max_history_turns = max_history_turns
        self.system_prompt = system_prompt
        self._history: List[Turn] = []
        # Outcome of the last command decision, shared with the model in the next message
        self._note: Optional[str] = None
        # Follow-up text to send without prompting for a new goal
        self._next_input: Optional[str] = None

    @property
    def history(self) -> Tuple[Turn, ...]:
        return tuple(self._history)

    def build_messages(self, user_message: str) -> List[Dict]:
        """Composes the request: instructions, context, recent turns, then the new message."""
        turns = self._history
        if self.max_history_turns is not None:
            turns = turns[-self.max_history_turns:] if self.max_history_turns > 0 else []

        messages = [
            LLMClient.format_system_message(self.system_prompt),
            LLMClient.format_user_message(self.context.render()),
        ]
        for turn in turns:
            messages.append(LLMClient.format_user_message(turn.user_message))
            messages.append(LLMClient.format_assistant_message(turn.raw_reply))
        messages.append(LLMClient.format_user_message(user_message))
        return messages

    def send(self, user_message: str) -> AssistantReply:
        """
        Sends one message to the model and records the exchange.

        Raises:
            ModelRequestFailed: The backend could not produce a reply.
            ParseError: The reply does not follow the protocol. Nothing is recorded.
        """
        messages = self.build_messages(user_message)
        with self.console.status("Generating response..."):
            response = self.llm.completion(model=self.model, messages=messages)

        raw = response.content
        try:
            reply = parse(raw)
        except ParseError:
            logger.debug("Unparseable reply:\n%s", raw)
            raise

        self._history.append(Turn(user_message, raw, reply))
        return reply

    def run(self, initial_goal: Optional[str] = None) -> int:
        """Runs turns until the user quits. Returns the process exit code."""
        self._next_input = initial_goal

        while True:
            if self._next_input is None:
                user_text = self._read_goal()
                if user_text is None:
                    break
            else:
                user_text, self._next_input = self._next_input, None

            try:
                reply = self.send(self._compose(user_text))
            except ModelRequestFailed as e:
                logger.warning("Model request failed: %s", e)
                self.console.print(f"[bold red]✗ Request failed:[/] {escape(str(e))}")
                continue
            except ParseError as e:
                logger.warning("Could not parse the model reply: %s", e)
                self.console.print(
                    f"[bold red]✗ Could not understand the response:[/] {escape(str(e))} "
                    "Please try again."
                )
                continue
            except KeyboardInterrupt:
                self.console.print("[yellow]Request cancelled.[/]")
                continue

            self._note = None
            if not self._handle_reply(reply):
                break

        self.console.print("[bold]Goodbye![/]")
        return 0

    def _compose(self, user_text: str) -> str:
        if self._note:
            return f"{self._note}\n\n{user_text}"
        return user_text

    def _read_goal(self) -> Optional[str]:
        """Reads the next goal. Returns None when the user wants to quit."""
        try:
            while True:
                text = input(INPUT_PROMPT).strip()
                if not text:
                    continue
                if text.lower() in QUIT_TOKENS:
                    return None
                return text
        except (KeyboardInterrupt, EOFError):
            return None

    def _handle_reply(self, reply: AssistantReply) -> bool:
        """Acts on a parsed reply. Returns False when the session should end."""
        if reply.thought:
            self.console.print(f"[dim]{escape(reply.thought)}[/]")

        if isinstance(reply, CommandReply):
            return self._handle_command(PendingCommand(reply.command))
        elif isinstance(reply, QuestionReply):
            self.console.print("[bold yellow]?[/]", Markdown(reply.question))
        elif isinstance(reply, AnswerReply):
            self.console.print(Markdown(reply.answer))
        else:
            raise TypeError(f"Unhandled reply type: {type(reply).__name__}")
        return True

    def _handle_command(self, pending: PendingCommand) -> bool:
        decision = self.dispatcher.decide(pending)

        if isinstance(decision, Quit):
            return False
        elif isinstance(decision, FollowUp):
            self._note = NOT_EXECUTED_NOTE
            self._next_input = decision.text
            return True
        elif isinstance(decision, Execute):
            self._note = self.dispatcher.execute(pending)
            return True
        raise TypeError(f"Unhandled decision: {type(decision).__name__}")

