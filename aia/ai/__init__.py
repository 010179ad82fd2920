"""
The `ai` package provides the core of the terminal assistant: the session loop,
the reply protocol parser, the command dispatcher and the LLM client.
"""

from .context import Context, build_context
from .dispatcher import CommandDispatcher, Execute, FollowUp, PendingCommand, Quit
from .llm import LLMClient, ModelRequestFailed
from .reply import (
    AnswerReply,
    AssistantReply,
    CommandReply,
    ParseError,
    QuestionReply,
    parse,
)
from .session import Session, Turn


__all__ = [
    "AnswerReply",
    "AssistantReply",
    "CommandDispatcher",
    "CommandReply",
    "Context",
    "Execute",
    "FollowUp",
    "LLMClient",
    "ModelRequestFailed",
    "ParseError",
    "PendingCommand",
    "QuestionReply",
    "Quit",
    "Session",
    "Turn",
    "build_context",
    "parse",
]
