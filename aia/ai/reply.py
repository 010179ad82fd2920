"""
Typed model replies and the parser for the two-section reply protocol.

A well-formed reply looks like:

    [THOUGHT]
    Free text explaining the reasoning.

    [JSON]
    {"type": "command", "command": "ls -la"}

The `type` field selects one of the three reply variants, and the field named
after that type carries the payload.
"""

import json
import re

from dataclasses import dataclass
from typing import Dict, Union

THOUGHT_MARKER = "[THOUGHT]"
JSON_MARKER = "[JSON]"

_CODE_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_DECODER = json.JSONDecoder()


class ParseError(Exception):
    """Base class for replies that do not follow the protocol."""


class MissingThought(ParseError):
    pass


class MissingJson(ParseError):
    pass


class MalformedPayload(ParseError):
    pass


class UnknownType(ParseError):
    pass


class MissingField(ParseError):
    pass


@dataclass(frozen=True)
class CommandReply:
    """The model suggests running a shell command."""

    thought: str
    command: str


@dataclass(frozen=True)
class QuestionReply:
    """The model needs more information from the user."""

    thought: str
    question: str


@dataclass(frozen=True)
class AnswerReply:
    """The model answers the user directly."""

    thought: str
    answer: str


AssistantReply = Union[CommandReply, QuestionReply, AnswerReply]

# Maps each protocol `type` to its reply class. The payload field shares the type's name.
REPLY_TYPES: Dict[str, type] = {
    "command": CommandReply,
    "question": QuestionReply,
    "answer": AnswerReply,
}


def _decode_payload(payload: str) -> Dict:
    # Only the first JSON value is read. Anything after it (a closing code
    # fence, a repeated [JSON] section) is ignored.
    payload = _CODE_FENCE_OPEN.sub("", payload, count=1)
    try:
        data, _ = _DECODER.raw_decode(payload)
    except json.JSONDecodeError as e:
        raise MalformedPayload(f"The reply payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedPayload("The reply payload must be a JSON object.")
    return data


def parse(raw: str) -> AssistantReply:
    """
    Converts the raw model output into a typed reply.

    Raises:
        ParseError: One of its subclasses, naming the first rule the reply breaks.
    """
    thought_start = raw.find(THOUGHT_MARKER)
    if thought_start == -1:
        raise MissingThought(f"The reply has no {THOUGHT_MARKER} section.")
    thought_start += len(THOUGHT_MARKER)

    json_start = raw.find(JSON_MARKER, thought_start)
    if json_start == -1:
        raise MissingJson(f"The reply has no {JSON_MARKER} section after {THOUGHT_MARKER}.")

    thought = raw[thought_start:json_start].strip()
    data = _decode_payload(raw[json_start + len(JSON_MARKER):].strip())

    reply_type = data.get("type")
    reply_class = REPLY_TYPES.get(reply_type) if isinstance(reply_type, str) else None
    if reply_class is None:
        raise UnknownType(f"Unknown reply type: {reply_type!r}.")

    # Extra fields are ignored so newer prompts don't break older clients.
    value = data.get(reply_type)
    if not isinstance(value, str) or not value.strip():
        raise MissingField(f"A '{reply_type}' reply needs a non-empty '{reply_type}' field.")

    return reply_class(thought, value)
