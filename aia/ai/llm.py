import logging
from dataclasses import dataclass

import aisuite

from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class ModelRequestFailed(Exception):
    """Raised when the model backend could not produce a reply."""


@dataclass
class LLMCompletionResponse:
    """Wraps the full assistant message from the LLM API."""

    assistant_message: Dict

    @property
    def content(self) -> Optional[str]:
        """The text content of the message, if any."""
        return self.assistant_message.get("content")


class LLMClient:
    """
    A wrapper for the LLM client to abstract away the specific provider library.
    This allows for easier swapping of LLM providers in the future.
    """

    def __init__(self, provider_configs: Dict):
        """
        Initializes the LLM client.

        Args:
            provider_configs: A dictionary containing configuration for the LLM provider.
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def format_system_message(content: str) -> Dict:
        return {"role": "system", "content": content}

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    @staticmethod
    def format_assistant_message(content: str) -> Dict:
        return {"role": "assistant", "content": content}

    def completion(self, model: str, messages: List[Dict], **kwargs) -> LLMCompletionResponse:
        """
        Sends the messages to the model and returns its reply.

        Any error raised by the provider library (network failures, timeouts,
        authentication problems...) is re-raised as `ModelRequestFailed`.
        """
        logger.debug("Sending %d messages to %s", len(messages), model)
        try:
            response = self.client.chat.completions.create(
                model=model, messages=messages, **kwargs
            )
            # The message object from aisuite/openai can be converted to a dict.
            # We exclude unset values to keep the payload clean and compatible.
            message_dict = response.choices[0].message.model_dump(exclude_unset=True)
        except Exception as e:
            raise ModelRequestFailed(f"{type(e).__name__}: {e}") from e

        result = LLMCompletionResponse(assistant_message=message_dict)
        if not result.content:
            raise ModelRequestFailed("The model returned an empty response.")
        return result
