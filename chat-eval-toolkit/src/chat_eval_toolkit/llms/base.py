"""
Core LLM abstractions and chat data models.

Every chat-completion backend ('OpenAILLM', 'CachingLLM') implements the 'LLM'
ABC. The message format ('ChatMessage') is backend-agnostic so the response
producer and the evaluators never need to know which model answered.

'ChatResponse' is treated as opaque text by evaluators: they only read 'text'.
"""

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field


class Roles(StrEnum):
    """Conversation roles as used by the OpenAI chat completions API."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatResponseFormat(StrEnum):
    """Output format requested from the model."""

    TEXT = "text"
    JSON = "json"


class ChatMessage(BaseModel):
    """A single, immutable message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Roles
    content: str = ""


class ChatOptions(BaseModel):
    """
    Per-request generation options.

    'temperature' of 0.0 is used throughout the scenarios so that repeated runs
    produce (nearly) identical answers.
    """

    model_config = ConfigDict(frozen=True)

    temperature: float | None = None
    response_format: ChatResponseFormat = ChatResponseFormat.TEXT
    max_output_tokens: int | None = None


class ChatResponse(BaseModel):
    """
    The model's reply to a conversation.

    'messages' holds the assistant message(s) produced for one request.
    'usage' carries token counts as reported by the backend, if any.
    """

    messages: list[ChatMessage] = Field(default_factory=list)
    model_id: str | None = None
    finish_reason: str | None = None
    usage: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        """Concatenated content of all assistant messages; empty when there are none."""
        return "".join(m.content for m in self.messages if m.role == Roles.ASSISTANT)

    @classmethod
    def from_text(cls, text: str, model_id: str | None = None) -> "ChatResponse":
        return cls(messages=[ChatMessage(role=Roles.ASSISTANT, content=text)], model_id=model_id)


class LLM(ABC):
    """
    Abstract base class for chat-completion backends.

    Concrete implementations adapt a specific API client to a common interface.
    One call produces one complete response; there is no streaming and no retry
    at this level, transport errors propagate to the caller unchanged.
    """

    model_name: str

    @abstractmethod
    async def generate(
        self,
        conversation: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """Return a single complete response for the given conversation."""
        pass
