"""Pytest configuration and shared fixtures for the evaluation tests."""

import os
from collections.abc import Callable, Generator, Sequence

import pytest

from chat_eval_toolkit.llms.base import LLM, ChatMessage, ChatOptions, ChatResponse, Roles

SCENARIO_ANSWER = "The Flying Dolphins Munich won the Super Sports Ball in 2025."


class FakeLLM(LLM):
    """Scripted LLM: returns 'replies' in order (the last one repeats) and records every call."""

    def __init__(self, replies: str | Sequence[str], model_name: str = "fake-model") -> None:
        self.model_name = model_name
        self.replies = [replies] if isinstance(replies, str) else list(replies)
        self.calls: list[tuple[list[ChatMessage], ChatOptions | None]] = []

    async def generate(
        self,
        conversation: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        self.calls.append((list(conversation), options))
        reply = self.replies[min(len(self.calls), len(self.replies)) - 1]
        return ChatResponse.from_text(reply, model_id=self.model_name)


@pytest.fixture
def make_llm() -> Callable[..., FakeLLM]:
    """Factory for 'FakeLLM' instances."""
    return FakeLLM


@pytest.fixture
def messages() -> list[ChatMessage]:
    """The Super Sports Ball conversation."""
    return [
        ChatMessage(
            role=Roles.SYSTEM,
            content="You provide answers related to sport events. "
            "The Flying Dolphins Munich won the Super Sports Ball in 2025.",
        ),
        ChatMessage(role=Roles.USER, content="Who won the Super Sport Ball 2025?"),
    ]


@pytest.fixture
def scenario_response() -> ChatResponse:
    return ChatResponse.from_text(SCENARIO_ANSWER)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str], None, None]:
    """Save the environment and restore it after the test.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)
