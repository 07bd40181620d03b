"""
Response producer for the Super Sports Ball scenario.

Builds a fixed two-message conversation (system prompt carrying the fact to be
recalled, plus the user's question) and obtains one completion from the chat
deployment. The evaluation scenarios score this response.
"""

from dataclasses import dataclass
from textwrap import dedent

from loguru import logger

from chat_eval_toolkit.config import EvaluationSettings
from chat_eval_toolkit.llms.base import LLM, ChatMessage, ChatOptions, ChatResponse, ChatResponseFormat, Roles
from chat_eval_toolkit.llms.openai import OpenAILLM

SYSTEM_PROMPT = dedent("""\
    You provide answers related to sport events.
    You keep your responses concise and response with maximal two short sentences.
    The Flying Dolphins Munich won the Super Sports Ball in 2025.""")

USER_QUESTION = "Who won the Super Sport Ball 2025?"

CHAT_OPTIONS = ChatOptions(temperature=0.0, response_format=ChatResponseFormat.TEXT)


def get_chat_messages() -> list[ChatMessage]:
    return [
        ChatMessage(role=Roles.SYSTEM, content=SYSTEM_PROMPT),
        ChatMessage(role=Roles.USER, content=USER_QUESTION),
    ]


def build_llm(settings: EvaluationSettings) -> LLM:
    """Chat client for the configured deployment. Used both to answer and to judge."""
    logger.info(f"LLM backend: Azure OpenAI ({settings.chat_deployment or '<unset>'})")
    return OpenAILLM.from_settings(settings)


@dataclass
class ResponseProducer:
    """Produces the response under test: one completion for the fixed conversation."""

    llm: LLM

    @classmethod
    def from_settings(cls, settings: EvaluationSettings) -> "ResponseProducer":
        return cls(llm=build_llm(settings))

    def get_chat_messages(self) -> list[ChatMessage]:
        return get_chat_messages()

    async def get_chat_response(self) -> ChatResponse:
        response = await self.llm.generate(self.get_chat_messages(), CHAT_OPTIONS)
        logger.info(f"Model response: {response.text!r}")
        return response
