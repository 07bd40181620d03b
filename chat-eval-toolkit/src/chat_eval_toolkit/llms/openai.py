"""
Azure OpenAI chat-completion backend.

'OpenAILLM' talks to one chat deployment through the official 'openai' client.
The client is pointed directly at the deployment URL
('{endpoint}openai/deployments/{deployment}/'), so the deployment name is also
the model name sent with each request.
"""

from typing import Any, Sequence

from loguru import logger
from openai import AsyncAzureOpenAI

from chat_eval_toolkit.config import DEFAULT_API_VERSION, EvaluationSettings
from chat_eval_toolkit.llms.base import LLM, ChatMessage, ChatOptions, ChatResponse, ChatResponseFormat, Roles


class OpenAILLM(LLM):
    """
    LLM backend for an Azure OpenAI chat deployment.

    Attributes:
        model_name: The deployment name, sent as 'model' on every request.
        client: The underlying 'AsyncAzureOpenAI' client.
    """

    def __init__(
        self,
        model_name: str,
        api_key: str,
        base_url: str,
        api_version: str = DEFAULT_API_VERSION,
    ) -> None:
        self.model_name = model_name
        self.client = AsyncAzureOpenAI(api_key=api_key, api_version=api_version, base_url=base_url)

    @classmethod
    def from_settings(cls, settings: EvaluationSettings) -> "OpenAILLM":
        return cls(
            model_name=settings.chat_deployment,
            api_key=settings.api_key,
            base_url=settings.deployment_endpoint,
            api_version=settings.api_version,
        )

    @staticmethod
    def _request_options(options: ChatOptions) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        if options.max_output_tokens is not None:
            kwargs["max_tokens"] = options.max_output_tokens
        if options.response_format == ChatResponseFormat.JSON:
            kwargs["response_format"] = {"type": "json_object"}
        else:
            kwargs["response_format"] = {"type": "text"}
        return kwargs

    async def generate(
        self,
        conversation: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        options = options or ChatOptions()
        logger.debug(f"OpenAILLM({self.model_name}): sending {len(conversation)} messages")
        completion = await self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": str(m.role), "content": m.content} for m in conversation],  # type: ignore[misc]
            **self._request_options(options),
        )
        choice = completion.choices[0]
        usage = completion.usage.model_dump() if completion.usage is not None else {}
        return ChatResponse(
            messages=[ChatMessage(role=Roles.ASSISTANT, content=choice.message.content or "")],
            model_id=completion.model,
            finish_reason=choice.finish_reason,
            usage=usage,
        )
