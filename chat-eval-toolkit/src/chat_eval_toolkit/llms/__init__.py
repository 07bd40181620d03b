from chat_eval_toolkit.llms.base import LLM, ChatMessage, ChatOptions, ChatResponse, ChatResponseFormat, Roles

__all__ = [
    "LLM",
    "ChatMessage",
    "ChatOptions",
    "ChatResponse",
    "ChatResponseFormat",
    "Roles",
]
