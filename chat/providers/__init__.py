"""Provider layer: request construction and HTTP transport.

All network access goes through a ChatProvider; OpenAIProvider is the
implementation for OpenAI-style chat-completions endpoints.
"""

from chat.providers.base import ChatProvider
from chat.providers.openai_provider import OpenAIProvider, ResponseReader
from chat.providers.registry import load_client_config

__all__ = [
    "ChatProvider",
    "OpenAIProvider",
    "ResponseReader",
    "load_client_config",
]
