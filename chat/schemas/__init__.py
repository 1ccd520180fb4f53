"""Pydantic schemas for the chat-completions wire format and stream state."""

from chat.schemas.completions import (
    ChatMessage,
    CompletionsRequest,
    CompletionsResponse,
    StreamChunkRecord,
)
from chat.schemas.config import ClientConfig
from chat.schemas.streaming import StreamChunk, StreamOutcome

__all__ = [
    "ChatMessage",
    "ClientConfig",
    "CompletionsRequest",
    "CompletionsResponse",
    "StreamChunk",
    "StreamChunkRecord",
    "StreamOutcome",
]
