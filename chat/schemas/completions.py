"""Chat-completions request and response schemas.

Models the JSON exchanged with the completions endpoint: the outbound
request body, the blocking response, and the per-event delta record sent
when streaming. Unknown fields in responses are ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A single conversation turn."""

    role: str = Field(description="Speaker role: 'system', 'assistant' or 'user'")
    content: str = Field(description="Message text")


class CompletionsRequest(BaseModel):
    """Body of a POST to the completions endpoint."""

    stream: bool = Field(default=False, description="Stream the reply as delta events")
    model: str = Field(description="Model identifier")
    messages: list[ChatMessage] = Field(description="Conversation turns, oldest first")


class ResponseMessage(BaseModel):
    role: str = "assistant"
    content: str | None = None


class ResponseChoice(BaseModel):
    message: ResponseMessage


class CompletionsResponse(BaseModel):
    """Blocking (non-streamed) completions response."""

    choices: list[ResponseChoice] = Field(default_factory=list)


class Delta(BaseModel):
    # null on role-announcement and final frames
    content: str | None = None


class DeltaChoice(BaseModel):
    delta: Delta = Field(default_factory=Delta)


class StreamChunkRecord(BaseModel):
    """One decoded streaming event: ``{"choices":[{"delta":{"content":...}}]}``."""

    choices: list[DeltaChoice] = Field(default_factory=list)
