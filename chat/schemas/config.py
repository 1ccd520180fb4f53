"""Client configuration schema.

Loaded from config/defaults.toml by providers.registry. Holds the
endpoint routing, model choice, transport limits, and stream tuning.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_GREETING = "Hi, I'm here to help with your questions."


class ClientConfig(BaseModel):
    """Settings for talking to one chat-completions endpoint."""

    endpoint: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Full URL of the chat-completions endpoint",
    )
    model: str = Field(default="gpt-4-1106-preview", description="Model identifier sent in requests")
    api_key_env: str = Field(
        default="OPENAI_API_KEY", description="Environment variable name holding the API key"
    )
    greeting: str = Field(
        default=DEFAULT_GREETING,
        description="Assistant turn sent ahead of every user prompt",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description=(
            "Per-operation HTTP timeout in seconds (connect, each read, write); "
            "see stream_timeout for a limit on the whole reply"
        ),
    )
    stream_timeout: float = Field(
        default=0.0,
        ge=0,
        description="Wall-clock limit for a whole streamed reply (0 = no limit)",
    )
    max_retries: int = Field(
        default=3, ge=1, le=10, description="Attempts made to open a request on transient errors"
    )
    read_size: int = Field(default=2048, gt=0, description="Bytes requested per stream read")
    string_aware_frames: bool = Field(
        default=False,
        description="Ignore braces inside JSON strings when framing the stream",
    )
