"""Abstract base class for chat-completion providers.

Defines the ChatProvider interface the CLI talks to. A provider owns
request construction and transport; decoding of streamed replies is
shared and lives in chat.streaming.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from chat.exceptions import ChatError, TransportError
from chat.schemas.completions import ChatMessage
from chat.schemas.config import ClientConfig
from chat.schemas.streaming import StreamChunk, StreamOutcome
from chat.streaming.stream import Stream


class ChatProvider(ABC):
    """Interface for any endpoint that can answer a single prompt.

    Initialized from a ClientConfig loaded from TOML. Exposes a blocking
    chat_sync() and a streaming chat_stream(); collect() builds on the
    latter for callers that want progress callbacks.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config

    @property
    def model_id(self) -> str:
        """Model identifier sent with every request."""
        return self._config.model

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    @property
    def config(self) -> ClientConfig:
        """The full ClientConfig backing this provider."""
        return self._config

    def build_messages(self, prompt: str) -> list[ChatMessage]:
        """Conversation sent for a prompt: the fixed greeting, then the user turn."""
        return [
            ChatMessage(role="assistant", content=self._config.greeting),
            ChatMessage(role="user", content=prompt),
        ]

    # ── Core interface ────────────────────────────────────────

    @abstractmethod
    def chat_sync(self, prompt: str) -> str:
        """Send the prompt and block until the full reply is available.

        Raises:
            TransportError: On a non-2xx status, connection failure or timeout.
            ResponseDecodeError: If the body is not a completions response.
        """

    @abstractmethod
    def chat_stream(self, prompt: str) -> Stream:
        """Send the prompt and return as soon as the reply starts streaming.

        Raises:
            TransportError: If the request could not be opened.
        """

    def collect(
        self,
        prompt: str,
        on_chunk: Callable[[StreamChunk], object] | None = None,
    ) -> str:
        """Stream a reply to completion and return the full text.

        Args:
            prompt: The user prompt.
            on_chunk: Optional callback invoked with a StreamChunk for each
                non-empty fragment, then once more with is_complete=True.

        Returns:
            The accumulated reply.

        Raises:
            ChatError: If the stream ended in ERROR rather than end-of-stream.
        """
        accumulated = ""
        token_count = 0

        with self.chat_stream(prompt) as stream:
            for fragment in stream:
                accumulated += fragment
                token_count += 1
                if on_chunk is not None:
                    on_chunk(
                        StreamChunk(
                            delta=fragment,
                            accumulated=accumulated,
                            token_count=token_count,
                        )
                    )
            outcome = stream.outcome
            err = stream.err

        if outcome is StreamOutcome.ERROR:
            if isinstance(err, ChatError):
                raise err
            raise TransportError(f"stream interrupted: {err}") from err

        if on_chunk is not None:
            on_chunk(
                StreamChunk(
                    delta="",
                    accumulated=accumulated,
                    token_count=token_count,
                    is_complete=True,
                )
            )
        return accumulated
