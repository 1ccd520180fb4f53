"""OpenAI-compatible chat-completions provider over httpx.

Builds the POST request, retries transient failures while opening it,
and hands streamed bodies to chat.streaming.Stream through a
ResponseReader that turns httpx's chunk iterator into bounded reads.
"""

from __future__ import annotations

import logging
import threading
import time

import httpx
from pydantic import ValidationError

from chat.exceptions import ResponseDecodeError, TransportError
from chat.providers.base import ChatProvider
from chat.schemas.completions import CompletionsRequest, CompletionsResponse
from chat.schemas.config import ClientConfig
from chat.streaming.stream import Stream

logger = logging.getLogger(__name__)

_BASE_BACKOFF = 1.0  # seconds


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class ResponseReader:
    """File-like view of a streaming httpx response.

    ``read(size)`` returns at most ``size`` bytes, blocking only when no
    previously received bytes are left, and ``b""`` once the body is
    exhausted. Transport failures surface as TransportError.
    """

    def __init__(self, response: httpx.Response, client: httpx.Client | None = None) -> None:
        self._response = response
        self._client = client
        self._chunks = response.iter_bytes()
        self._pending = b""
        self._closed = False

    def read(self, size: int) -> bytes:
        if self._closed:
            return b""
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return b""
            except httpx.HTTPError as e:
                raise TransportError(f"stream read failed: {e}") from e

        data = self._pending[:size]
        self._pending = self._pending[size:]
        return data

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._response.close()
        if self._client is not None:
            self._client.close()


class OpenAIProvider(ChatProvider):
    """Talks to an OpenAI-style /chat/completions endpoint."""

    def __init__(
        self,
        config: ClientConfig,
        api_key: str,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._api_key = api_key
        self._transport = transport

    def chat_sync(self, prompt: str) -> str:
        with self._make_client() as client:
            response = self._send_with_retry(client, prompt, stream=False)
            try:
                body = CompletionsResponse.model_validate_json(response.content)
            except ValidationError as e:
                raise ResponseDecodeError(
                    f"completions: could not decode response body ({e.error_count()} errors)"
                ) from e

        if not body.choices:
            logger.warning("Completions response has an empty choices list")
            return ""
        return body.choices[0].message.content or ""

    def chat_stream(
        self,
        prompt: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> Stream:
        client = self._make_client()
        try:
            response = self._send_with_retry(client, prompt, stream=True)
        except BaseException:
            client.close()
            raise

        deadline = None
        if self._config.stream_timeout:
            deadline = time.monotonic() + self._config.stream_timeout

        return Stream(
            ResponseReader(response, client),
            read_size=self._config.read_size,
            string_aware=self._config.string_aware_frames,
            cancel_event=cancel_event,
            deadline=deadline,
        )

    def build_payload(self, prompt: str, *, stream: bool) -> CompletionsRequest:
        return CompletionsRequest(
            stream=stream,
            model=self._config.model,
            messages=self.build_messages(prompt),
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _make_client(self) -> httpx.Client:
        return httpx.Client(timeout=self._config.timeout, transport=self._transport)

    def _send_with_retry(
        self, client: httpx.Client, prompt: str, *, stream: bool
    ) -> httpx.Response:
        """POST the request, retrying rate limits, 5xx and connection errors.

        Other non-2xx statuses (bad key, bad request) are raised immediately.

        Raises:
            TransportError: When the request fails for good.
        """
        request = client.build_request(
            "POST",
            self._config.endpoint,
            json=self.build_payload(prompt, stream=stream).model_dump(),
            headers=self._headers(),
        )
        attempts = self._config.max_retries
        last_error: TransportError | None = None

        for attempt in range(attempts):
            try:
                response = client.send(request, stream=stream)
            except httpx.TimeoutException:
                last_error = TransportError(
                    f"completions: request timed out after {self._config.timeout:g}s"
                )
            except httpx.HTTPError as e:
                last_error = TransportError(f"completions: {e}")
            else:
                if 200 <= response.status_code <= 299:
                    return response
                response.close()
                error = TransportError(
                    f"completions: bad status code {response.status_code}",
                    status_code=response.status_code,
                )
                if not _is_retryable_status(response.status_code):
                    raise error
                last_error = error

            if attempt < attempts - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1,
                    attempts,
                    self._config.model,
                    last_error,
                    backoff,
                )
                time.sleep(backoff)

        raise last_error
