"""Tests for chat.providers.openai_provider: httpx transport."""

from __future__ import annotations

import json
import threading
from unittest.mock import patch

import httpx
import pytest

from chat.exceptions import ResponseDecodeError, StreamCancelledError, TransportError
from chat.providers.base import ChatProvider
from chat.providers.openai_provider import OpenAIProvider, ResponseReader
from chat.schemas.config import DEFAULT_GREETING, ClientConfig
from chat.schemas.streaming import StreamChunk, StreamOutcome

# Shorthand for the mock target
_SLEEP = "chat.providers.openai_provider.time.sleep"


# ── Helpers ───────────────────────────────────────────────────


def _make_config(**overrides) -> ClientConfig:
    defaults = {
        "endpoint": "https://api.example.test/v1/chat/completions",
        "model": "test-model-v1",
        "timeout": 5.0,
        "max_retries": 3,
    }
    defaults.update(overrides)
    return ClientConfig(**defaults)


def _frame(text: str) -> bytes:
    return json.dumps({"choices": [{"delta": {"content": text}}]}).encode()


def _make_provider(handler, **overrides) -> OpenAIProvider:
    return OpenAIProvider(
        _make_config(**overrides),
        "sk-test",
        transport=httpx.MockTransport(handler),
    )


def _sync_body(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


# ── Request construction ─────────────────────────────────────


class TestRequest:
    def test_request_shape(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=_sync_body("ok"))

        _make_provider(handler).chat_sync("What is 2+2?")

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.example.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "stream": False,
            "model": "test-model-v1",
            "messages": [
                {"role": "assistant", "content": DEFAULT_GREETING},
                {"role": "user", "content": "What is 2+2?"},
            ],
        }

    def test_stream_flag_sent(self):
        bodies: list[dict] = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, content=b"")

        with _make_provider(handler).chat_stream("hi"):
            pass
        assert bodies[0]["stream"] is True

    def test_custom_greeting(self):
        provider = _make_provider(lambda r: None, greeting="Ask away.")
        messages = provider.build_messages("q")
        assert messages[0].content == "Ask away."
        assert messages[1].role == "user"

    def test_identity(self):
        provider = _make_provider(lambda r: None)
        assert isinstance(provider, ChatProvider)
        assert provider.model_id == "test-model-v1"
        assert provider.endpoint.endswith("/chat/completions")


# ── Blocking path ────────────────────────────────────────────


class TestChatSync:
    def test_returns_first_choice(self):
        body = {"choices": [
            {"message": {"role": "assistant", "content": "four"}},
            {"message": {"role": "assistant", "content": "4"}},
        ]}
        provider = _make_provider(lambda r: httpx.Response(200, json=body))
        assert provider.chat_sync("2+2") == "four"

    def test_empty_choices_is_empty_reply(self, caplog):
        provider = _make_provider(lambda r: httpx.Response(200, json={"choices": []}))
        assert provider.chat_sync("2+2") == ""
        assert "empty choices" in caplog.text

    def test_malformed_body(self):
        provider = _make_provider(lambda r: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(ResponseDecodeError):
            provider.chat_sync("2+2")

    def test_bad_status_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, json={"error": {"message": "bad key"}})

        with patch(_SLEEP) as sleep:
            with pytest.raises(TransportError, match="bad status code 401") as exc_info:
                _make_provider(handler).chat_sync("hi")

        assert exc_info.value.status_code == 401
        assert len(calls) == 1
        sleep.assert_not_called()


class TestRetry:
    def test_retries_on_server_error(self):
        responses = [
            httpx.Response(503),
            httpx.Response(200, json=_sync_body("recovered")),
        ]

        with patch(_SLEEP) as sleep:
            reply = _make_provider(lambda r: responses.pop(0)).chat_sync("hi")

        assert reply == "recovered"
        sleep.assert_called_once_with(1.0)

    def test_retries_on_rate_limit_with_backoff(self):
        responses = [
            httpx.Response(429),
            httpx.Response(429),
            httpx.Response(200, json=_sync_body("ok")),
        ]

        with patch(_SLEEP) as sleep:
            assert _make_provider(lambda r: responses.pop(0)).chat_sync("hi") == "ok"

        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_all_retries_exhausted(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        with patch(_SLEEP):
            with pytest.raises(TransportError) as exc_info:
                _make_provider(handler, max_retries=2).chat_sync("hi")

        assert exc_info.value.status_code == 500
        assert len(calls) == 2

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with patch(_SLEEP):
            with pytest.raises(TransportError, match="connection refused"):
                _make_provider(handler).chat_sync("hi")

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with patch(_SLEEP):
            with pytest.raises(TransportError, match="timed out after 5s"):
                _make_provider(handler).chat_sync("hi")

    def test_stream_open_failure(self):
        with patch(_SLEEP):
            with pytest.raises(TransportError, match="bad status code 404"):
                _make_provider(lambda r: httpx.Response(404)).chat_stream("hi")


# ── Streaming path ───────────────────────────────────────────


class TestChatStream:
    def test_three_reads_then_end(self):
        chunks = [_frame("He"), _frame("llo")]
        provider = _make_provider(lambda r: httpx.Response(200, content=iter(chunks)))

        with provider.chat_stream("hi") as stream:
            assert "".join(stream) == "Hello"
            assert stream.outcome is StreamOutcome.END_OF_STREAM

    def test_sse_framing_tolerated(self):
        body = (
            b"data: " + _frame("a") + b"\n\n"
            b"data: " + _frame("b") + b"\n\n"
            b"data: [DONE]\n\n"
        )
        provider = _make_provider(lambda r: httpx.Response(200, content=body))
        with provider.chat_stream("hi") as stream:
            assert list(stream) == ["a", "b"]

    def test_read_size_from_config(self):
        body = _frame("x" * 100)
        provider = _make_provider(lambda r: httpx.Response(200, content=body), read_size=8)
        with provider.chat_stream("hi") as stream:
            assert stream.next() == ""
            assert stream.pending == 8

    def test_transport_error_mid_stream(self):
        def body():
            yield _frame("He")
            raise httpx.ReadError("connection reset")

        provider = _make_provider(lambda r: httpx.Response(200, content=body()))
        with provider.chat_stream("hi") as stream:
            assert list(stream) == ["He"]
        assert stream.outcome is StreamOutcome.ERROR
        assert isinstance(stream.err, TransportError)

    def test_cancel_event(self):
        cancel = threading.Event()
        cancel.set()
        provider = _make_provider(lambda r: httpx.Response(200, content=_frame("a")))
        with provider.chat_stream("hi", cancel_event=cancel) as stream:
            assert list(stream) == []
        assert isinstance(stream.err, StreamCancelledError)

    def test_stream_timeout_sets_deadline(self):
        provider = _make_provider(
            lambda r: httpx.Response(200, content=_frame("a")), stream_timeout=60.0
        )
        with patch("chat.providers.openai_provider.time.monotonic", return_value=1000.0):
            stream = provider.chat_stream("hi")
        assert stream._deadline == 1060.0
        stream.close()


class TestResponseReader:
    def _reader(self, chunks) -> ResponseReader:
        client = httpx.Client(transport=httpx.MockTransport(
            lambda r: httpx.Response(200, content=iter(chunks))
        ))
        request = client.build_request("POST", "https://api.example.test/")
        return ResponseReader(client.send(request, stream=True), client)

    def test_bounded_reads(self):
        reader = self._reader([b"a" * 5000])
        assert [len(reader.read(2048)) for _ in range(4)] == [2048, 2048, 904, 0]

    def test_small_chunks_not_merged(self):
        reader = self._reader([b"ab", b"cd"])
        assert reader.read(2048) == b"ab"
        assert reader.read(2048) == b"cd"
        assert reader.read(2048) == b""

    def test_read_after_close(self):
        reader = self._reader([b"ab"])
        reader.close()
        reader.close()
        assert reader.read(10) == b""


class TestCollect:
    def test_on_chunk_called_per_fragment(self):
        chunks = [_frame("hello "), _frame(""), _frame("world")]
        provider = _make_provider(lambda r: httpx.Response(200, content=iter(chunks)))
        received: list[StreamChunk] = []

        result = provider.collect("hi", on_chunk=received.append)

        assert result == "hello world"
        assert [c.delta for c in received] == ["hello ", "world", ""]
        assert received[1].accumulated == "hello world"
        assert received[1].token_count == 2
        assert received[-1].is_complete is True

    def test_without_callback(self):
        provider = _make_provider(lambda r: httpx.Response(200, content=_frame("x")))
        assert provider.collect("hi") == "x"

    def test_error_outcome_raises(self):
        def body():
            yield _frame("He")
            raise httpx.ReadError("connection reset")

        provider = _make_provider(lambda r: httpx.Response(200, content=body()))
        with pytest.raises(TransportError, match="connection reset"):
            provider.collect("hi")
