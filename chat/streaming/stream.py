"""Incremental decoding of a streamed completions response.

A Stream owns the unparsed byte buffer of one response body. Each call
to next_frame() first looks for a complete object already buffered (one
read can carry several), and only then performs exactly one bounded read
from the transport. Reads block for as long as the transport does; the
caller simply asks again when a read produced no complete frame.

The stream ends in one of two terminal outcomes, END_OF_STREAM when the
transport is exhausted or the stream is closed, and ERROR when a read
fails or the stream is cancelled. A terminal stream never reads again.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from typing import Protocol

from chat.exceptions import ChatError, StreamCancelledError, StreamTimeoutError
from chat.schemas.streaming import StreamOutcome
from chat.streaming.decoder import decode_fragment
from chat.streaming.frames import extract_frame

logger = logging.getLogger(__name__)

# Bytes requested per transport read
READ_SIZE = 2048


class ByteReader(Protocol):
    """Anything with a file-like read(); ``b""`` signals end of data."""

    def read(self, size: int, /) -> bytes: ...


class Stream:
    """Pull-based frame extractor over a byte reader.

    Not thread-safe: a stream must be driven by a single consumer. The
    cancel event may be set from any thread; it is honoured before the
    next read.
    """

    def __init__(
        self,
        reader: ByteReader,
        *,
        read_size: int = READ_SIZE,
        string_aware: bool = False,
        cancel_event: threading.Event | None = None,
        deadline: float | None = None,
    ) -> None:
        if read_size <= 0:
            raise ValueError(f"read_size must be positive, got {read_size}")
        self._reader = reader
        self._read_size = read_size
        self._string_aware = string_aware
        self._cancel_event = cancel_event
        self._deadline = deadline

        self._buf = bytearray()
        self._outcome = StreamOutcome.MORE_DATA
        self._err: Exception | None = None
        # Transport hit end of data; only buffered bytes remain
        self._exhausted = False

    # ── State ─────────────────────────────────────────────────

    @property
    def outcome(self) -> StreamOutcome:
        return self._outcome

    @property
    def done(self) -> bool:
        """True once the stream is terminal."""
        return self._outcome.is_terminal

    @property
    def err(self) -> Exception | None:
        """The failure that ended the stream, if it ended in ERROR."""
        return self._err

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet consumed as frames."""
        return len(self._buf)

    # ── Extraction ────────────────────────────────────────────

    def next_frame(self) -> bytes | None:
        """Return the next complete JSON frame, or None if none is ready.

        None does not mean the stream is over; check ``done``.
        """
        if self.done:
            return None

        frame = extract_frame(self._buf, string_aware=self._string_aware)
        if frame is not None:
            return frame

        if self._exhausted:
            self._finish()
            return None

        interruption = self._interruption()
        if interruption is not None:
            self._fail(interruption)
            return None

        try:
            data = self._reader.read(self._read_size)
        except (ChatError, OSError) as e:
            self._fail(e)
            return None

        if not data:
            if self._string_aware and self._buf:
                # An unterminated string can hide the frames after it
                logger.debug("Re-scanning %d pending bytes without string tracking", len(self._buf))
                self._string_aware = False
                self._exhausted = True
                return self.next_frame()
            self._finish()
            return None

        self._buf += data
        return extract_frame(self._buf, string_aware=self._string_aware)

    def next(self) -> str:
        """Return the text delta of the next frame, or ``""``."""
        frame = self.next_frame()
        if frame is None:
            return ""
        return decode_fragment(frame)

    def __iter__(self) -> Iterator[str]:
        """Yield non-empty text fragments until the stream is terminal."""
        while not self.done:
            fragment = self.next()
            if fragment:
                yield fragment

    # ── Lifecycle ─────────────────────────────────────────────

    def close(self) -> None:
        """Release the transport and make the stream terminal. Idempotent."""
        close = getattr(self._reader, "close", None)
        if close is not None:
            close()
        if not self.done:
            self._outcome = StreamOutcome.END_OF_STREAM
        self._buf.clear()

    def __enter__(self) -> Stream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _interruption(self) -> Exception | None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            return StreamCancelledError("stream cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return StreamTimeoutError("stream deadline exceeded")
        return None

    def _fail(self, error: Exception) -> None:
        logger.warning("Stream stopped: %s", error)
        self._err = error
        self._outcome = StreamOutcome.ERROR

    def _finish(self) -> None:
        if self._buf.strip():
            logger.debug("Discarding %d trailing bytes at end of stream", len(self._buf))
        self._outcome = StreamOutcome.END_OF_STREAM


def consume(stream: Stream, write: Callable[[str], object]) -> StreamOutcome:
    """Drive a stream to completion, writing each fragment as it arrives.

    Returns the terminal outcome so callers can tell a finished reply
    from an interrupted one.
    """
    for fragment in stream:
        write(fragment)
    return stream.outcome
