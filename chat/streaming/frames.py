"""Brace-balanced frame scanning over a raw byte buffer.

The completions stream is a concatenation of JSON objects with no
reliable separator, so frames are found structurally: the first ``{``
seen at depth zero opens a frame and the ``}`` that brings the depth
back to zero closes it. Bytes outside any frame (an SSE ``data:``
prefix, ``[DONE]``, blank lines) are skipped.

Two scanning modes are supported:

* naive (default): every brace counts, regardless of quoting. Payloads
  that carry unbalanced braces in their text are framed incorrectly and
  the resulting frame fails to decode.
* string-aware: braces inside JSON string literals are not structural,
  so ``{"content": "a { b"}`` is one frame. Backslash escapes are
  honoured. A frame with an unterminated string hides every later frame
  from this scan; Stream falls back to a naive re-scan of whatever is
  left when the transport reaches end of data.
"""

from __future__ import annotations

_OPEN = ord("{")
_CLOSE = ord("}")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")


def find_frame(
    buffer: bytes | bytearray, *, string_aware: bool = False
) -> tuple[int, int] | None:
    """Locate the first complete object in the buffer.

    Args:
        buffer: Unparsed stream bytes, in arrival order.
        string_aware: Ignore braces that appear inside string literals.

    Returns:
        ``(start, end)`` with ``end`` exclusive, or None when no complete
        object is buffered yet.
    """
    depth = 0
    start = 0
    in_string = False
    escaped = False

    for i, byte in enumerate(buffer):
        if in_string:
            if escaped:
                escaped = False
            elif byte == _BACKSLASH:
                escaped = True
            elif byte == _QUOTE:
                in_string = False
            continue

        if byte == _OPEN:
            if depth == 0:
                start = i
            depth += 1
        elif byte == _CLOSE:
            # A closing brace before any opening one is noise
            if depth == 0:
                continue
            depth -= 1
            if depth == 0:
                return start, i + 1
        elif byte == _QUOTE and string_aware and depth > 0:
            in_string = True

    return None


def extract_frame(buffer: bytearray, *, string_aware: bool = False) -> bytes | None:
    """Remove and return the first complete object from the buffer.

    Everything up to and including the object's closing brace is deleted
    from ``buffer`` in place; bytes after it stay for the next call. When
    no complete object is present, only the noise ahead of the first
    ``{`` is dropped (all of it if there is no ``{``), so a partial
    object is kept intact while junk never accumulates.
    """
    span = find_frame(buffer, string_aware=string_aware)
    if span is None:
        start = buffer.find(b"{")
        if start == -1:
            buffer.clear()
        elif start > 0:
            del buffer[:start]
        return None

    start, end = span
    frame = bytes(buffer[start:end])
    del buffer[:end]
    return frame
