"""Incremental decoding of streamed chat-completion responses."""

from chat.streaming.decoder import decode_fragment
from chat.streaming.frames import extract_frame, find_frame
from chat.streaming.stream import READ_SIZE, Stream, consume

__all__ = [
    "READ_SIZE",
    "Stream",
    "consume",
    "decode_fragment",
    "extract_frame",
    "find_frame",
]
