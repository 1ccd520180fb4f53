"""Decode one streamed frame into its text delta."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from chat.schemas.completions import StreamChunkRecord

logger = logging.getLogger(__name__)


def decode_fragment(raw: bytes | str) -> str:
    """Return the text delta carried by one complete JSON frame.

    Malformed frames are dropped rather than raised so that one bad event
    never stops the stream. A frame with no choices is treated the same
    way, with a warning. A missing or null ``content`` yields ``""``.
    """
    try:
        record = StreamChunkRecord.model_validate_json(raw)
    except ValidationError as e:
        logger.debug("Dropping undecodable frame (%d errors): %r", e.error_count(), raw[:120])
        return ""

    if not record.choices:
        logger.warning("Stream frame has an empty choices list; skipping")
        return ""

    return record.choices[0].delta.content or ""
