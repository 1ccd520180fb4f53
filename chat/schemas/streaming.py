"""Streaming schemas for real-time token delivery.

Defines the tagged outcome reported by a Stream and the StreamChunk
progress record handed to on_chunk callbacks.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class StreamOutcome(StrEnum):
    """Where a stream stands after its latest read.

    MORE_DATA while the transport may still deliver bytes. The two
    terminal tags separate a clean end of data from a failure.
    """

    MORE_DATA = "more_data"
    END_OF_STREAM = "end_of_stream"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not StreamOutcome.MORE_DATA


class StreamChunk(BaseModel):
    """A single chunk of streaming output from a model."""

    delta: str = Field(description="New text in this chunk")
    accumulated: str = Field(description="Full text accumulated so far")
    token_count: int = Field(ge=0, description="Running count of non-empty fragments")
    is_complete: bool = Field(
        default=False, description="True on final chunk"
    )
