class ChatError(Exception):
    """Base exception for all application-specific errors."""
    pass


class ConfigurationError(ChatError):
    """Raised when a required setting, such as the API key, is missing."""
    pass


class TransportError(ChatError):
    """Raised when the HTTP exchange fails: bad status, connection error or timeout."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseDecodeError(ChatError):
    """Raised when a blocking response body is not a valid completions payload."""
    pass


class StreamInterruptedError(ChatError):
    """Raised (recorded) when a stream is stopped before the server finished."""
    pass


class StreamCancelledError(StreamInterruptedError):
    """The caller tripped the stream's cancel event."""
    pass


class StreamTimeoutError(StreamInterruptedError):
    """The stream's deadline passed before the next read."""
    pass
