"""chat: stream chat-completion replies to the terminal."""

__version__ = "0.1.0"
