"""mediabot: chat-driven YouTube audio/video fetcher."""

__version__ = "0.1.0"
