from __future__ import annotations

from typing import Optional


class FilmChatError(Exception):
    """Base error for the chat pipeline and its collaborators."""


class ConfigurationError(FilmChatError):
    """A required external service has no credentials configured."""


class UpstreamError(FilmChatError):
    """Network failure or non-2xx answer from the metadata or generative service."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(FilmChatError):
    """The incoming message is empty or missing."""


class PersistenceError(FilmChatError):
    """The catalog store could not be read or written."""
