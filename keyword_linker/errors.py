"""Exceptions raised by the keyword linker."""

from typing import Optional


class KeywordLinkerError(Exception):
    """Base class for all keyword linker errors."""


class ConfigurationError(KeywordLinkerError, ValueError):
    """Invalid linking or text processing configuration."""


class SearchUnavailable(KeywordLinkerError):
    """The entity searcher could not answer a query."""


class SearchTimeout(SearchUnavailable):
    """A search did not complete within the configured timeout."""


class LinkingCancelled(KeywordLinkerError):
    """The linking pass was cancelled before it completed."""


class InvalidSpanError(KeywordLinkerError, ValueError):
    """An annotated span violates ``0 <= start < end <= len(text)``."""

    def __init__(self, start: int, end: int, text_length: int, kind: Optional[str] = None):
        self.start = start
        self.end = end
        self.text_length = text_length
        self.kind = kind
        what = f"{kind} span" if kind else "span"
        super().__init__(
            f"Invalid {what} [{start}, {end}) for text of length {text_length}"
        )


def check_span(start: int, end: int, text_length: int, kind: Optional[str] = None) -> None:
    """Raise InvalidSpanError unless ``[start, end)`` lies inside the text."""
    if not (0 <= start < end <= text_length):
        raise InvalidSpanError(start, end, text_length, kind)
