"""Core exception types for documenter-index."""
from typing import Optional


class DocIndexError(Exception):
    """Base exception for all documenter-index errors."""
    pass


class FormatError(DocIndexError):
    """Raised when a search index payload does not have the expected shape.

    ``position`` is the index of the offending record in the ``docs`` array,
    or None when the problem is with the container itself.
    """

    def __init__(self, message: str, position: Optional[int] = None):
        if position is not None:
            message = f"record {position}: {message}"
        super().__init__(message)
        self.position = position


class ConfigError(DocIndexError):
    """Raised when a configuration file is missing or invalid."""
    pass


class IndexBuildError(DocIndexError):
    """Raised when index build fails."""
    pass
