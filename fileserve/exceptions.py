"""
Exceptions raised while preparing or streaming a file response.
"""


class NamedFileError(Exception):
    """Base class for file serving errors."""
    pass


class InvalidInputError(NamedFileError, ValueError):
    """Raised when a path has no final component to use as the filename."""
    pass


class ModificationTimeError(NamedFileError):
    """Raised when a file reports a modification time before the Unix epoch."""
    pass


class UnexpectedEndOfFile(NamedFileError, OSError):
    """Raised when the file ends before the announced number of bytes was read."""
    pass
