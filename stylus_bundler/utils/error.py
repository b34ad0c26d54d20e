"""Error utility for Stylus Bundler."""

from typing import Optional


class BundlerError(Exception):
    """Base exception for Stylus Bundler."""
    pass


class ResolutionError(BundlerError):
    """Raised when an @import/@require target cannot be found."""

    def __init__(self, requester: str, target: str, lineno: Optional[int] = None):
        self.requester = requester
        self.target = target
        self.lineno = lineno
        location = requester if lineno is None else f"{requester}:{lineno}"
        super().__init__(f'failed to locate "{target}" imported from {location}')


class SourceSyntaxError(BundlerError):
    """Raised on malformed source in a fragment."""

    def __init__(self, path: str, lineno: int, column: int, message: str):
        self.path = path
        self.lineno = lineno
        self.column = column
        self.msg = message
        super().__init__(message)

    def __str__(self):
        return '%s (%s:%s:%s)' % (self.msg, self.path, self.lineno, self.column)


class AssetReadError(BundlerError):
    """Raised when a url() resource cannot be read in strict mode."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read asset {path}: {reason}")


class PrefixConfigError(BundlerError):
    """Raised when browser targets cannot be resolved."""
    pass


class ConfigurationError(BundlerError):
    """Raised when configuration is invalid."""
    pass


class FileOperationError(BundlerError):
    """Raised when file operations fail."""
    pass


# Exported exceptions
__all__ = [
    'BundlerError',
    'ResolutionError',
    'SourceSyntaxError',
    'AssetReadError',
    'PrefixConfigError',
    'ConfigurationError',
    'FileOperationError',
]
