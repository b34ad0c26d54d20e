"""Common utilities for Stylus Bundler."""

import os
from .error import FileOperationError


def ensure_directory(path: str) -> bool:
    """Ensure directory exists.

    Args:
        path: Directory path

    Returns:
        True if directory exists or was created

    Raises:
        FileOperationError: If directory creation fails
    """
    if not path:
        return True
    try:
        os.makedirs(path, exist_ok=True)
        return True
    except OSError as e:
        raise FileOperationError(f"Failed to create directory {path}: {e}")


def get_file_extension(path: str) -> str:
    """Get file extension.

    Args:
        path: File path

    Returns:
        File extension (lowercase)
    """
    return os.path.splitext(path)[1].lower()


def normalize_path(path: str) -> str:
    """Normalize file path.

    Args:
        path: Path to normalize

    Returns:
        Absolute path with symlinks resolved and forward slashes
    """
    path = os.path.realpath(os.path.abspath(path))
    return path.replace('\\', '/')


def to_posix(path: str) -> str:
    """Convert OS separators to forward slashes."""
    return path.replace(os.sep, '/')


# Exported functions
__all__ = [
    'ensure_directory',
    'get_file_extension',
    'normalize_path',
    'to_posix',
]
