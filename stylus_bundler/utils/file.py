"""File utility for Stylus Bundler."""

import os

import aiofiles

from .common import ensure_directory
from .error import FileOperationError


def safe_write_file(file_path: str, content: str, encoding: str = 'utf-8') -> bool:
    """Safely write content to a file.

    Args:
        file_path: Path to the file
        content: Content to write
        encoding: File encoding

    Returns:
        True if successful

    Raises:
        FileOperationError: If file write fails
    """
    try:
        ensure_directory(os.path.dirname(file_path))
        with open(file_path, 'w', encoding=encoding) as f:
            f.write(content)
        return True
    except OSError as e:
        raise FileOperationError(f"Failed to write file {file_path}: {e}")


async def async_write_file(file_path: str, content: str, encoding: str = 'utf-8') -> bool:
    """Write content to a file without blocking the event loop.

    Raises:
        FileOperationError: If file write fails
    """
    try:
        ensure_directory(os.path.dirname(file_path))
        async with aiofiles.open(file_path, 'w', encoding=encoding) as f:
            await f.write(content)
        return True
    except OSError as e:
        raise FileOperationError(f"Failed to write file {file_path}: {e}")


def safe_read_file(file_path: str, encoding: str = 'utf-8') -> str:
    """Safely read content from a file.

    Args:
        file_path: Path to the file
        encoding: File encoding

    Returns:
        File content

    Raises:
        FileOperationError: If file read fails
    """
    try:
        with open(file_path, 'r', encoding=encoding) as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(f"Failed to read file {file_path}: {e}")


def safe_read_bytes(file_path: str) -> bytes:
    """Read raw bytes from a file.

    Raises:
        FileOperationError: If file read fails
    """
    try:
        with open(file_path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise FileOperationError(f"Failed to read file {file_path}: {e}")


# Exported functions
__all__ = ['safe_write_file', 'async_write_file', 'safe_read_file', 'safe_read_bytes']
