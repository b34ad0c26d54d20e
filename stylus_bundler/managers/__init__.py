"""Resource managers for Stylus Bundler."""

from .base import BaseManager
from .files import FileStore

# Exported classes
__all__ = [
    'BaseManager',
    'FileStore',
]
