"""Per-compile file store for Stylus Bundler."""

from typing import Dict, Any

from .base import BaseManager
from ..utils.common import normalize_path
from ..utils.file import safe_read_bytes, safe_read_file


class FileStore(BaseManager):
    """Cache fragment text and resource bytes for the lifetime of one compile.

    A store is created by the pipeline for every compile call and dropped
    afterwards, so concurrent compiles never share cached reads.
    """

    def __init__(self, encoding: str = 'utf-8'):
        """Initialize file store.

        Args:
            encoding: Encoding used for text reads
        """
        super().__init__()
        self.encoding = encoding
        self._text: Dict[str, str] = {}
        self._bytes: Dict[str, bytes] = {}
        self.stats = {
            'text_reads': 0,
            'byte_reads': 0,
            'hits': 0,
        }

    def read_text(self, path: str) -> str:
        """Read a text file once per compile.

        Raises:
            FileOperationError: If the file cannot be read
        """
        key = normalize_path(path)
        if key in self._text:
            self.stats['hits'] += 1
            return self._text[key]
        content = safe_read_file(key, self.encoding)
        self.stats['text_reads'] += 1
        self._text[key] = content
        self.log_debug(f"Read {key} ({len(content)} chars)")
        return content

    def read_bytes(self, path: str) -> bytes:
        """Read a binary file once per compile.

        Raises:
            FileOperationError: If the file cannot be read
        """
        key = normalize_path(path)
        if key in self._bytes:
            self.stats['hits'] += 1
            return self._bytes[key]
        data = safe_read_bytes(key)
        self.stats['byte_reads'] += 1
        self._bytes[key] = data
        return data

    def seed(self, path: str, content: str) -> None:
        """Register text supplied by the caller instead of reading it."""
        self._text[normalize_path(path)] = content

    def get_stats(self) -> Dict[str, Any]:
        """Get read statistics."""
        stats = dict(self.stats)
        stats['cached_files'] = len(self._text) + len(self._bytes)
        return stats

    def cleanup(self) -> None:
        """Drop cached reads."""
        self._text.clear()
        self._bytes.clear()


# Exported class
__all__ = ['FileStore']
