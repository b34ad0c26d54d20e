"""Path handling functionality."""

import os
import re
from typing import Optional, Tuple

from .common import normalize_path, to_posix

_SCHEME_RE = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*:')


def is_absolute_url(url: str) -> bool:
    """Check if a url() literal must be left alone.

    Args:
        url: Literal as written inside url()

    Returns:
        True for scheme-prefixed (http:, data:), protocol-relative (//),
        root-relative (/) and fragment-only (#id) references
    """
    if not url:
        return True
    if url.startswith(('/', '#')):
        return True
    return bool(_SCHEME_RE.match(url))


def split_url_suffix(url: str) -> Tuple[str, str]:
    """Split a relative url into its path and ?query / #fragment suffix.

    Args:
        url: Relative url

    Returns:
        Tuple of (path, suffix)
    """
    match = re.search(r'[?#]', url)
    if match is None:
        return url, ''
    return url[:match.start()], url[match.start():]


def resolve_relative_path(base_dir: str, relative_path: str) -> str:
    """Resolve relative path against base directory.

    Args:
        base_dir: Base directory
        relative_path: Relative path to resolve

    Returns:
        Canonical absolute path
    """
    return normalize_path(os.path.join(base_dir, relative_path))


def get_relative_path(path: str, base_dir: str) -> str:
    """Get relative path from base directory, always with forward slashes.

    Args:
        path: Path to convert
        base_dir: Base directory

    Returns:
        Relative path
    """
    return to_posix(os.path.relpath(path, base_dir))


def find_file(name: str, directories) -> Optional[str]:
    """Find the first existing file named ``name`` in ``directories``.

    Args:
        name: Relative file name
        directories: Directories to search in order

    Returns:
        Canonical path of the first match, or None
    """
    for directory in directories:
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate):
            return normalize_path(candidate)
    return None


# Exported functions
__all__ = [
    'is_absolute_url',
    'split_url_suffix',
    'resolve_relative_path',
    'get_relative_path',
    'find_file',
]
