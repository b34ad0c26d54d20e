"""Source resolver: compiles root fragments with import-once semantics."""

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .compiler import CompiledUnit, Compiler, StylusCompiler
from .tree import Stylesheet
from ..managers.files import FileStore
from ..utils.common import normalize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fragment:
    """A root source file.

    ``content`` is read from ``path`` when not supplied by the caller.
    """

    path: str
    content: Optional[str] = None
    lookup_roots: Tuple[str, ...] = ()


class SeenFiles:
    """Canonical paths already included by one resolve call."""

    def __init__(self, paths: Iterable[str] = ()):
        self._paths: Set[str] = {normalize_path(path) for path in paths}

    def __contains__(self, path: str) -> bool:
        return normalize_path(path) in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def admit(self, path: str) -> bool:
        """Record ``path``; returns False when it was already included."""
        key = normalize_path(path)
        if key in self._paths:
            return False
        self._paths.add(key)
        return True


def resolve(fragments: Sequence[Fragment], lookup_roots: Sequence[str] = (),
            compiler: Optional[Compiler] = None, files: Optional[FileStore] = None,
            seen: Optional[SeenFiles] = None) -> CompiledUnit:
    """Compile ``fragments`` in order into one compiled unit.

    Every physical file contributes its rules at most once, however many
    @import/@require directives lead to it.

    Args:
        fragments: Root fragments in bundle order
        lookup_roots: Directories searched for imports of every fragment
        compiler: Dialect compiler, :class:`StylusCompiler` by default
        files: Per-compile file store
        seen: Seen-file set to start from; a fresh one by default

    Returns:
        The concatenated rule tree and every touched file

    Raises:
        ResolutionError: If an import target cannot be found
        SourceSyntaxError: If a fragment is malformed
    """
    compiler = compiler or StylusCompiler()
    files = files or FileStore()
    seen = seen if seen is not None else SeenFiles()

    sheet = Stylesheet()
    touched: List[str] = []

    for fragment in fragments:
        path = normalize_path(fragment.path)
        if not seen.admit(path):
            logger.debug(f"Skipping root fragment {path}: already included")
            continue

        if fragment.content is None:
            source = files.read_text(path)
        else:
            source = fragment.content
            files.seed(path, source)

        roots = [os.path.abspath(root) for root in fragment.lookup_roots]
        roots += [os.path.abspath(root) for root in lookup_roots]
        unit = compiler.compile(source, path, roots, include=seen.admit, files=files)

        sheet = sheet + unit.stylesheet
        for touched_path in unit.files:
            if touched_path not in touched:
                touched.append(touched_path)

    logger.debug(f"Resolved {len(fragments)} fragments, {len(seen)} files included")
    return CompiledUnit(sheet, tuple(touched))


__all__ = ['Fragment', 'SeenFiles', 'resolve']
