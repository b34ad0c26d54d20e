"""Source map emitter (revision 3)."""

import base64
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import orjson

from .options import Bundle, SourceMapOption
from .tree import Origin
from ..managers.files import FileStore
from ..utils.config import SOURCE_MAP_MIME_TYPE, SOURCE_MAP_SUFFIX
from ..utils.file import async_write_file, safe_write_file
from ..utils.path import get_relative_path

logger = logging.getLogger(__name__)

BASE64_DIGITS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/'
VLQ_SHIFT = 5
VLQ_CONTINUATION = 1 << VLQ_SHIFT
VLQ_MASK = VLQ_CONTINUATION - 1

Position = Tuple[int, int, Origin]


@dataclass(frozen=True)
class MapArtifact:
    """A source map to be written next to the bundle."""

    path: str
    content: str


@dataclass(frozen=True)
class Emitted:
    css: str
    artifact: Optional[MapArtifact] = None


def encode_vlq(value: int) -> str:
    """Encode one signed integer as base64 VLQ."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    digits = []
    while True:
        digit = vlq & VLQ_MASK
        vlq >>= VLQ_SHIFT
        if vlq:
            digit |= VLQ_CONTINUATION
        digits.append(BASE64_DIGITS[digit])
        if not vlq:
            return ''.join(digits)


def decode_vlq(text: str) -> List[int]:
    """Decode a base64 VLQ segment into its integers."""
    values = []
    shift = vlq = 0
    for char in text:
        digit = BASE64_DIGITS.index(char)
        vlq += (digit & VLQ_MASK) << shift
        if digit & VLQ_CONTINUATION:
            shift += VLQ_SHIFT
            continue
        values.append(-(vlq >> 1) if vlq & 1 else vlq >> 1)
        shift = vlq = 0
    return values


def encode_mappings(positions: Sequence[Position], sources: Dict[str, int]) -> str:
    """Build the ``mappings`` field.

    Args:
        positions: ``(generated_line, generated_column, origin)``; lines 0-based
        sources: Source index by origin path

    Returns:
        Semicolon separated lines of comma separated segments
    """
    by_line: Dict[int, List[Tuple[int, int, int, int]]] = {}
    for line, column, origin in positions:
        by_line.setdefault(line, []).append(
            (column, sources[origin.path], origin.line - 1, origin.column))

    lines = []
    prev_source = prev_line = prev_column = 0
    for line in range(max(by_line) + 1 if by_line else 0):
        segments = []
        prev_generated = 0
        for column, source, orig_line, orig_column in sorted(by_line.get(line, ())):
            segments.append(
                encode_vlq(column - prev_generated)
                + encode_vlq(source - prev_source)
                + encode_vlq(orig_line - prev_line)
                + encode_vlq(orig_column - prev_column)
            )
            prev_generated, prev_source = column, source
            prev_line, prev_column = orig_line, orig_column
        lines.append(','.join(segments))
    return ';'.join(lines)


def normalize_mode(mode: SourceMapOption) -> str:
    """Map the option value to ``'off'``, ``'file'`` or ``'inline'``."""
    if mode == 'inline':
        return 'inline'
    return 'file' if mode else 'off'


class SourceMapBuilder:
    """Assemble a source map for one bundle."""

    def __init__(self, bundle: Bundle, files: Optional[FileStore] = None):
        self.bundle = bundle
        self.files = files or FileStore()

    @property
    def map_name(self) -> str:
        return f"{self.bundle.name}{SOURCE_MAP_SUFFIX}"

    @property
    def map_path(self) -> str:
        return os.path.join(self.bundle.output_dir, self.map_name)

    def build(self, positions: Sequence[Position]) -> bytes:
        """Serialize the map for ``positions`` as JSON.

        Raises:
            FileOperationError: If a source cannot be read for ``sourcesContent``
        """
        paths: List[str] = []
        index: Dict[str, int] = {}
        for _, _, origin in positions:
            if origin.path not in index:
                index[origin.path] = len(paths)
                paths.append(origin.path)

        data = {
            'version': 3,
            'file': self.bundle.css_file,
            'sources': [get_relative_path(path, self.bundle.output_dir) for path in paths],
            'sourcesContent': [self.files.read_text(path) for path in paths],
            'names': [],
            'mappings': encode_mappings(positions, index),
        }
        return orjson.dumps(data)

    def emit(self, css: str, positions: Sequence[Position], mode: SourceMapOption) -> Emitted:
        mode = normalize_mode(mode)
        if mode == 'off':
            return Emitted(css)

        payload = self.build(positions)
        css = css.rstrip('\n') + '\n'
        if mode == 'inline':
            encoded = base64.b64encode(payload).decode('ascii')
            logger.debug(f"Inlined source map ({len(payload)} bytes)")
            return Emitted(f"{css}/*# sourceMappingURL=data:{SOURCE_MAP_MIME_TYPE};base64,{encoded} */")

        artifact = MapArtifact(self.map_path, payload.decode('utf-8'))
        return Emitted(f"{css}/*# sourceMappingURL={self.map_name} */", artifact)


def emit(css: str, positions: Sequence[Position], mode: SourceMapOption, bundle: Bundle,
         files: Optional[FileStore] = None) -> Emitted:
    """Attach a source map to ``css``.

    Args:
        css: Rendered bundle
        positions: Generated positions collected while rendering
        mode: False, True (sibling file) or ``"inline"``
        bundle: Output bundle the map belongs to
        files: Store holding the source texts

    Returns:
        CSS with its sourceMappingURL comment and, in file mode, the artifact
    """
    return SourceMapBuilder(bundle, files).emit(css, positions, mode)


def write_artifact(artifact: MapArtifact) -> str:
    """Write a map artifact to disk; returns its path.

    Raises:
        FileOperationError: If the file cannot be written
    """
    safe_write_file(artifact.path, artifact.content)
    logger.debug(f"Wrote source map {artifact.path}")
    return artifact.path


async def awrite_artifact(artifact: MapArtifact) -> str:
    """Async variant of :func:`write_artifact`."""
    await async_write_file(artifact.path, artifact.content)
    logger.debug(f"Wrote source map {artifact.path}")
    return artifact.path


__all__ = [
    'MapArtifact',
    'Emitted',
    'SourceMapBuilder',
    'encode_vlq',
    'decode_vlq',
    'encode_mappings',
    'emit',
    'write_artifact',
    'awrite_artifact',
]
