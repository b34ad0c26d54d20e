"""URL rewriter: rebases or inlines the resources referenced by url()."""

import base64
import logging
import os
import re
from dataclasses import dataclass, replace
from typing import Optional, Tuple
from urllib.parse import quote

from typing_extensions import Literal

from .tree import Declaration, Stylesheet, map_declarations
from ..managers.files import FileStore
from ..utils.common import get_file_extension
from ..utils.config import FALLBACK_MIME_TYPE, MIME_TYPES, SVG_CHARSET
from ..utils.error import AssetReadError, FileOperationError
from ..utils.path import get_relative_path, is_absolute_url, resolve_relative_path, split_url_suffix

logger = logging.getLogger(__name__)

RewritePolicy = Optional[Literal['rebase', 'inline']]
POLICIES = ('rebase', 'inline')

TOKEN_RE = re.compile(
    r'(?P<url>url\(\s*(?:"(?P<dq>(?:\\.|[^"\\])*)"|\'(?P<sq>(?:\\.|[^\'\\])*)\'|(?P<bare>[^)\s]*))\s*\))'
    r'|(?P<string>"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\')',
    re.I
)

# encodeURIComponent leaves these unescaped
SVG_SAFE_CHARS = "!~*'()"


@dataclass(frozen=True)
class ResourceReference:
    """One url() token found in a declaration value."""

    literal: str
    quote: str = ''
    path: Optional[str] = None
    suffix: str = ''
    mime_type: Optional[str] = None
    is_absolute: bool = False

    @property
    def exists(self) -> bool:
        return self.path is not None and os.path.isfile(self.path)


@dataclass(frozen=True)
class RewriteContext:
    """Directories and asset policy for one compile."""

    output_dir: str
    source_dir: str
    strict: bool = False
    files: Optional[FileStore] = None


def guess_mime_type(path: str) -> str:
    """Get the MIME type used for inlining ``path``."""
    return MIME_TYPES.get(get_file_extension(path), FALLBACK_MIME_TYPE)


def quote_url(literal: str) -> str:
    """Wrap a url literal in double quotes."""
    return 'url("%s")' % literal.replace('"', '\\"')


def parse_reference(literal: str, base_dir: str, quote_char: str = '') -> ResourceReference:
    """Build a :class:`ResourceReference` for ``literal`` written in ``base_dir``."""
    if is_absolute_url(literal):
        return ResourceReference(literal, quote_char, is_absolute=True)
    relative, suffix = split_url_suffix(literal)
    path = resolve_relative_path(base_dir, relative)
    return ResourceReference(literal, quote_char, path, suffix, guess_mime_type(path))


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode resource bytes as a data URI.

    SVG is percent-encoded text, everything else is base64.
    """
    if mime_type == 'image/svg+xml':
        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError:
            pass
        else:
            return f"data:{mime_type};charset={SVG_CHARSET},{quote(text, safe=SVG_SAFE_CHARS)}"
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class UrlRewriter:
    """Apply one rewrite policy to every url() in a stylesheet."""

    def __init__(self, policy: RewritePolicy, context: RewriteContext):
        if policy is not None and policy not in POLICIES:
            raise ValueError(f"Unknown url policy: {policy}")
        self.policy = policy
        self.context = context
        self.files = context.files or FileStore()
        self.stats = {'rebased': 0, 'inlined': 0, 'absolute': 0, 'missing': 0}

    def rewrite(self, sheet: Stylesheet) -> Stylesheet:
        if self.policy is None:
            return sheet
        return map_declarations(sheet, self._declarations)

    def _declarations(self, declarations: Tuple[Declaration, ...]) -> Tuple[Declaration, ...]:
        result = []
        for decl in declarations:
            if 'url(' in decl.value.lower():
                base_dir = self.context.source_dir
                if decl.origin is not None and decl.origin.path:
                    base_dir = os.path.dirname(decl.origin.path)
                decl = replace(decl, value=self.rewrite_value(decl.value, base_dir))
            result.append(decl)
        return tuple(result)

    def rewrite_value(self, value: str, base_dir: str) -> str:
        """Rewrite every url() of a declaration value."""
        def repl(match):
            if match.group('string') is not None:
                return match.group(0)
            if match.group('dq') is not None:
                literal, quote_char = match.group('dq'), '"'
            elif match.group('sq') is not None:
                literal, quote_char = match.group('sq'), "'"
            else:
                literal, quote_char = match.group('bare'), ''
            ref = parse_reference(literal, base_dir, quote_char)
            rewritten = self._rewrite_reference(ref)
            return match.group(0) if rewritten is None else rewritten
        return TOKEN_RE.sub(repl, value)

    def _rewrite_reference(self, ref: ResourceReference) -> Optional[str]:
        if ref.is_absolute:
            self.stats['absolute'] += 1
            return quote_url(ref.literal)

        if not ref.exists:
            self.stats['missing'] += 1
            if self.context.strict:
                raise AssetReadError(ref.path, 'file not found')
            logger.warning(f"Asset {ref.path} not found, leaving url({ref.literal}) as is")
            return None

        if self.policy == 'rebase':
            self.stats['rebased'] += 1
            relative = get_relative_path(ref.path, self.context.output_dir)
            return quote_url(relative + ref.suffix)

        try:
            data = self.files.read_bytes(ref.path)
        except FileOperationError as e:
            if self.context.strict:
                raise AssetReadError(ref.path, str(e))
            logger.warning(f"Could not inline {ref.path}: {e}")
            return None
        self.stats['inlined'] += 1
        return quote_url(encode_data_uri(data, ref.mime_type))


def rewrite(sheet: Stylesheet, policy: RewritePolicy, context: RewriteContext) -> Stylesheet:
    """Rewrite url() references of ``sheet`` according to ``policy``."""
    return UrlRewriter(policy, context).rewrite(sheet)


__all__ = [
    'RewritePolicy',
    'ResourceReference',
    'RewriteContext',
    'UrlRewriter',
    'guess_mime_type',
    'parse_reference',
    'encode_data_uri',
    'rewrite',
]
