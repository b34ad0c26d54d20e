"""Rule tree produced by the compiler and threaded through the pipeline.

Nodes are frozen dataclasses. Stages never mutate a tree in place; they
build a new one with :func:`map_declarations` or :func:`dataclasses.replace`.
"""

from dataclasses import dataclass, replace
from typing import Callable, Iterator, List, Optional, Tuple, Union

from ..utils.path import get_relative_path


@dataclass(frozen=True)
class Origin:
    """Source position of a node (1-based line, 0-based column)."""

    path: Optional[str]
    line: int = 1
    column: int = 0


@dataclass(frozen=True)
class Declaration:
    name: str
    value: str
    origin: Optional[Origin] = None


@dataclass(frozen=True)
class Rule:
    selectors: Tuple[str, ...]
    declarations: Tuple[Declaration, ...] = ()
    origin: Optional[Origin] = None


@dataclass(frozen=True)
class Comment:
    text: str
    origin: Optional[Origin] = None


@dataclass(frozen=True)
class AtRule:
    """An at-rule.

    ``children`` is None for statement at-rules such as ``@charset``; block
    at-rules carry their own declarations (``@font-face``) and/or nested
    rules (``@media``, ``@keyframes``).
    """

    name: str
    params: str = ''
    declarations: Tuple[Declaration, ...] = ()
    children: Optional[Tuple['Node', ...]] = None
    origin: Optional[Origin] = None


Node = Union[Rule, AtRule, Comment]


@dataclass(frozen=True)
class Stylesheet:
    children: Tuple[Node, ...] = ()

    def __add__(self, other: 'Stylesheet') -> 'Stylesheet':
        return Stylesheet(self.children + other.children)


@dataclass(frozen=True)
class Rendered:
    """Serialized CSS plus the generated positions of mapped nodes."""

    css: str
    positions: Tuple[Tuple[int, int, Origin], ...] = ()


DeclarationMapper = Callable[[Tuple[Declaration, ...]], Tuple[Declaration, ...]]


def _map_node(node: Node, fn: DeclarationMapper) -> Node:
    if isinstance(node, Rule):
        return replace(node, declarations=tuple(fn(node.declarations)))
    if isinstance(node, AtRule):
        children = node.children
        if children is not None:
            children = tuple(_map_node(child, fn) for child in children)
        return replace(node, declarations=tuple(fn(node.declarations)), children=children)
    return node


def map_declarations(sheet: Stylesheet, fn: DeclarationMapper) -> Stylesheet:
    """Return a new stylesheet with ``fn`` applied to every declaration block."""
    return Stylesheet(tuple(_map_node(node, fn) for node in sheet.children))


def _iter_node(node: Node) -> Iterator[Declaration]:
    if isinstance(node, (Rule, AtRule)):
        yield from node.declarations
    if isinstance(node, AtRule) and node.children:
        for child in node.children:
            yield from _iter_node(child)


def iter_declarations(sheet: Stylesheet) -> Iterator[Declaration]:
    """Yield every declaration in document order."""
    for node in sheet.children:
        yield from _iter_node(node)


class _Writer:
    """Accumulates output text while tracking the current line and column."""

    def __init__(self):
        self.parts: List[str] = []
        self.positions: List[Tuple[int, int, Origin]] = []
        self.line = 0
        self.column = 0

    def write(self, text: str, origin: Optional[Origin] = None) -> None:
        if origin is not None and origin.path:
            self.positions.append((self.line, self.column, origin))
        self.parts.append(text)
        newlines = text.count('\n')
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind('\n') - 1
        else:
            self.column += len(text)


class Renderer:
    """Pretty-print a stylesheet the way the dialect compiler emits it."""

    indent = '  '

    def __init__(self, comments: bool = False, output_dir: Optional[str] = None):
        self.comments = comments
        self.output_dir = output_dir

    def render(self, sheet: Stylesheet) -> Rendered:
        out = _Writer()
        for node in sheet.children:
            self._node(out, node, 0)
        return Rendered(''.join(out.parts), tuple(out.positions))

    def _source_name(self, path: str) -> str:
        if self.output_dir:
            return get_relative_path(path, self.output_dir)
        return path

    def _node(self, out: _Writer, node: Node, depth: int) -> None:
        pad = self.indent * depth
        if isinstance(node, Comment):
            if self.comments:
                out.write(pad)
                out.write(node.text, node.origin)
                out.write('\n')
            return

        if self.comments and node.origin is not None and node.origin.path:
            out.write(f"{pad}/* line {node.origin.line} : {self._source_name(node.origin.path)} */\n")

        if isinstance(node, Rule):
            out.write(pad)
            out.write((',\n' + pad).join(node.selectors), node.origin)
            out.write(' {\n')
            self._declarations(out, node.declarations, depth + 1)
            out.write(pad + '}\n')
            return

        out.write(pad)
        head = f"@{node.name} {node.params}".rstrip()
        if node.children is None and not node.declarations:
            out.write(head + ';', node.origin)
            out.write('\n')
            return
        out.write(head, node.origin)
        out.write(' {\n')
        self._declarations(out, node.declarations, depth + 1)
        for child in node.children or ():
            self._node(out, child, depth + 1)
        out.write(pad + '}\n')

    def _declarations(self, out: _Writer, declarations, depth: int) -> None:
        pad = self.indent * depth
        for decl in declarations:
            out.write(pad)
            out.write(f"{decl.name}: {decl.value};", decl.origin)
            out.write('\n')


def render(sheet: Stylesheet, comments: bool = False, output_dir: Optional[str] = None) -> Rendered:
    """Serialize ``sheet`` and collect source positions for the map."""
    return Renderer(comments=comments, output_dir=output_dir).render(sheet)


__all__ = [
    'Origin',
    'Declaration',
    'Rule',
    'Comment',
    'AtRule',
    'Node',
    'Stylesheet',
    'Rendered',
    'Renderer',
    'map_declarations',
    'iter_declarations',
    'render',
]
