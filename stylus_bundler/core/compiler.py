"""Dialect compiler: turns fragment source into a rule tree.

The pipeline only depends on the :class:`Compiler` contract. The default
:class:`StylusCompiler` understands the Stylus subset used by block
libraries: brace and indentation syntax, nesting with ``&``, variables,
mixins (including transparent ones), ``@media`` bubbling, nib and
``@import``/``@require`` of ``.styl`` and plain ``.css`` files.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .nib import MIXINS as NIB_MIXINS
from .parser import Parser, Statement
from .tree import AtRule, Comment, Declaration, Origin, Rule, Stylesheet
from ..managers.files import FileStore
from ..utils.common import get_file_extension, normalize_path
from ..utils.config import CSS_EXTENSIONS, MAX_IMPORT_DEPTH, SOURCE_EXTENSIONS, STRING_SOURCE
from ..utils.error import ResolutionError, SourceSyntaxError
from ..utils.path import find_file

logger = logging.getLogger(__name__)

IncludeGate = Callable[[str], bool]

ASSIGN_RE = re.compile(r'^(\$?[A-Za-z_][\w-]*)\s*(\?=|=)\s*(.*)$', re.S)
MIXIN_DEF_RE = re.compile(r'^(-?[A-Za-z_][\w-]*)\(([^()]*)\)$')
CALL_RE = re.compile(r'^(-?[A-Za-z_][\w-]*)\((.*)\)$', re.S)
COLON_DECL_RE = re.compile(r'^(--[\w-]+|[*_]?-?[A-Za-z_][\w-]*)\s*:\s*(.*)$', re.S)
SPACE_DECL_RE = re.compile(r'^(-?[A-Za-z_][\w-]*)\s+(.+)$', re.S)
AT_RULE_RE = re.compile(r'^@([\w-]+)\s*(.*)$', re.S)
IDENT_RE = re.compile(r'\$?[A-Za-z_][\w-]*')
PROTECTED_RE = re.compile(r'"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'|url\([^)]*\)', re.I)

CONDITIONAL_AT_RULES = ('media', 'supports', 'document')


@dataclass(frozen=True)
class CompiledUnit:
    """Output of compiling fragments: the rule tree and every file touched."""

    stylesheet: Stylesheet
    files: Tuple[str, ...] = ()


class Compiler(ABC):
    """Contract of a dialect compiler."""

    @abstractmethod
    def compile(self, source: str, path: str, lookup_roots: Sequence[str] = (),
                include: Optional[IncludeGate] = None,
                files: Optional[FileStore] = None) -> CompiledUnit:
        """Compile ``source`` read from ``path``.

        Args:
            source: Fragment text
            path: Absolute path of the fragment, or ``STRING_SOURCE`` for
                CSS that has no file
            lookup_roots: Directories searched for @import/@require targets
            include: Called with the canonical path of every file about to be
                included; returning False suppresses its rules
            files: Store used to read imported files

        Raises:
            ResolutionError: If an import target cannot be found
            SourceSyntaxError: If the source is malformed
        """


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """Split ``text`` on ``separator`` outside parentheses and strings.

    A ``separator`` of None splits on runs of whitespace.
    """
    parts, buf = [], []
    depth = 0
    quote = None
    for ch in text:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in '"\'':
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth = max(0, depth - 1)
        elif depth == 0 and (ch.isspace() if separator is None else ch == separator):
            parts.append(''.join(buf))
            buf = []
            continue
        buf.append(ch)
    parts.append(''.join(buf))
    parts = [part.strip() for part in parts]
    return [part for part in parts if part] if separator is None else parts


class Scope:
    """Variable and mixin bindings; lookups fall back to the parent scope."""

    def __init__(self, parent: Optional['Scope'] = None):
        self.parent = parent
        self.variables: Dict[str, str] = {}
        self.mixins: Dict[str, 'Mixin'] = {}

    def lookup(self, name: str) -> Optional[str]:
        scope = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        return None

    def mixin(self, name: str) -> Optional['Mixin']:
        scope = self
        while scope is not None:
            if name in scope.mixins:
                return scope.mixins[name]
            scope = scope.parent
        return None


@dataclass(frozen=True)
class Mixin:
    params: Tuple[Tuple[str, Optional[str]], ...]
    body: Tuple[Statement, ...]
    path: str


class _Context:
    """Where the statements of the current block go."""

    __slots__ = ('selectors', 'decls', 'out', 'scope', 'path', 'literal')

    def __init__(self, selectors, decls, out, scope, path, literal=False):
        self.selectors: Optional[Tuple[str, ...]] = selectors
        self.decls: Optional[List[Declaration]] = decls
        self.out: List = out
        self.scope: Scope = scope
        self.path: str = path
        self.literal: bool = literal

    def derive(self, **changes) -> '_Context':
        values = {name: getattr(self, name) for name in self.__slots__}
        values.update(changes)
        return _Context(**values)


class _State:
    """Bookkeeping for one compile call."""

    def __init__(self, lookup_roots, include, files):
        self.lookup_roots = [os.path.abspath(root) for root in lookup_roots]
        self.include = include
        self.files = files
        self.loaded = set()
        self.active: List[str] = []
        self.touched: List[str] = []
        self.calls: List[str] = []

    def touch(self, path: str) -> None:
        if path not in self.touched:
            self.touched.append(path)


def _compact(nodes) -> Tuple:
    return tuple(node for node in nodes if node is not None)


def _unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in '"\'':
        return text[1:-1]
    return text


class StylusCompiler(Compiler):
    """Compiler for the Stylus subset."""

    def __init__(self, use_nib: bool = False):
        self.use_nib = use_nib

    def compile(self, source: str, path: str, lookup_roots: Sequence[str] = (),
                include: Optional[IncludeGate] = None,
                files: Optional[FileStore] = None) -> CompiledUnit:
        if path != STRING_SOURCE:
            path = normalize_path(path)
        state = _State(lookup_roots, include or (lambda _: True), files or FileStore())
        state.loaded.add(path)
        state.active.append(path)
        state.touch(path)

        literal = get_file_extension(path) in CSS_EXTENSIONS
        statements = Parser(path, indented=not literal).parse(source)
        out: List = []
        ctx = _Context(None, None, out, Scope(), path, literal)
        self._block(statements, ctx, state)
        logger.debug(f"Compiled {path} ({len(state.touched)} files)")
        return CompiledUnit(Stylesheet(_compact(out)), tuple(state.touched))

    def fail(self, ctx: _Context, stmt: Statement, message: str):
        raise SourceSyntaxError(ctx.path, stmt.lineno, stmt.column, message)

    def _block(self, statements, ctx: _Context, state: _State) -> None:
        for stmt in statements:
            self._statement(stmt, ctx, state)

    def _statement(self, stmt: Statement, ctx: _Context, state: _State) -> None:
        origin = Origin(ctx.path, stmt.lineno, stmt.column)
        text = stmt.text

        if stmt.comment:
            if ctx.selectors is None and ctx.decls is None:
                ctx.out.append(Comment(text, origin))
            return

        if text.startswith('@'):
            self._at_rule(stmt, origin, ctx, state)
            return

        if not ctx.literal:
            match = ASSIGN_RE.match(text)
            if match and stmt.children is None:
                self._assign(match, ctx)
                return
            match = MIXIN_DEF_RE.match(text)
            if match and stmt.children is not None:
                self._define_mixin(match, stmt, ctx)
                return

        if stmt.children is not None:
            self._rule(stmt, origin, ctx, state)
        else:
            self._property(stmt, origin, ctx, state)

    def _assign(self, match, ctx: _Context) -> None:
        name, operator, value = match.groups()
        if operator == '?=' and ctx.scope.lookup(name) is not None:
            return
        ctx.scope.variables[name] = self._substitute(value.strip(), ctx.scope)

    def _define_mixin(self, match, stmt: Statement, ctx: _Context) -> None:
        name, raw_params = match.groups()
        params = []
        for part in split_top_level(raw_params):
            if not part:
                continue
            param, _, default = part.partition('=')
            params.append((param.strip(), default.strip() or None))
        ctx.scope.mixins[name] = Mixin(tuple(params), tuple(stmt.children), ctx.path)

    def _selectors(self, stmt: Statement, ctx: _Context) -> Tuple[str, ...]:
        parts = [' '.join(part.split()) for part in split_top_level(stmt.text)]
        parts = [part for part in parts if part]
        if not parts:
            self.fail(ctx, stmt, 'empty selector')
        if ctx.selectors is None:
            return tuple(part.replace('&', '').strip() or part for part in parts)
        result = []
        for parent in ctx.selectors:
            for part in parts:
                if '&' in part:
                    result.append(part.replace('&', parent))
                else:
                    result.append(f"{parent} {part}")
        return tuple(result)

    def _rule(self, stmt: Statement, origin: Origin, ctx: _Context, state: _State) -> None:
        selectors = self._selectors(stmt, ctx)
        decls: List[Declaration] = []
        slot = len(ctx.out)
        ctx.out.append(None)
        child = ctx.derive(selectors=selectors, decls=decls, scope=Scope(ctx.scope))
        self._block(stmt.children, child, state)
        if decls:
            ctx.out[slot] = Rule(selectors, tuple(decls), origin)

    def _at_rule(self, stmt: Statement, origin: Origin, ctx: _Context, state: _State) -> None:
        match = AT_RULE_RE.match(stmt.text)
        if match is None:
            self.fail(ctx, stmt, 'invalid at-rule')
        name, params = match.group(1).lower(), match.group(2).strip()

        if name in ('import', 'require'):
            if stmt.children is not None:
                self.fail(ctx, stmt, f'@{name} does not take a block')
            self._import(name, params, stmt, origin, ctx, state)
            return

        if not ctx.literal:
            params = self._substitute(params, ctx.scope)

        if stmt.children is None:
            ctx.out.append(AtRule(name, params, origin=origin))
            return

        inner: List = []
        if name in CONDITIONAL_AT_RULES:
            if ctx.selectors is not None:
                decls: List[Declaration] = []
                inner.append(None)
                child = ctx.derive(decls=decls, out=inner, scope=Scope(ctx.scope))
                self._block(stmt.children, child, state)
                if decls:
                    inner[0] = Rule(ctx.selectors, tuple(decls), origin)
            else:
                child = ctx.derive(decls=None, out=inner, scope=Scope(ctx.scope))
                self._block(stmt.children, child, state)
            ctx.out.append(AtRule(name, params, (), _compact(inner), origin))
            return

        decls = []
        child = ctx.derive(selectors=None, decls=decls, out=inner, scope=Scope(ctx.scope))
        self._block(stmt.children, child, state)
        ctx.out.append(AtRule(name, params, tuple(decls), _compact(inner), origin))

    def _import(self, name: str, params: str, stmt: Statement, origin: Origin,
                ctx: _Context, state: _State) -> None:
        target = _unquote(params)
        if params.lower().startswith('url(') or re.match(r'^([a-z][\w+.-]*:)?//', target, re.I) or ctx.literal:
            # plain CSS import, left for the browser
            ctx.out.append(AtRule('import', params, origin=origin))
            return
        if target == 'nib' and self.use_nib:
            return

        resolved = self._locate(target, ctx.path, stmt.lineno, state)
        state.touch(resolved)
        if resolved in state.active or resolved in state.loaded:
            logger.debug(f"Skipping @{name} of {resolved}: already included")
            return
        if len(state.active) >= MAX_IMPORT_DEPTH:
            self.fail(ctx, stmt, f'maximum import depth ({MAX_IMPORT_DEPTH}) reached')

        emit = state.include(resolved)
        state.loaded.add(resolved)
        source = state.files.read_text(resolved)
        literal = get_file_extension(resolved) in CSS_EXTENSIONS
        if literal and not emit:
            logger.debug(f"Suppressed duplicate {resolved}")
            return

        statements = Parser(resolved, indented=not literal).parse(source)
        out = ctx.out if emit else []
        decls = ctx.decls
        if not emit and decls is not None:
            decls = []
        if literal:
            child = _Context(None, None, out, Scope(), resolved, True)
        else:
            child = ctx.derive(path=resolved, out=out, decls=decls)

        state.active.append(resolved)
        try:
            self._block(statements, child, state)
        finally:
            state.active.pop()
        if not emit:
            logger.debug(f"Suppressed rules of duplicate {resolved}")

    def _locate(self, target: str, requester: str, lineno: int, state: _State) -> str:
        directories = [os.path.dirname(requester)] + state.lookup_roots
        ext = get_file_extension(target)
        if ext in SOURCE_EXTENSIONS:
            names = [target]
        else:
            names = [target + '.styl', os.path.join(target, 'index.styl')]
            if ext:
                names.insert(0, target)
        for name in names:
            found = find_file(name, directories)
            if found:
                return found
        raise ResolutionError(requester, target, lineno)

    def _property(self, stmt: Statement, origin: Origin, ctx: _Context, state: _State) -> None:
        text = stmt.text

        if not ctx.literal:
            match = CALL_RE.match(text)
            if match:
                name, raw_args = match.groups()
                args = [self._substitute(arg, ctx.scope) for arg in split_top_level(raw_args) if arg]
                if not self._expand(name, args, stmt, origin, ctx, state):
                    self.fail(ctx, stmt, f'undefined mixin "{name}"')
                return
            if IDENT_RE.fullmatch(text) and self._expand(text, [], stmt, origin, ctx, state):
                return

        match = COLON_DECL_RE.match(text)
        if match is None and not ctx.literal:
            match = SPACE_DECL_RE.match(text)
        if match is None:
            self.fail(ctx, stmt, f'invalid property "{text}"')
        name, value = match.group(1), match.group(2).strip()

        if not ctx.literal:
            value = self._substitute(value, ctx.scope)
            separator = ',' if ',' in value else None
            args = split_top_level(value, separator)
            if self._expand(name, args, stmt, origin, ctx, state):
                return

        if ctx.decls is None:
            self.fail(ctx, stmt, f'property "{name}" outside of a selector')
        if not value:
            self.fail(ctx, stmt, f'missing value for "{name}"')
        ctx.decls.append(Declaration(name, value, origin))

    def _expand(self, name: str, args: List[str], stmt: Statement, origin: Origin,
                ctx: _Context, state: _State) -> bool:
        """Expand a mixin call; returns False when ``name`` is not a mixin."""
        if name in state.calls:
            # a property named like the mixin expanding it is a plain property
            return False
        mixin = ctx.scope.mixin(name)
        if mixin is not None:
            if len(state.calls) >= MAX_IMPORT_DEPTH:
                self.fail(ctx, stmt, f'mixin "{name}" nested too deeply')
            scope = Scope(ctx.scope)
            for i, (param, default) in enumerate(mixin.params):
                if i < len(args):
                    scope.variables[param] = args[i]
                elif default is not None:
                    scope.variables[param] = self._substitute(default, scope)
                else:
                    self.fail(ctx, stmt, f'missing argument "{param}" for mixin "{name}"')
            scope.variables['arguments'] = ' '.join(args)
            state.calls.append(name)
            try:
                self._block(mixin.body, ctx.derive(scope=scope, path=mixin.path), state)
            finally:
                state.calls.pop()
            return True

        builtin = NIB_MIXINS.get(name) if self.use_nib else None
        if builtin is not None:
            if ctx.decls is None:
                self.fail(ctx, stmt, f'mixin "{name}" outside of a selector')
            try:
                pairs = builtin(args)
            except ValueError as e:
                self.fail(ctx, stmt, str(e))
            ctx.decls.extend(Declaration(prop, value, origin) for prop, value in pairs)
            return True
        return False

    def _substitute(self, value: str, scope: Scope) -> str:
        """Replace variable references outside strings and url()."""
        def replace_idents(segment: str) -> str:
            def repl(match):
                start, end = match.span()
                before = segment[start - 1] if start else ''
                after = segment[end] if end < len(segment) else ''
                if before and (before.isalnum() or before in '#.-_$@!') or after == '(':
                    return match.group(0)
                bound = scope.lookup(match.group(0))
                return match.group(0) if bound is None else bound
            return IDENT_RE.sub(repl, segment)

        result, last = [], 0
        for match in PROTECTED_RE.finditer(value):
            result.append(replace_idents(value[last:match.start()]))
            result.append(match.group(0))
            last = match.end()
        result.append(replace_idents(value[last:]))
        return ''.join(result)


__all__ = ['CompiledUnit', 'Compiler', 'StylusCompiler', 'Scope', 'split_top_level', 'IncludeGate']
