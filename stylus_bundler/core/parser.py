"""Line-structure parser for the indentation-based stylesheet dialect.

The parser only recovers block structure. Brace blocks (``sel { ... }``) and
indented blocks may be mixed freely; statements end at a newline, ``;``,
``{`` or ``}`` outside strings and parentheses. Interpretation of the
statements (rules, declarations, variables, imports) is done by
:mod:`stylus_bundler.core.compiler`.
"""

from typing import Iterator, List, Optional, Tuple

from ..utils.error import SourceSyntaxError


class Statement:
    """One logical statement and, for block openers, its children."""

    __slots__ = ('text', 'lineno', 'column', 'children', 'comment')

    def __init__(self, text: str, lineno: int, column: int, comment: bool = False):
        self.text = text
        self.lineno = lineno
        self.column = column
        self.children: Optional[List['Statement']] = None
        self.comment = comment

    def __repr__(self):
        return 'Statement(%r, line=%d, children=%r)' % (self.text, self.lineno, self.children)


class _Frame:
    __slots__ = ('children', 'kind', 'indent', 'last')

    def __init__(self, children: List[Statement], kind: str, indent: Optional[int] = None):
        self.children = children
        self.kind = kind
        self.indent = indent
        self.last: Optional[Statement] = None


# (kind, text, lineno, column, indent, starts_line)
Token = Tuple[str, str, int, int, int, bool]


class Parser:
    """Split dialect source into a tree of :class:`Statement` objects.

    With ``indented=False`` the source is read as plain CSS: indentation is
    insignificant and ``//`` does not start a comment.
    """

    def __init__(self, path: str, indented: bool = True):
        self.path = path
        self.indented = indented

    def fail(self, lineno: int, column: int, message: str):
        raise SourceSyntaxError(self.path, lineno, column, message)

    def tokenize(self, source: str) -> Iterator[Token]:
        src = source.replace('\r\n', '\n').replace('\r', '\n').expandtabs(4)
        n = len(src)
        i = 0
        line, col = 1, 0
        line_start = True
        depth = 0
        quote = None
        buf: List[str] = []
        start = None  # (lineno, column, indent, starts_line)

        def begin():
            nonlocal start, line_start
            if start is None:
                start = (line, col, col, line_start)
                line_start = False

        def take() -> Optional[Tuple[str, int, int, int, bool]]:
            nonlocal buf, start
            text = ''.join(buf).strip()
            pos = start
            buf, start = [], None
            if not text:
                return None
            return (text,) + pos

        while i < n:
            ch = src[i]
            nxt = src[i + 1] if i + 1 < n else ''

            if quote:
                if ch == '\n':
                    self.fail(line, col, 'unterminated string')
                buf.append(ch)
                if ch == '\\' and nxt and nxt != '\n':
                    buf.append(nxt)
                    i += 2
                    col += 2
                    continue
                if ch == quote:
                    quote = None
                i += 1
                col += 1
                continue

            if ch == '/' and nxt == '*':
                end = src.find('*/', i + 2)
                if end == -1:
                    self.fail(line, col, 'unterminated comment')
                text = src[i:end + 2]
                if start is None and depth == 0:
                    yield ('comment', text, line, col, col, line_start)
                    line_start = False
                else:
                    buf.append(' ')
                newlines = text.count('\n')
                if newlines:
                    line += newlines
                    col = len(text) - text.rfind('\n') - 1
                else:
                    col += len(text)
                i = end + 2
                continue

            if ch == '/' and nxt == '/' and depth == 0 and self.indented:
                end = src.find('\n', i)
                end = n if end == -1 else end
                col += end - i
                i = end
                continue

            if ch == '\n':
                if depth > 0 or not self.indented or ''.join(buf).rstrip().endswith(','):
                    if start is not None:
                        buf.append(' ')
                else:
                    stmt = take()
                    if stmt:
                        yield ('stmt',) + stmt
                line += 1
                col = 0
                line_start = True
                i += 1
                continue

            if depth == 0 and ch == ';':
                stmt = take()
                if stmt:
                    yield ('stmt',) + stmt
            elif depth == 0 and ch == '{':
                stmt = take()
                if stmt:
                    yield ('open',) + stmt
                else:
                    yield ('open', '', line, col, col, False)
            elif depth == 0 and ch == '}':
                stmt = take()
                if stmt:
                    yield ('stmt',) + stmt
                yield ('close', '}', line, col, col, False)
            elif ch.isspace():
                if start is not None:
                    buf.append(ch)
            else:
                begin()
                if ch in '"\'':
                    quote = ch
                elif ch == '(':
                    depth += 1
                elif ch == ')':
                    if depth == 0:
                        self.fail(line, col, 'unexpected ")"')
                    depth -= 1
                buf.append(ch)
            i += 1
            col += 1

        if quote:
            self.fail(line, col, 'unterminated string')
        if depth:
            self.fail(line, col, 'missing ")"')
        stmt = take()
        if stmt:
            yield ('stmt',) + stmt

    def parse(self, source: str) -> List[Statement]:
        """Build the statement tree for ``source``."""
        root = _Frame([], 'root')
        stack = [root]

        for kind, text, lineno, column, indent, starts_line in self.tokenize(source):
            if kind == 'comment':
                if starts_line and self.indented:
                    while stack[-1].kind == 'indent' and indent < stack[-1].indent:
                        stack.pop()
                    if stack[-1].indent is not None and indent > stack[-1].indent:
                        # inside a block that has no statements yet
                        continue
                stack[-1].children.append(Statement(text, lineno, column, comment=True))
                continue

            if kind == 'close':
                while stack[-1].kind == 'indent':
                    stack.pop()
                if stack[-1].kind != 'brace':
                    self.fail(lineno, column, 'unexpected "}"')
                stack.pop()
                continue

            if text and starts_line and self.indented:
                self._indent(stack, indent, lineno, column)
            top = stack[-1]

            if kind == 'open':
                if text:
                    node = Statement(text, lineno, column)
                    top.children.append(node)
                    top.last = node
                else:
                    node = top.last
                    if node is None or node.children is not None:
                        self.fail(lineno, column, 'unexpected "{"')
                node.children = []
                stack.append(_Frame(node.children, 'brace'))
            else:
                node = Statement(text, lineno, column)
                top.children.append(node)
                top.last = node

        if any(frame.kind == 'brace' for frame in stack):
            self.fail(source.count('\n') + 1, 0, 'missing "}"')
        return root.children

    def _indent(self, stack: List[_Frame], indent: int, lineno: int, column: int) -> None:
        popped = False
        while stack[-1].kind == 'indent' and indent < stack[-1].indent:
            stack.pop()
            popped = True
        top = stack[-1]
        if top.indent is None:
            top.indent = indent
            return
        if indent <= top.indent:
            return
        if popped:
            self.fail(lineno, column, 'invalid dedent')
        node = top.last
        if node is None or node.children is not None:
            self.fail(lineno, column, 'unexpected indent')
        node.children = []
        stack.append(_Frame(node.children, 'indent', indent))


def parse(source: str, path: str = '<string>', indented: bool = True) -> List[Statement]:
    """Parse ``source`` into statements; ``path`` is used in error messages."""
    return Parser(path, indented).parse(source)


__all__ = ['Statement', 'Parser', 'parse']
