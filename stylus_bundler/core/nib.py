"""Built-in nib mixins.

nib is the mixin library most stylesheets pull in with ``@import "nib"``.
Only the declaration-producing mixins are provided; each one maps the call
arguments to a list of ``(property, value)`` pairs.
"""

from typing import Callable, Dict, List, Tuple

Declarations = List[Tuple[str, str]]

SIDES = ('top', 'right', 'bottom', 'left')


def size(args: List[str]) -> Declarations:
    """``size: 5em 10em`` sets width and height (height defaults to width)."""
    if not args or len(args) > 2:
        raise ValueError('size() expects one or two arguments')
    width = args[0]
    height = args[1] if len(args) > 1 else width
    return [('width', width), ('height', height)]


def _position(kind: str) -> Callable[[List[str]], Declarations]:
    def mixin(args: List[str]) -> Declarations:
        declarations = [('position', kind)]
        i = 0
        while i < len(args):
            side = args[i]
            if side not in SIDES:
                raise ValueError(f'{kind}() expects side names, got "{side}"')
            value = '0'
            if i + 1 < len(args) and args[i + 1] not in SIDES:
                value = args[i + 1]
                i += 1
            declarations.append((side, value))
            i += 1
        return declarations
    mixin.__name__ = kind
    mixin.__doc__ = f'``{kind} top 0 left 5px`` sets position: {kind} plus offsets.'
    return mixin


def ellipsis(args: List[str]) -> Declarations:
    return [
        ('white-space', 'nowrap'),
        ('overflow', 'hidden'),
        ('text-overflow', 'ellipsis'),
    ]


def hide_text(args: List[str]) -> Declarations:
    return [
        ('text-indent', '101%'),
        ('white-space', 'nowrap'),
        ('overflow', 'hidden'),
    ]


def whitespace(args: List[str]) -> Declarations:
    if len(args) != 1:
        raise ValueError('whitespace() expects one argument')
    return [('white-space', args[0])]


MIXINS: Dict[str, Callable[[List[str]], Declarations]] = {
    'size': size,
    'absolute': _position('absolute'),
    'fixed': _position('fixed'),
    'relative': _position('relative'),
    'ellipsis': ellipsis,
    'hide-text': hide_text,
    'whitespace': whitespace,
}

__all__ = ['MIXINS', 'size', 'ellipsis', 'hide_text', 'whitespace']
