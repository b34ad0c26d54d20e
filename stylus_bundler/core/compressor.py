"""CSS compressor.

The stylesheet is parsed with cssutils, cleaned up rule by rule and handed
to csscompressor, which strips comments and whitespace, drops the units of
zero lengths, shortens rgb() and hex colors and removes empty rules. This
module only adds what csscompressor leaves alone: hsl() colors, collapsed
box shorthands, numeric font weights, last-wins duplicate declarations and
pruning of at-rules left without rules.
"""

import colorsys
import logging
import re
from typing import Callable, List, Optional, Tuple

import csscompressor
import cssutils

from .compiler import split_top_level

logger = logging.getLogger(__name__)

# Disable cssutils logging
cssutils.log.setLevel(logging.CRITICAL)

SOURCE_MAP_COMMENT_RE = re.compile(r'\s*/\*#\s*sourceMappingURL=([^*\s]*)\s*\*/\s*$')
PROTECTED_RE = re.compile(r'"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'|url\([^)]*\)', re.I)
IMPORTANT_RE = re.compile(r'\s*!\s*important$', re.I)
HSL_RE = re.compile(r'\bhsla?\(([^()]*)\)', re.I)

BOX_PROPERTIES = {
    'margin', 'padding', 'border-width', 'border-style', 'border-color',
    'inset', 'scroll-margin', 'scroll-padding',
}
FONT_WEIGHTS = {'normal': '400', 'bold': '700'}
COLOR_PROPERTIES = {
    'color', 'background', 'background-color', 'background-image',
    'border', 'border-top', 'border-right', 'border-bottom', 'border-left',
    'outline', 'box-shadow', 'text-shadow', 'fill', 'stroke', 'column-rule',
    'text-decoration', 'caret-color',
}

DECLARATION_RULES = (cssutils.css.CSSStyleRule, cssutils.css.CSSFontFaceRule, cssutils.css.CSSPageRule)

Declaration = Tuple[str, str, str]


def _outside_protected(value: str, fn: Callable[[str], str]) -> str:
    """Apply ``fn`` to the parts of ``value`` outside strings and url()."""
    result, last = [], 0
    for match in PROTECTED_RE.finditer(value):
        result.append(fn(value[last:match.start()]))
        result.append(match.group(0))
        last = match.end()
    result.append(fn(value[last:]))
    return ''.join(result)


def _fraction(text: str, scale: float) -> Optional[float]:
    text = text.strip()
    try:
        if text.endswith('%'):
            return float(text[:-1]) / 100
        return float(text) / scale
    except ValueError:
        return None


def _to_byte(fraction: float) -> int:
    fraction = min(max(fraction, 0.0), 1.0)
    return int(round(fraction * 255, 6) + 0.5)


def _hsl_to_hex(match) -> str:
    args = [arg for arg in re.split(r'[\s,/]+', match.group(1).strip()) if arg]
    if len(args) == 4:
        alpha = _fraction(args[3], 1)
        if alpha is None or alpha < 1:
            return match.group(0)
        args = args[:3]
    if len(args) != 3:
        return match.group(0)

    try:
        hue = (float(re.sub(r'deg$', '', args[0].lower())) % 360) / 360
    except ValueError:
        return match.group(0)
    saturation = _fraction(args[1], 100)
    lightness = _fraction(args[2], 100)
    if saturation is None or lightness is None:
        return match.group(0)
    channels = colorsys.hls_to_rgb(hue, lightness, saturation)
    return '#' + ''.join('%02x' % _to_byte(channel) for channel in channels)


def compress_colors(value: str) -> str:
    """Replace opaque hsl()/hsla() colors with their hex form."""
    return _outside_protected(value, lambda segment: HSL_RE.sub(_hsl_to_hex, segment))


def collapse_box(value: str) -> str:
    """Collapse repeated sides of a 1-4 value box shorthand."""
    parts = split_top_level(value, None)
    if not 1 < len(parts) <= 4:
        return value
    if len(parts) == 4 and parts[3] == parts[1]:
        parts = parts[:3]
    if len(parts) == 3 and parts[2] == parts[0]:
        parts = parts[:2]
    if len(parts) == 2 and parts[1] == parts[0]:
        parts = parts[:1]
    return ' '.join(parts)


def is_color_property(name: str) -> bool:
    return name in COLOR_PROPERTIES or name.endswith('-color')


def optimize_declaration(name: str, value: str) -> Tuple[str, str]:
    """Canonicalise one declaration.

    Args:
        name: Property name
        value: Property value, optionally ending in ``!important``

    Returns:
        Tuple of (name, value)
    """
    if name.startswith('--'):
        return name, value
    lowered = name.lower()
    important = ''
    match = IMPORTANT_RE.search(value)
    if match:
        value, important = value[:match.start()].strip(), '!important'

    if lowered == 'font-weight':
        value = FONT_WEIGHTS.get(value.lower(), value)
    if is_color_property(lowered):
        value = compress_colors(value)
    if lowered in BOX_PROPERTIES or (lowered == 'border-radius' and '/' not in value):
        value = collapse_box(value)
    return name, value + important


def dedupe(declarations: List[Declaration]) -> List[Declaration]:
    """Drop identical declarations, keeping the last occurrence."""
    seen = set()
    result = []
    for name, value, priority in reversed(declarations):
        key = (name.lower(), value, priority)
        if key in seen:
            continue
        seen.add(key)
        result.append((name, value, priority))
    result.reverse()
    return result


def _optimize_style(style) -> bool:
    """Rewrite a declaration block in place; returns False when it is empty."""
    declarations = []
    for prop in style.getProperties(all=True):
        name, value = optimize_declaration(prop.name, prop.value)
        declarations.append((name, value, prop.priority))
    declarations = dedupe(declarations)
    style.cssText = '; '.join(
        f"{name}: {value}" + (' !important' if priority else '')
        for name, value, priority in declarations
    )
    return bool(declarations)


def _optimize_rules(container) -> bool:
    """Optimize the rules of a sheet or @media rule; returns False when none remain."""
    rules = container.cssRules
    kept = 0
    for index in reversed(range(len(rules))):
        rule = rules[index]
        if isinstance(rule, DECLARATION_RULES):
            keep = _optimize_style(rule.style)
        elif isinstance(rule, cssutils.css.CSSMediaRule):
            keep = _optimize_rules(rule)
        else:
            keep = True
        if not keep:
            container.deleteRule(index)
        elif not isinstance(rule, cssutils.css.CSSComment):
            kept += 1
    return kept > 0


def compress(css: str) -> str:
    """Minify ``css``; a trailing sourceMappingURL comment is preserved.

    Args:
        css: Stylesheet text

    Returns:
        Minified stylesheet
    """
    trailer = ''
    match = SOURCE_MAP_COMMENT_RE.search(css)
    if match:
        trailer = f"\n/*# sourceMappingURL={match.group(1)} */"
        css = css[:match.start()]

    sheet = cssutils.parseString(css, validate=False)
    _optimize_rules(sheet)
    result = csscompressor.compress(sheet.cssText.decode('utf-8'))
    logger.debug(f"Compressed {len(css)} -> {len(result)} chars")
    return result + trailer


__all__ = [
    'compress',
    'compress_colors',
    'collapse_box',
    'dedupe',
    'optimize_declaration',
]
