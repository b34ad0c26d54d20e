"""Vendor prefixer driven by a versioned JSON ruleset.

The ruleset (``data/prefixes.json``) lists, for every property or
property/value pair, the prefixed declarations to emit and the last version
of each browser that still needs them. Targets are matched against those
versions to decide which prefixes survive.
"""

import logging
import os
import re
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import orjson

from .compiler import StylusCompiler
from .tree import Declaration, Stylesheet, map_declarations, render
from ..utils.config import BROWSERSLIST_FILES, DEFAULT_BROWSERS, RULESET_FILE, STRING_SOURCE
from ..utils.error import FileOperationError, PrefixConfigError
from ..utils.file import safe_read_file

logger = logging.getLogger(__name__)

TARGET_RE = re.compile(r'^(?P<name>[a-z_][a-z_ ]*?)\s*(?:(?P<op>>=|>)?\s*(?P<version>[\d.]+))?$')
IMPORTANT_RE = re.compile(r'\s*!\s*important\s*$', re.I)

Version = Tuple[int, ...]


def parse_version(text: str) -> Version:
    """Turn ``"8.4"`` into ``(8, 4)``.

    Raises:
        PrefixConfigError: If ``text`` is not a dotted number
    """
    try:
        return tuple(int(part) for part in text.split('.'))
    except ValueError:
        raise PrefixConfigError(f"Invalid browser version: {text!r}")


@dataclass(frozen=True)
class Target:
    """One browser a bundle must support, from ``version`` up."""

    browser: str
    version: Version = (0,)
    exclusive: bool = False

    def needs(self, max_version: Version) -> bool:
        if self.exclusive:
            return self.version < max_version
        return self.version <= max_version


@dataclass(frozen=True)
class BrowserTargets:
    """Browser targets as configured for a build.

    ``browsers`` is an explicit list such as ``["Explorer 10", "ios >= 8"]``;
    ``config`` is a preset name from the ruleset or a path to a
    browserslist-style file. With neither, a browserslist file in the source
    directory is used, falling back to the ``defaults`` preset.
    """

    browsers: Optional[Tuple[str, ...]] = None
    config: Optional[str] = None


@dataclass(frozen=True)
class PrefixVariant:
    """A prefixed declaration emitted in front of the canonical one."""

    name: Optional[str]
    value: Optional[str]
    values: Optional[Mapping[str, str]]
    browsers: Mapping[str, Version]

    def render(self, name: str, value: str) -> Optional[Tuple[str, str]]:
        """Get the prefixed ``(name, value)``, or None when unmappable."""
        if self.values is not None:
            mapped = self.values.get(value.lower())
            if mapped is None:
                return None
            value = mapped
        elif self.value is not None:
            value = self.value
        return self.name or name, value


@dataclass(frozen=True)
class PrefixRule:
    property: str
    value: Optional[str]
    variants: Tuple[PrefixVariant, ...]

    def matches(self, value: str) -> bool:
        return self.value is None or self.value == value.lower()


@dataclass(frozen=True)
class Ruleset:
    """Parsed vendor-prefix database."""

    version: str
    aliases: Mapping[str, str]
    presets: Mapping[str, Tuple[str, ...]]
    rules: Tuple[PrefixRule, ...]

    def canonical_browser(self, name: str) -> str:
        key = ' '.join(name.lower().split())
        if key not in self.aliases:
            raise PrefixConfigError(f"Unknown browser: {name!r}")
        return self.aliases[key]


@dataclass(frozen=True)
class PrefixRules:
    """Ruleset narrowed to the variants some target needs, by property."""

    by_property: Mapping[str, Tuple[PrefixRule, ...]]
    targets: Tuple[Target, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.by_property)


def _build_ruleset(data: dict) -> Ruleset:
    rules = []
    for entry in data.get('rules', []):
        variants = []
        for variant in entry['prefixes']:
            browsers = {name: parse_version(str(version)) for name, version in variant['browsers'].items()}
            variants.append(PrefixVariant(
                variant.get('name'),
                variant.get('value'),
                variant.get('values'),
                browsers,
            ))
        value = entry.get('value')
        rules.append(PrefixRule(entry['property'].lower(), value.lower() if value else None, tuple(variants)))
    return Ruleset(
        str(data.get('version', '')),
        {key.lower(): value for key, value in data.get('aliases', {}).items()},
        {key: tuple(value) for key, value in data.get('presets', {}).items()},
        tuple(rules),
    )


@lru_cache(maxsize=8)
def load_ruleset(path: Optional[str] = None) -> Ruleset:
    """Load the vendor-prefix database.

    Args:
        path: JSON ruleset, the bundled one by default

    Returns:
        Parsed ruleset

    Raises:
        PrefixConfigError: If the ruleset cannot be read or parsed
    """
    path = path or RULESET_FILE
    try:
        with open(path, 'rb') as f:
            data = orjson.loads(f.read())
        ruleset = _build_ruleset(data)
    except (OSError, orjson.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        raise PrefixConfigError(f"Failed to load prefix ruleset {path}: {e}")
    logger.debug(f"Loaded prefix ruleset {ruleset.version} ({len(ruleset.rules)} rules)")
    return ruleset


def parse_target(entry: str, ruleset: Ruleset) -> Target:
    """Parse ``"Explorer 10"``, ``"ie >= 10"`` or ``"safari"``.

    Raises:
        PrefixConfigError: If the browser or version is not understood
    """
    match = TARGET_RE.match(' '.join(entry.lower().split()))
    if match is None:
        raise PrefixConfigError(f"Unsupported browser query: {entry!r}")
    browser = ruleset.canonical_browser(match.group('name'))
    version = match.group('version')
    if version is None:
        return Target(browser)
    return Target(browser, parse_version(version), match.group('op') == '>')


def read_browserslist(path: str) -> List[str]:
    """Read the queries of a browserslist-style file.

    Raises:
        PrefixConfigError: If the file cannot be read
    """
    try:
        content = safe_read_file(path)
    except FileOperationError as e:
        raise PrefixConfigError(str(e))
    queries = []
    for line in content.splitlines():
        line = line.split('#', 1)[0]
        queries.extend(query.strip() for query in line.split(',') if query.strip())
    return queries


def _expand_queries(queries: Sequence[str], ruleset: Ruleset) -> List[str]:
    expanded = []
    for query in queries:
        preset = ruleset.presets.get(query.strip().lower())
        expanded.extend(preset if preset is not None else [query])
    return expanded


def _find_browserslist(source_dir: Optional[str]) -> Optional[str]:
    if not source_dir:
        return None
    for name in BROWSERSLIST_FILES:
        candidate = os.path.join(source_dir, name)
        if os.path.isfile(candidate):
            return candidate
    return None


def resolve_targets(targets: BrowserTargets, ruleset: Optional[Ruleset] = None,
                    source_dir: Optional[str] = None) -> PrefixRules:
    """Narrow the ruleset to the variants needed by ``targets``.

    Args:
        targets: Configured browser targets
        ruleset: Vendor-prefix database, the bundled one by default
        source_dir: Directory searched for a browserslist file

    Returns:
        Rules keyed by canonical property name

    Raises:
        PrefixConfigError: If a target, preset or config file is invalid
    """
    ruleset = ruleset or load_ruleset()

    if targets.browsers is not None:
        queries = list(targets.browsers)
    elif targets.config is not None:
        if targets.config.lower() in ruleset.presets:
            queries = [targets.config]
        elif os.path.isfile(targets.config):
            queries = read_browserslist(targets.config)
        else:
            raise PrefixConfigError(f"Unknown browser preset or config file: {targets.config!r}")
    else:
        found = _find_browserslist(source_dir)
        queries = read_browserslist(found) if found else [DEFAULT_BROWSERS]
        if found:
            logger.debug(f"Using browser targets from {found}")

    parsed = tuple(parse_target(query, ruleset) for query in _expand_queries(queries, ruleset))

    by_property: Dict[str, List[PrefixRule]] = {}
    for rule in ruleset.rules:
        variants = tuple(
            variant for variant in rule.variants
            if any(target.browser in variant.browsers and target.needs(variant.browsers[target.browser])
                   for target in parsed)
        )
        if variants:
            by_property.setdefault(rule.property, []).append(replace(rule, variants=variants))

    logger.debug(f"{len(parsed)} browser targets need prefixes for {len(by_property)} properties")
    return PrefixRules({name: tuple(rules) for name, rules in by_property.items()}, parsed)


def _split_important(value: str) -> Tuple[str, str]:
    match = IMPORTANT_RE.search(value)
    if match is None:
        return value.strip(), ''
    return value[:match.start()].strip(), ' !important'


class Prefixer:
    """Insert vendor-prefixed declarations in front of canonical ones."""

    def __init__(self, rules: PrefixRules):
        self.rules = rules
        self.added = 0

    def prefix(self, sheet: Stylesheet) -> Stylesheet:
        if not self.rules:
            return sheet
        return map_declarations(sheet, self._declarations)

    def _declarations(self, declarations: Tuple[Declaration, ...]) -> Tuple[Declaration, ...]:
        present = {(decl.name.lower(), decl.value.strip().lower()) for decl in declarations}
        present_names = {decl.name.lower() for decl in declarations}
        result = []
        for decl in declarations:
            name = decl.name.lower()
            if not name.startswith('-'):
                value, important = _split_important(decl.value)
                for rule in self.rules.by_property.get(name, ()):
                    if not rule.matches(value):
                        continue
                    for variant in rule.variants:
                        rendered = variant.render(decl.name, value)
                        if rendered is None:
                            continue
                        prefixed_name, prefixed_value = rendered
                        prefixed_value += important
                        key = (prefixed_name.lower(), prefixed_value.lower())
                        if key in present:
                            continue
                        if rule.value is None and prefixed_name.lower() in present_names:
                            # the author wrote their own prefixed variant
                            continue
                        present.add(key)
                        result.append(Declaration(prefixed_name, prefixed_value, decl.origin))
                        self.added += 1
            result.append(decl)
        return tuple(result)


def prefix_tree(sheet: Stylesheet, rules: PrefixRules) -> Stylesheet:
    """Add the prefixes required by ``rules`` to every declaration block."""
    return Prefixer(rules).prefix(sheet)


def prefix(css: str, targets: BrowserTargets, ruleset: Optional[Ruleset] = None) -> str:
    """Add vendor prefixes to plain CSS text.

    Args:
        css: Plain CSS
        targets: Browser targets
        ruleset: Vendor-prefix database, the bundled one by default

    Returns:
        Prefixed CSS

    Raises:
        PrefixConfigError: If the targets cannot be resolved
        SourceSyntaxError: If ``css`` is malformed
    """
    rules = resolve_targets(targets, ruleset)
    sheet = StylusCompiler().compile(css, STRING_SOURCE).stylesheet
    return render(prefix_tree(sheet, rules)).css


__all__ = [
    'BrowserTargets',
    'Target',
    'Ruleset',
    'PrefixRules',
    'Prefixer',
    'load_ruleset',
    'parse_target',
    'read_browserslist',
    'resolve_targets',
    'prefix_tree',
    'prefix',
]
