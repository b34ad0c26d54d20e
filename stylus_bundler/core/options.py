"""Per-build options for Stylus Bundler."""

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from typing_extensions import Literal

from .prefixer import BrowserTargets
from ..utils.error import ConfigurationError

UrlPolicy = Optional[Literal['rebase', 'inline']]
SourceMapOption = Union[bool, Literal['inline']]
AutoprefixerOption = Union[bool, BrowserTargets]

# camelCase spellings accepted from build configuration files
OPTION_ALIASES = {
    'useNib': 'use_nib',
    'strictAssets': 'strict_assets',
    'lookupRoots': 'lookup_roots',
    'includes': 'lookup_roots',
}


@dataclass(frozen=True)
class Bundle:
    """Target of one compile: ``<output_dir>/<name>.css``."""

    name: str
    output_dir: str
    source_dir: Optional[str] = None

    @property
    def css_file(self) -> str:
        return f"{self.name}.css"


@dataclass(frozen=True)
class BundleOptions:
    """Options controlling the pipeline stages.

    Attributes:
        url: ``"rebase"``, ``"inline"`` or None to leave url() untouched
        autoprefixer: False, True for default targets, or explicit targets
        sourcemap: False, True for a sibling map file, or ``"inline"``
        use_nib: Enable the nib mixin library
        compress: Minify the output
        comments: Keep source comments and line markers (non-compressed only)
        strict_assets: Fail on url() targets that cannot be read
        lookup_roots: Extra directories searched by @import/@require
    """

    url: UrlPolicy = None
    autoprefixer: AutoprefixerOption = False
    sourcemap: SourceMapOption = False
    use_nib: bool = False
    compress: bool = False
    comments: bool = True
    strict_assets: bool = False
    lookup_roots: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.url not in (None, 'rebase', 'inline'):
            raise ConfigurationError(f"url must be 'rebase', 'inline' or None, got {self.url!r}")
        if not (isinstance(self.sourcemap, bool) or self.sourcemap == 'inline'):
            raise ConfigurationError(f"sourcemap must be a boolean or 'inline', got {self.sourcemap!r}")
        if not isinstance(self.autoprefixer, (bool, BrowserTargets)):
            raise ConfigurationError(f"Invalid autoprefixer option: {self.autoprefixer!r}")
        for name in ('use_nib', 'compress', 'comments', 'strict_assets'):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a boolean")
        if isinstance(self.lookup_roots, str) or not all(isinstance(root, str) for root in self.lookup_roots):
            raise ConfigurationError("lookup_roots must be a sequence of paths")
        object.__setattr__(self, 'lookup_roots', tuple(self.lookup_roots))

    @property
    def browser_targets(self) -> Optional[BrowserTargets]:
        """Targets for the prefixer, or None when prefixing is off."""
        if self.autoprefixer is True:
            return BrowserTargets()
        if self.autoprefixer is False:
            return None
        return self.autoprefixer

    @property
    def emit_comments(self) -> bool:
        return self.comments and not self.compress

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'BundleOptions':
        """Build options from a configuration mapping.

        Args:
            data: Options using snake_case or camelCase keys

        Returns:
            Validated options

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid
        """
        known = {field.name for field in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown option: {key}")
            values[name] = value

        if 'autoprefixer' in values:
            values['autoprefixer'] = _parse_autoprefixer(values['autoprefixer'])
        if 'lookup_roots' in values:
            roots = values['lookup_roots']
            values['lookup_roots'] = (roots,) if isinstance(roots, str) else tuple(roots or ())
        return cls(**values)


def _parse_autoprefixer(value: Any) -> AutoprefixerOption:
    if value is None:
        return False
    if isinstance(value, (bool, BrowserTargets)):
        return value
    if isinstance(value, Mapping):
        unknown = set(value) - {'browsers', 'config'}
        if unknown:
            raise ConfigurationError(f"Unknown autoprefixer option: {sorted(unknown)[0]}")
        browsers = value.get('browsers')
        if isinstance(browsers, str):
            browsers = [browsers]
        if browsers is not None and not all(isinstance(browser, str) for browser in browsers):
            raise ConfigurationError("autoprefixer browsers must be strings")
        config = value.get('config')
        if config is not None and not isinstance(config, str):
            raise ConfigurationError("autoprefixer config must be a string")
        return BrowserTargets(tuple(browsers) if browsers is not None else None, config)
    raise ConfigurationError(f"Invalid autoprefixer option: {value!r}")


__all__ = ['Bundle', 'BundleOptions', 'UrlPolicy', 'SourceMapOption']
