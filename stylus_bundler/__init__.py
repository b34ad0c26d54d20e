"""Stylus Bundler: compiles Stylus block fragments into one CSS bundle."""

from .core import (
    Bundle,
    BundleOptions,
    BundleOutput,
    BrowserTargets,
    Fragment,
    MapArtifact,
    StylusCompiler,
    compile_bundle,
)
from .utils.config import VERSION
from .utils.error import (
    BundlerError,
    ResolutionError,
    SourceSyntaxError,
    AssetReadError,
    PrefixConfigError,
    ConfigurationError,
    FileOperationError,
)

__version__ = VERSION

__all__ = [
    'Bundle',
    'BundleOptions',
    'BundleOutput',
    'BrowserTargets',
    'Fragment',
    'MapArtifact',
    'StylusCompiler',
    'compile_bundle',
    'BundlerError',
    'ResolutionError',
    'SourceSyntaxError',
    'AssetReadError',
    'PrefixConfigError',
    'ConfigurationError',
    'FileOperationError',
]
