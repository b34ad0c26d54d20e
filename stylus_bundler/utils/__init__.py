"""Shared utilities for Stylus Bundler."""

from .error import (
    BundlerError,
    ResolutionError,
    SourceSyntaxError,
    AssetReadError,
    PrefixConfigError,
    ConfigurationError,
    FileOperationError,
)
from .logging import setup_logging, get_logger

__all__ = [
    'BundlerError',
    'ResolutionError',
    'SourceSyntaxError',
    'AssetReadError',
    'PrefixConfigError',
    'ConfigurationError',
    'FileOperationError',
    'setup_logging',
    'get_logger',
]
