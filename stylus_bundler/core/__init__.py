"""Core functionality for compiling stylesheet bundles."""

from .compiler import Compiler, CompiledUnit, StylusCompiler
from .resolver import Fragment, SeenFiles, resolve
from .urls import RewriteContext, UrlRewriter, rewrite
from .prefixer import BrowserTargets, load_ruleset, prefix, prefix_tree, resolve_targets
from .sourcemap import MapArtifact, emit, write_artifact, awrite_artifact
from .compressor import compress
from .options import Bundle, BundleOptions
from .pipeline import BundleOutput, PipelineContext, compile_bundle
from .tree import render

__all__ = [
    'Compiler',
    'CompiledUnit',
    'StylusCompiler',
    'Fragment',
    'SeenFiles',
    'resolve',
    'RewriteContext',
    'UrlRewriter',
    'rewrite',
    'BrowserTargets',
    'load_ruleset',
    'prefix',
    'prefix_tree',
    'resolve_targets',
    'MapArtifact',
    'emit',
    'write_artifact',
    'awrite_artifact',
    'compress',
    'Bundle',
    'BundleOptions',
    'BundleOutput',
    'PipelineContext',
    'compile_bundle',
    'render',
]
